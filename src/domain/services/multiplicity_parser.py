"""UML multiplicity parsing."""
from dataclasses import dataclass
from typing import Optional

ONE = "one"
MANY = "many"

_UNBOUNDED = ("*", "n", "N")


@dataclass(frozen=True)
class Multiplicity:
    """Classification of one relationship end."""
    raw: str
    cardinality: str  # "one" or "many"
    optional: bool

    @property
    def is_many(self) -> bool:
        return self.cardinality == MANY


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None


class MultiplicityParser:
    """
    Parses cardinality tokens: "*", "n", "5", "0..1", "1..*".
    Unparseable input falls back to "one", non-optional.
    """

    def parse(self, token: Optional[str]) -> Multiplicity:
        raw = (token or "").strip() or "1"
        return Multiplicity(raw=raw, cardinality=self.cardinality(raw), optional=self.is_optional(raw))

    def cardinality(self, token: str) -> str:
        cleaned = (token or "").strip()

        if cleaned in _UNBOUNDED:
            return MANY

        if ".." in cleaned:
            _, max_str = (s.strip() for s in cleaned.split("..", 1))
            if max_str in _UNBOUNDED:
                return MANY
            maximum = _to_int(max_str)
            return MANY if maximum is not None and maximum > 1 else ONE

        number = _to_int(cleaned) if cleaned else None
        if number is not None and number > 1:
            return MANY
        return ONE

    def is_optional(self, token: str) -> bool:
        cleaned = (token or "").strip()

        # bare "*" is 0..*
        if cleaned == "*":
            return True

        if ".." in cleaned:
            min_str = cleaned.split("..", 1)[0].strip()
            return _to_int(min_str) == 0

        return _to_int(cleaned) == 0 if cleaned else False
