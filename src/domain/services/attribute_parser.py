"""Parsing of UML attribute declarations into columns."""
import re
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from src.domain.entities.schema import Column, DataType
from src.domain.entities.rules import NamingConvention

logger = logging.getLogger(__name__)

# name: type [= default] {constraint, ...}
_ATTRIBUTE_RE = re.compile(
    r'^(?P<name>[^:{}=]+):\s*(?P<type>[^{}=]+?)\s*'
    r'(?:=\s*(?P<default>[^{}]+?)\s*)?'
    r'(?:\{(?P<constraints>[^{}]*)\})?\s*$'
)

SUPPORTED_CONSTRAINTS = ("id", "unique", "required")

UML_TYPE_MAP = {
    "string": DataType.STRING,
    "char": DataType.STRING,
    "character": DataType.STRING,
    "text": DataType.STRING,
    "int": DataType.INTEGER,
    "integer": DataType.INTEGER,
    "short": DataType.INTEGER,
    "byte": DataType.INTEGER,
    "long": DataType.BIGINT,
    "bigint": DataType.BIGINT,
    "float": DataType.DECIMAL,
    "double": DataType.DECIMAL,
    "decimal": DataType.DECIMAL,
    "bigdecimal": DataType.DECIMAL,
    "number": DataType.DECIMAL,
    "boolean": DataType.BOOLEAN,
    "bool": DataType.BOOLEAN,
    "date": DataType.DATE,
    "localdate": DataType.DATE,
    "datetime": DataType.TIMESTAMP,
    "timestamp": DataType.TIMESTAMP,
    "localdatetime": DataType.TIMESTAMP,
    "instant": DataType.TIMESTAMP,
    "time": DataType.TIME,
    "localtime": DataType.TIME,
    "byte[]": DataType.BINARY,
    "blob": DataType.BINARY,
    "binary": DataType.BINARY,
    "uuid": DataType.UUID,
    "json": DataType.JSON,
    "map": DataType.JSON,
}


@dataclass
class ParsedAttribute:
    """Result of parsing one attribute declaration."""
    column: Column
    is_primary_key: bool = False
    warnings: List[str] = field(default_factory=list)
    malformed: bool = False


class AttributeParser:
    """
    Parses `name: type {constraints}` declarations.
    Single Responsibility: attribute syntax only, never fails.
    """

    def __init__(self, naming_convention: Optional[NamingConvention] = None):
        self._naming = naming_convention or NamingConvention()

    def parse(self, attribute: str, index: int = 0) -> ParsedAttribute:
        """Parse a raw attribute string; malformed input yields a fallback column and a warning."""
        # Strip UML visibility markers (+, -, #, ~)
        clean = re.sub(r'^[-+#~]\s*', '', (attribute or '').strip()).strip()
        match = _ATTRIBUTE_RE.match(clean)

        if not match or not match.group('name').strip() or not match.group('type').strip():
            logger.debug(f"[AttributeParser] Malformed attribute: {attribute!r}")
            return ParsedAttribute(
                column=Column(name=f"attr_{index}", data_type=DataType.STRING, nullable=True),
                warnings=[
                    f"Malformed attribute \"{attribute}\". "
                    f"Expected format: \"name: type {{constraints}}\""
                ],
                malformed=True,
            )

        name = match.group('name').strip()
        type_str = match.group('type').strip()
        default = match.group('default')
        constraints_str = match.group('constraints') or ''

        constraints = [c.strip().lower() for c in constraints_str.split(',') if c.strip()]
        warnings = []
        unknown = [c for c in constraints if c not in SUPPORTED_CONSTRAINTS]
        if unknown:
            warnings.append(
                f"Unrecognized constraints on \"{name}\": {', '.join(unknown)}. "
                f"Supported: {', '.join(SUPPORTED_CONSTRAINTS)}"
            )

        is_primary_key = "id" in constraints
        is_required = "required" in constraints

        column = Column(
            name=self._naming.column_name(name),
            data_type=self.map_type(type_str),
            nullable=not (is_required or is_primary_key),
            primary_key=is_primary_key,
            unique="unique" in constraints,
            default_value=default.strip() if default else None,
        )
        return ParsedAttribute(column=column, is_primary_key=is_primary_key, warnings=warnings)

    @staticmethod
    def map_type(uml_type: str) -> DataType:
        """Map a UML/Java-ish type name to a logical data type."""
        key = uml_type.strip().lower()
        if key in UML_TYPE_MAP:
            return UML_TYPE_MAP[key]
        # List<String>, String[], Optional<Long>
        base = re.sub(r'<.*>$', '', key)
        base = re.sub(r'\[\s*[0-9.*n]*\s*\]$', '', base).strip()
        return UML_TYPE_MAP.get(base, DataType.STRING)
