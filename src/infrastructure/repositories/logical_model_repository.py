import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from src.domain.repositeries.interfaces import ILogicalModelRepository
from src.domain.entities.logical import Element, ElementKind, LogicalModel, Relationship, RelationshipKind

logger = logging.getLogger(__name__)

# Legacy key -> canonical key, applied once at ingestion
ELEMENT_ALIASES = {
    "className": "name",
    "elementType": "kind",
}
RELATIONSHIP_ALIASES = {
    "relationship": "kind",
    "type": "kind",
    "source": "sourceId",
    "target": "targetId",
    "sourceCardinality": "sourceMultiplicity",
    "targetCardinality": "targetMultiplicity",
}


class LogicalModelRepository(ILogicalModelRepository):
    """
    Repository for class diagram ingestion.
    Single Responsibility: diagram JSON parsing and shape normalization.

    Problems are collected and returned next to the model; entries that
    cannot be read are skipped, the rest of the diagram is still parsed.
    """

    def load(self, path: str) -> Tuple[LogicalModel, List[str]]:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"[LogicalModelRepository] Cannot read {path}: {e}")
            return LogicalModel(), [f"Cannot read diagram file '{path}': {e}"]
        return self.parse(data)

    def parse(self, json_data: Dict[str, Any]) -> Tuple[LogicalModel, List[str]]:
        """Parse a serialized diagram."""
        errors: List[str] = []
        if not isinstance(json_data, dict):
            return LogicalModel(), ["Diagram must be a JSON object with 'elements' and 'relationships'"]

        elements: Dict[str, Element] = {}
        for key, raw in self._entries(json_data.get("elements"), "elements", errors):
            element = self._parse_element(key, raw, errors)
            if element is not None:
                elements[element.id] = element

        relationships: Dict[str, Relationship] = {}
        for key, raw in self._entries(json_data.get("relationships"), "relationships", errors):
            relationship = self._parse_relationship(key, raw, errors)
            if relationship is not None:
                relationships[relationship.id] = relationship

        version = json_data.get("version", 0)
        model = LogicalModel(
            elements=elements,
            relationships=relationships,
            version=version if isinstance(version, int) else 0,
        )
        logger.info(
            f"[LogicalModelRepository] Parsed {len(elements)} elements, "
            f"{len(relationships)} relationships, {len(errors)} error(s)"
        )
        return model, errors

    @staticmethod
    def _entries(section: Any, label: str, errors: List[str]) -> Iterable[Tuple[Optional[str], Any]]:
        """Accept both `{id: {...}}` maps and lists of objects carrying an `id`."""
        if section is None:
            return []
        if isinstance(section, dict):
            return list(section.items())
        if isinstance(section, list):
            return [(None, item) for item in section]
        errors.append(f"'{label}' must be an object or a list")
        return []

    @staticmethod
    def _normalize(raw: Dict[str, Any], aliases: Dict[str, str]) -> Dict[str, Any]:
        data = dict(raw)
        for legacy, canonical in aliases.items():
            if legacy not in data:
                continue
            value = data.pop(legacy)
            data.setdefault(canonical, value)
        return data

    def _parse_element(self, key: Optional[str], raw: Any, errors: List[str]) -> Optional[Element]:
        if not isinstance(raw, dict):
            errors.append(f"Element {key or '?'} must be an object")
            return None

        data = self._normalize(raw, ELEMENT_ALIASES)
        element_id = str(data.get("id") or key or "")
        if not element_id:
            errors.append("Element without id")
            return None

        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append(f"Element {element_id} has no name")
            return None

        kind_value = str(data.get("kind", ElementKind.CLASS.value)).lower()
        try:
            kind = ElementKind(kind_value)
        except ValueError:
            errors.append(f"Element {element_id} has unknown kind '{kind_value}'")
            return None

        attributes = data.get("attributes", [])
        methods = data.get("methods", [])
        if not isinstance(attributes, list) or not isinstance(methods, list):
            errors.append(f"Element {element_id}: 'attributes' and 'methods' must be lists")
            return None

        return Element(
            id=element_id,
            name=name.strip(),
            kind=kind,
            attributes=[str(a) for a in attributes],
            methods=[str(m) for m in methods],
        )

    def _parse_relationship(self, key: Optional[str], raw: Any, errors: List[str]) -> Optional[Relationship]:
        if not isinstance(raw, dict):
            errors.append(f"Relationship {key or '?'} must be an object")
            return None

        data = self._normalize(raw, RELATIONSHIP_ALIASES)
        relationship_id = str(data.get("id") or key or "")
        if not relationship_id:
            errors.append("Relationship without id")
            return None

        kind_value = str(data.get("kind", "")).lower()
        try:
            kind = RelationshipKind(kind_value)
        except ValueError:
            errors.append(f"Relationship {relationship_id} has unknown kind '{kind_value}'")
            return None

        source_id = data.get("sourceId")
        target_id = data.get("targetId")
        if not source_id or not target_id:
            errors.append(f"Relationship {relationship_id} needs both a source and a target")
            return None

        label = data.get("label")
        return Relationship(
            id=relationship_id,
            kind=kind,
            source_id=str(source_id),
            target_id=str(target_id),
            source_multiplicity=str(data.get("sourceMultiplicity") or "1"),
            target_multiplicity=str(data.get("targetMultiplicity") or "1"),
            label=str(label) if label else None,
        )
