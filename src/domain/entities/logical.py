from dataclasses import dataclass, field
from typing import Dict, List, Optional
from enum import Enum


class ElementKind(Enum):
    """Kinds of diagram elements."""
    CLASS = "class"
    INTERFACE = "interface"
    ENUMERATION = "enumeration"
    PACKAGE = "package"
    NOTE = "note"


class RelationshipKind(Enum):
    """UML relationship kinds."""
    ASSOCIATION = "association"
    AGGREGATION = "aggregation"
    COMPOSITION = "composition"
    GENERALIZATION = "generalization"
    DEPENDENCY = "dependency"
    REALIZATION = "realization"


# Element kinds that become tables
TABLE_KINDS = (ElementKind.CLASS, ElementKind.INTERFACE)


@dataclass(frozen=True)
class Element:
    """A class-like element of the diagram."""
    id: str
    name: str
    kind: ElementKind = ElementKind.CLASS
    attributes: List[str] = field(default_factory=list)
    methods: List[str] = field(default_factory=list)

    @property
    def maps_to_table(self) -> bool:
        return self.kind in TABLE_KINDS


@dataclass(frozen=True)
class Relationship:
    """A relationship between two diagram elements."""
    id: str
    kind: RelationshipKind
    source_id: str
    target_id: str
    source_multiplicity: str = "1"
    target_multiplicity: str = "1"
    label: Optional[str] = None


@dataclass(frozen=True)
class LogicalModel:
    """Root of the class diagram: elements and relationships keyed by id."""
    elements: Dict[str, Element] = field(default_factory=dict)
    relationships: Dict[str, Relationship] = field(default_factory=dict)
    version: int = 0

    def get_element(self, element_id: str) -> Optional[Element]:
        return self.elements.get(element_id)
