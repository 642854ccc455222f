import json
import logging
from typing import Any, Dict, Optional

from src.domain.repositeries.interfaces import IPhysicalModelRepository
from src.domain.entities.schema import (
    Column, ColumnReference, DataType, ForeignKey, Index, PhysicalModel,
    PhysicalRelationship, RelationshipType, Sequence, Table, UniqueConstraint,
)

logger = logging.getLogger(__name__)


class PhysicalModelRepository(IPhysicalModelRepository):
    """
    Repository for physical model persistence as JSON.
    Single Responsibility: (de)serialization of PhysicalModel.
    """

    def load(self, path: str) -> PhysicalModel:
        with open(path, 'r') as f:
            data = json.load(f)
        logger.debug(f"[PhysicalModelRepository] Loaded {path}")
        return self.from_dict(data)

    def save(self, model: PhysicalModel, path: str) -> None:
        with open(path, 'w') as f:
            json.dump(self.to_dict(model), f, indent=2)
        logger.info(f"[PhysicalModelRepository] Saved {len(model.tables)} tables to {path}")

    # ----------------------------------------------------------------- to dict

    def to_dict(self, model: PhysicalModel) -> Dict[str, Any]:
        return {
            "tables": [self._table_to_dict(t) for t in model.tables.values()],
            "relationships": [
                {
                    "name": r.name,
                    "type": r.relationship_type.value,
                    "sourceTable": r.source_table,
                    "targetTable": r.target_table,
                    "columns": list(r.columns),
                    "junctionTable": r.junction_table,
                    "onDelete": r.on_delete,
                }
                for r in model.relationships
            ],
            "sequences": [
                {"name": s.name, "table": s.table, "column": s.column}
                for s in model.sequences
            ],
            "normalizationLevel": model.normalization_level,
            "appliedNormalizations": list(model.applied_normalizations),
            "metadata": dict(model.metadata),
        }

    def _table_to_dict(self, table: Table) -> Dict[str, Any]:
        return {
            "name": table.name,
            "columns": [self._column_to_dict(c) for c in table.columns],
            "primaryKeys": list(table.primary_keys),
            "foreignKeys": [
                {
                    "name": fk.name,
                    "columns": list(fk.columns),
                    "referencedTable": fk.referenced_table,
                    "referencedColumns": list(fk.referenced_columns),
                    "onDelete": fk.on_delete,
                }
                for fk in table.foreign_keys
            ],
            "indexes": [
                {"name": i.name, "columns": list(i.columns), "unique": i.unique}
                for i in table.indexes
            ],
            "uniqueConstraints": [
                {"name": u.name, "columns": list(u.columns)}
                for u in table.unique_constraints
            ],
            "comment": table.comment,
        }

    @staticmethod
    def _column_to_dict(column: Column) -> Dict[str, Any]:
        data = {
            "name": column.name,
            "type": column.data_type.value,
            "nullable": column.nullable,
            "primaryKey": column.primary_key,
            "unique": column.unique,
            "defaultValue": column.default_value,
            "length": column.length,
            "references": None,
        }
        if column.references is not None:
            data["references"] = {"table": column.references.table, "column": column.references.column}
        return data

    # --------------------------------------------------------------- from dict

    def from_dict(self, data: Dict[str, Any]) -> PhysicalModel:
        """Rebuild a model; accepts tables as a list or as a name-keyed object."""
        raw_tables = data.get("tables", [])
        if isinstance(raw_tables, dict):
            raw_tables = [dict(t, name=t.get("name", name)) for name, t in raw_tables.items()]

        tables = {}
        for raw in raw_tables:
            table = self._table_from_dict(raw)
            tables[table.name] = table

        return PhysicalModel(
            tables=tables,
            relationships=[
                PhysicalRelationship(
                    name=r["name"],
                    relationship_type=RelationshipType(r["type"]),
                    source_table=r["sourceTable"],
                    target_table=r["targetTable"],
                    columns=list(r.get("columns", [])),
                    junction_table=r.get("junctionTable"),
                    on_delete=r.get("onDelete"),
                )
                for r in data.get("relationships", [])
            ],
            sequences=[
                Sequence(name=s["name"], table=s["table"], column=s.get("column"))
                for s in data.get("sequences", [])
            ],
            normalization_level=data.get("normalizationLevel", 3),
            applied_normalizations=list(data.get("appliedNormalizations", [])),
            metadata=dict(data.get("metadata", {})),
        )

    def _table_from_dict(self, raw: Dict[str, Any]) -> Table:
        return Table(
            name=raw["name"],
            columns=[self._column_from_dict(c) for c in raw.get("columns", [])],
            primary_keys=list(raw.get("primaryKeys", [])),
            foreign_keys=[
                ForeignKey(
                    name=fk["name"],
                    columns=list(fk["columns"]),
                    referenced_table=fk["referencedTable"],
                    referenced_columns=list(fk["referencedColumns"]),
                    on_delete=fk.get("onDelete"),
                )
                for fk in raw.get("foreignKeys", [])
            ],
            indexes=[
                Index(name=i["name"], columns=list(i["columns"]), unique=i.get("unique", False))
                for i in raw.get("indexes", [])
            ],
            unique_constraints=[
                UniqueConstraint(name=u["name"], columns=list(u["columns"]))
                for u in raw.get("uniqueConstraints", [])
            ],
            comment=raw.get("comment"),
        )

    @staticmethod
    def _column_from_dict(raw: Dict[str, Any]) -> Column:
        references: Optional[ColumnReference] = None
        if raw.get("references"):
            references = ColumnReference(table=raw["references"]["table"], column=raw["references"]["column"])
        return Column(
            name=raw["name"],
            data_type=DataType(raw.get("type", DataType.STRING.value)),
            nullable=raw.get("nullable", True),
            primary_key=raw.get("primaryKey", False),
            unique=raw.get("unique", False),
            default_value=raw.get("defaultValue"),
            length=raw.get("length"),
            references=references,
        )
