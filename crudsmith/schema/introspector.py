"""Schema introspection.

Reads a table's columns and foreign keys from a ``SchemaSource`` and
normalises them into ``FieldDescriptor`` objects, dropping the configured
column exclusions. Also converts hand-written field definitions (for tables
that do not exist yet) into the same descriptor shape.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from crudsmith.config import ExclusionConfig
from crudsmith.schema.models import (
    ColumnInfo,
    DeclaredType,
    FieldDescriptor,
    ForeignKeyInfo,
    ManualFieldSpec,
    TableDescriptor,
)
from crudsmith.schema.source import SchemaNotFound, SchemaSource


# ---------------------------------------------------------------------------
# Type normalisation
# ---------------------------------------------------------------------------

_TYPE_MAP: dict[str, DeclaredType] = {
    # character types
    "varchar": DeclaredType.STRING,
    "nvarchar": DeclaredType.STRING,
    "char": DeclaredType.STRING,
    "nchar": DeclaredType.STRING,
    "character": DeclaredType.STRING,
    "string": DeclaredType.STRING,
    "enum": DeclaredType.STRING,
    "set": DeclaredType.STRING,
    "uuid": DeclaredType.STRING,
    # long text
    "text": DeclaredType.TEXT,
    "tinytext": DeclaredType.TEXT,
    "mediumtext": DeclaredType.TEXT,
    "longtext": DeclaredType.TEXT,
    "clob": DeclaredType.TEXT,
    # integers
    "int": DeclaredType.INTEGER,
    "integer": DeclaredType.INTEGER,
    "bigint": DeclaredType.INTEGER,
    "smallint": DeclaredType.INTEGER,
    "mediumint": DeclaredType.INTEGER,
    "tinyint": DeclaredType.INTEGER,
    "serial": DeclaredType.INTEGER,
    "bigserial": DeclaredType.INTEGER,
    # fractional
    "float": DeclaredType.FLOAT,
    "double": DeclaredType.FLOAT,
    "decimal": DeclaredType.FLOAT,
    "numeric": DeclaredType.FLOAT,
    "real": DeclaredType.FLOAT,
    # others
    "bool": DeclaredType.BOOLEAN,
    "boolean": DeclaredType.BOOLEAN,
    "date": DeclaredType.DATE,
    "datetime": DeclaredType.DATETIME,
    "timestamp": DeclaredType.DATETIME,
    "json": DeclaredType.JSON,
    "jsonb": DeclaredType.JSON,
}

_BASE_TYPE_RE = re.compile(r"^\s*([a-z]+)")


def base_type_of(raw_type: str) -> str:
    """Return the type name without parameters: ``varchar(100)`` -> ``varchar``."""
    match = _BASE_TYPE_RE.match(raw_type.lower())
    return match.group(1) if match else ""


def normalize_type(raw_type: str) -> DeclaredType:
    """Map a data-source type string onto a ``DeclaredType``."""
    return _TYPE_MAP.get(base_type_of(raw_type), DeclaredType.UNKNOWN)


# ---------------------------------------------------------------------------
# Introspector
# ---------------------------------------------------------------------------


class SchemaIntrospector:
    """Builds field and table descriptors from a schema source.

    Args:
        source: Where column and foreign-key metadata is read from.
        exclusions: Column names to drop. Defaults to ``ExclusionConfig()``.
    """

    def __init__(
        self,
        source: SchemaSource,
        exclusions: Optional[ExclusionConfig] = None,
    ) -> None:
        self.source = source
        self.exclusions = exclusions or ExclusionConfig()

    def introspect(self, table: str) -> list[FieldDescriptor]:
        """Return the table's ordered field list, minus excluded columns.

        Raises:
            SchemaNotFound: If *table* does not exist.
        """
        return self.describe(table).fields

    def describe(self, table: str) -> TableDescriptor:
        """Return a ``TableDescriptor`` (without relations) for *table*.

        Raises:
            SchemaNotFound: If *table* does not exist.
            IntrospectionFailure: If a schema query errors.
        """
        if not self.source.has_table(table):
            raise SchemaNotFound(table)

        columns = self.source.get_columns(table)
        foreign_keys = self.source.get_foreign_keys(table)
        fk_by_column = {fk.local_column: fk for fk in foreign_keys}
        excluded = self.exclusions.columns

        fields = [
            _field_from_column(column, fk_by_column.get(column.name))
            for column in columns
            if column.name not in excluded
        ]
        return TableDescriptor(
            name=table,
            fields=fields,
            foreign_keys=foreign_keys,
            present_audit_columns=[c.name for c in columns if c.name in excluded],
            soft_deletes=any(c.name == "deleted_at" for c in columns),
        )


def _field_from_column(column: ColumnInfo, fk: Optional[ForeignKeyInfo]) -> FieldDescriptor:
    raw_type = column.raw_type.lower()
    return FieldDescriptor(
        name=column.name,
        declared_type=normalize_type(raw_type),
        base_type=base_type_of(raw_type),
        raw_type=raw_type,
        nullable=column.nullable,
        has_default=column.default is not None,
        default_value=column.default,
        is_unique_key=column.key == "UNI",
        is_foreign_key=fk is not None or column.name.endswith("_id"),
        references_table=fk.referenced_table if fk else None,
    )


# ---------------------------------------------------------------------------
# Manual field definitions
# ---------------------------------------------------------------------------

# manual type -> (declared type, raw type)
_MANUAL_TYPES: dict[str, tuple[DeclaredType, str]] = {
    "string": (DeclaredType.STRING, "varchar(255)"),
    "text": (DeclaredType.TEXT, "text"),
    "integer": (DeclaredType.INTEGER, "integer"),
    "float": (DeclaredType.FLOAT, "float"),
    "boolean": (DeclaredType.BOOLEAN, "boolean"),
    "date": (DeclaredType.DATE, "date"),
    "datetime": (DeclaredType.DATETIME, "datetime"),
    "email": (DeclaredType.STRING, "email"),
    "password": (DeclaredType.STRING, "password"),
    "file": (DeclaredType.STRING, "file"),
}


def fields_from_manual(specs: Iterable[ManualFieldSpec]) -> list[FieldDescriptor]:
    """Convert hand-written field definitions into ``FieldDescriptor`` objects.

    ``max_length`` becomes the parameter of a ``varchar(n)`` raw type for
    plain string fields. The ``email``, ``password`` and ``file`` types are
    carried verbatim in ``raw_type`` so the classifier can honour them.
    """
    fields: list[FieldDescriptor] = []
    for spec in specs:
        declared, raw_type = _MANUAL_TYPES[spec.type]
        if spec.type == "string" and spec.max_length:
            raw_type = f"varchar({spec.max_length})"
        fields.append(FieldDescriptor(
            name=spec.name,
            declared_type=declared,
            base_type=base_type_of(raw_type),
            raw_type=raw_type,
            nullable=spec.nullable,
            is_unique_key=spec.unique,
            is_foreign_key=spec.name.endswith("_id"),
            min_length=spec.min_length,
        ))
    return fields


def load_manual_fields(path: str | Path) -> list[ManualFieldSpec]:
    """Read manual field definitions from a YAML or JSON file.

    The file holds either a list of field mappings or a mapping with a
    ``fields`` key containing that list.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data: Any = yaml.safe_load(raw) or []
    if isinstance(data, dict):
        data = data.get("fields", [])
    return [ManualFieldSpec.model_validate(item) for item in data]
