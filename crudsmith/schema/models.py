"""Pydantic v2 models for introspected schema metadata.

Defines the raw column/foreign-key records a schema source returns and the
normalised ``FieldDescriptor`` / ``TableDescriptor`` the rest of crudsmith
works with. Every model is frozen: derived data is produced by building new
objects, never by patching existing ones.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class DeclaredType(str, Enum):
    """Normalised primitive storage type of a column."""
    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    JSON = "json"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Raw schema records
# ---------------------------------------------------------------------------

class ColumnInfo(BaseModel):
    """One column exactly as the schema source reports it."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Column name")
    raw_type: str = Field(..., description="Data-source type string, e.g. 'varchar(100)'")
    nullable: bool = Field(default=True)
    default: Optional[Any] = Field(default=None, description="Default literal, None when absent")
    key: str = Field(default="", description="Key role: 'PRI', 'UNI', 'MUL' or ''")


class ForeignKeyInfo(BaseModel):
    """A single-column foreign key: local column -> referenced table/column."""
    model_config = ConfigDict(frozen=True)

    local_column: str
    referenced_table: str
    referenced_column: str = Field(default="id")


# ---------------------------------------------------------------------------
# Normalised descriptors
# ---------------------------------------------------------------------------

class FieldDescriptor(BaseModel):
    """Normalised representation of one column's schema metadata."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Field name, unique within its table")
    declared_type: DeclaredType = Field(default=DeclaredType.STRING)
    base_type: str = Field(
        default="", description="Finer type name without parameters, e.g. 'bigint', 'longtext'"
    )
    raw_type: str = Field(default="", description="Original type string, used for precision")
    nullable: bool = Field(default=False)
    has_default: bool = Field(default=False)
    default_value: Optional[Any] = Field(default=None)
    is_unique_key: bool = Field(default=False)
    is_foreign_key: bool = Field(default=False)
    references_table: Optional[str] = Field(
        default=None, description="Referenced table when explicit foreign-key metadata exists"
    )
    min_length: Optional[int] = Field(default=None, description="Manual minimum length")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def required(self) -> bool:
        """A value must be supplied: the column is neither nullable nor defaulted."""
        return not self.nullable and not self.has_default


class RelationKind(str, Enum):
    """Direction of a resolved relation."""
    BELONGS_TO = "belongsTo"
    HAS_MANY = "hasMany"


class RelationDescriptor(BaseModel):
    """A belongs-to or has-many relation between two tables.

    ``local_field`` is set for belongs-to (a foreign-key field of the owning
    table); ``foreign_field`` is set for has-many (the column on the related
    table that points back).
    """
    model_config = ConfigDict(frozen=True)

    kind: RelationKind
    name: str = Field(..., description="Programmatic relation identifier, e.g. 'category'")
    related_table: str
    related_entity: str = Field(..., description="Studly singular entity, e.g. 'Category'")
    display_name: str = Field(..., description="Human-readable, locale-specific label")
    local_field: Optional[str] = Field(default=None)
    foreign_field: Optional[str] = Field(default=None)
    owner_key: str = Field(default="id", description="Referenced key column")


class TableDescriptor(BaseModel):
    """A table's ordered field list and resolved relations."""
    model_config = ConfigDict(frozen=True)

    name: str
    fields: list[FieldDescriptor] = Field(default_factory=list)
    foreign_keys: list[ForeignKeyInfo] = Field(default_factory=list)
    relations: list[RelationDescriptor] = Field(default_factory=list)
    present_audit_columns: list[str] = Field(
        default_factory=list,
        description="Excluded columns that exist on the table (id, timestamps)",
    )
    soft_deletes: bool = Field(default=False)

    def field(self, name: str) -> Optional[FieldDescriptor]:
        """Return the field called *name*, if any."""
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None

    def with_relations(self, relations: list[RelationDescriptor]) -> "TableDescriptor":
        """Return a copy carrying *relations*."""
        return self.model_copy(update={"relations": list(relations)})


# ---------------------------------------------------------------------------
# Manual field definitions
# ---------------------------------------------------------------------------

ManualFieldType = Literal[
    "string", "text", "integer", "float", "boolean",
    "date", "datetime", "email", "password", "file",
]


class ManualFieldSpec(BaseModel):
    """A field defined by hand when the table does not exist yet."""
    name: str = Field(..., min_length=1)
    type: ManualFieldType = Field(default="string")
    unique: bool = Field(default=False)
    nullable: bool = Field(default=False)
    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=1)
