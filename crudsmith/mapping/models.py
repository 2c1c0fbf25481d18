"""Pydantic v2 models produced by the mapping layer.

``SemanticKind`` is the classifier's verdict on a field. The form-field,
table-column, validation and nested-resource descriptors together make up
an ``ArtifactSet``, the plain data handed to the template renderer. The
resolver's structured outcomes (``RelationWarning``, ``ResolutionReport``)
live here as well.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from crudsmith.schema.models import RelationDescriptor, RelationKind


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class SemanticKind(str, Enum):
    """What a field means, as opposed to how it is stored."""
    IDENTIFIER = "identifier"
    FOREIGN_KEY = "foreignKey"
    ORDER_FIELD = "orderField"
    EMAIL = "email"
    PASSWORD = "password"
    PASSWORD_CONFIRMATION = "passwordConfirmation"
    BOOLEAN = "boolean"
    FILE = "file"
    TEXT = "text"
    LONG_TEXT = "longText"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    JSON = "json"
    PLAIN_STRING = "plainString"


class WidgetKind(str, Enum):
    """Presentation widget category of a form field."""
    SELECT = "select"
    HIDDEN_AUTO_INCREMENT = "hiddenAutoIncrement"
    TOGGLE = "toggle"
    DATE_PICKER = "datePicker"
    DATETIME_PICKER = "dateTimePicker"
    NUMERIC = "numeric"
    TEXTAREA = "textarea"
    PASSWORD = "password"
    EMAIL = "email"
    TELEPHONE = "telephone"
    URL = "url"
    KEY_VALUE = "keyValue"
    FILE_UPLOAD = "fileUpload"
    TEXT = "text"


class ColumnKind(str, Enum):
    """Presentation category of a table column."""
    TEXT = "text"
    RELATION = "relation"
    BOOLEAN_ICON = "booleanIcon"
    DATE = "date"
    DATETIME = "dateTime"
    NUMERIC = "numeric"
    LIMITED_TEXT = "limitedText"


class ListingContext(str, Enum):
    """Whether descriptors are built for a top-level resource or a nested one."""
    PRIMARY = "primary"
    NESTED = "nested"


class RelationOutcome(str, Enum):
    """Why the resolver left a candidate relation out (or renamed it)."""
    SCHEMA_NOT_FOUND = "SchemaNotFound"
    INTROSPECTION_FAILURE = "IntrospectionFailure"
    AMBIGUOUS_RELATION = "AmbiguousRelation"
    MISSING_DEPENDENCY = "MissingDependency"
    JOIN_TABLE = "JoinTable"
    EXCLUDED_COLUMN = "ExcludedColumn"
    NOT_A_FOREIGN_KEY = "NotAForeignKey"
    NAME_COLLISION = "NameCollision"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationRule(BaseModel):
    """One validation constraint, e.g. ``max:100`` or ``exists:categories,id``."""
    model_config = ConfigDict(frozen=True)

    name: str
    params: tuple[str, ...] = Field(default=())

    def render(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}:{','.join(self.params)}"


class FieldRules(BaseModel):
    """The ordered validation rules of one field."""
    model_config = ConfigDict(frozen=True)

    field: str
    rules: tuple[ValidationRule, ...] = Field(default=())

    def names(self) -> list[str]:
        return [rule.name for rule in self.rules]

    def render(self) -> str:
        """Pipe-joined rule string: ``required|string|max:100``."""
        return "|".join(rule.render() for rule in self.rules)


# ---------------------------------------------------------------------------
# Form and table descriptors
# ---------------------------------------------------------------------------

class FormFieldDescriptor(BaseModel):
    """One input of the generated form."""
    model_config = ConfigDict(frozen=True)

    name: str
    kind: SemanticKind
    widget: WidgetKind
    label: str
    required: bool = False
    max_length: Optional[int] = None
    step: Optional[str] = Field(default=None, description="Numeric step, e.g. '0.01'")
    input_mode: Optional[str] = None
    relationship: Optional[str] = Field(
        default=None, description="Relation identifier backing a select widget"
    )
    title_attribute: Optional[str] = None
    default: Optional[Any] = Field(default=None, description="Literal default, e.g. True for toggles")
    full_width: bool = False
    rows: Optional[int] = None
    same_as: Optional[str] = Field(default=None, description="Field a confirmation must equal")
    synthetic: bool = Field(default=False, description="No backing column, e.g. a password confirmation")


class TableColumnDescriptor(BaseModel):
    """One column of the generated listing."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="State path, e.g. 'category.name'")
    kind: ColumnKind
    label: str
    sortable: bool = False
    searchable: bool = False
    hidden_by_default: bool = False
    limit: Optional[int] = None


class SortPolicy(BaseModel):
    """Default ordering of a listing and whether rows can be reordered."""
    model_config = ConfigDict(frozen=True)

    column: str = "id"
    direction: str = "desc"
    reorderable: bool = False


class NestedResourceRef(BaseModel):
    """A has-many relation rendered as an independent nested resource."""
    model_config = ConfigDict(frozen=True)

    relation: str = Field(..., description="Relation identifier on the parent entity")
    related_table: str
    related_entity: str
    display_name: str
    foreign_field: str
    manager_class: str = Field(..., description="Class name of the nested manager")


class ArtifactSet(BaseModel):
    """Everything the renderer needs for one table."""
    model_config = ConfigDict(frozen=True)

    table: str
    entity: str
    context: ListingContext = ListingContext.PRIMARY
    validation_rules: list[FieldRules] = Field(default_factory=list)
    form_fields: list[FormFieldDescriptor] = Field(default_factory=list)
    table_columns: list[TableColumnDescriptor] = Field(default_factory=list)
    relations: list[RelationDescriptor] = Field(default_factory=list)
    nested_resources: list[NestedResourceRef] = Field(default_factory=list)
    sort: SortPolicy = Field(default_factory=SortPolicy)
    soft_deletes: bool = False
    fillable: list[str] = Field(default_factory=list, description="Mass-assignable fields")
    hidden: list[str] = Field(default_factory=list, description="Fields kept out of serialisation")
    casts: dict[str, str] = Field(default_factory=dict, description="Attribute casts by field")

    def rule_strings(self) -> dict[str, str]:
        """``{field: "required|string|max:100"}`` in field order."""
        return {entry.field: entry.render() for entry in self.validation_rules}

    @property
    def belongs_to(self) -> list[RelationDescriptor]:
        return [r for r in self.relations if r.kind == RelationKind.BELONGS_TO]

    @property
    def has_many(self) -> list[RelationDescriptor]:
        return [r for r in self.relations if r.kind == RelationKind.HAS_MANY]


# ---------------------------------------------------------------------------
# Resolver outcomes
# ---------------------------------------------------------------------------

class RelationWarning(BaseModel):
    """A structured, human-readable note about a skipped or altered relation."""
    model_config = ConfigDict(frozen=True)

    outcome: RelationOutcome
    table: str = Field(..., description="Table the outcome concerns")
    message: str


class ResolutionReport(BaseModel):
    """Relations resolved for one table plus everything left out on the way."""
    model_config = ConfigDict(frozen=True)

    table: str
    relations: list[RelationDescriptor] = Field(default_factory=list)
    warnings: list[RelationWarning] = Field(default_factory=list)

    @property
    def belongs_to(self) -> list[RelationDescriptor]:
        return [r for r in self.relations if r.kind == RelationKind.BELONGS_TO]

    @property
    def has_many(self) -> list[RelationDescriptor]:
        return [r for r in self.relations if r.kind == RelationKind.HAS_MANY]

    def outcomes(self, outcome: RelationOutcome) -> list[RelationWarning]:
        return [w for w in self.warnings if w.outcome == outcome]
