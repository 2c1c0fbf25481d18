"""crudsmith schema layer.

Reads table metadata from a relational data source (or from hand-written
field definitions) and normalises it into field and table descriptors.

Usage::

    from crudsmith.schema import SchemaIntrospector, SQLAlchemySchemaSource

    with SQLAlchemySchemaSource("sqlite:///app.db") as source:
        fields = SchemaIntrospector(source).introspect("products")
"""

from crudsmith.schema.models import (
    ColumnInfo,
    DeclaredType,
    FieldDescriptor,
    ForeignKeyInfo,
    ManualFieldSpec,
    RelationDescriptor,
    RelationKind,
    TableDescriptor,
)
from crudsmith.schema.source import (
    InMemorySchemaSource,
    IntrospectionFailure,
    SchemaError,
    SchemaNotFound,
    SchemaSource,
    SQLAlchemySchemaSource,
)
from crudsmith.schema.introspector import (
    SchemaIntrospector,
    fields_from_manual,
    load_manual_fields,
)

__all__ = [
    "ColumnInfo",
    "DeclaredType",
    "FieldDescriptor",
    "ForeignKeyInfo",
    "ManualFieldSpec",
    "RelationDescriptor",
    "RelationKind",
    "TableDescriptor",
    "InMemorySchemaSource",
    "IntrospectionFailure",
    "SchemaError",
    "SchemaNotFound",
    "SchemaSource",
    "SQLAlchemySchemaSource",
    "SchemaIntrospector",
    "fields_from_manual",
    "load_manual_fields",
]
