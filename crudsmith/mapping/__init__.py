"""crudsmith mapping engine.

Classifies fields, resolves relations between tables and maps table
descriptors onto the artifact sets the scaffolder renders.

Usage::

    from crudsmith.mapping import ArtifactMapper, RelationshipResolver, classify

    report = resolver.resolve("products")
    artifacts = ArtifactMapper().map(descriptor.with_relations(report.relations))
    print(artifacts.rule_strings())
"""

from crudsmith.mapping.models import (
    ArtifactSet,
    ColumnKind,
    FieldRules,
    FormFieldDescriptor,
    ListingContext,
    NestedResourceRef,
    RelationOutcome,
    RelationWarning,
    ResolutionReport,
    SemanticKind,
    SortPolicy,
    TableColumnDescriptor,
    ValidationRule,
    WidgetKind,
)
from crudsmith.mapping.classifier import (
    CLASSIFICATION_RULES,
    ClassificationRule,
    classify,
    label_for,
    max_length,
    validation_rules,
)
from crudsmith.mapping.relations import (
    EntityRegistry,
    FilesystemEntityRegistry,
    RelationshipResolver,
    StaticEntityRegistry,
)
from crudsmith.mapping.mapper import ArtifactMapper

__all__ = [
    "ArtifactSet",
    "ColumnKind",
    "FieldRules",
    "FormFieldDescriptor",
    "ListingContext",
    "NestedResourceRef",
    "RelationOutcome",
    "RelationWarning",
    "ResolutionReport",
    "SemanticKind",
    "SortPolicy",
    "TableColumnDescriptor",
    "ValidationRule",
    "WidgetKind",
    "CLASSIFICATION_RULES",
    "ClassificationRule",
    "classify",
    "label_for",
    "max_length",
    "validation_rules",
    "EntityRegistry",
    "FilesystemEntityRegistry",
    "RelationshipResolver",
    "StaticEntityRegistry",
    "ArtifactMapper",
]
