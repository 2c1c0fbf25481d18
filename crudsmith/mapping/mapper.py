"""Artifact mapping.

``ArtifactMapper.map`` turns a ``TableDescriptor`` (fields plus resolved
relations) into the ``ArtifactSet`` the renderer consumes: validation rules,
form fields, table columns, nested-resource references and the listing's
sort policy. Mapping is a pure function of its input and keeps the
introspected column order.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from crudsmith.mapping import vocabulary as vocab
from crudsmith.mapping.classifier import (
    boolean_label,
    classify,
    field_label,
    max_length,
    validation_rules,
)
from crudsmith.mapping.models import (
    ArtifactSet,
    ColumnKind,
    FieldRules,
    FormFieldDescriptor,
    ListingContext,
    NestedResourceRef,
    SemanticKind,
    SortPolicy,
    TableColumnDescriptor,
    ValidationRule,
    WidgetKind,
)
from crudsmith.schema.models import (
    FieldDescriptor,
    RelationDescriptor,
    RelationKind,
    TableDescriptor,
)
from crudsmith.utils import entity_name_for, studly_case

_TRUE_LITERALS = {"1", "true"}
_FALSE_LITERALS = {"0", "false"}

LIMITED_TEXT_LENGTH = 50

_CASTS: dict[SemanticKind, str] = {
    SemanticKind.BOOLEAN: "boolean",
    SemanticKind.JSON: "array",
    SemanticKind.DATE: "date",
    SemanticKind.DATETIME: "datetime",
    SemanticKind.DECIMAL: "float",
    SemanticKind.PASSWORD: "hashed",
}


def boolean_default(value: Any) -> Optional[bool]:
    """``1``/``'1'``/``'true'`` -> True, ``0``/``'0'``/``'false'`` -> False, else None."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    literal = str(value).strip().strip("'\"").lower()
    if literal in _TRUE_LITERALS:
        return True
    if literal in _FALSE_LITERALS:
        return False
    return None


class ArtifactMapper:
    """Maps table descriptors onto renderer-ready artifact sets.

    Args:
        locale: Language of labels (``en`` or ``es``).
        title_attribute: Attribute displayed for related records in select
            widgets and joined columns.
    """

    def __init__(self, locale: str = "en", title_attribute: str = "name") -> None:
        self.locale = locale
        self.title_attribute = title_attribute

    def map(
        self,
        descriptor: TableDescriptor,
        context: ListingContext = ListingContext.PRIMARY,
        omit_fields: Iterable[str] = (),
    ) -> ArtifactSet:
        """Build the artifact set for *descriptor*.

        Args:
            descriptor: Table fields and resolved relations.
            context: ``NESTED`` keeps order fields visible in the listing.
            omit_fields: Fields left out of the form and listing, e.g. the
                foreign key a nested manager fills in from its parent.
        """
        omitted = set(omit_fields)
        kinds = {f.name: classify(f) for f in descriptor.fields}
        belongs_to = {
            r.local_field: r for r in descriptor.relations
            if r.kind == RelationKind.BELONGS_TO and r.local_field
        }
        visible = [f for f in descriptor.fields if f.name not in omitted]

        return ArtifactSet(
            table=descriptor.name,
            entity=entity_name_for(descriptor.name),
            context=context,
            validation_rules=self._validation_rules(descriptor, kinds),
            form_fields=self._form_fields(visible, kinds, belongs_to),
            table_columns=self._table_columns(descriptor, visible, kinds, belongs_to, context),
            relations=list(descriptor.relations),
            nested_resources=[
                self._nested_ref(r) for r in descriptor.relations
                if r.kind == RelationKind.HAS_MANY
            ],
            sort=self._sort_policy(descriptor.fields, kinds),
            soft_deletes=descriptor.soft_deletes,
            fillable=[f.name for f in descriptor.fields],
            hidden=[f.name for f in descriptor.fields if kinds[f.name] == SemanticKind.PASSWORD],
            casts={
                f.name: _CASTS[kinds[f.name]]
                for f in descriptor.fields
                if kinds[f.name] in _CASTS
            },
        )

    # -- Validation --------------------------------------------------------

    def _validation_rules(
        self,
        descriptor: TableDescriptor,
        kinds: dict[str, SemanticKind],
    ) -> list[FieldRules]:
        names = {f.name for f in descriptor.fields}
        result: list[FieldRules] = []
        for field in descriptor.fields:
            kind = kinds[field.name]
            result.append(validation_rules(field, descriptor.name, kind))
            confirm = _confirmation_name(field, kind, names)
            if confirm:
                names.add(confirm)
                result.append(FieldRules(field=confirm, rules=(
                    ValidationRule(name="required"),
                    ValidationRule(name="same", params=(field.name,)),
                )))
        return result

    # -- Form --------------------------------------------------------------

    def _form_fields(
        self,
        fields: list[FieldDescriptor],
        kinds: dict[str, SemanticKind],
        belongs_to: dict[str, RelationDescriptor],
    ) -> list[FormFieldDescriptor]:
        names = {f.name for f in fields}
        result: list[FormFieldDescriptor] = []
        for field in fields:
            kind = kinds[field.name]
            result.append(self._form_field(field, kind, belongs_to.get(field.name)))
            confirm = _confirmation_name(field, kind, names)
            if confirm:
                names.add(confirm)
                result.append(FormFieldDescriptor(
                    name=confirm,
                    kind=SemanticKind.PASSWORD_CONFIRMATION,
                    widget=WidgetKind.PASSWORD,
                    label=field_label(confirm),
                    required=True,
                    same_as=field.name,
                    synthetic=True,
                ))
        return result

    def _form_field(
        self,
        field: FieldDescriptor,
        kind: SemanticKind,
        relation: Optional[RelationDescriptor],
    ) -> FormFieldDescriptor:
        base: dict[str, Any] = {
            "name": field.name,
            "kind": kind,
            "label": field_label(field.name),
            "required": field.required,
        }
        lowered = field.name.lower()

        if kind == SemanticKind.FOREIGN_KEY and relation is not None:
            base["label"] = relation.display_name
            return FormFieldDescriptor(
                **base,
                widget=WidgetKind.SELECT,
                relationship=relation.name,
                title_attribute=self.title_attribute,
            )
        if kind == SemanticKind.ORDER_FIELD:
            return FormFieldDescriptor(**base, widget=WidgetKind.HIDDEN_AUTO_INCREMENT)
        if kind == SemanticKind.EMAIL:
            return FormFieldDescriptor(**base, widget=WidgetKind.EMAIL, max_length=max_length(field))
        if kind in (SemanticKind.PASSWORD, SemanticKind.PASSWORD_CONFIRMATION):
            if kind == SemanticKind.PASSWORD_CONFIRMATION:
                base["required"] = True
            return FormFieldDescriptor(**base, widget=WidgetKind.PASSWORD)
        if kind == SemanticKind.PLAIN_STRING:
            if any(fragment in lowered for fragment in vocab.PHONE_NAME_FRAGMENTS):
                return FormFieldDescriptor(**base, widget=WidgetKind.TELEPHONE, max_length=max_length(field))
            if any(fragment in lowered for fragment in vocab.URL_NAME_FRAGMENTS):
                return FormFieldDescriptor(**base, widget=WidgetKind.URL, max_length=max_length(field))
            return FormFieldDescriptor(**base, widget=WidgetKind.TEXT, max_length=max_length(field))
        if kind == SemanticKind.BOOLEAN:
            base["label"] = boolean_label(field.name, self.locale)
            return FormFieldDescriptor(
                **base, widget=WidgetKind.TOGGLE, default=boolean_default(field.default_value)
            )
        if kind == SemanticKind.LONG_TEXT:
            return FormFieldDescriptor(**base, widget=WidgetKind.TEXTAREA, full_width=True, rows=3)
        if kind == SemanticKind.DATE:
            return FormFieldDescriptor(**base, widget=WidgetKind.DATE_PICKER)
        if kind == SemanticKind.DATETIME:
            return FormFieldDescriptor(**base, widget=WidgetKind.DATETIME_PICKER)
        if kind == SemanticKind.DECIMAL:
            return FormFieldDescriptor(
                **base, widget=WidgetKind.NUMERIC, step="0.01", input_mode="decimal"
            )
        if kind in (SemanticKind.INTEGER, SemanticKind.IDENTIFIER, SemanticKind.FOREIGN_KEY):
            return FormFieldDescriptor(**base, widget=WidgetKind.NUMERIC, input_mode="numeric")
        if kind == SemanticKind.JSON:
            return FormFieldDescriptor(**base, widget=WidgetKind.KEY_VALUE, full_width=True)
        if kind == SemanticKind.FILE:
            return FormFieldDescriptor(**base, widget=WidgetKind.FILE_UPLOAD)
        return FormFieldDescriptor(**base, widget=WidgetKind.TEXT, max_length=max_length(field))

    # -- Listing -----------------------------------------------------------

    def _table_columns(
        self,
        descriptor: TableDescriptor,
        fields: list[FieldDescriptor],
        kinds: dict[str, SemanticKind],
        belongs_to: dict[str, RelationDescriptor],
        context: ListingContext,
    ) -> list[TableColumnDescriptor]:
        audit_labels = vocab.AUDIT_LABELS.get(self.locale, vocab.AUDIT_LABELS["en"])
        present = set(descriptor.present_audit_columns)
        columns: list[TableColumnDescriptor] = []

        if "id" in present:
            columns.append(TableColumnDescriptor(
                name="id", kind=ColumnKind.NUMERIC, label=audit_labels["id"], sortable=True,
            ))

        for field in fields:
            kind = kinds[field.name]
            if kind == SemanticKind.PASSWORD_CONFIRMATION:
                continue
            if kind == SemanticKind.ORDER_FIELD and context == ListingContext.PRIMARY:
                continue
            columns.append(self._table_column(field, kind, belongs_to.get(field.name)))

        for name in ("created_at", "updated_at"):
            if name in present:
                columns.append(TableColumnDescriptor(
                    name=name,
                    kind=ColumnKind.DATETIME,
                    label=audit_labels[name],
                    sortable=True,
                    hidden_by_default=True,
                ))
        return columns

    def _table_column(
        self,
        field: FieldDescriptor,
        kind: SemanticKind,
        relation: Optional[RelationDescriptor],
    ) -> TableColumnDescriptor:
        label = field_label(field.name)

        if kind == SemanticKind.FOREIGN_KEY and relation is not None:
            return TableColumnDescriptor(
                name=f"{relation.name}.{self.title_attribute}",
                kind=ColumnKind.RELATION,
                label=relation.display_name,
                sortable=True,
                searchable=True,
            )
        if kind == SemanticKind.BOOLEAN:
            return TableColumnDescriptor(
                name=field.name,
                kind=ColumnKind.BOOLEAN_ICON,
                label=boolean_label(field.name, self.locale),
            )
        if kind == SemanticKind.DATE:
            return TableColumnDescriptor(name=field.name, kind=ColumnKind.DATE, label=label, sortable=True)
        if kind == SemanticKind.DATETIME:
            return TableColumnDescriptor(
                name=field.name, kind=ColumnKind.DATETIME, label=label, sortable=True
            )
        if kind == SemanticKind.LONG_TEXT:
            return TableColumnDescriptor(
                name=field.name,
                kind=ColumnKind.LIMITED_TEXT,
                label=label,
                searchable=True,
                limit=LIMITED_TEXT_LENGTH,
            )
        if kind in (
            SemanticKind.INTEGER,
            SemanticKind.DECIMAL,
            SemanticKind.IDENTIFIER,
            SemanticKind.ORDER_FIELD,
            SemanticKind.FOREIGN_KEY,
        ):
            return TableColumnDescriptor(
                name=field.name, kind=ColumnKind.NUMERIC, label=label, sortable=True
            )
        if kind == SemanticKind.PASSWORD:
            return TableColumnDescriptor(
                name=field.name, kind=ColumnKind.TEXT, label=label, hidden_by_default=True
            )
        if kind == SemanticKind.JSON:
            return TableColumnDescriptor(
                name=field.name, kind=ColumnKind.TEXT, label=label, hidden_by_default=True
            )
        return TableColumnDescriptor(
            name=field.name, kind=ColumnKind.TEXT, label=label, sortable=True, searchable=True
        )

    # -- Relations and sorting ---------------------------------------------

    @staticmethod
    def _nested_ref(relation: RelationDescriptor) -> NestedResourceRef:
        return NestedResourceRef(
            relation=relation.name,
            related_table=relation.related_table,
            related_entity=relation.related_entity,
            display_name=relation.display_name,
            foreign_field=relation.foreign_field or "",
            manager_class=f"{studly_case(relation.name)}RelationManager",
        )

    @staticmethod
    def _sort_policy(
        fields: list[FieldDescriptor],
        kinds: dict[str, SemanticKind],
    ) -> SortPolicy:
        for field in fields:
            if kinds[field.name] == SemanticKind.ORDER_FIELD:
                return SortPolicy(column=field.name, direction="asc", reorderable=True)
        return SortPolicy(column="id", direction="desc", reorderable=False)


def _confirmation_name(
    field: FieldDescriptor,
    kind: SemanticKind,
    existing: set[str],
) -> Optional[str]:
    """Name of the synthetic confirmation paired with a password field, if one is due."""
    if kind != SemanticKind.PASSWORD:
        return None
    confirm = f"confirm_{field.name}"
    if confirm in existing:
        return None
    return confirm
