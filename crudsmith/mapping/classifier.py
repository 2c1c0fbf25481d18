"""Field classification.

``classify`` walks ``CLASSIFICATION_RULES`` in order and returns the kind of
the first rule whose predicate matches. Name-based rules come before
type-based ones; the last rule always matches, so classification is total.

The module also derives the per-field facts the mapper needs: labels, the
maximum length of string-like fields and the validation rule list.
"""

from __future__ import annotations

import re
from typing import Callable, NamedTuple, Optional

from crudsmith.mapping import vocabulary as vocab
from crudsmith.mapping.models import FieldRules, SemanticKind, ValidationRule
from crudsmith.schema.models import DeclaredType, FieldDescriptor
from crudsmith.utils import plural, title_words


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_identifier(field: FieldDescriptor) -> bool:
    return field.name.lower() == "id"


def is_foreign_key(field: FieldDescriptor) -> bool:
    return field.is_foreign_key or field.name.lower().endswith("_id")


def is_order_field_name(name: str) -> bool:
    lowered = name.lower()
    if lowered in vocab.ORDER_FIELD_NAMES:
        return True
    return lowered.endswith(vocab.ORDER_FIELD_SUFFIXES)


def is_order_field(field: FieldDescriptor) -> bool:
    return is_order_field_name(field.name)


def is_boolean_flag(field: FieldDescriptor) -> bool:
    """``tinyint(1)`` storage, a vocabulary name, or a flag-like suffix."""
    if field.raw_type.lower().startswith(vocab.BOOLEAN_RAW_TYPE_PREFIX):
        return True
    lowered = field.name.lower()
    if lowered in vocab.BOOLEAN_FIELD_NAMES:
        return True
    return lowered.endswith(vocab.BOOLEAN_FIELD_SUFFIXES)


def is_password_confirmation(field: FieldDescriptor) -> bool:
    lowered = field.name.lower()
    return lowered.startswith("confirm_") and (
        "password" in lowered or field.raw_type == "password"
    )


def is_password(field: FieldDescriptor) -> bool:
    return "password" in field.name.lower() or field.raw_type == "password"


def is_email(field: FieldDescriptor) -> bool:
    return "email" in field.name.lower() or field.raw_type == "email"


def is_file(field: FieldDescriptor) -> bool:
    return "file" in field.name.lower() or field.raw_type == "file"


def _declared(declared: DeclaredType) -> Callable[[FieldDescriptor], bool]:
    def predicate(field: FieldDescriptor) -> bool:
        return field.declared_type == declared
    predicate.__name__ = f"is_declared_{declared.value}"
    return predicate


def _always(field: FieldDescriptor) -> bool:
    return True


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

class ClassificationRule(NamedTuple):
    name: str
    predicate: Callable[[FieldDescriptor], bool]
    kind: SemanticKind


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("identifier", is_identifier, SemanticKind.IDENTIFIER),
    ClassificationRule("foreign_key", is_foreign_key, SemanticKind.FOREIGN_KEY),
    ClassificationRule("order_field", is_order_field, SemanticKind.ORDER_FIELD),
    ClassificationRule("boolean_flag", is_boolean_flag, SemanticKind.BOOLEAN),
    ClassificationRule(
        "password_confirmation", is_password_confirmation, SemanticKind.PASSWORD_CONFIRMATION
    ),
    ClassificationRule("password", is_password, SemanticKind.PASSWORD),
    ClassificationRule("email", is_email, SemanticKind.EMAIL),
    ClassificationRule("file", is_file, SemanticKind.FILE),
    # storage type dispatch
    ClassificationRule("text_type", _declared(DeclaredType.TEXT), SemanticKind.LONG_TEXT),
    ClassificationRule("integer_type", _declared(DeclaredType.INTEGER), SemanticKind.INTEGER),
    ClassificationRule("float_type", _declared(DeclaredType.FLOAT), SemanticKind.DECIMAL),
    ClassificationRule("boolean_type", _declared(DeclaredType.BOOLEAN), SemanticKind.BOOLEAN),
    ClassificationRule("date_type", _declared(DeclaredType.DATE), SemanticKind.DATE),
    ClassificationRule("datetime_type", _declared(DeclaredType.DATETIME), SemanticKind.DATETIME),
    ClassificationRule("json_type", _declared(DeclaredType.JSON), SemanticKind.JSON),
    ClassificationRule("fallback", _always, SemanticKind.PLAIN_STRING),
)


def matching_rule(field: FieldDescriptor) -> ClassificationRule:
    """Return the first rule in ``CLASSIFICATION_RULES`` that matches *field*."""
    for rule in CLASSIFICATION_RULES:
        if rule.predicate(field):
            return rule
    # The fallback rule matches everything.
    return CLASSIFICATION_RULES[-1]


def classify(field: FieldDescriptor) -> SemanticKind:
    """Return the semantic kind of *field*."""
    return matching_rule(field).kind


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

def strip_label_prefix(name: str) -> str:
    """Drop the first matching prefix of ``LABEL_PREFIXES`` (``is_active`` -> ``active``)."""
    for prefix in vocab.LABEL_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


def field_label(name: str) -> str:
    """Generic label: ``is_due_date`` -> ``Due Date``."""
    return title_words(strip_label_prefix(name))


def boolean_label(name: str, locale: str = "en") -> str:
    """Dictionary label for boolean fields, falling back to ``field_label``."""
    clean = strip_label_prefix(name)
    labels = vocab.BOOLEAN_LABELS.get(locale, {})
    return labels.get(clean.lower()) or title_words(clean)


def label_for(field: FieldDescriptor, kind: Optional[SemanticKind] = None, locale: str = "en") -> str:
    kind = kind or classify(field)
    if kind == SemanticKind.BOOLEAN:
        return boolean_label(field.name, locale)
    return field_label(field.name)


# ---------------------------------------------------------------------------
# Max length
# ---------------------------------------------------------------------------

_LENGTH_RE = re.compile(r"^\s*[a-z ]+\((\d+)\)")

TEXT_MAX_LENGTH = 65535
DEFAULT_MAX_LENGTH = 255


def max_length(field: FieldDescriptor) -> int:
    """Length limit of a string-like field.

    ``varchar(100)`` -> 100, any ``*text*`` type -> 65535, otherwise 255.
    """
    raw = field.raw_type.lower()
    match = _LENGTH_RE.match(raw)
    if match:
        return int(match.group(1))
    if "text" in raw:
        return TEXT_MAX_LENGTH
    return DEFAULT_MAX_LENGTH


# ---------------------------------------------------------------------------
# Validation rules
# ---------------------------------------------------------------------------

PASSWORD_MIN_LENGTH = 8
DATETIME_FORMAT = "Y-m-d H:i:s"

_TYPE_RULES: dict[SemanticKind, str] = {
    SemanticKind.IDENTIFIER: "integer",
    SemanticKind.ORDER_FIELD: "integer",
    SemanticKind.INTEGER: "integer",
    SemanticKind.DECIMAL: "numeric",
    SemanticKind.BOOLEAN: "boolean",
    SemanticKind.DATE: "date",
    SemanticKind.JSON: "array",
    SemanticKind.FILE: "file",
    SemanticKind.TEXT: "string",
    SemanticKind.LONG_TEXT: "string",
    SemanticKind.EMAIL: "email",
}


def referenced_table(field: FieldDescriptor) -> str:
    """Table a foreign-key field points at: explicit metadata, else the pluralised base name."""
    if field.references_table:
        return field.references_table
    name = field.name
    if name.lower().endswith("_id"):
        name = name[: -len("_id")]
    return plural(name)


def confirmation_target(name: str) -> str:
    """``confirm_password`` -> ``password``."""
    return name[len("confirm_"):] if name.lower().startswith("confirm_") else name


def validation_rules(
    field: FieldDescriptor,
    table: str,
    kind: Optional[SemanticKind] = None,
) -> FieldRules:
    """Build the ordered validation rules for *field* of *table*.

    ``required`` leads when the field is neither nullable nor defaulted,
    ``nullable`` when it is nullable. A unique key appends ``unique:<table>``.
    """
    kind = kind or classify(field)
    rules: list[ValidationRule] = []

    if kind == SemanticKind.PASSWORD_CONFIRMATION:
        rules.append(ValidationRule(name="required"))
        rules.append(ValidationRule(name="same", params=(confirmation_target(field.name),)))
        return FieldRules(field=field.name, rules=tuple(rules))

    if field.required:
        rules.append(ValidationRule(name="required"))
    elif field.nullable:
        rules.append(ValidationRule(name="nullable"))

    if kind == SemanticKind.FOREIGN_KEY:
        rules.append(ValidationRule(name="integer"))
        rules.append(ValidationRule(name="exists", params=(referenced_table(field), "id")))
    elif kind == SemanticKind.PASSWORD:
        rules.append(ValidationRule(name="confirmed"))
        rules.append(ValidationRule(name="min", params=(str(PASSWORD_MIN_LENGTH),)))
    elif kind == SemanticKind.DATETIME:
        rules.append(ValidationRule(name="date_format", params=(DATETIME_FORMAT,)))
    elif kind == SemanticKind.PLAIN_STRING:
        rules.append(ValidationRule(name="string"))
        rules.append(ValidationRule(name="max", params=(str(max_length(field)),)))
    else:
        rules.append(ValidationRule(name=_TYPE_RULES[kind]))

    if field.min_length is not None and kind != SemanticKind.PASSWORD:
        rules.append(ValidationRule(name="min", params=(str(field.min_length),)))

    if field.is_unique_key:
        rules.append(ValidationRule(name="unique", params=(table,)))

    return FieldRules(field=field.name, rules=tuple(rules))
