"""Relationship resolution.

``RelationshipResolver.resolve`` returns a table's belongs-to relations
(from its own foreign keys) and its has-many relations (found by scanning
every other table for a foreign key pointing back). Join tables, ambiguous
many-to-many candidates and targets with no generated entity are left out.
Failures while scanning a candidate table are recorded on the report and
the scan moves on to the next table.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence, runtime_checkable

from crudsmith.config import ExclusionConfig
from crudsmith.mapping import vocabulary as vocab
from crudsmith.mapping.classifier import classify, field_label
from crudsmith.mapping.models import (
    RelationOutcome,
    RelationWarning,
    ResolutionReport,
    SemanticKind,
)
from crudsmith.schema.introspector import SchemaIntrospector
from crudsmith.schema.models import (
    ColumnInfo,
    ForeignKeyInfo,
    RelationDescriptor,
    RelationKind,
)
from crudsmith.schema.source import SchemaError, SchemaNotFound, SchemaSource
from crudsmith.utils import (
    camel_case,
    entity_name_for,
    plural,
    print_info,
    print_warning,
    singular,
    studly_case,
)


# ---------------------------------------------------------------------------
# Entity registries
# ---------------------------------------------------------------------------


@runtime_checkable
class EntityRegistry(Protocol):
    """Answers whether an entity definition has already been generated."""

    def exists(self, entity: str) -> bool:
        ...


class FilesystemEntityRegistry:
    """An entity exists when ``<models_dir>/<Entity>.php`` is a file."""

    def __init__(self, models_dir: str | Path) -> None:
        self.models_dir = Path(models_dir)

    def exists(self, entity: str) -> bool:
        return (self.models_dir / f"{entity}.php").is_file()


class StaticEntityRegistry:
    """Registry backed by a fixed set of entity names."""

    def __init__(self, entities: Iterable[str] = ()) -> None:
        self._entities = set(entities)

    def add(self, entity: str) -> None:
        self._entities.add(entity)

    def exists(self, entity: str) -> bool:
        return entity in self._entities


# ---------------------------------------------------------------------------
# Join-table heuristics
# ---------------------------------------------------------------------------

_JOIN_TABLE_RES = tuple(re.compile(pattern) for pattern in vocab.JOIN_TABLE_PATTERNS)


def looks_like_join_table_name(table: str) -> bool:
    """``user_roles``, ``user_has_roles``, ``user_role_pivot``, ``pivot_user_roles``."""
    return any(regex.match(table) for regex in _JOIN_TABLE_RES)


def has_join_table_shape(
    columns: Sequence[ColumnInfo],
    foreign_keys: Sequence[ForeignKeyInfo],
    audit_columns: Iterable[str] = ("id", "created_at", "updated_at"),
) -> bool:
    """At least two foreign keys and at most two payload columns.

    Payload columns are those that are neither foreign-key-like nor audit
    columns.
    """
    if len(foreign_keys) < vocab.JOIN_TABLE_MIN_FOREIGN_KEYS:
        return False
    audit = set(audit_columns)
    fk_columns = {fk.local_column for fk in foreign_keys}
    payload = [
        column for column in columns
        if column.name not in fk_columns
        and not column.name.endswith("_id")
        and column.name not in audit
    ]
    return len(payload) <= vocab.JOIN_TABLE_MAX_PAYLOAD_COLUMNS


# ---------------------------------------------------------------------------
# Display names
# ---------------------------------------------------------------------------


def _spanish_plural(word: str) -> str:
    if word.endswith("y"):
        return word
    if word.endswith(vocab.SPANISH_VOWELS):
        return word + "s"
    if word.endswith(vocab.SPANISH_ES_CONSONANTS):
        return word + "es"
    return word + "s"


def relation_display_name(table: str, locale: str = "en") -> str:
    """Human-readable plural label for a related table.

    Tries an exact dictionary hit, then the singular form, then a rule-based
    pluralisation of the table's words (``order_items`` -> ``order items``).
    """
    names = vocab.RELATION_NAMES.get(locale, {})
    lowered = table.lower()
    if lowered in names:
        return names[lowered]
    single = singular(lowered)
    if single in names:
        return names[single]

    words = [w for w in single.split("_") if w]
    if not words:
        return lowered
    if locale == "es":
        return " ".join(_spanish_plural(word) for word in words)
    return " ".join(words[:-1] + [plural(words[-1])])


def belongs_to_name(related_table: str) -> str:
    """``order_items`` -> ``orderItem``."""
    return camel_case(singular(related_table))


def has_many_name(related_table: str) -> str:
    """``order_items`` -> ``orderItems``."""
    return camel_case(plural(singular(related_table)))


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class RelationshipResolver:
    """Resolves belongs-to and has-many relations for a table.

    Args:
        source: Schema source shared with the introspector.
        registry: Entity-existence check for has-many targets.
        exclusions: Column and table exclusion sets.
        locale: Language of relation display names (``en`` or ``es``).
    """

    def __init__(
        self,
        source: SchemaSource,
        registry: EntityRegistry,
        exclusions: Optional[ExclusionConfig] = None,
        locale: str = "en",
    ) -> None:
        self.source = source
        self.registry = registry
        self.exclusions = exclusions or ExclusionConfig()
        self.locale = locale
        self.introspector = SchemaIntrospector(source, self.exclusions)

    # -- Public API --------------------------------------------------------

    def resolve(
        self,
        table: str,
        all_tables: Optional[Sequence[str]] = None,
    ) -> ResolutionReport:
        """Resolve *table*'s relations.

        Args:
            table: The owning table. Must exist.
            all_tables: Tables to scan for has-many relations, in scan order.
                Defaults to every table the source enumerates.

        Raises:
            SchemaNotFound: If *table* itself does not exist.
        """
        warnings: list[RelationWarning] = []
        used_names: set[str] = set()

        relations = self._resolve_belongs_to(table, warnings, used_names)

        tables = list(all_tables) if all_tables is not None else self.source.list_tables()
        relations.extend(self._resolve_has_many(table, tables, warnings, used_names))

        return ResolutionReport(table=table, relations=relations, warnings=warnings)

    def is_join_table(
        self,
        table: str,
        foreign_keys: Optional[Sequence[ForeignKeyInfo]] = None,
    ) -> bool:
        """Name pattern match, or the two-foreign-keys / small-payload shape."""
        if looks_like_join_table_name(table):
            return True
        if foreign_keys is None:
            foreign_keys = self.source.get_foreign_keys(table)
        if len(foreign_keys) < vocab.JOIN_TABLE_MIN_FOREIGN_KEYS:
            return False
        return has_join_table_shape(
            self.source.get_columns(table),
            foreign_keys,
            self.exclusions.audit_columns,
        )

    # -- Belongs-to --------------------------------------------------------

    def _resolve_belongs_to(
        self,
        table: str,
        warnings: list[RelationWarning],
        used_names: set[str],
    ) -> list[RelationDescriptor]:
        descriptor = self.introspector.describe(table)
        relations: list[RelationDescriptor] = []

        for fk in descriptor.foreign_keys:
            field = descriptor.field(fk.local_column)
            if field is None:
                self._record(warnings, RelationOutcome.EXCLUDED_COLUMN, table, (
                    f"Skipping belongs-to on '{table}.{fk.local_column}': "
                    "the column is excluded from the field list"
                ))
                continue
            if classify(field) != SemanticKind.FOREIGN_KEY:
                self._record(warnings, RelationOutcome.NOT_A_FOREIGN_KEY, table, (
                    f"Skipping belongs-to on '{table}.{fk.local_column}': "
                    "the column does not classify as a foreign key"
                ))
                continue

            related_single = singular(fk.referenced_table)
            name = self._claim_name(
                belongs_to_name(fk.referenced_table),
                camel_case(_strip_id(fk.local_column)),
                table,
                warnings,
                used_names,
            )
            relations.append(RelationDescriptor(
                kind=RelationKind.BELONGS_TO,
                name=name,
                related_table=fk.referenced_table,
                related_entity=studly_case(related_single),
                display_name=field_label(_strip_id(fk.local_column)),
                local_field=fk.local_column,
                owner_key=fk.referenced_column,
            ))
        return relations

    # -- Has-many ----------------------------------------------------------

    def _resolve_has_many(
        self,
        table: str,
        tables: Sequence[str],
        warnings: list[RelationWarning],
        used_names: set[str],
    ) -> list[RelationDescriptor]:
        relations: list[RelationDescriptor] = []

        for candidate in tables:
            if candidate == table or candidate in self.exclusions.tables:
                continue

            try:
                if not self.source.has_table(candidate):
                    raise SchemaNotFound(candidate)
                foreign_keys = self.source.get_foreign_keys(candidate)
                if self.is_join_table(candidate, foreign_keys):
                    if any(fk.referenced_table == table for fk in foreign_keys):
                        self._record(warnings, RelationOutcome.JOIN_TABLE, candidate, (
                            f"Skipping join table '{candidate}'"
                        ), level="info")
                    continue
            except SchemaNotFound as exc:
                self._record(warnings, RelationOutcome.SCHEMA_NOT_FOUND, candidate, str(exc))
                continue
            except SchemaError as exc:
                self._record(warnings, RelationOutcome.INTROSPECTION_FAILURE, candidate, (
                    f"Error analysing table '{candidate}': {exc}"
                ))
                continue

            relation = self._has_many_from(table, candidate, foreign_keys, warnings, used_names)
            if relation is not None:
                relations.append(relation)

        return relations

    def _has_many_from(
        self,
        table: str,
        candidate: str,
        foreign_keys: Sequence[ForeignKeyInfo],
        warnings: list[RelationWarning],
        used_names: set[str],
    ) -> Optional[RelationDescriptor]:
        # Only foreign keys onto the owning table's identifier count.
        back_refs = [
            fk for fk in foreign_keys
            if fk.referenced_table == table and fk.referenced_column == "id"
        ]
        if not back_refs:
            return None

        others = [fk for fk in foreign_keys if fk.referenced_table != table]
        if others or len(back_refs) > 1:
            self._record(warnings, RelationOutcome.AMBIGUOUS_RELATION, candidate, (
                f"Skipping likely many-to-many relation through '{candidate}'"
            ), level="info")
            return None

        fk = back_refs[0]
        entity = entity_name_for(candidate)
        if not self.registry.exists(entity):
            self._record(warnings, RelationOutcome.MISSING_DEPENDENCY, candidate, (
                f"Entity '{entity}' does not exist yet, skipping has-many '{has_many_name(candidate)}'"
            ))
            return None

        name = self._claim_name(
            has_many_name(candidate),
            camel_case(plural(_strip_id(fk.local_column))),
            table,
            warnings,
            used_names,
        )
        return RelationDescriptor(
            kind=RelationKind.HAS_MANY,
            name=name,
            related_table=candidate,
            related_entity=entity,
            display_name=relation_display_name(candidate, self.locale),
            foreign_field=fk.local_column,
            owner_key="id",
        )

    # -- Helpers -----------------------------------------------------------

    def _claim_name(
        self,
        preferred: str,
        alternative: str,
        table: str,
        warnings: list[RelationWarning],
        used_names: set[str],
    ) -> str:
        """Reserve a relation identifier, renaming on collision."""
        if preferred not in used_names:
            used_names.add(preferred)
            return preferred

        name = alternative
        if not name or name in used_names:
            counter = 2
            while f"{preferred}{counter}" in used_names:
                counter += 1
            name = f"{preferred}{counter}"

        self._record(warnings, RelationOutcome.NAME_COLLISION, table, (
            f"Relation name '{preferred}' is already used on '{table}', renamed to '{name}'"
        ))
        used_names.add(name)
        return name

    @staticmethod
    def _record(
        warnings: list[RelationWarning],
        outcome: RelationOutcome,
        table: str,
        message: str,
        level: str = "warning",
    ) -> None:
        warnings.append(RelationWarning(outcome=outcome, table=table, message=message))
        if level == "info":
            print_info(message)
        else:
            print_warning(message)


def _strip_id(column: str) -> str:
    return column[: -len("_id")] if column.lower().endswith("_id") else column
