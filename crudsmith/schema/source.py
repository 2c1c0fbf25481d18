"""Schema sources: where table, column and foreign-key metadata comes from.

``SQLAlchemySchemaSource`` reads a live database through SQLAlchemy's
runtime inspection API. ``InMemorySchemaSource`` serves plain table
definitions (from dicts, YAML or JSON) for callers that already hold schema
data. Both satisfy the ``SchemaSource`` protocol the introspector and the
relationship resolver consume.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, runtime_checkable

import yaml
from pydantic import BaseModel, Field
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import CompileError, NoSuchTableError, SQLAlchemyError

from crudsmith.schema.models import ColumnInfo, ForeignKeyInfo


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SchemaError(Exception):
    """Base class for schema lookup failures."""

    def __init__(self, table: str, message: str) -> None:
        self.table = table
        super().__init__(message)


class SchemaNotFound(SchemaError):
    """Raised when the requested table does not exist in the data source."""

    def __init__(self, table: str) -> None:
        super().__init__(table, f"Table '{table}' does not exist")


class IntrospectionFailure(SchemaError):
    """Raised when a schema query for a specific table errors."""

    def __init__(self, table: str, reason: str) -> None:
        self.reason = reason
        super().__init__(table, f"Could not introspect table '{table}': {reason}")


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class SchemaSource(Protocol):
    """Read-only access to a relational catalogue."""

    def list_tables(self) -> list[str]:
        """Return every table name in enumeration order."""
        ...

    def has_table(self, table: str) -> bool:
        ...

    def get_columns(self, table: str) -> list[ColumnInfo]:
        """Return the ordered column list; raises ``SchemaNotFound``."""
        ...

    def get_foreign_keys(self, table: str) -> list[ForeignKeyInfo]:
        """Return the table's foreign keys; raises ``SchemaNotFound``."""
        ...


# ---------------------------------------------------------------------------
# SQLAlchemy-backed source
# ---------------------------------------------------------------------------


class SQLAlchemySchemaSource:
    """Schema source backed by ``sqlalchemy.inspect``.

    A fresh inspector is created for each call, so nothing is cached between
    invocations. When constructed from a URL the source owns its engine and
    disposes it on ``close()`` / context-manager exit.
    """

    def __init__(self, url_or_engine: str | Engine) -> None:
        if isinstance(url_or_engine, Engine):
            self.engine = url_or_engine
            self._owns_engine = False
        else:
            self.engine = create_engine(url_or_engine, pool_pre_ping=True)
            self._owns_engine = True

    def __enter__(self) -> "SQLAlchemySchemaSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Dispose the engine if this source created it."""
        if self._owns_engine:
            self.engine.dispose()

    # -- Protocol ------------------------------------------------------------

    def list_tables(self) -> list[str]:
        try:
            return list(inspect(self.engine).get_table_names())
        except SQLAlchemyError as exc:
            raise IntrospectionFailure("*", str(exc)) from exc

    def has_table(self, table: str) -> bool:
        try:
            return bool(inspect(self.engine).has_table(table))
        except SQLAlchemyError as exc:
            raise IntrospectionFailure(table, str(exc)) from exc

    def get_columns(self, table: str) -> list[ColumnInfo]:
        insp = inspect(self.engine)
        try:
            raw_columns = insp.get_columns(table)
            pk_columns = set(insp.get_pk_constraint(table).get("constrained_columns") or [])
            unique_columns = _single_column_uniques(insp, table)
            fk_columns = {
                col
                for fk in insp.get_foreign_keys(table)
                for col in fk.get("constrained_columns", [])
            }
        except NoSuchTableError as exc:
            raise SchemaNotFound(table) from exc
        except SQLAlchemyError as exc:
            raise IntrospectionFailure(table, str(exc)) from exc

        columns: list[ColumnInfo] = []
        for col in raw_columns:
            name = col["name"]
            if name in pk_columns:
                key = "PRI"
            elif name in unique_columns:
                key = "UNI"
            elif name in fk_columns:
                key = "MUL"
            else:
                key = ""
            columns.append(ColumnInfo(
                name=name,
                raw_type=self._compile_type(col["type"]),
                nullable=bool(col.get("nullable", True)),
                default=_clean_default(col.get("default")),
                key=key,
            ))
        return columns

    def get_foreign_keys(self, table: str) -> list[ForeignKeyInfo]:
        try:
            raw_fks = inspect(self.engine).get_foreign_keys(table)
        except NoSuchTableError as exc:
            raise SchemaNotFound(table) from exc
        except SQLAlchemyError as exc:
            raise IntrospectionFailure(table, str(exc)) from exc

        foreign_keys: list[ForeignKeyInfo] = []
        for fk in raw_fks:
            local = fk.get("constrained_columns") or []
            remote = fk.get("referred_columns") or []
            if not local or not fk.get("referred_table"):
                continue
            foreign_keys.append(ForeignKeyInfo(
                local_column=local[0],
                referenced_table=fk["referred_table"],
                referenced_column=remote[0] if remote else "id",
            ))
        return foreign_keys

    # -- Helpers -------------------------------------------------------------

    def _compile_type(self, col_type: Any) -> str:
        try:
            compiled = col_type.compile(dialect=self.engine.dialect)
        except CompileError:
            compiled = str(col_type)
        return compiled.lower()


def _single_column_uniques(insp: Any, table: str) -> set[str]:
    names: set[str] = set()
    for constraint in insp.get_unique_constraints(table):
        cols = constraint.get("column_names") or []
        if len(cols) == 1:
            names.add(cols[0])
    for index in insp.get_indexes(table):
        cols = index.get("column_names") or []
        if index.get("unique") and len(cols) == 1:
            names.add(cols[0])
    return names


def _clean_default(value: Any) -> Any:
    """Strip the quoting some dialects keep around reflected string defaults."""
    if isinstance(value, str):
        stripped = value.strip()
        if len(stripped) >= 2 and stripped[0] == stripped[-1] and stripped[0] in ("'", '"'):
            return stripped[1:-1]
        return stripped
    return value


# ---------------------------------------------------------------------------
# In-memory source
# ---------------------------------------------------------------------------


class TableDefinition(BaseModel):
    """Plain definition of one table for ``InMemorySchemaSource``."""
    columns: list[ColumnInfo] = Field(default_factory=list)
    foreign_keys: list[ForeignKeyInfo] = Field(default_factory=list)


class InMemorySchemaSource:
    """Schema source serving table definitions held in memory.

    Tables are enumerated in insertion order.
    """

    def __init__(self, tables: Optional[dict[str, TableDefinition]] = None) -> None:
        self._tables: dict[str, TableDefinition] = dict(tables or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemorySchemaSource":
        """Build a source from ``{"tables": {name: {"columns": [...], "foreign_keys": [...]}}}``.

        The top-level ``tables`` key is optional.
        """
        raw_tables = data.get("tables", data)
        return cls({
            name: TableDefinition.model_validate(definition or {})
            for name, definition in raw_tables.items()
        })

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemorySchemaSource":
        """Load table definitions from a YAML (or JSON) file."""
        raw = Path(path).read_text(encoding="utf-8")
        data = yaml.safe_load(raw) or {}
        return cls.from_dict(data)

    def add_table(
        self,
        name: str,
        columns: Iterable[ColumnInfo],
        foreign_keys: Iterable[ForeignKeyInfo] = (),
    ) -> None:
        self._tables[name] = TableDefinition(
            columns=list(columns), foreign_keys=list(foreign_keys)
        )

    # -- Protocol ------------------------------------------------------------

    def list_tables(self) -> list[str]:
        return list(self._tables)

    def has_table(self, table: str) -> bool:
        return table in self._tables

    def get_columns(self, table: str) -> list[ColumnInfo]:
        return list(self._definition(table).columns)

    def get_foreign_keys(self, table: str) -> list[ForeignKeyInfo]:
        return list(self._definition(table).foreign_keys)

    def _definition(self, table: str) -> TableDefinition:
        try:
            return self._tables[table]
        except KeyError:
            raise SchemaNotFound(table) from None
