"""Shared pytest fixtures for the crudsmith test suite.

Provides reusable fixtures for:
- In-memory schema sources (products / categories / order items scenario)
- A real SQLite database built with SQLAlchemy Core
- Generator configuration rooted in a temporary project directory
- A mock native-command runner
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    create_engine,
    text,
)

from crudsmith.config import GeneratorConfig
from crudsmith.schema.models import ColumnInfo, ForeignKeyInfo
from crudsmith.schema.source import InMemorySchemaSource


# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------

def col(name: str, raw_type: str, nullable: bool = False, default: Any = None, key: str = "") -> ColumnInfo:
    """Shorthand for building a ``ColumnInfo``."""
    return ColumnInfo(name=name, raw_type=raw_type, nullable=nullable, default=default, key=key)


def fk(local: str, table: str, column: str = "id") -> ForeignKeyInfo:
    return ForeignKeyInfo(local_column=local, referenced_table=table, referenced_column=column)


def id_col() -> ColumnInfo:
    return col("id", "bigint", key="PRI")


def timestamps() -> list[ColumnInfo]:
    return [
        col("created_at", "timestamp", nullable=True),
        col("updated_at", "timestamp", nullable=True),
    ]


# ---------------------------------------------------------------------------
# In-memory schema sources
# ---------------------------------------------------------------------------

@pytest.fixture
def shop_source() -> InMemorySchemaSource:
    """Categories, products, reviews and the order tables.

    ``products`` is the reference scenario: ``name varchar(100)``,
    ``category_id`` (FK to categories), ``in_stock tinyint(1) default 1``.
    ``order_items`` references both orders and products with one payload
    column, so it reads as a join table. ``reviews`` points back at
    products only.
    """
    source = InMemorySchemaSource()
    source.add_table("categories", [
        id_col(),
        col("name", "varchar(80)", key="UNI"),
        col("description", "text", nullable=True),
        col("sort_order", "int"),
        *timestamps(),
    ])
    source.add_table("products", [
        id_col(),
        col("name", "varchar(100)"),
        col("category_id", "integer", key="MUL"),
        col("in_stock", "tinyint(1)", default="1"),
        *timestamps(),
    ], [fk("category_id", "categories")])
    source.add_table("reviews", [
        id_col(),
        col("product_id", "bigint", key="MUL"),
        col("body", "text"),
        col("rating", "int", nullable=True),
        *timestamps(),
    ], [fk("product_id", "products")])
    source.add_table("orders", [
        id_col(),
        col("reference", "varchar(40)"),
        col("placed_at", "datetime"),
        *timestamps(),
    ])
    source.add_table("order_items", [
        id_col(),
        col("order_id", "bigint", key="MUL"),
        col("product_id", "bigint", key="MUL"),
        col("quantity", "int"),
        *timestamps(),
    ], [fk("order_id", "orders"), fk("product_id", "products")])
    return source


@pytest.fixture
def users_source() -> InMemorySchemaSource:
    """Users, roles and the ``user_roles`` join table."""
    source = InMemorySchemaSource()
    source.add_table("users", [
        id_col(),
        col("name", "varchar(120)"),
        col("email", "varchar(190)", key="UNI"),
        col("password", "varchar(255)"),
        col("is_active", "tinyint(1)", default="1"),
        col("phone", "varchar(30)", nullable=True),
        col("deleted_at", "timestamp", nullable=True),
        *timestamps(),
    ])
    source.add_table("roles", [
        id_col(),
        col("name", "varchar(60)"),
        *timestamps(),
    ])
    source.add_table("user_roles", [
        col("user_id", "bigint", key="MUL"),
        col("role_id", "bigint", key="MUL"),
        *timestamps(),
    ], [fk("user_id", "users"), fk("role_id", "roles")])
    return source


# ---------------------------------------------------------------------------
# SQLite database
# ---------------------------------------------------------------------------

@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """File-backed SQLite database holding categories, products and reviews."""
    url = f"sqlite:///{tmp_path / 'shop.db'}"
    engine = create_engine(url)
    metadata = MetaData()
    Table(
        "categories", metadata,
        Column("id", Integer, primary_key=True),
        Column("name", String(80), nullable=False, unique=True),
        Column("description", Text, nullable=True),
        Column("created_at", DateTime, nullable=True),
        Column("updated_at", DateTime, nullable=True),
    )
    Table(
        "products", metadata,
        Column("id", Integer, primary_key=True),
        Column("name", String(100), nullable=False),
        Column("category_id", Integer, ForeignKey("categories.id"), nullable=False),
        Column("price", Numeric(10, 2), nullable=False),
        Column("in_stock", Boolean, nullable=False, server_default=text("1")),
        Column("created_at", DateTime, nullable=True),
        Column("updated_at", DateTime, nullable=True),
    )
    Table(
        "reviews", metadata,
        Column("id", Integer, primary_key=True),
        Column("product_id", Integer, ForeignKey("products.id"), nullable=False),
        Column("body", Text, nullable=False),
        Column("created_at", DateTime, nullable=True),
        Column("updated_at", DateTime, nullable=True),
    )
    metadata.create_all(engine)
    engine.dispose()
    return url


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------

ROUTES_STUB = """<?php

use Illuminate\\Http\\Request;
use Illuminate\\Support\\Facades\\Route;

Route::get('/user', function (Request $request) {
    return $request->user();
})->middleware('auth:sanctum');
"""


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Temporary application root with an API routes file."""
    root = tmp_path / "app-root"
    (root / "routes").mkdir(parents=True)
    (root / "routes" / "api.php").write_text(ROUTES_STUB, encoding="utf-8")
    return root


@pytest.fixture
def config(project_root: Path) -> GeneratorConfig:
    """Generator config rooted at ``project_root`` with the native path disabled."""
    cfg = GeneratorConfig(project_root=project_root)
    cfg.admin.native_command = None
    return cfg


@pytest.fixture
def write_model(config: GeneratorConfig):
    """Factory writing a minimal model class so registries and generators see it."""

    def factory(entity: str, body: str = "") -> Path:
        path = config.models_dir / f"{entity}.php"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            "<?php\n\n"
            "namespace App\\Models;\n\n"
            "use Illuminate\\Database\\Eloquent\\Model;\n\n"
            f"class {entity} extends Model\n{{\n{body}}}\n",
            encoding="utf-8",
        )
        return path

    return factory


# ---------------------------------------------------------------------------
# Mock native command
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_runner():
    """An ``AsyncMock`` standing in for ``run_command``.

    Returns a factory so each test can choose the outcome::

        def test_native(mock_runner):
            runner = mock_runner(returncode=0)
    """

    def factory(returncode: int = 0, stdout: str = "", stderr: str = "", side_effect=None) -> AsyncMock:
        runner = AsyncMock(return_value=(returncode, stdout, stderr))
        if side_effect is not None:
            runner.side_effect = side_effect
        return runner

    return factory
