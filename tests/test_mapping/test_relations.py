"""Tests for relationship resolution (crudsmith.mapping.relations).

Covers:
- Belongs-to relations from foreign-key metadata
- Has-many scan with registry checks
- Join-table and ambiguity exclusions
- Structured warnings for skipped tables and name collisions
- Display names and entity registries
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from crudsmith.config import ExclusionConfig
from crudsmith.mapping.models import RelationOutcome
from crudsmith.mapping.relations import (
    FilesystemEntityRegistry,
    RelationshipResolver,
    StaticEntityRegistry,
    belongs_to_name,
    has_join_table_shape,
    has_many_name,
    looks_like_join_table_name,
    relation_display_name,
)
from crudsmith.schema.models import ColumnInfo, ForeignKeyInfo, RelationKind
from crudsmith.schema.source import InMemorySchemaSource, IntrospectionFailure


pytestmark = pytest.mark.unit


def columns(*specs: tuple[str, str]) -> list[ColumnInfo]:
    return [ColumnInfo(name=name, raw_type=raw, nullable=False) for name, raw in specs]


def foreign(local: str, table: str, column: str = "id") -> ForeignKeyInfo:
    return ForeignKeyInfo(local_column=local, referenced_table=table, referenced_column=column)


@pytest.fixture
def all_entities() -> StaticEntityRegistry:
    return StaticEntityRegistry([
        "Category", "Product", "Review", "Order", "OrderItem", "User", "Role", "UserRole",
        "Shipment", "Warehouse", "Article", "Comment",
    ])


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


class TestNames:
    def test_relation_identifiers(self):
        assert belongs_to_name("categories") == "category"
        assert belongs_to_name("order_items") == "orderItem"
        assert has_many_name("order_items") == "orderItems"
        assert has_many_name("reviews") == "reviews"
        assert has_many_name("addresses") == "addresses"
        assert has_many_name("order_statuses") == "orderStatuses"
        assert belongs_to_name("addresses") == "address"
        assert belongs_to_name("classes") == "class"

    def test_display_name_english(self):
        assert relation_display_name("order_items") == "order items"
        assert relation_display_name("categories") == "categories"
        assert relation_display_name("addresses") == "addresses"

    def test_display_name_spanish_dictionary(self):
        assert relation_display_name("products", "es") == "productos"
        assert relation_display_name("user", "es") == "usuarios"

    def test_display_name_spanish_rules(self):
        assert relation_display_name("mesas", "es") == "mesas"
        assert relation_display_name("doctor_visits", "es") == "doctores visits"

    def test_join_table_name_patterns(self):
        assert looks_like_join_table_name("user_roles")
        assert looks_like_join_table_name("user_has_roles")
        assert looks_like_join_table_name("pivot_user_roles")
        assert not looks_like_join_table_name("products")
        assert not looks_like_join_table_name("order_line_items")

    def test_join_table_shape(self):
        cols = columns(("id", "bigint"), ("a_id", "bigint"), ("b_id", "bigint"), ("note", "varchar(20)"))
        fks = [foreign("a_id", "as"), foreign("b_id", "bs")]
        assert has_join_table_shape(cols, fks)
        assert not has_join_table_shape(cols, fks[:1])

        payload = cols + columns(("x", "int"), ("y", "int"))
        assert not has_join_table_shape(payload, fks)


# ---------------------------------------------------------------------------
# Belongs-to
# ---------------------------------------------------------------------------


class TestBelongsTo:
    def test_products_belong_to_category(self, shop_source, all_entities):
        report = RelationshipResolver(shop_source, all_entities).resolve("products")
        assert len(report.belongs_to) == 1
        relation = report.belongs_to[0]
        assert relation.kind == RelationKind.BELONGS_TO
        assert relation.name == "category"
        assert relation.related_table == "categories"
        assert relation.related_entity == "Category"
        assert relation.display_name == "Category"
        assert relation.local_field == "category_id"
        assert relation.owner_key == "id"

    def test_excluded_local_column_is_skipped(self):
        source = InMemorySchemaSource()
        source.add_table("posts", columns(("id", "bigint"), ("title", "varchar(50)")))
        source.add_table("notes", columns(("id", "bigint"), ("body", "text")), [foreign("id", "posts")])
        report = RelationshipResolver(source, StaticEntityRegistry()).resolve("notes")
        assert report.belongs_to == []
        assert len(report.outcomes(RelationOutcome.EXCLUDED_COLUMN)) == 1

    def test_name_collision_is_renamed_from_column(self):
        source = InMemorySchemaSource()
        source.add_table("users", columns(("id", "bigint"), ("name", "varchar(50)")))
        source.add_table("articles", columns(
            ("id", "bigint"), ("user_id", "bigint"), ("editor_user_id", "bigint"), ("title", "varchar(90)"),
        ), [foreign("user_id", "users"), foreign("editor_user_id", "users")])

        report = RelationshipResolver(source, StaticEntityRegistry()).resolve("articles")
        assert [r.name for r in report.belongs_to] == ["user", "editorUser"]
        collisions = report.outcomes(RelationOutcome.NAME_COLLISION)
        assert len(collisions) == 1
        assert "editorUser" in collisions[0].message

    def test_name_collision_falls_back_to_suffix(self):
        source = InMemorySchemaSource()
        source.add_table("users", columns(("id", "bigint")))
        source.add_table("tickets", columns(
            ("id", "bigint"), ("owner_id", "bigint"), ("user_id", "bigint"),
        ), [foreign("owner_id", "users"), foreign("user_id", "users")])

        report = RelationshipResolver(source, StaticEntityRegistry()).resolve("tickets")
        assert [r.name for r in report.belongs_to] == ["user", "user2"]
        assert len(report.outcomes(RelationOutcome.NAME_COLLISION)) == 1


# ---------------------------------------------------------------------------
# Has-many
# ---------------------------------------------------------------------------


class TestHasMany:
    def test_product_has_many_reviews(self, shop_source, all_entities):
        report = RelationshipResolver(shop_source, all_entities).resolve("products")
        assert [r.name for r in report.has_many] == ["reviews"]
        relation = report.has_many[0]
        assert relation.related_entity == "Review"
        assert relation.foreign_field == "product_id"
        assert relation.display_name == "reviews"

    def test_user_has_many_addresses(self):
        source = InMemorySchemaSource()
        source.add_table("users", columns(("id", "integer"), ("name", "varchar(50)")))
        source.add_table(
            "addresses",
            columns(("id", "integer"), ("user_id", "integer"), ("street", "varchar(80)")),
            [foreign("user_id", "users")],
        )
        report = RelationshipResolver(source, StaticEntityRegistry(["Address"])).resolve("users")
        assert [r.name for r in report.has_many] == ["addresses"]
        relation = report.has_many[0]
        assert relation.related_entity == "Address"
        assert relation.related_table == "addresses"
        assert relation.display_name == "addresses"

    def test_order_items_join_table_is_excluded_for_both_sides(self, shop_source, all_entities):
        resolver = RelationshipResolver(shop_source, all_entities)
        for table in ("orders", "products"):
            report = resolver.resolve(table)
            assert all(r.related_table != "order_items" for r in report.has_many)
            assert [w.table for w in report.outcomes(RelationOutcome.JOIN_TABLE)] == ["order_items"]

    def test_user_roles_join_table(self, users_source, all_entities):
        resolver = RelationshipResolver(users_source, all_entities)
        assert resolver.is_join_table("user_roles")
        for table in ("users", "roles"):
            assert resolver.resolve(table).has_many == []

    def test_join_table_by_shape_only(self):
        source = InMemorySchemaSource()
        source.add_table("students", columns(("id", "bigint")))
        source.add_table("courses", columns(("id", "bigint")))
        source.add_table("enrolments", columns(
            ("id", "bigint"), ("student_id", "bigint"), ("course_id", "bigint"), ("grade", "varchar(2)"),
        ), [foreign("student_id", "students"), foreign("course_id", "courses")])
        resolver = RelationshipResolver(source, StaticEntityRegistry(["Enrolment"]))
        assert resolver.is_join_table("enrolments")
        assert resolver.resolve("students").has_many == []

    def test_ambiguous_table_is_never_a_target(self, all_entities):
        source = InMemorySchemaSource()
        source.add_table("orders", columns(("id", "bigint")))
        source.add_table("warehouses", columns(("id", "bigint")))
        source.add_table("shipments", columns(
            ("id", "bigint"), ("order_id", "bigint"), ("warehouse_id", "bigint"),
            ("carrier", "varchar(40)"), ("tracking_code", "varchar(60)"), ("shipped_at", "datetime"),
        ), [foreign("order_id", "orders"), foreign("warehouse_id", "warehouses")])

        resolver = RelationshipResolver(source, all_entities)
        assert not resolver.is_join_table("shipments")
        for table in ("orders", "warehouses"):
            report = resolver.resolve(table)
            assert report.has_many == []
            assert [w.table for w in report.outcomes(RelationOutcome.AMBIGUOUS_RELATION)] == ["shipments"]

    def test_two_back_references_are_ambiguous(self, all_entities):
        source = InMemorySchemaSource()
        source.add_table("users", columns(("id", "bigint")))
        source.add_table("messages", columns(
            ("id", "bigint"), ("sender_id", "bigint"), ("recipient_id", "bigint"),
            ("subject", "varchar(90)"), ("body", "text"), ("sent_at", "datetime"),
        ), [foreign("sender_id", "users"), foreign("recipient_id", "users")])
        report = RelationshipResolver(source, all_entities).resolve("users")
        assert report.has_many == []
        assert len(report.outcomes(RelationOutcome.AMBIGUOUS_RELATION)) == 1

    def test_missing_entity_is_skipped(self, shop_source):
        report = RelationshipResolver(shop_source, StaticEntityRegistry()).resolve("products")
        assert report.has_many == []
        missing = report.outcomes(RelationOutcome.MISSING_DEPENDENCY)
        assert [w.table for w in missing] == ["reviews"]
        assert "Review" in missing[0].message

    def test_excluded_tables_are_not_scanned(self, shop_source, all_entities):
        exclusions = ExclusionConfig(tables={"reviews"})
        report = RelationshipResolver(shop_source, all_entities, exclusions).resolve("products")
        assert report.has_many == []
        assert report.warnings == [w for w in report.warnings if w.table != "reviews"]

    def test_vanished_table_is_recorded(self, shop_source, all_entities):
        report = RelationshipResolver(shop_source, all_entities).resolve(
            "products", all_tables=["ghosts", "reviews"]
        )
        assert [r.name for r in report.has_many] == ["reviews"]
        assert [w.table for w in report.outcomes(RelationOutcome.SCHEMA_NOT_FOUND)] == ["ghosts"]

    def test_introspection_failure_continues_scan(self, shop_source, all_entities):
        original = shop_source.get_foreign_keys

        def flaky(table: str):
            if table == "orders":
                raise IntrospectionFailure(table, "lock wait timeout")
            return original(table)

        with patch.object(shop_source, "get_foreign_keys", side_effect=flaky):
            report = RelationshipResolver(shop_source, all_entities).resolve("products")

        assert [r.name for r in report.has_many] == ["reviews"]
        failures = report.outcomes(RelationOutcome.INTROSPECTION_FAILURE)
        assert [w.table for w in failures] == ["orders"]

    def test_category_has_many_products_in_spanish(self, shop_source, all_entities):
        report = RelationshipResolver(shop_source, all_entities, locale="es").resolve("categories")
        assert [r.name for r in report.has_many] == ["products"]
        assert report.has_many[0].display_name == "productos"

    def test_warnings_are_printed(self, shop_source):
        with patch("crudsmith.mapping.relations.print_warning") as mock_warning:
            RelationshipResolver(shop_source, StaticEntityRegistry()).resolve("products")
        mock_warning.assert_called_once()


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------


class TestRegistries:
    def test_static_registry(self):
        registry = StaticEntityRegistry(["Product"])
        assert registry.exists("Product")
        registry.add("Review")
        assert registry.exists("Review")
        assert not registry.exists("Order")

    def test_filesystem_registry(self, tmp_path: Path):
        (tmp_path / "Product.php").write_text("<?php\n", encoding="utf-8")
        registry = FilesystemEntityRegistry(tmp_path)
        assert registry.exists("Product")
        assert not registry.exists("Review")
