"""Tests for the Jinja2 template renderer (crudsmith.scaffolder.templates).

Covers:
- PHP literal filters
- Template discovery
- Rendering the API templates from a mapped artifact set
- Async file rendering
"""

from __future__ import annotations

from pathlib import Path

import pytest
from jinja2 import UndefinedError

from crudsmith.mapping.mapper import ArtifactMapper
from crudsmith.mapping.relations import RelationshipResolver, StaticEntityRegistry
from crudsmith.schema.introspector import SchemaIntrospector
from crudsmith.scaffolder.templates import TemplateRenderer, php_literal, php_string


pytestmark = pytest.mark.unit


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def product_artifacts(shop_source):
    descriptor = SchemaIntrospector(shop_source).describe("products")
    report = RelationshipResolver(shop_source, StaticEntityRegistry(["Review"])).resolve("products")
    return ArtifactMapper().map(descriptor.with_relations(report.relations))


def api_context(artifacts) -> dict:
    return {
        "entity": "Product",
        "artifacts": artifacts,
        "model_namespace": "App\\Models",
        "request_namespace": "App\\Http\\Requests\\Api",
        "controller_namespace": "App\\Http\\Controllers\\Api",
        "variable": "product",
        "plural_variable": "products",
        "per_page": 15,
        "messages": {
            "created": "Product created successfully",
            "updated": "Product updated successfully",
            "deleted": "Product deleted successfully",
        },
    }


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class TestFilters:
    def test_php_string_escapes_quotes_and_backslashes(self):
        assert php_string("name") == "'name'"
        assert php_string("O'Brien") == "'O\\'Brien'"
        assert php_string("App\\Models") == "'App\\\\Models'"

    @pytest.mark.parametrize("value,expected", [
        (True, "true"),
        (False, "false"),
        (None, "null"),
        (3, "3"),
        (0.5, "0.5"),
        ("on", "'on'"),
    ])
    def test_php_literal(self, value, expected):
        assert php_literal(value) == expected


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class TestListTemplates:
    def test_lists_api_templates(self, renderer: TemplateRenderer):
        assert renderer.list_templates("api") == [
            "api/controller.php.j2",
            "api/model.php.j2",
            "api/relation.php.j2",
            "api/request.php.j2",
        ]

    def test_lists_admin_pages(self, renderer: TemplateRenderer):
        pages = renderer.list_templates("admin/pages")
        assert "admin/pages/list.php.j2" in pages
        assert len(pages) == 4

    def test_missing_prefix(self, renderer: TemplateRenderer):
        assert renderer.list_templates("nope") == []


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_request_rules(self, renderer, product_artifacts):
        output = renderer.render("api/request.php.j2", api_context(product_artifacts))
        assert "namespace App\\Http\\Requests\\Api;" in output
        assert "class ProductRequest extends FormRequest" in output
        assert "'name' => 'required|string|max:100'," in output
        assert "'category_id' => 'required|integer|exists:categories,id'," in output
        assert "'in_stock' => 'boolean'," in output
        assert "public function messages(): array" in output

    def test_model(self, renderer, product_artifacts):
        output = renderer.render("api/model.php.j2", api_context(product_artifacts))
        assert "protected $table = 'products';" in output
        assert "'in_stock' => 'boolean'," in output
        assert "use Illuminate\\Database\\Eloquent\\Relations\\BelongsTo;" in output
        assert "use Illuminate\\Database\\Eloquent\\Relations\\HasMany;" in output
        assert "public function category(): BelongsTo" in output
        assert "return $this->belongsTo(Category::class, 'category_id', 'id');" in output
        assert "return $this->hasMany(Review::class, 'product_id', 'id');" in output
        assert "SoftDeletes" not in output
        assert "$hidden" not in output

    def test_controller(self, renderer, product_artifacts):
        output = renderer.render("api/controller.php.j2", api_context(product_artifacts))
        assert "$products = Product::with(['category'])->paginate(15);" in output
        assert "public function destroy(Product $product): JsonResponse" in output
        assert "'message' => 'Product created successfully'," in output
        assert "], 201);" in output

    def test_missing_variable_raises(self, renderer, product_artifacts):
        context = api_context(product_artifacts)
        del context["per_page"]
        with pytest.raises(UndefinedError):
            renderer.render("api/controller.php.j2", context)

    def test_custom_template_dir(self, tmp_path: Path):
        (tmp_path / "hello.j2").write_text("Hello {{ name|pascal_case }}!\n", encoding="utf-8")
        assert TemplateRenderer(tmp_path).render("hello.j2", {"name": "order_item"}) == "Hello OrderItem!\n"


class TestRenderToFile:
    async def test_creates_parent_directories(self, renderer, product_artifacts, tmp_path: Path):
        target = tmp_path / "app" / "Models" / "Product.php"
        path = await renderer.render_to_file("api/model.php.j2", target, api_context(product_artifacts))
        assert path == target
        assert target.read_text(encoding="utf-8").startswith("<?php")
