"""Tests for PHP source patching (crudsmith.scaffolder.patcher).

Covers:
- Method lookup with braces inside strings, comments and closures
- Method replacement
- ``use`` statement insertion and de-duplication
- Insertion before the class's closing brace
"""

from __future__ import annotations

import pytest

from crudsmith.scaffolder.patcher import (
    PatchError,
    add_use_statements,
    find_method,
    has_method,
    insert_before_final_brace,
    replace_method,
)


pytestmark = pytest.mark.unit


RESOURCE = """<?php

namespace App\\Filament\\Resources;

use App\\Models\\Product;
use Filament\\Resources\\Resource;

class ProductResource extends Resource
{
    protected static ?string $model = Product::class;

    public static function form(Form $form): Form
    {
        // closing } in a comment
        return $form->schema([
            TextInput::make('name')->placeholder('{not a brace}'),
            TextInput::make('slug')->afterStateUpdated(fn ($state) => "}{$state}"),
        ]);
    }

    public static function table(Table $table): Table
    {
        return $table->columns([]);
    }
}
"""


# ---------------------------------------------------------------------------
# Method lookup
# ---------------------------------------------------------------------------


class TestFindMethod:
    def test_span_covers_whole_method(self):
        start, end = find_method(RESOURCE, "form")
        method = RESOURCE[start:end]
        assert method.lstrip().startswith("public static function form(")
        assert method.endswith("}")
        assert "'slug'" in method
        assert "function table" not in method

    def test_missing_method(self):
        assert find_method(RESOURCE, "getPages") is None
        assert not has_method(RESOURCE, "getPages")
        assert has_method(RESOURCE, "table")

    def test_name_must_match_exactly(self):
        assert find_method("function formatted() { }", "form") is None

    def test_unterminated_body(self):
        assert find_method("function form() { if (true) {", "form") is None


class TestReplaceMethod:
    def test_replaces_only_target(self):
        replacement = "    public static function form(Form $form): Form\n    {\n        return $form;\n    }\n"
        patched = replace_method(RESOURCE, "form", replacement)
        assert "placeholder" not in patched
        assert "return $form;" in patched
        assert "return $table->columns([]);" in patched
        assert patched.count("function form(") == 1
        assert patched.rstrip().endswith("}")

    def test_missing_method_raises(self):
        with pytest.raises(PatchError, match="getRelations"):
            replace_method(RESOURCE, "getRelations", "")


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


class TestAddUseStatements:
    def test_appends_after_last_use(self):
        patched = add_use_statements(RESOURCE, ["Filament\\Forms", "Filament\\Tables\\Table"])
        lines = patched.splitlines()
        index = lines.index("use Filament\\Resources\\Resource;")
        assert lines[index + 1] == "use Filament\\Forms;"
        assert lines[index + 2] == "use Filament\\Tables\\Table;"

    def test_existing_and_duplicate_imports_are_skipped(self):
        patched = add_use_statements(RESOURCE, ["App\\Models\\Product", "Filament\\Forms", "Filament\\Forms"])
        assert patched.count("use App\\Models\\Product;") == 1
        assert patched.count("use Filament\\Forms;") == 1

    def test_no_change_returns_same_content(self):
        assert add_use_statements(RESOURCE, ["App\\Models\\Product"]) is RESOURCE

    def test_trait_use_inside_class_is_not_an_anchor(self):
        content = "<?php\n\nnamespace App\\Models;\n\nclass User\n{\n    use HasFactory;\n}\n"
        patched = add_use_statements(content, ["Illuminate\\Database\\Eloquent\\Relations\\HasMany"])
        assert patched.index("use Illuminate") < patched.index("class User")
        assert patched.startswith("<?php\n\nnamespace App\\Models;\n\nuse Illuminate")

    def test_open_tag_anchor(self):
        patched = add_use_statements("<?php\n\nRoute::get('/');\n", ["Illuminate\\Support\\Facades\\Route"])
        assert patched.startswith("<?php\n\nuse Illuminate\\Support\\Facades\\Route;\n")

    def test_no_anchor_raises(self):
        with pytest.raises(PatchError):
            add_use_statements("plain text", ["Foo"])


# ---------------------------------------------------------------------------
# Insertion
# ---------------------------------------------------------------------------


class TestInsertBeforeFinalBrace:
    def test_inserts_inside_class(self):
        snippet = "    public function reviews(): HasMany\n    {\n        return $this->hasMany(Review::class);\n    }\n"
        patched = insert_before_final_brace(RESOURCE, snippet)
        assert patched.rstrip().endswith("}\n}")
        assert patched.index("function reviews") > patched.index("function table")
        assert "\n\n    public function reviews" in patched

    def test_no_brace_raises(self):
        with pytest.raises(PatchError):
            insert_before_final_brace("<?php\n", "x")
