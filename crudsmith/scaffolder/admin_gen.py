"""Admin resource generation.

Produces the admin-panel resource for an entity with a two-strategy
policy. The native framework command is tried first and the file it
creates is customised in place (form, table and relation methods are
swapped for rendered ones). If the command is unavailable or fails, or its
output cannot be patched, the resource and its pages are rendered from
templates instead. Either way one relation manager is rendered per
has-many relation.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from jinja2 import TemplateError

from crudsmith.config import GeneratorConfig
from crudsmith.mapping import vocabulary as vocab
from crudsmith.mapping.mapper import ArtifactMapper
from crudsmith.mapping.models import ArtifactSet, ListingContext, NestedResourceRef, SemanticKind
from crudsmith.mapping.relations import (
    EntityRegistry,
    FilesystemEntityRegistry,
    RelationshipResolver,
    relation_display_name,
)
from crudsmith.schema.introspector import SchemaIntrospector
from crudsmith.schema.source import SchemaError, SchemaNotFound, SchemaSource
from crudsmith.scaffolder.models import GenerationResult, GenerationStrategy
from crudsmith.scaffolder.patcher import PatchError, add_use_statements, replace_method
from crudsmith.scaffolder.templates import TemplateRenderer, write_file
from crudsmith.utils import (
    print_error,
    print_info,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    singular,
    studly_case,
    table_name_for,
    title_words,
)

Runner = Callable[..., Awaitable[tuple[int, str, str]]]

_FILAMENT_IMPORTS = (
    "Filament\\Forms",
    "Filament\\Forms\\Form",
    "Filament\\Tables",
    "Filament\\Tables\\Table",
    "Filament\\Tables\\Columns\\TextColumn",
)
_HASH_IMPORT = "Illuminate\\Support\\Facades\\Hash"
_SOFT_DELETE_IMPORTS = (
    "Illuminate\\Database\\Eloquent\\Builder",
    "Illuminate\\Database\\Eloquent\\SoftDeletingScope",
)


class GenerationError(Exception):
    """Raised when no strategy could produce the admin resource file."""

    def __init__(self, entity: str, message: str) -> None:
        self.entity = entity
        super().__init__(f"{entity}: {message}")


class AdminResourceGenerator:
    """Generates the admin resource, its pages and relation managers.

    Args:
        config: Generator configuration.
        source: Schema source the table is introspected from.
        renderer: Template renderer; a default one is created when omitted.
        registry: Entity-existence check for has-many relations.
        runner: Coroutine used to run the native command. Defaults to
            :func:`crudsmith.utils.run_command`.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        source: SchemaSource,
        renderer: Optional[TemplateRenderer] = None,
        registry: Optional[EntityRegistry] = None,
        runner: Runner = run_command,
    ) -> None:
        self.config = config
        self.source = source
        self.renderer = renderer or TemplateRenderer()
        self.runner = runner
        self.introspector = SchemaIntrospector(source, config.exclusions)
        self.resolver = RelationshipResolver(
            source,
            registry or FilesystemEntityRegistry(config.models_dir),
            config.exclusions,
            config.locale,
        )
        self.mapper = ArtifactMapper(config.locale, config.admin.title_attribute)

    # -- Public API --------------------------------------------------------

    async def generate(self, name: str) -> GenerationResult:
        """Generate the admin resource for *name*.

        Raises:
            GenerationError: If the model is missing or no strategy produced
                the resource file.
            SchemaNotFound: If the entity's table does not exist.
        """
        entity = studly_case(name)
        table = table_name_for(entity)
        result = GenerationResult(name=entity, table=table)

        model_path = self.config.models_dir / f"{entity}.php"
        if not model_path.is_file():
            raise GenerationError(
                entity, f"model {model_path.name} does not exist, generate the API resource first"
            )

        artifacts = await asyncio.to_thread(self._map, table, result)
        resource_path = self.resource_path(entity)

        if resource_path.exists() and not self.config.force:
            message = f"{resource_path.name} already exists, use force to overwrite it"
            print_warning(message)
            result.warnings.append(message)
            result.skipped.append(resource_path)
            result.strategy = GenerationStrategy.SKIPPED
        elif not resource_path.exists() and await self._generate_native(entity, artifacts, result):
            result.strategy = GenerationStrategy.NATIVE
        else:
            await self._generate_manual(entity, artifacts, result)
            result.strategy = GenerationStrategy.MANUAL

        if self.config.admin.generate_relation_managers:
            for ref in artifacts.nested_resources:
                await self._generate_relation_manager(entity, ref, result)

        print_summary_table(result.summary(), title=f"Admin resource {entity}")
        return result

    def resource_path(self, entity: str) -> Path:
        return self.config.resources_dir / f"{entity}Resource.php"

    # -- Mapping -----------------------------------------------------------

    def _map(self, table: str, result: GenerationResult) -> ArtifactSet:
        if not self.source.has_table(table):
            raise SchemaNotFound(table)
        descriptor = self.introspector.describe(table)
        report = self.resolver.resolve(table)
        result.warnings.extend(w.message for w in report.warnings)
        return self.mapper.map(descriptor.with_relations(report.relations))

    # -- Native strategy ---------------------------------------------------

    async def _generate_native(
        self,
        entity: str,
        artifacts: ArtifactSet,
        result: GenerationResult,
    ) -> bool:
        """Run the native command and customise its output. False means fall back."""
        command = self.config.admin.native_command
        if not command:
            return False

        print_info(f"Running {' '.join(command)} for '{entity}'")
        returncode, _, stderr = await self.runner(
            [*command, entity, "--generate", "--view"],
            cwd=self.config.project_root,
            timeout=self.config.admin.native_timeout,
        )
        resource_path = self.resource_path(entity)
        if returncode != 0 or not resource_path.is_file():
            message = f"Native generation failed (exit {returncode}), using templates"
            if stderr:
                message = f"{message}: {stderr[:200]}"
            print_warning(message)
            result.warnings.append(message)
            return False

        try:
            content = await asyncio.to_thread(resource_path.read_text, encoding="utf-8")
            content = self._customise(content, entity, artifacts)
        except (PatchError, TemplateError) as exc:
            message = f"Could not customise {resource_path.name} ({exc}), using templates"
            print_warning(message)
            result.warnings.append(message)
            return False

        await asyncio.to_thread(write_file, resource_path, content)
        print_success(f"Customised {resource_path.name}")
        result.written.append(resource_path)
        return True

    def _customise(self, content: str, entity: str, artifacts: ArtifactSet) -> str:
        context = self._method_context(entity, artifacts, is_static=True)
        for method, template in (
            ("form", "admin/form_method.php.j2"),
            ("table", "admin/table_method.php.j2"),
            ("getRelations", "admin/relations_method.php.j2"),
        ):
            rendered = self.renderer.render(template, context).rstrip("\n")
            content = replace_method(content, method, rendered)
        return add_use_statements(content, self._resource_imports(entity, artifacts))

    # -- Manual strategy ---------------------------------------------------

    async def _generate_manual(
        self,
        entity: str,
        artifacts: ArtifactSet,
        result: GenerationResult,
    ) -> None:
        resource_path = self.resource_path(entity)
        pages = self._page_classes(entity, artifacts.table)
        context = {
            **self._method_context(entity, artifacts, is_static=True),
            "admin_namespace": self.config.admin.namespace,
            "entity": entity,
            "imports": self._resource_imports(entity, artifacts),
            "navigation_icon": self.config.admin.navigation_icon,
            "model_label": title_words(singular(artifacts.table)),
            "plural_model_label": relation_display_name(artifacts.table, self.config.locale).capitalize(),
            "pages": pages,
        }
        try:
            await self.renderer.render_to_file("admin/resource.php.j2", resource_path, context)
        except (TemplateError, OSError) as exc:
            print_error(f"Could not render {resource_path.name}: {exc}")
            raise GenerationError(entity, f"manual generation failed: {exc}") from exc
        if not resource_path.is_file():
            raise GenerationError(entity, f"{resource_path.name} was not produced")
        print_success(f"Created {resource_path.name}")
        result.written.append(resource_path)

        if not self.config.admin.generate_pages:
            return
        pages_dir = self.config.resources_dir / f"{entity}Resource" / "Pages"
        for key, template in (
            ("list", "admin/pages/list.php.j2"),
            ("create", "admin/pages/create.php.j2"),
            ("edit", "admin/pages/edit.php.j2"),
            ("view", "admin/pages/view.php.j2"),
        ):
            page_path = pages_dir / f"{pages[key]}.php"
            await self._write(template, page_path, {
                "admin_namespace": self.config.admin.namespace,
                "entity": entity,
                "page_class": pages[key],
                "soft_deletes": artifacts.soft_deletes,
            }, result)

    # -- Relation managers -------------------------------------------------

    async def _generate_relation_manager(
        self,
        entity: str,
        ref: NestedResourceRef,
        result: GenerationResult,
    ) -> None:
        try:
            descriptor = await asyncio.to_thread(self.introspector.describe, ref.related_table)
        except SchemaError as exc:
            message = f"Skipping relation manager for '{ref.relation}': {exc}"
            print_warning(message)
            result.warnings.append(message)
            return

        omit = [ref.foreign_field] if ref.foreign_field else []
        artifacts = self.mapper.map(descriptor, ListingContext.NESTED, omit_fields=omit)
        title_attribute = self.config.admin.title_attribute
        context = {
            **self._method_context(ref.related_entity, artifacts, is_static=False),
            "admin_namespace": self.config.admin.namespace,
            "parent_entity": entity,
            "imports": self._manager_imports(artifacts),
            "ref": ref,
            "title": ref.display_name.capitalize(),
            "record_title_attribute": title_attribute if descriptor.field(title_attribute) else None,
        }
        path = (
            self.config.resources_dir / f"{entity}Resource" / "RelationManagers"
            / f"{ref.manager_class}.php"
        )
        await self._write("admin/relation_manager.php.j2", path, context, result)

    # -- Helpers -----------------------------------------------------------

    def _method_context(self, entity: str, artifacts: ArtifactSet, is_static: bool) -> dict[str, Any]:
        return {
            "artifacts": artifacts,
            "is_static": is_static,
            "section_title": vocab.FORM_SECTION_TITLES.get(
                self.config.locale, vocab.FORM_SECTION_TITLES["en"]
            ),
            "model_fqcn": f"\\{self.config.api.model_namespace}\\{entity}",
            "record_title_attribute": None,
        }

    def _resource_imports(self, entity: str, artifacts: ArtifactSet) -> list[str]:
        namespace = self.config.admin.namespace
        imports = [
            f"{namespace}\\{entity}Resource\\Pages",
            f"{namespace}\\{entity}Resource\\RelationManagers",
            f"{self.config.api.model_namespace}\\{entity}",
            *_FILAMENT_IMPORTS,
            "Filament\\Resources\\Resource",
        ]
        return imports + self._conditional_imports(artifacts)

    def _manager_imports(self, artifacts: ArtifactSet) -> list[str]:
        return [
            *_FILAMENT_IMPORTS,
            "Filament\\Resources\\RelationManagers\\RelationManager",
        ] + self._conditional_imports(artifacts)

    @staticmethod
    def _conditional_imports(artifacts: ArtifactSet) -> list[str]:
        imports: list[str] = []
        if any(f.kind == SemanticKind.PASSWORD for f in artifacts.form_fields):
            imports.append(_HASH_IMPORT)
        if artifacts.soft_deletes:
            imports.extend(_SOFT_DELETE_IMPORTS)
        return imports

    @staticmethod
    def _page_classes(entity: str, table: str) -> dict[str, str]:
        return {
            "list": f"List{studly_case(table)}",
            "create": f"Create{entity}",
            "edit": f"Edit{entity}",
            "view": f"View{entity}",
        }

    async def _write(
        self,
        template: str,
        path: Path,
        context: dict[str, Any],
        result: GenerationResult,
    ) -> None:
        if path.exists() and not self.config.force:
            message = f"{path.name} already exists, use force to overwrite it"
            print_warning(message)
            result.warnings.append(message)
            result.skipped.append(path)
            return
        await self.renderer.render_to_file(template, path, context)
        print_success(f"Created {path.name}")
        result.written.append(path)
