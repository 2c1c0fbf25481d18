"""API resource generation.

Renders the model, form request and CRUD controller for one entity,
registers its ``Route::apiResource`` line and adds the inverse has-many
method to every related model that already exists.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional, Sequence

from crudsmith.config import GeneratorConfig
from crudsmith.mapping import vocabulary as vocab
from crudsmith.mapping.mapper import ArtifactMapper
from crudsmith.mapping.models import ArtifactSet
from crudsmith.mapping.relations import (
    EntityRegistry,
    FilesystemEntityRegistry,
    RelationshipResolver,
    has_many_name,
)
from crudsmith.schema.introspector import SchemaIntrospector, fields_from_manual
from crudsmith.schema.models import ManualFieldSpec, RelationDescriptor, TableDescriptor
from crudsmith.schema.source import SchemaNotFound, SchemaSource
from crudsmith.scaffolder.models import GenerationResult
from crudsmith.scaffolder.patcher import (
    PatchError,
    add_use_statements,
    has_method,
    insert_before_final_brace,
)
from crudsmith.scaffolder.templates import TemplateRenderer, write_file
from crudsmith.utils import (
    camel_case,
    print_info,
    print_success,
    print_summary_table,
    print_warning,
    snake_case,
    studly_case,
    table_name_for,
)

_ROUTE_FACADE = "Illuminate\\Support\\Facades\\Route"
_HAS_MANY_IMPORT = "Illuminate\\Database\\Eloquent\\Relations\\HasMany"


class ApiResourceGenerator:
    """Generates the API layer (model, request, controller, route) for an entity.

    Args:
        config: Generator configuration (paths, namespaces, locale, force).
        source: Schema source the table is introspected from.
        renderer: Template renderer; a default one is created when omitted.
        registry: Entity-existence check for has-many relations. Defaults
            to looking for model files under ``config.models_dir``.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        source: SchemaSource,
        renderer: Optional[TemplateRenderer] = None,
        registry: Optional[EntityRegistry] = None,
    ) -> None:
        self.config = config
        self.source = source
        self.renderer = renderer or TemplateRenderer()
        self.introspector = SchemaIntrospector(source, config.exclusions)
        self.resolver = RelationshipResolver(
            source,
            registry or FilesystemEntityRegistry(config.models_dir),
            config.exclusions,
            config.locale,
        )
        self.mapper = ArtifactMapper(config.locale, config.admin.title_attribute)

    # -- Public API --------------------------------------------------------

    async def generate(
        self,
        name: str,
        manual_fields: Optional[Sequence[ManualFieldSpec]] = None,
    ) -> GenerationResult:
        """Generate the API resource for *name*.

        The table is the plural snake-case form of *name*. When it exists
        its columns and relations are introspected; otherwise
        *manual_fields* describe the entity.

        Raises:
            SchemaNotFound: If the table is absent and no manual fields were given.
        """
        entity = studly_case(name)
        table = table_name_for(entity)
        result = GenerationResult(name=entity, table=table)

        artifacts = await asyncio.to_thread(self._map, table, manual_fields, result)

        await self._write(
            "api/request.php.j2",
            self.config.requests_dir / f"{entity}Request.php",
            self._context(entity, artifacts),
            result,
        )
        await self._write(
            "api/model.php.j2",
            self.config.models_dir / f"{entity}.php",
            self._context(entity, artifacts),
            result,
        )
        await self._write(
            "api/controller.php.j2",
            self.config.controllers_dir / f"{entity}Controller.php",
            self._context(entity, artifacts),
            result,
        )
        await asyncio.to_thread(self._register_route, entity, result)
        for relation in artifacts.belongs_to:
            await asyncio.to_thread(self._add_inverse_relation, entity, table, relation, result)

        print_summary_table(result.summary(), title=f"API resource {entity}")
        return result

    # -- Mapping -----------------------------------------------------------

    def _map(
        self,
        table: str,
        manual_fields: Optional[Sequence[ManualFieldSpec]],
        result: GenerationResult,
    ) -> ArtifactSet:
        if self.source.has_table(table):
            print_info(f"Table '{table}' exists, reading its columns")
            descriptor = self.introspector.describe(table)
            report = self.resolver.resolve(table)
            result.warnings.extend(w.message for w in report.warnings)
            descriptor = descriptor.with_relations(report.relations)
        elif manual_fields is not None:
            print_warning(f"Table '{table}' does not exist, using manual field definitions")
            descriptor = TableDescriptor(name=table, fields=fields_from_manual(manual_fields))
        else:
            raise SchemaNotFound(table)
        return self.mapper.map(descriptor)

    def _context(self, entity: str, artifacts: ArtifactSet) -> dict:
        api = self.config.api
        messages = vocab.API_MESSAGES.get(self.config.locale, vocab.API_MESSAGES["en"])
        return {
            "entity": entity,
            "artifacts": artifacts,
            "model_namespace": api.model_namespace,
            "request_namespace": api.request_namespace,
            "controller_namespace": api.controller_namespace,
            "variable": camel_case(entity),
            "plural_variable": camel_case(artifacts.table),
            "per_page": api.per_page,
            "messages": {key: text.format(entity=entity) for key, text in messages.items()},
        }

    # -- File writing ------------------------------------------------------

    async def _write(
        self,
        template: str,
        path: Path,
        context: dict,
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

    def _register_route(self, entity: str, result: GenerationResult) -> None:
        routes_path = self.config.routes_path
        route_name = snake_case(table_name_for(entity)).replace("_", "-")
        route_line = f"Route::apiResource('{route_name}', {entity}Controller::class);"

        if not routes_path.is_file():
            message = f"Routes file {self.config.api.routes_file} not found"
            print_warning(message)
            result.warnings.append(message)
            return

        content = routes_path.read_text(encoding="utf-8")
        if route_line in content:
            message = f"Route for '{route_name}' already exists"
            print_warning(message)
            result.warnings.append(message)
            result.skipped.append(routes_path)
            return

        controller = f"{self.config.api.controller_namespace}\\{entity}Controller"
        try:
            content = add_use_statements(content, [_ROUTE_FACADE, controller])
        except PatchError as exc:
            message = f"Could not add imports to {routes_path.name}: {exc}"
            print_warning(message)
            result.warnings.append(message)
            return

        if not content.endswith("\n"):
            content += "\n"
        write_file(routes_path, content + route_line + "\n")
        print_success(f"Route '/api/{route_name}' registered")
        result.written.append(routes_path)

    def _add_inverse_relation(
        self,
        entity: str,
        table: str,
        relation: RelationDescriptor,
        result: GenerationResult,
    ) -> None:
        model_path = self.config.models_dir / f"{relation.related_entity}.php"
        if not model_path.is_file():
            message = f"Model '{relation.related_entity}' does not exist for the inverse relation"
            print_warning(message)
            result.warnings.append(message)
            return

        content = model_path.read_text(encoding="utf-8")
        method_name = has_many_name(table)
        if has_method(content, method_name):
            return

        snippet = self.renderer.render("api/relation.php.j2", {
            "method_name": method_name,
            "relation_type": "HasMany",
            "relation_method": "hasMany",
            "related_entity": entity,
            "foreign_key": relation.local_field,
            "owner_key": relation.owner_key,
        })
        try:
            content = add_use_statements(content, [_HAS_MANY_IMPORT])
            content = insert_before_final_brace(content, snippet)
        except PatchError as exc:
            message = f"Could not add '{method_name}' to {relation.related_entity}: {exc}"
            print_warning(message)
            result.warnings.append(message)
            return

        write_file(model_path, content)
        print_success(f"Relation '{method_name}' added to model '{relation.related_entity}'")
        if model_path not in result.written:
            result.written.append(model_path)
