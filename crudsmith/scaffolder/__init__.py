"""crudsmith scaffolder -- renders CRUD sources from mapped artifact sets.

The API generator writes the model, form request and controller for an
entity and registers its route. The admin generator produces the admin
resource (native command first, templates as fallback), its pages and one
relation manager per has-many relation.

Quick usage::

    from crudsmith.config import GeneratorConfig
    from crudsmith.schema import SQLAlchemySchemaSource
    from crudsmith.scaffolder import AdminResourceGenerator, ApiResourceGenerator

    config = GeneratorConfig(project_root="/srv/shop")
    with SQLAlchemySchemaSource("sqlite:///shop.db") as source:
        await ApiResourceGenerator(config, source).generate("Product")
        await AdminResourceGenerator(config, source).generate("Product")
"""

from crudsmith.scaffolder.admin_gen import AdminResourceGenerator, GenerationError
from crudsmith.scaffolder.api_gen import ApiResourceGenerator
from crudsmith.scaffolder.models import GenerationResult, GenerationStrategy
from crudsmith.scaffolder.patcher import PatchError
from crudsmith.scaffolder.templates import TemplateRenderer

__all__ = [
    "AdminResourceGenerator",
    "ApiResourceGenerator",
    "GenerationError",
    "GenerationResult",
    "GenerationStrategy",
    "PatchError",
    "TemplateRenderer",
]
