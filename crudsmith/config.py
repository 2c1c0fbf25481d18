"""crudsmith configuration.

Centralised, typed configuration for schema introspection and code
generation. All settings use Pydantic v2 models so they can be validated at
construction time and serialised to/from JSON or environment variables
without boiler-plate.
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ExclusionConfig(BaseModel):
    """Column and table names that never take part in generation.

    Both sets are looked up once per invocation.
    """

    columns: set[str] = Field(
        default_factory=lambda: {"id", "created_at", "updated_at", "deleted_at"},
        description="Columns dropped from every field list",
    )
    tables: set[str] = Field(
        default_factory=lambda: {
            "migrations",
            "password_resets",
            "password_reset_tokens",
            "failed_jobs",
            "jobs",
            "job_batches",
            "sessions",
            "cache",
            "cache_locks",
            "personal_access_tokens",
        },
        description="Bookkeeping tables skipped during the has-many scan",
    )
    audit_columns: set[str] = Field(
        default_factory=lambda: {"id", "created_at", "updated_at"},
        description="Columns ignored when counting a join table's payload columns",
    )


class ApiConfig(BaseModel):
    """Where the API layer (model, request, controller, routes) is written."""

    controller_namespace: str = Field(default="App\\Http\\Controllers\\Api")
    model_namespace: str = Field(default="App\\Models")
    request_namespace: str = Field(default="App\\Http\\Requests\\Api")
    routes_file: str = Field(default="routes/api.php")
    per_page: int = Field(default=15, ge=1, description="Page size of the generated index action")


class AdminConfig(BaseModel):
    """Tuning knobs for the admin resource generator."""

    namespace: str = Field(default="App\\Filament\\Resources")
    generate_pages: bool = Field(default=True)
    generate_relation_managers: bool = Field(default=True)
    navigation_icon: str = Field(default="heroicon-o-rectangle-stack")
    title_attribute: str = Field(
        default="name", description="Attribute shown for related records in pickers and columns"
    )
    native_command: Optional[list[str]] = Field(
        default_factory=lambda: ["php", "artisan", "make:filament-resource"],
        description="Framework scaffolding command tried before manual generation; None disables it",
    )
    native_timeout: int = Field(default=120, ge=5, description="Native command timeout in seconds")


class GeneratorConfig(BaseModel):
    """Global crudsmith configuration.

    Holds every tuneable parameter and derived path used by the generators.
    Instances are typically created once by the caller and then passed
    through the rest of the system.
    """

    project_root: Path = Field(default=Path("."))
    locale: Literal["en", "es"] = Field(default="en", description="Language of generated labels")
    force: bool = Field(default=False, description="Overwrite files that already exist")
    exclusions: ExclusionConfig = Field(default_factory=ExclusionConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def app_dir(self) -> Path:
        """Root of the application sources (``app/``)."""
        return self.project_root / "app"

    @property
    def models_dir(self) -> Path:
        """Directory holding generated model classes."""
        return self.app_dir / "Models"

    @property
    def controllers_dir(self) -> Path:
        """Directory holding generated API controllers."""
        return self.app_dir / "Http" / "Controllers" / "Api"

    @property
    def requests_dir(self) -> Path:
        """Directory holding generated form requests."""
        return self.app_dir / "Http" / "Requests" / "Api"

    @property
    def resources_dir(self) -> Path:
        """Directory holding generated admin resources."""
        return self.app_dir / "Filament" / "Resources"

    @property
    def routes_path(self) -> Path:
        """Path to the API routes file."""
        return self.project_root / self.api.routes_file

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``<project_root>/crudsmith.json``.

        Returns:
            The resolved path where the file was written.
        """
        target = path or (self.project_root / "crudsmith.json")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "GeneratorConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            CRUDSMITH_PROJECT_ROOT, CRUDSMITH_LOCALE, CRUDSMITH_FORCE,
            CRUDSMITH_EXCLUDED_COLUMNS, CRUDSMITH_EXCLUDED_TABLES,
            CRUDSMITH_NATIVE_COMMAND.

        List-valued variables are comma separated. An empty
        ``CRUDSMITH_NATIVE_COMMAND`` disables the native generation path.
        """
        exclusion_kwargs: dict[str, Any] = {}
        if os.environ.get("CRUDSMITH_EXCLUDED_COLUMNS"):
            exclusion_kwargs["columns"] = _split_csv(os.environ["CRUDSMITH_EXCLUDED_COLUMNS"])
        if os.environ.get("CRUDSMITH_EXCLUDED_TABLES"):
            exclusion_kwargs["tables"] = _split_csv(os.environ["CRUDSMITH_EXCLUDED_TABLES"])

        admin_kwargs: dict[str, Any] = {}
        if "CRUDSMITH_NATIVE_COMMAND" in os.environ:
            command = os.environ["CRUDSMITH_NATIVE_COMMAND"].strip()
            admin_kwargs["native_command"] = shlex.split(command) if command else None

        force = os.environ.get("CRUDSMITH_FORCE", "").strip().lower() in ("1", "true", "yes")

        return cls(
            project_root=Path(os.environ.get("CRUDSMITH_PROJECT_ROOT", ".")),
            locale=os.environ.get("CRUDSMITH_LOCALE", "en"),
            force=force,
            exclusions=ExclusionConfig(**exclusion_kwargs),
            admin=AdminConfig(**admin_kwargs),
        )


def _split_csv(value: str) -> set[str]:
    return {item.strip() for item in value.split(",") if item.strip()}
