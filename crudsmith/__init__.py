"""crudsmith -- schema-driven CRUD scaffolding."""

__version__ = "0.1.0"
