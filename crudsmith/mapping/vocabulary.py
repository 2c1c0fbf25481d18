"""Static vocabularies consulted by the classifier and the relation resolver.

Everything here is plain lookup data. Extending a list or dictionary changes
classification results without touching any rule logic.
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Order / position fields
# ---------------------------------------------------------------------------

ORDER_FIELD_NAMES: frozenset[str] = frozenset({
    "order", "sort", "sort_order", "display_order", "position", "sequence",
    "priority", "rank", "weight", "index",
    # es
    "orden", "posicion", "secuencia", "prioridad", "peso", "indice",
})

ORDER_FIELD_SUFFIXES: tuple[str, ...] = (
    "_order", "_sort", "_position", "_sequence", "_priority", "_rank",
    "_weight", "_index",
    # es
    "_orden", "_posicion",
)


# ---------------------------------------------------------------------------
# Boolean flags
# ---------------------------------------------------------------------------

_BOOLEAN_WORDS = (
    "active", "enabled", "visible", "published", "verified", "confirmed",
    "featured", "premium", "public", "private", "deleted", "banned",
    "approved", "completed", "paid", "free", "online", "available",
)

BOOLEAN_FIELD_NAMES: frozenset[str] = frozenset(
    list(_BOOLEAN_WORDS)
    + [f"is_{word}" for word in _BOOLEAN_WORDS]
    + [
        # es
        "activo", "habilitado", "publicado", "verificado", "confirmado",
        "destacado", "publico", "privado", "eliminado", "aprobado",
        "completado", "pagado", "gratuito", "disponible",
        "es_activo", "es_publico", "es_visible",
    ]
)

BOOLEAN_FIELD_SUFFIXES: tuple[str, ...] = ("_flag", "_status", "_check")

BOOLEAN_RAW_TYPE_PREFIX = "tinyint(1)"


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

# Only the first matching prefix is stripped.
LABEL_PREFIXES: tuple[str, ...] = (
    "is_", "es_", "has_", "have_", "can_", "should_", "will_", "was_", "were_",
)

BOOLEAN_LABELS: dict[str, dict[str, str]] = {
    "en": {
        "active": "Active",
        "enabled": "Enabled",
        "visible": "Visible",
        "published": "Published",
        "verified": "Verified",
        "confirmed": "Confirmed",
        "featured": "Featured",
        "premium": "Premium",
        "public": "Public",
        "private": "Private",
        "approved": "Approved",
        "completed": "Completed",
        "finished": "Finished",
        "paid": "Paid",
        "free": "Free",
        "online": "Online",
        "available": "Available",
        "blocked": "Blocked",
        "banned": "Banned",
        "deleted": "Deleted",
        "archived": "Archived",
        "hidden": "Hidden",
        "urgent": "Urgent",
        "important": "Important",
        "popular": "Popular",
        "recommended": "Recommended",
        "favorite": "Favorite",
        "pinned": "Pinned",
        "locked": "Locked",
        "readonly": "Read only",
        "editable": "Editable",
        "required": "Required",
        "optional": "Optional",
        "automatic": "Automatic",
        "manual": "Manual",
        "default": "Default",
        "custom": "Custom",
    },
    "es": {
        "active": "Activo",
        "activo": "Activo",
        "enabled": "Habilitado",
        "habilitado": "Habilitado",
        "visible": "Visible",
        "published": "Publicado",
        "publicado": "Publicado",
        "verified": "Verificado",
        "verificado": "Verificado",
        "confirmed": "Confirmado",
        "confirmado": "Confirmado",
        "featured": "Destacado",
        "destacado": "Destacado",
        "premium": "Premium",
        "public": "Público",
        "publico": "Público",
        "private": "Privado",
        "privado": "Privado",
        "approved": "Aprobado",
        "aprobado": "Aprobado",
        "completed": "Completado",
        "completado": "Completado",
        "finished": "Finalizado",
        "finalizado": "Finalizado",
        "paid": "Pagado",
        "pagado": "Pagado",
        "free": "Gratuito",
        "gratuito": "Gratuito",
        "online": "En línea",
        "available": "Disponible",
        "disponible": "Disponible",
        "blocked": "Bloqueado",
        "bloqueado": "Bloqueado",
        "banned": "Suspendido",
        "suspendido": "Suspendido",
        "deleted": "Eliminado",
        "eliminado": "Eliminado",
        "archived": "Archivado",
        "archivado": "Archivado",
        "hidden": "Oculto",
        "oculto": "Oculto",
        "urgent": "Urgente",
        "important": "Importante",
        "importante": "Importante",
        "special": "Especial",
        "popular": "Popular",
        "recommended": "Recomendado",
        "recomendado": "Recomendado",
        "favorite": "Favorito",
        "favorito": "Favorito",
        "pinned": "Fijado",
        "fijado": "Fijado",
        "locked": "Bloqueado",
        "readonly": "Solo lectura",
        "editable": "Editable",
        "required": "Requerido",
        "requerido": "Requerido",
        "optional": "Opcional",
        "opcional": "Opcional",
        "automatic": "Automático",
        "automatico": "Automático",
        "manual": "Manual",
        "default": "Por defecto",
        "custom": "Personalizado",
        "personalizado": "Personalizado",
    },
}

# Fixed labels for the identifier and timestamp columns of a listing.
AUDIT_LABELS: dict[str, dict[str, str]] = {
    "en": {"id": "ID", "created_at": "Created", "updated_at": "Updated"},
    "es": {"id": "ID", "created_at": "Creado", "updated_at": "Actualizado"},
}

FORM_SECTION_TITLES: dict[str, str] = {
    "en": "Main Information",
    "es": "Información Principal",
}

# Response messages of the generated API controller; {entity} is substituted.
API_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "created": "{entity} created successfully",
        "updated": "{entity} updated successfully",
        "deleted": "{entity} deleted successfully",
    },
    "es": {
        "created": "{entity} creado exitosamente",
        "updated": "{entity} actualizado exitosamente",
        "deleted": "{entity} eliminado exitosamente",
    },
}


# ---------------------------------------------------------------------------
# Widget refinements (form level only)
# ---------------------------------------------------------------------------

PHONE_NAME_FRAGMENTS: tuple[str, ...] = ("phone", "telefono", "celular")
URL_NAME_FRAGMENTS: tuple[str, ...] = ("url", "website", "sitio")


# ---------------------------------------------------------------------------
# Relation display names
# ---------------------------------------------------------------------------

RELATION_NAMES: dict[str, dict[str, str]] = {
    "es": {
        "users": "usuarios", "user": "usuarios",
        "posts": "publicaciones", "post": "publicaciones",
        "comments": "comentarios", "comment": "comentarios",
        "categories": "categorias", "category": "categorias",
        "products": "productos", "product": "productos",
        "orders": "pedidos", "order": "pedidos",
        "payments": "pagos", "payment": "pagos",
        "invoices": "facturas", "invoice": "facturas",
        "plans": "planes", "plan": "planes",
        "services": "servicios", "service": "servicios",
        "clients": "clientes", "client": "clientes",
        "customers": "clientes", "customer": "clientes",
        "employees": "empleados", "employee": "empleados",
        "companies": "empresas", "company": "empresas",
        "projects": "proyectos", "project": "proyectos",
        "tasks": "tareas", "task": "tareas",
        "files": "archivos", "file": "archivos",
        "images": "imagenes", "image": "imagenes",
        "videos": "videos", "video": "videos",
        "documents": "documentos", "document": "documentos",
        "reports": "reportes", "report": "reportes",
        "notifications": "notificaciones", "notification": "notificaciones",
        "messages": "mensajes", "message": "mensajes",
        "reviews": "resenas", "review": "resenas",
        "ratings": "calificaciones", "rating": "calificaciones",
        "addresses": "direcciones", "address": "direcciones",
        "contacts": "contactos", "contact": "contactos",
        "phones": "telefonos", "phone": "telefonos",
        "emails": "correos", "email": "correos",
        "roles": "roles", "role": "roles",
        "permissions": "permisos", "permission": "permisos",
        "settings": "configuraciones", "setting": "configuraciones",
        "logs": "registros", "log": "registros",
        "sessions": "sesiones", "session": "sesiones",
        "tokens": "tokens", "token": "tokens",
        "subscriptions": "suscripciones", "subscription": "suscripciones",
    },
    "en": {},
}

SPANISH_VOWELS: tuple[str, ...] = ("a", "e", "i", "o", "u")
SPANISH_ES_CONSONANTS: tuple[str, ...] = ("l", "r", "n", "d", "j")


# ---------------------------------------------------------------------------
# Join tables
# ---------------------------------------------------------------------------

JOIN_TABLE_PATTERNS: tuple[str, ...] = (
    r"^[a-z]+_[a-z]+$",
    r"^[a-z]+_has_[a-z]+$",
    r"^[a-z]+_[a-z]+_pivot$",
    r"^pivot_[a-z]+_[a-z]+$",
)

# A table with at least this many foreign keys and at most
# JOIN_TABLE_MAX_PAYLOAD_COLUMNS other columns is treated as a join table.
JOIN_TABLE_MIN_FOREIGN_KEYS = 2
JOIN_TABLE_MAX_PAYLOAD_COLUMNS = 2
