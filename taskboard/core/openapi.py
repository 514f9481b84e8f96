"""OpenAPI metadata and customization.

Adds the API key security scheme and tag descriptions to the generated
schema. Only mutating operations that depend on ``verify_api_key`` are marked
as secured; everything else gets ``security: []``.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Todos", "description": "Create, list, update and soft-delete tasks."},
    {"name": "Groups", "description": "Named buckets of tasks; 'default' always exists."},
    {"name": "Likes", "description": "Per-client likes on tasks."},
    {"name": "Stats", "description": "Page view and unique visitor counters."},
    {"name": "Auth", "description": "Shared-password verification."},
    {"name": "Health", "description": "Liveness check."},
]

SECURED_METHODS = frozenset({"post", "put", "delete"})
SECURED_PATHS = frozenset({"/api/todos", "/api/groups"})


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch ``app.openapi`` to add the security scheme and tag metadata."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "The shared password. 'Authorization: Bearer <password>' is accepted too.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method, operation in methods.items():
                if not isinstance(operation, dict):
                    continue
                if path in SECURED_PATHS and method in SECURED_METHODS:
                    operation["security"] = [{"ApiKeyAuth": []}]
                else:
                    operation["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
