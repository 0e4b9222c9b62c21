"""
FastAPI API routes and endpoints.

- routes.py: POST /classify, POST /feedback, GET /health
- dependencies.py: Dependency injection for the delivery layer, engine and tasks
- models.py: API-specific request/response models
- error_handlers.py: Exception handlers mapping pipeline failures to status codes
- middleware.py: Request id tracing
"""

from structured_inference.api import dependencies, error_handlers, models
from structured_inference.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
