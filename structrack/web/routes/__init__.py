"""Structrack web route modules.

Each module exports a ``router`` (APIRouter) included by ``structrack.web.app``.
Shared dependencies live in ``structrack.web.dependencies`` and request/response
models in ``structrack.web.models``.
"""

from structrack.web.routes import health, matrix, structures

__all__ = [
    "health",
    "matrix",
    "structures",
]
