"""Unit tests for Structrack web route modules.

One test file per route module. Routes are mounted on a bare FastAPI app
with the shared exception handlers, and ``get_manager`` is overridden with
an AsyncMock so no database is needed.
"""
