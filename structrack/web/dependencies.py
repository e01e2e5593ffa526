"""Shared dependencies for Structrack web routes.

Usage:
    from fastapi import Depends
    from structrack.web.dependencies import get_manager

    @router.get("/api/structures/tree")
    async def tree(manager: StructureManager = Depends(get_manager)):
        return await manager.get_tree()
"""

from __future__ import annotations

from structrack.config import get_config
from structrack.db.connection import get_session_factory
from structrack.db.store import SQLRecordStore
from structrack.service import StructureManager

# Global singleton; holds the tree snapshot between requests
_manager: StructureManager | None = None


def get_manager() -> StructureManager:
    """Get the process-wide StructureManager.

    Tests override this with ``app.dependency_overrides[get_manager]``.
    """
    global _manager
    if _manager is None:
        _manager = StructureManager.from_config(
            SQLRecordStore(get_session_factory()), get_config()
        )
    return _manager


def reset_manager() -> None:
    global _manager
    _manager = None
