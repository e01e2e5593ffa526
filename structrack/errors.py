"""Error taxonomy shared by the stores, the bridge and the HTTP layer.

Only primary-write failures are raised to callers. Reconciliation problems
(skipped import rows, failed legacy sync, absent optional tables) are folded
into result objects instead, see ``structrack.results``.
"""

from __future__ import annotations


class StoreError(Exception):
    """A persistence call failed."""

    def __init__(self, table: str, message: str):
        super().__init__(f"{table}: {message}")
        self.table = table
        self.message = message


class RelationNotFoundError(StoreError):
    """The target table does not exist (schema not rolled out yet)."""


class PermissionDeniedError(StoreError):
    """The store refused the call (row-level security, grants)."""


class NotFoundError(Exception):
    """A referenced parent entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} '{entity_id}' not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidInputError(ValueError):
    """Input for a primary write was rejected before touching the store."""


class TypeInUseError(Exception):
    """A structure type cannot be deleted while structures reference it."""

    def __init__(self, type_id: str, structure_count: int):
        super().__init__(
            f"Structure type '{type_id}' is used by {structure_count} structure(s)"
        )
        self.type_id = type_id
        self.structure_count = structure_count


class ConflictError(StoreError):
    """A unique constraint rejected the write."""
