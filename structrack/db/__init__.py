"""Database layer for Structrack with async SQLAlchemy."""

from structrack.db.connection import get_session, get_session_factory, init_db
from structrack.db.models import (
    Base,
    ElementCoordinatesModel,
    LegacyProgressRowModel,
    LegacyStructureModel,
    MatrixColumnModel,
    ProgressItemModel,
    StructureElementModel,
    StructureGroupModel,
    StructureLayerModel,
    StructureModel,
    StructureSurfaceModel,
    StructureTypeModel,
)
from structrack.db.store import RecordStore, SQLRecordStore

__all__ = [
    "Base",
    "StructureTypeModel",
    "StructureModel",
    "StructureGroupModel",
    "StructureElementModel",
    "ElementCoordinatesModel",
    "StructureLayerModel",
    "StructureSurfaceModel",
    "MatrixColumnModel",
    "LegacyStructureModel",
    "LegacyProgressRowModel",
    "ProgressItemModel",
    "RecordStore",
    "SQLRecordStore",
    "get_session",
    "get_session_factory",
    "init_db",
]
