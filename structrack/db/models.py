"""SQLAlchemy async database models for Structrack.

Maps to the hosted PostgreSQL schema. Parent references are plain columns:
the deployed schema dropped its foreign keys during incremental rollout, so
referential integrity is enforced by the stores, not the database.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


def _new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class StructureTypeModel(Base):
    """Structure type definition (bridge, culvert, wall...)."""

    __tablename__ = "structure_types"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    code: Mapped[str] = mapped_column(Text, nullable=False)

    # Localized names
    name_tr: Mapped[str | None] = mapped_column(Text)
    name_en: Mapped[str | None] = mapped_column(Text)
    name_ro: Mapped[str | None] = mapped_column(Text)

    icon: Mapped[str | None] = mapped_column(Text)


class StructureModel(Base):
    """Physical structure; ``code`` doubles as the legacy natural key."""

    __tablename__ = "structures_main"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    type_id: Mapped[str | None] = mapped_column(Text, index=True)
    code: Mapped[str | None] = mapped_column(Text)
    name: Mapped[str | None] = mapped_column(Text)
    km_start: Mapped[float | None] = mapped_column(Numeric(12, 3, asdecimal=False))
    km_end: Mapped[float | None] = mapped_column(Numeric(12, 3, asdecimal=False))
    is_split: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class StructureGroupModel(Base):
    """Progress-trackable unit of a structure (one pier, one abutment)."""

    __tablename__ = "structure_groups"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    structure_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(Text)
    group_type: Mapped[str | None] = mapped_column(Text)
    direction: Mapped[str | None] = mapped_column(Text)  # 'L', 'R', 'C'
    order_index: Mapped[int | None] = mapped_column(Integer)


class StructureElementModel(Base):
    __tablename__ = "structure_elements"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    group_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(Text)
    element_class: Mapped[str | None] = mapped_column(Text)


class ElementCoordinatesModel(Base):
    """3D primitive of one element (1:1 with structure_elements)."""

    __tablename__ = "element_coordinates"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    element_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    shape: Mapped[str] = mapped_column(Text, nullable=False)

    coords_x: Mapped[float] = mapped_column(Float, nullable=False)
    coords_y: Mapped[float] = mapped_column(Float, nullable=False)
    coords_z: Mapped[float] = mapped_column(Float, nullable=False)

    # d1: radius/width, d2: height, d3: length
    dim_1: Mapped[float | None] = mapped_column(Float)
    dim_2: Mapped[float | None] = mapped_column(Float)
    dim_3: Mapped[float | None] = mapped_column(Float)

    rot_x: Mapped[float | None] = mapped_column(Float, default=0.0)
    rot_y: Mapped[float | None] = mapped_column(Float, default=0.0)
    rot_z: Mapped[float | None] = mapped_column(Float, default=0.0)

    polygon_points: Mapped[list | None] = mapped_column(JSON)
    slope: Mapped[float | None] = mapped_column(Float)


class StructureLayerModel(Base):
    __tablename__ = "structure_layers"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    name_tr: Mapped[str | None] = mapped_column(Text)
    name_en: Mapped[str | None] = mapped_column(Text)
    name_ro: Mapped[str | None] = mapped_column(Text)
    order_index: Mapped[int | None] = mapped_column(Integer)


class StructureSurfaceModel(Base):
    """Earthwork surface attached to a structure and classified by layer."""

    __tablename__ = "structure_surfaces"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    structure_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    layer_id: Mapped[str | None] = mapped_column(Text)
    file_url: Mapped[str | None] = mapped_column(Text)
    geojson: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class MatrixColumnModel(Base):
    """Checklist column tracked per structure group."""

    __tablename__ = "pvla_matrix_columns"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    type: Mapped[str] = mapped_column(Text, nullable=False)  # 'Bridge' | 'Culvert'

    name_tr: Mapped[str | None] = mapped_column(Text)
    name_en: Mapped[str | None] = mapped_column(Text)
    name_ro: Mapped[str | None] = mapped_column(Text)
    group_tr: Mapped[str | None] = mapped_column(Text)
    group_en: Mapped[str | None] = mapped_column(Text)
    group_ro: Mapped[str | None] = mapped_column(Text)

    col_type: Mapped[str | None] = mapped_column(Text)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class LegacyStructureModel(Base):
    """Legacy shadow record; ``id`` is the structure's natural code."""

    __tablename__ = "pvla_structures"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str | None] = mapped_column(Text)
    km: Mapped[str | None] = mapped_column(Text)
    km_start: Mapped[float | None] = mapped_column(Float)
    km_end: Mapped[float | None] = mapped_column(Float)
    type: Mapped[str | None] = mapped_column(Text)  # 'Bridge' | 'Culvert'
    path: Mapped[str | None] = mapped_column(Text)


class LegacyProgressRowModel(Base):
    """Denormalized progress row; ``cells`` is one JSON blob per row."""

    __tablename__ = "progress_matrix"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    structure_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    structure_group_id: Mapped[str | None] = mapped_column(Text, index=True)
    location: Mapped[str | None] = mapped_column(Text)
    foundation_type: Mapped[str | None] = mapped_column(Text)
    direction: Mapped[str | None] = mapped_column(Text)
    order_index: Mapped[int | None] = mapped_column(Integer)
    cells: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)


class ProgressItemModel(Base):
    """Relational per-cell progress item, one per (group, column)."""

    __tablename__ = "progress_items"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    structure_group_id: Mapped[str] = mapped_column(Text, nullable=False)
    matrix_column_id: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, default="EMPTY", nullable=False)
    reference_code: Mapped[str | None] = mapped_column(Text)
    file_url: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "structure_group_id", "matrix_column_id", name="uq_progress_items_cell"
        ),
        Index("idx_progress_items_group", "structure_group_id"),
    )
