"""Structrack Pydantic models for the physical-asset hierarchy.

type -> structure -> group -> element -> coordinates, plus surfaces.
Parent links are ids only; the tree read model owns its child lists.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Shape(str, Enum):
    """3D primitive used to render an element."""

    BOX = "BOX"
    CYLINDER = "CYLINDER"
    PRISM = "PRISM"
    POLYGON = "POLYGON"


class GroupType(str, Enum):
    PIER = "PIER"
    ABUTMENT = "ABUTMENT"
    SPAN = "SPAN"
    MAIN = "MAIN"
    OTHER = "OTHER"


class Direction(str, Enum):
    LEFT = "L"
    RIGHT = "R"
    CENTER = "C"


class ElementClass(str, Enum):
    PILE = "PILE"
    FOUNDATION = "FOUNDATION"
    COLUMN = "COLUMN"
    CAP_BEAM = "CAP_BEAM"
    BEAM = "BEAM"
    DECK = "DECK"
    LEAN_CONCRETE = "LEAN_CONCRETE"
    EXCAVATION = "EXCAVATION"
    OTHER = "OTHER"


class LocalizedText(BaseModel):
    """Text in the three dashboard languages."""

    tr: str = ""
    en: str = ""
    ro: str = ""

    def get(self, lang: str, fallback: str = "tr") -> str:
        return getattr(self, lang, "") or getattr(self, fallback, "")


class Point3(BaseModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Dimensions(BaseModel):
    """d1: radius/width, d2: height, d3: length."""

    d1: float = 0.0
    d2: float = 0.0
    d3: float = 0.0


class PolygonPoint(BaseModel):
    x: float
    y: float


class StructureType(BaseModel):
    """Structure type; ``code`` is the matrix discriminator (POD, DG...)."""

    id: str | None = None
    code: str
    name: LocalizedText = Field(default_factory=LocalizedText)
    icon: str | None = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("code must not be empty")
        return v


class Structure(BaseModel):
    """Physical structure (bridge, culvert...)."""

    id: str | None = None
    type_id: str | None = None
    code: str | None = None
    name: str | None = None
    km_start: float | None = None
    km_end: float | None = None
    is_split: bool = False  # separate Left/Right carriageways

    @property
    def legacy_code(self) -> str | None:
        """Natural key used by the legacy progress schema."""
        for candidate in (self.code, self.name):
            if candidate and candidate.strip():
                return candidate.strip()
        return None


class StructureGroup(BaseModel):
    id: str | None = None
    structure_id: str
    name: str | None = None
    group_type: str | None = GroupType.PIER.value
    direction: str | None = Direction.CENTER.value
    order_index: int = 0

    @field_validator("order_index", mode="before")
    @classmethod
    def default_order(cls, v: Any) -> Any:
        return 0 if v is None else v


class StructureElement(BaseModel):
    id: str | None = None
    group_id: str
    name: str | None = None
    element_class: str | None = ElementClass.OTHER.value


class ElementCoordinates(BaseModel):
    """Immutable 3D primitive of one element."""

    model_config = {"frozen": True}

    id: str | None = None
    element_id: str | None = None
    shape: Shape = Shape.CYLINDER
    position: Point3 = Field(default_factory=Point3)
    dimensions: Dimensions = Field(default_factory=Dimensions)
    rotation: Point3 = Field(default_factory=Point3)
    polygon_points: list[PolygonPoint] | None = None
    slope: float | None = None


class StructureLayer(BaseModel):
    id: str | None = None
    name: LocalizedText = Field(default_factory=LocalizedText)
    order_index: int = 0


class StructureSurface(BaseModel):
    id: str | None = None
    structure_id: str
    layer_id: str | None = None
    file_url: str | None = None
    geojson: dict[str, Any] | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Tree read model
# ---------------------------------------------------------------------------


class ElementNode(StructureElement):
    coordinates: ElementCoordinates | None = None


class GroupNode(StructureGroup):
    elements: list[ElementNode] = Field(default_factory=list)


class StructureTreeItem(Structure):
    """Structure with its type code and owned groups/surfaces."""

    type_code: str = ""
    groups: list[GroupNode] = Field(default_factory=list)
    surfaces: list[StructureSurface] = Field(default_factory=list)
