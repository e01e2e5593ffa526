"""CRUD over the inventory tables: types, structures, groups, elements,
coordinates, layers and surfaces.

The schema declares no foreign keys, so ownership is enforced here: parents
are checked on insert and deletes cascade down the hierarchy explicitly.
"""

from __future__ import annotations

import logging
from typing import Any

from structrack.db.store import Record, RecordStore
from structrack.errors import (
    InvalidInputError,
    NotFoundError,
    RelationNotFoundError,
    TypeInUseError,
)
from structrack.inventory.models import (
    Dimensions,
    ElementCoordinates,
    LocalizedText,
    Point3,
    PolygonPoint,
    Shape,
    Structure,
    StructureElement,
    StructureGroup,
    StructureLayer,
    StructureSurface,
    StructureType,
)

logger = logging.getLogger(__name__)

TYPES = "structure_types"
STRUCTURES = "structures_main"
GROUPS = "structure_groups"
ELEMENTS = "structure_elements"
COORDINATES = "element_coordinates"
LAYERS = "structure_layers"
SURFACES = "structure_surfaces"

MIN_POLYGON_POINTS = 3


class InventoryRepository:
    """Stores for the five-level structure hierarchy."""

    def __init__(self, store: RecordStore):
        self.store = store

    # ------------------------------------------------------------------
    # Structure types
    # ------------------------------------------------------------------

    async def list_types(self) -> list[StructureType]:
        rows = await self.store.list(TYPES, order_by="name_tr")
        return [_to_structure_type(row) for row in rows]

    async def get_type(self, type_id: str) -> StructureType | None:
        row = await self.store.get(TYPES, type_id)
        return _to_structure_type(row) if row else None

    async def add_type(self, structure_type: StructureType) -> StructureType:
        row = await self.store.insert(TYPES, _type_payload(structure_type))
        return _to_structure_type(row)

    async def update_type(self, type_id: str, structure_type: StructureType) -> bool:
        return await self.store.update(TYPES, type_id, _type_payload(structure_type))

    async def delete_type(self, type_id: str) -> bool:
        """Delete a type; blocked while any structure references it.

        Raises:
            TypeInUseError: If structures still use the type
        """
        users = await self.store.list(STRUCTURES, {"type_id": type_id})
        if users:
            raise TypeInUseError(type_id, len(users))
        return await self.store.delete(TYPES, type_id)

    # ------------------------------------------------------------------
    # Structures
    # ------------------------------------------------------------------

    async def list_structures(self) -> list[Structure]:
        return [_to_structure(row) for row in await self.store.list(STRUCTURES)]

    async def get_structure(self, structure_id: str) -> Structure | None:
        row = await self.store.get(STRUCTURES, structure_id)
        return _to_structure(row) if row else None

    async def add_structure(self, structure: Structure) -> Structure:
        """Insert a structure under an existing type.

        Raises:
            NotFoundError: If ``type_id`` does not resolve
        """
        if structure.type_id is None or await self.get_type(structure.type_id) is None:
            raise NotFoundError("structure type", str(structure.type_id))
        row = await self.store.insert(STRUCTURES, _structure_payload(structure))
        return _to_structure(row)

    async def update_structure(self, structure_id: str, structure: Structure) -> bool:
        return await self.store.update(
            STRUCTURES, structure_id, _structure_payload(structure)
        )

    async def delete_structure(self, structure_id: str) -> bool:
        """Delete a structure with its groups, elements, coordinates and surfaces."""
        groups = await self.store.list(GROUPS, {"structure_id": structure_id})
        for group in groups:
            await self._delete_group_children(group["id"])
        await self.store.delete_where(GROUPS, "structure_id", [structure_id])
        try:
            await self.store.delete_where(SURFACES, "structure_id", [structure_id])
        except RelationNotFoundError:
            logger.warning(f"Table '{SURFACES}' not found; no surfaces to delete")
        deleted = await self.store.delete(STRUCTURES, structure_id)
        logger.info(
            f"Deleted structure {structure_id} with {len(groups)} group(s)"
        )
        return deleted

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def list_groups(self, structure_id: str | None = None) -> list[StructureGroup]:
        filters = {"structure_id": structure_id} if structure_id else None
        rows = await self.store.list(GROUPS, filters, order_by="order_index")
        return [_to_group(row) for row in rows]

    async def get_group(self, group_id: str) -> StructureGroup | None:
        row = await self.store.get(GROUPS, group_id)
        return _to_group(row) if row else None

    async def add_group(self, group: StructureGroup) -> StructureGroup:
        """Insert a group under an existing structure.

        Raises:
            NotFoundError: If the parent structure does not exist
        """
        if await self.store.get(STRUCTURES, group.structure_id) is None:
            raise NotFoundError("structure", group.structure_id)
        row = await self.store.insert(GROUPS, _group_payload(group))
        return _to_group(row)

    async def update_group(self, group_id: str, group: StructureGroup) -> bool:
        return await self.store.update(GROUPS, group_id, _group_payload(group))

    async def delete_group(self, group_id: str) -> bool:
        """Delete a group with its elements and coordinates.

        Progress rows/items that reference the group are left in place.
        """
        await self._delete_group_children(group_id)
        return await self.store.delete(GROUPS, group_id)

    async def _delete_group_children(self, group_id: str) -> None:
        elements = await self.store.list(ELEMENTS, {"group_id": group_id})
        element_ids = [element["id"] for element in elements]
        await self.store.delete_where(COORDINATES, "element_id", element_ids)
        await self.store.delete_where(ELEMENTS, "group_id", [group_id])

    # ------------------------------------------------------------------
    # Elements & coordinates
    # ------------------------------------------------------------------

    async def list_elements(self, group_id: str | None = None) -> list[StructureElement]:
        filters = {"group_id": group_id} if group_id else None
        return [_to_element(row) for row in await self.store.list(ELEMENTS, filters)]

    async def list_coordinates(self) -> list[ElementCoordinates]:
        return [_to_coordinates(row) for row in await self.store.list(COORDINATES)]

    async def get_coordinates(self, element_id: str) -> ElementCoordinates | None:
        rows = await self.store.list(COORDINATES, {"element_id": element_id})
        return _to_coordinates(rows[0]) if rows else None

    async def add_element(
        self, element: StructureElement, coordinates: ElementCoordinates
    ) -> StructureElement:
        """Insert an element and its coordinate record.

        Raises:
            NotFoundError: If the parent group does not exist
            InvalidInputError: If a POLYGON has fewer than three corners
        """
        validate_coordinates(coordinates)
        if await self.store.get(GROUPS, element.group_id) is None:
            raise NotFoundError("group", element.group_id)
        row = await self.store.insert(ELEMENTS, _element_payload(element))
        await self.store.insert(COORDINATES, _coordinates_payload(row["id"], coordinates))
        return _to_element(row)

    async def set_coordinates(
        self, element_id: str, coordinates: ElementCoordinates
    ) -> ElementCoordinates:
        """Replace the element's coordinate record, creating it if absent."""
        validate_coordinates(coordinates)
        row = await self.store.upsert(
            COORDINATES,
            _coordinates_payload(element_id, coordinates),
            conflict_keys=["element_id"],
        )
        return _to_coordinates(row)

    async def update_element(
        self,
        element_id: str,
        element: StructureElement | None = None,
        coordinates: ElementCoordinates | None = None,
    ) -> bool:
        if element is not None:
            updated = await self.store.update(
                ELEMENTS,
                element_id,
                {"name": element.name, "element_class": element.element_class},
            )
            if not updated:
                return False
        elif await self.store.get(ELEMENTS, element_id) is None:
            return False
        if coordinates is not None:
            await self.set_coordinates(element_id, coordinates)
        return True

    async def delete_element(self, element_id: str) -> bool:
        await self.store.delete_where(COORDINATES, "element_id", [element_id])
        return await self.store.delete(ELEMENTS, element_id)

    # ------------------------------------------------------------------
    # Layers & surfaces (optional tables)
    # ------------------------------------------------------------------

    async def list_layers(self) -> list[StructureLayer]:
        rows = await self.store.list_optional(LAYERS, order_by="order_index")
        return [_to_layer(row) for row in rows]

    async def add_layer(self, layer: StructureLayer) -> StructureLayer:
        row = await self.store.insert(
            LAYERS,
            {
                "name_tr": layer.name.tr,
                "name_en": layer.name.en,
                "name_ro": layer.name.ro,
                "order_index": layer.order_index,
            },
        )
        return _to_layer(row)

    async def delete_layer(self, layer_id: str) -> bool:
        return await self.store.delete(LAYERS, layer_id)

    async def list_surfaces(self) -> list[StructureSurface]:
        return [_to_surface(row) for row in await self.store.list_optional(SURFACES)]

    async def add_surface(self, surface: StructureSurface) -> StructureSurface:
        if await self.store.get(STRUCTURES, surface.structure_id) is None:
            raise NotFoundError("structure", surface.structure_id)
        row = await self.store.insert(
            SURFACES,
            {
                "structure_id": surface.structure_id,
                "layer_id": surface.layer_id,
                "file_url": surface.file_url,
                "geojson": surface.geojson,
            },
        )
        return _to_surface(row)

    async def delete_surface(self, surface_id: str) -> bool:
        return await self.store.delete(SURFACES, surface_id)


def validate_coordinates(coordinates: ElementCoordinates) -> None:
    if coordinates.shape == Shape.POLYGON and (
        len(coordinates.polygon_points or []) < MIN_POLYGON_POINTS
    ):
        raise InvalidInputError(
            f"POLYGON needs at least {MIN_POLYGON_POINTS} corner points"
        )


# ----------------------------------------------------------------------
# Row mapping
# ----------------------------------------------------------------------


def _localized(row: Record, prefix: str) -> LocalizedText:
    return LocalizedText(
        tr=row.get(f"{prefix}_tr") or "",
        en=row.get(f"{prefix}_en") or "",
        ro=row.get(f"{prefix}_ro") or "",
    )


def _to_structure_type(row: Record) -> StructureType:
    return StructureType(
        id=row["id"], code=row["code"], name=_localized(row, "name"), icon=row.get("icon")
    )


def _type_payload(structure_type: StructureType) -> dict[str, Any]:
    return {
        "code": structure_type.code,
        "name_tr": structure_type.name.tr,
        "name_en": structure_type.name.en,
        "name_ro": structure_type.name.ro,
        "icon": structure_type.icon,
    }


def _to_structure(row: Record) -> Structure:
    return Structure(
        id=row["id"],
        type_id=row.get("type_id"),
        code=row.get("code"),
        name=row.get("name"),
        km_start=row.get("km_start"),
        km_end=row.get("km_end"),
        is_split=bool(row.get("is_split")),
    )


def _structure_payload(structure: Structure) -> dict[str, Any]:
    return {
        "type_id": structure.type_id,
        "code": structure.code,
        "name": structure.name,
        "km_start": structure.km_start,
        "km_end": structure.km_end,
        "is_split": structure.is_split,
    }


def _to_group(row: Record) -> StructureGroup:
    return StructureGroup(
        id=row["id"],
        structure_id=row["structure_id"],
        name=row.get("name"),
        group_type=row.get("group_type"),
        direction=row.get("direction"),
        order_index=row.get("order_index"),
    )


def _group_payload(group: StructureGroup) -> dict[str, Any]:
    return {
        "structure_id": group.structure_id,
        "name": group.name,
        "group_type": group.group_type,
        "direction": group.direction,
        "order_index": group.order_index,
    }


def _to_element(row: Record) -> StructureElement:
    return StructureElement(
        id=row["id"],
        group_id=row["group_id"],
        name=row.get("name"),
        element_class=row.get("element_class"),
    )


def _element_payload(element: StructureElement) -> dict[str, Any]:
    return {
        "group_id": element.group_id,
        "name": element.name,
        "element_class": element.element_class,
    }


def _to_coordinates(row: Record) -> ElementCoordinates:
    points = row.get("polygon_points")
    return ElementCoordinates(
        id=row.get("id"),
        element_id=row["element_id"],
        shape=Shape(row["shape"]),
        position=Point3(x=row["coords_x"], y=row["coords_y"], z=row["coords_z"]),
        dimensions=Dimensions(
            d1=row.get("dim_1") or 0.0,
            d2=row.get("dim_2") or 0.0,
            d3=row.get("dim_3") or 0.0,
        ),
        rotation=Point3(
            x=row.get("rot_x") or 0.0,
            y=row.get("rot_y") or 0.0,
            z=row.get("rot_z") or 0.0,
        ),
        polygon_points=[PolygonPoint(**p) for p in points] if points else None,
        slope=row.get("slope"),
    )


def _coordinates_payload(element_id: str, coordinates: ElementCoordinates) -> dict[str, Any]:
    return {
        "element_id": element_id,
        "shape": coordinates.shape.value,
        "coords_x": coordinates.position.x,
        "coords_y": coordinates.position.y,
        "coords_z": coordinates.position.z,
        "dim_1": coordinates.dimensions.d1,
        "dim_2": coordinates.dimensions.d2,
        "dim_3": coordinates.dimensions.d3,
        "rot_x": coordinates.rotation.x,
        "rot_y": coordinates.rotation.y,
        "rot_z": coordinates.rotation.z,
        "polygon_points": (
            [p.model_dump() for p in coordinates.polygon_points]
            if coordinates.polygon_points
            else None
        ),
        "slope": coordinates.slope,
    }


def _to_layer(row: Record) -> StructureLayer:
    return StructureLayer(
        id=row["id"], name=_localized(row, "name"), order_index=row.get("order_index") or 0
    )


def _to_surface(row: Record) -> StructureSurface:
    return StructureSurface(
        id=row["id"],
        structure_id=row["structure_id"],
        layer_id=row.get("layer_id"),
        file_url=row.get("file_url"),
        geojson=row.get("geojson"),
        updated_at=row.get("created_at"),
    )
