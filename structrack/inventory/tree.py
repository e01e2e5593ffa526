"""Tree assembly from the flat inventory tables.

The hosted store offers no server-side joins, so the UI tree is rebuilt
client-side: load every table once, index each level by id, then attach
children by parent-id lookup. Orphans (parent id not found) are left out
rather than raised; the flat tables stay the source of truth.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable

from structrack.inventory.models import (
    ElementCoordinates,
    ElementNode,
    GroupNode,
    PolygonPoint,
    Structure,
    StructureElement,
    StructureGroup,
    StructureSurface,
    StructureTreeItem,
    StructureType,
)

logger = logging.getLogger(__name__)

_STRUCTURE_FIELDS = set(Structure.model_fields)
_GROUP_FIELDS = set(StructureGroup.model_fields)
_ELEMENT_FIELDS = set(StructureElement.model_fields)


def assemble(
    types: Iterable[StructureType],
    structures: Iterable[Structure],
    groups: Iterable[StructureGroup],
    elements: Iterable[StructureElement],
    coordinates: Iterable[ElementCoordinates],
    surfaces: Iterable[StructureSurface] = (),
) -> list[StructureTreeItem]:
    """Build the structure tree from flat record sets.

    Pure and O(n): one pass per level using id-indexed maps.

    Returns:
        One StructureTreeItem per structure, in input order, with groups
        sorted by ``order_index`` (stable for ties).
    """
    type_codes = {t.id: t.code for t in types if t.id is not None}

    tree: list[StructureTreeItem] = []
    by_structure: dict[str, StructureTreeItem] = {}
    for structure in structures:
        item = StructureTreeItem(
            **structure.model_dump(include=_STRUCTURE_FIELDS),
            type_code=type_codes.get(structure.type_id, "") if structure.type_id else "",
        )
        tree.append(item)
        if structure.id is not None:
            by_structure[structure.id] = item

    by_group: dict[str, GroupNode] = {}
    orphan_groups = 0
    for group in groups:
        parent = by_structure.get(group.structure_id)
        if parent is None:
            orphan_groups += 1
            continue
        node = GroupNode(**group.model_dump(include=_GROUP_FIELDS))
        parent.groups.append(node)
        if group.id is not None:
            by_group[group.id] = node

    # First record wins if the 1:1 relationship was ever violated
    coords_by_element: dict[str, ElementCoordinates] = {}
    for coord in coordinates:
        if coord.element_id is not None:
            coords_by_element.setdefault(coord.element_id, coord)

    orphan_elements = 0
    for element in elements:
        group_node = by_group.get(element.group_id)
        if group_node is None:
            orphan_elements += 1
            continue
        group_node.elements.append(
            ElementNode(
                **element.model_dump(include=_ELEMENT_FIELDS),
                coordinates=coords_by_element.get(element.id) if element.id else None,
            )
        )

    for surface in surfaces:
        parent = by_structure.get(surface.structure_id)
        if parent is not None:
            parent.surfaces.append(surface)

    for item in tree:
        item.groups.sort(key=lambda g: g.order_index)

    if orphan_groups or orphan_elements:
        logger.debug(
            f"Tree assembly skipped {orphan_groups} orphan group(s) "
            f"and {orphan_elements} orphan element(s)"
        )

    return tree


_POINT_SPLIT = re.compile(r"[\t\s,]+")


def parse_polygon_points(text: str) -> list[PolygonPoint]:
    """Parse pasted polygon corners, one "x y" pair per line.

    Separators may be tabs, spaces or commas. Lines without two finite
    numbers are ignored.
    """
    points: list[PolygonPoint] = []
    for line in text.strip().splitlines():
        parts = [p for p in _POINT_SPLIT.split(line.strip()) if p]
        if len(parts) < 2:
            continue
        try:
            x, y = float(parts[0]), float(parts[1])
        except ValueError:
            continue
        if math.isfinite(x) and math.isfinite(y):
            points.append(PolygonPoint(x=x, y=y))
    return points
