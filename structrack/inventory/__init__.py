"""Structure inventory: types, structures, groups, elements and the tree."""

from structrack.inventory.bulk_import import BulkCoordinateImporter, parse_bulk_rows
from structrack.inventory.repository import InventoryRepository
from structrack.inventory.tree import assemble, parse_polygon_points

__all__ = [
    "BulkCoordinateImporter",
    "InventoryRepository",
    "assemble",
    "parse_bulk_rows",
    "parse_polygon_points",
]
