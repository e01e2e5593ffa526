"""StructureManager: the operations offered to the dashboard.

Wires the inventory repository, bulk importer, matrix sources and legacy
bridge over one RecordStore, and keeps the assembled tree as a snapshot that
is rebuilt wholesale after every mutation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from structrack.config import AppConfig, ImportConfig, MatrixConfig
from structrack.db.store import RecordStore
from structrack.errors import InvalidInputError, NotFoundError, StoreError
from structrack.inventory.bulk_import import BulkCoordinateImporter
from structrack.inventory.models import (
    ElementCoordinates,
    Structure,
    StructureElement,
    StructureGroup,
    StructureLayer,
    StructureSurface,
    StructureTreeItem,
    StructureType,
)
from structrack.inventory.repository import InventoryRepository
from structrack.inventory.tree import assemble
from structrack.progress.bridge import LegacyProgressBridge
from structrack.progress.columns import ColumnRegistry
from structrack.progress.models import (
    CellUpdate,
    MatrixCell,
    MatrixColumn,
    MatrixType,
    ProgressRow,
    SyncOutcome,
    SyncReport,
    matrix_type_for,
)
from structrack.progress.sources import (
    LegacyProgressSource,
    ProgressRowSource,
    RelationalProgressSource,
    parse_matrix_paste,
)
from structrack.results import BulkImportResult, BulkWriteResult, WriteResult, WriteStatus

logger = logging.getLogger(__name__)


class StructureManager:
    """Facade over the structure inventory and the progress matrix."""

    def __init__(
        self,
        store: RecordStore,
        imports: ImportConfig | None = None,
        matrix: MatrixConfig | None = None,
    ):
        self.store = store
        self.imports = imports or ImportConfig()
        self.matrix = matrix or MatrixConfig()

        self.inventory = InventoryRepository(store)
        self.importer = BulkCoordinateImporter(self.inventory, self.imports)
        self.columns = ColumnRegistry(store, self.matrix)
        self.legacy = LegacyProgressSource(store)
        self.relational = RelationalProgressSource(store)
        self.bridge = LegacyProgressBridge(
            self.inventory, self.columns, self.legacy, self.matrix
        )
        self.sources: dict[str, ProgressRowSource] = {
            self.relational.name: self.relational,
            self.legacy.name: self.legacy,
        }

        self._tree: list[StructureTreeItem] | None = None

    @classmethod
    def from_config(cls, store: RecordStore, config: AppConfig) -> StructureManager:
        return cls(store, imports=config.imports, matrix=config.matrix)

    # ------------------------------------------------------------------
    # Tree snapshot
    # ------------------------------------------------------------------

    async def get_tree(self, refresh: bool = False) -> list[StructureTreeItem]:
        if self._tree is None or refresh:
            await self.refresh_tree()
        return self._tree or []

    async def refresh_tree(self) -> list[StructureTreeItem]:
        """Reload every inventory table and rebuild the tree."""
        self._tree = assemble(
            types=await self.inventory.list_types(),
            structures=await self.inventory.list_structures(),
            groups=await self.inventory.list_groups(),
            elements=await self.inventory.list_elements(),
            coordinates=await self.inventory.list_coordinates(),
            surfaces=await self.inventory.list_surfaces(),
        )
        return self._tree

    async def _mutated(self, result: WriteResult) -> WriteResult:
        """Rebuild the snapshot after a committed write.

        A failed reload never masks the write; the snapshot is dropped and
        rebuilt by the next ``get_tree``.
        """
        try:
            await self.refresh_tree()
        except StoreError as e:
            self._tree = None
            logger.warning(f"Tree refresh after write to {result.entity_id} failed: {e}")
        return result

    # ------------------------------------------------------------------
    # Types & structures
    # ------------------------------------------------------------------

    async def list_structure_types(self) -> list[StructureType]:
        return await self.inventory.list_types()

    async def add_structure_type(self, structure_type: StructureType) -> WriteResult:
        created = await self.inventory.add_type(structure_type)
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=created.id)
        )

    async def update_structure_type(
        self, type_id: str, structure_type: StructureType
    ) -> WriteResult:
        if not await self.inventory.update_type(type_id, structure_type):
            raise NotFoundError("structure type", type_id)
        return await self._mutated(WriteResult(status=WriteStatus.SUCCESS, entity_id=type_id))

    async def delete_structure_type(self, type_id: str) -> WriteResult:
        if not await self.inventory.delete_type(type_id):
            raise NotFoundError("structure type", type_id)
        return await self._mutated(WriteResult(status=WriteStatus.SUCCESS, entity_id=type_id))

    async def add_structure(self, structure: Structure) -> WriteResult:
        created = await self.inventory.add_structure(structure)
        logger.info(f"Added structure {created.id} ({created.legacy_code})")
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=created.id)
        )

    async def update_structure(self, structure_id: str, structure: Structure) -> WriteResult:
        if not await self.inventory.update_structure(structure_id, structure):
            raise NotFoundError("structure", structure_id)
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=structure_id)
        )

    async def delete_structure(self, structure_id: str) -> WriteResult:
        if not await self.inventory.delete_structure(structure_id):
            raise NotFoundError("structure", structure_id)
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=structure_id)
        )

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def add_group(self, group: StructureGroup) -> WriteResult:
        """Create a group, then bring the legacy matrix in step.

        The group write is the primary write and raises on failure. The
        legacy sync never undoes it: a failed sync yields PARTIAL_SUCCESS
        with the report attached.
        """
        created = await self.inventory.add_group(group)
        report = await self.bridge.synchronize(created)
        return await self._mutated(self._group_result(created.id, report))

    async def resync_group(self, group_id: str) -> WriteResult:
        """Repair the legacy tracking records of an existing group."""
        report = await self.bridge.resync(group_id)
        return self._group_result(group_id, report)

    @staticmethod
    def _group_result(group_id: str | None, report: SyncReport) -> WriteResult:
        if report.outcome == SyncOutcome.SYNC_FAILED:
            return WriteResult(
                status=WriteStatus.PARTIAL_SUCCESS,
                entity_id=group_id,
                message=report.message,
                error_details={"failed_step": report.failed_step, "error": report.error},
                sync=report,
            )
        return WriteResult(
            status=WriteStatus.SUCCESS,
            entity_id=group_id,
            message=report.message,
            sync=report,
        )

    async def update_group(self, group_id: str, group: StructureGroup) -> WriteResult:
        if not await self.inventory.update_group(group_id, group):
            raise NotFoundError("group", group_id)
        return await self._mutated(WriteResult(status=WriteStatus.SUCCESS, entity_id=group_id))

    async def delete_group(self, group_id: str) -> WriteResult:
        if not await self.inventory.delete_group(group_id):
            raise NotFoundError("group", group_id)
        return await self._mutated(WriteResult(status=WriteStatus.SUCCESS, entity_id=group_id))

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    async def add_element(
        self, element: StructureElement, coordinates: ElementCoordinates
    ) -> WriteResult:
        created = await self.inventory.add_element(element, coordinates)
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=created.id)
        )

    async def add_coordinates(
        self, element_id: str, coordinates: ElementCoordinates
    ) -> WriteResult:
        """Attach (or replace) the coordinate record of an element."""
        if not await self.inventory.update_element(element_id, coordinates=coordinates):
            raise NotFoundError("element", element_id)
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=element_id)
        )

    async def update_element(
        self,
        element_id: str,
        element: StructureElement | None = None,
        coordinates: ElementCoordinates | None = None,
    ) -> WriteResult:
        if not await self.inventory.update_element(element_id, element, coordinates):
            raise NotFoundError("element", element_id)
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=element_id)
        )

    async def delete_element(self, element_id: str) -> WriteResult:
        if not await self.inventory.delete_element(element_id):
            raise NotFoundError("element", element_id)
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=element_id)
        )

    async def import_bulk(self, group_id: str, raw_text: str) -> BulkImportResult:
        result = await self.importer.import_bulk(group_id, raw_text)
        await self.refresh_tree()
        return result

    # ------------------------------------------------------------------
    # Layers & surfaces
    # ------------------------------------------------------------------

    async def list_layers(self) -> list[StructureLayer]:
        return await self.inventory.list_layers()

    async def add_layer(self, layer: StructureLayer) -> WriteResult:
        created = await self.inventory.add_layer(layer)
        return WriteResult(status=WriteStatus.SUCCESS, entity_id=created.id)

    async def delete_layer(self, layer_id: str) -> WriteResult:
        if not await self.inventory.delete_layer(layer_id):
            raise NotFoundError("layer", layer_id)
        return WriteResult(status=WriteStatus.SUCCESS, entity_id=layer_id)

    async def add_surface(self, surface: StructureSurface) -> WriteResult:
        created = await self.inventory.add_surface(surface)
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=created.id)
        )

    async def delete_surface(self, surface_id: str) -> WriteResult:
        if not await self.inventory.delete_surface(surface_id):
            raise NotFoundError("surface", surface_id)
        return await self._mutated(
            WriteResult(status=WriteStatus.SUCCESS, entity_id=surface_id)
        )

    # ------------------------------------------------------------------
    # Progress matrix
    # ------------------------------------------------------------------

    async def list_columns(self) -> dict[MatrixType, list[MatrixColumn]]:
        return await self.columns.list_columns()

    async def add_column(self, column: MatrixColumn) -> WriteResult:
        created = await self.columns.add_column(column)
        return WriteResult(status=WriteStatus.SUCCESS, entity_id=created.id)

    async def get_matrix(self, source: str = "relational") -> list[ProgressRow]:
        try:
            row_source = self.sources[source]
        except KeyError:
            raise InvalidInputError(
                f"Unknown matrix source '{source}' (expected one of: "
                f"{', '.join(self.sources)})"
            ) from None
        return await row_source.fetch_rows()

    async def upsert_cell(self, group_id: str, column_id: str, cell: MatrixCell) -> WriteResult:
        return await self.relational.upsert_cell(group_id, column_id, cell)

    async def bulk_upsert_cells(self, updates: Sequence[CellUpdate]) -> BulkWriteResult:
        return await self.relational.bulk_upsert_cells(updates, self.imports.concurrency)

    async def paste_matrix(
        self, text: str, matrix_type: MatrixType, structure_id: str | None = None
    ) -> BulkWriteResult:
        """Write a pasted spreadsheet block onto the matrix of one type.

        Visible rows are the relational rows of structures tracked under
        ``matrix_type`` (optionally of one structure) in matrix order;
        visible columns are the type's columns.
        """
        type_codes = {t.id: t.code for t in await self.inventory.list_types()}
        tracked = {
            s.id
            for s in await self.inventory.list_structures()
            if matrix_type_for(type_codes.get(s.type_id)) == matrix_type
        }
        rows = [row for row in await self.relational.fetch_rows() if row.structure_id in tracked]
        if structure_id is not None:
            rows = [row for row in rows if row.structure_id == structure_id]
        columns = await self.columns.columns_for(matrix_type)
        updates = parse_matrix_paste(text, rows, columns)
        return await self.bulk_upsert_cells(updates)
