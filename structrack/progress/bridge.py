"""Legacy progress bridge.

When a group is added under a matrix-eligible structure (type POD or DG),
the legacy progress schema needs two records before the group shows up in
the old matrix view:

1. a shadow row in ``pvla_structures`` keyed by the structure's natural code
2. a ``progress_matrix`` row for the group with one empty cell per column

The group itself is committed before the bridge runs and is never rolled
back. A failed sync is reported (``SYNC_FAILED`` plus the failing step) and
can be repaired later with ``resync``.
"""

from __future__ import annotations

import logging

from structrack.config import MatrixConfig
from structrack.errors import NotFoundError, StoreError
from structrack.inventory.models import Structure, StructureGroup
from structrack.inventory.repository import InventoryRepository
from structrack.progress.columns import ColumnRegistry
from structrack.progress.models import (
    STEP_PROGRESS_ROW,
    STEP_RESOLVE_COLUMNS,
    STEP_RESOLVE_STRUCTURE,
    STEP_SHADOW_RECORD,
    LegacyStructure,
    MatrixCell,
    MatrixType,
    ProgressRow,
    SyncOutcome,
    SyncReport,
    matrix_type_for,
)
from structrack.progress.sources import LegacyProgressSource

logger = logging.getLogger(__name__)

LEGACY_STRUCTURES = "pvla_structures"


def format_km(km_start: float | None, km_end: float | None) -> str | None:
    """Chainage label shown by the legacy views, e.g. "12.4 - 12.6"."""
    if km_start is None and km_end is None:
        return None
    if km_end is None or km_end == km_start:
        return f"{km_start:g}" if km_start is not None else f"{km_end:g}"
    if km_start is None:
        return f"{km_end:g}"
    return f"{km_start:g} - {km_end:g}"


class LegacyProgressBridge:
    """Keeps the legacy progress schema in step with new groups."""

    def __init__(
        self,
        inventory: InventoryRepository,
        columns: ColumnRegistry,
        legacy: LegacyProgressSource,
        config: MatrixConfig | None = None,
    ):
        self.inventory = inventory
        self.columns = columns
        self.legacy = legacy
        self.config = config or MatrixConfig()

    async def upsert_shadow_record(
        self, structure: Structure, matrix_type: MatrixType
    ) -> LegacyStructure:
        """Create or refresh the ``pvla_structures`` row for a structure.

        Keyed by the legacy code, so repeated calls leave exactly one row.

        Raises:
            ValueError: If the structure has neither code nor name
        """
        legacy_code = structure.legacy_code
        if legacy_code is None:
            raise ValueError("structure has no code or name to key the shadow record")

        record = await self.inventory.store.upsert(
            LEGACY_STRUCTURES,
            {
                "id": legacy_code,
                "name": structure.name or legacy_code,
                "km": format_km(structure.km_start, structure.km_end),
                "km_start": structure.km_start,
                "km_end": structure.km_end,
                "type": matrix_type.value,
            },
            conflict_keys=["id"],
        )
        return LegacyStructure(
            id=record["id"],
            name=record.get("name"),
            km=record.get("km"),
            km_start=record.get("km_start"),
            km_end=record.get("km_end"),
            type=matrix_type,
            path=record.get("path"),
        )

    async def synchronize(
        self, group: StructureGroup, reuse_existing_row: bool = False
    ) -> SyncReport:
        """Run the bridge for one committed group.

        Never raises for store failures: they end the run with
        ``SYNC_FAILED`` and the name of the failing step.

        Args:
            group: The group, already persisted (``id`` set)
            reuse_existing_row: Skip the row insert when the group already
                has a legacy row (repair runs)
        """
        report = SyncReport(group_id=group.id or "", outcome=SyncOutcome.SYNCHRONIZED)
        report.structure_id = group.structure_id

        if not self.config.legacy_enabled:
            report.outcome = SyncOutcome.DISABLED
            return report

        # 1. parent structure and its type code
        try:
            structure = await self.inventory.get_structure(group.structure_id)
            structure_type = (
                await self.inventory.get_type(structure.type_id)
                if structure is not None and structure.type_id
                else None
            )
        except StoreError as e:
            return self._failed(report, STEP_RESOLVE_STRUCTURE, e)
        if structure is None:
            report.outcome = SyncOutcome.STRUCTURE_NOT_FOUND
            return report
        report.completed_steps.append(STEP_RESOLVE_STRUCTURE)

        # 2. matrix type
        matrix_type = matrix_type_for(structure_type.code if structure_type else None)
        if matrix_type is None:
            report.outcome = SyncOutcome.NOT_MATRIX_ELIGIBLE
            return report
        report.matrix_type = matrix_type

        # 3. columns for that type
        try:
            columns = await self.columns.columns_for(matrix_type)
        except StoreError as e:
            return self._failed(report, STEP_RESOLVE_COLUMNS, e)
        report.completed_steps.append(STEP_RESOLVE_COLUMNS)
        report.column_count = len(columns)
        if not columns:
            report.outcome = SyncOutcome.NO_COLUMNS
            return report

        # 4. natural key
        legacy_code = structure.legacy_code
        if legacy_code is None:
            report.outcome = SyncOutcome.MISSING_LEGACY_CODE
            return report
        report.legacy_code = legacy_code

        # 5. shadow record, strictly before the row
        try:
            await self.upsert_shadow_record(structure, matrix_type)
        except StoreError as e:
            return self._failed(report, STEP_SHADOW_RECORD, e)
        report.completed_steps.append(STEP_SHADOW_RECORD)

        # 6. progress row
        try:
            existing = (
                await self.legacy.find_row_for_group(report.group_id)
                if reuse_existing_row
                else None
            )
            if existing is not None:
                row = existing
                logger.info(f"Group {report.group_id} already has legacy row {row.id}")
            else:
                row = await self.legacy.insert_row(
                    ProgressRow(
                        structure_id=legacy_code,
                        structure_group_id=group.id,
                        location=group.name,
                        foundation_type=group.group_type,
                        direction=group.direction,
                        order_index=group.order_index,
                        cells={column.id: MatrixCell.empty() for column in columns},
                    )
                )
        except StoreError as e:
            return self._failed(report, STEP_PROGRESS_ROW, e)
        report.completed_steps.append(STEP_PROGRESS_ROW)
        report.progress_row_id = row.id

        logger.info(
            f"Group {report.group_id} synchronized to legacy matrix under "
            f"'{legacy_code}' ({matrix_type.value}, {len(columns)} columns)"
        )
        return report

    async def resync(self, group_id: str) -> SyncReport:
        """Re-run the bridge for an existing group.

        Safe to repeat: the shadow record is an upsert and an existing legacy
        row for the group is reused.

        Raises:
            NotFoundError: If the group does not exist
        """
        group = await self.inventory.get_group(group_id)
        if group is None:
            raise NotFoundError("group", group_id)
        return await self.synchronize(group, reuse_existing_row=True)

    @staticmethod
    def _failed(report: SyncReport, step: str, error: Exception) -> SyncReport:
        report.outcome = SyncOutcome.SYNC_FAILED
        report.failed_step = step
        report.error = str(error)
        logger.error(
            f"Legacy sync for group {report.group_id} failed at {step}: {error}"
        )
        return report
