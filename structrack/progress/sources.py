"""Progress matrix read/write paths over the two coexisting schemas.

Legacy: ``progress_matrix`` rows keyed by the structure's natural code, with
every cell embedded in one JSON map. Relational: one ``progress_items`` row
per (group, column), joined onto ``structure_groups`` when read. Both render
the same ``ProgressRow`` shape; new writes should go to the relational path.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from structrack.db.store import Record, RecordStore
from structrack.errors import NotFoundError
from structrack.progress.models import (
    EMPTY_CODE,
    CellUpdate,
    MatrixCell,
    MatrixColumn,
    MatrixStatus,
    ProgressRow,
)
from structrack.results import BulkWriteResult, WriteResult, WriteStatus

logger = logging.getLogger(__name__)

LEGACY_ROWS = "progress_matrix"
PROGRESS_ITEMS = "progress_items"
GROUPS = "structure_groups"

ITEM_KEYS = ("structure_group_id", "matrix_column_id")


class ProgressRowSource(ABC):
    """One backing schema of the progress matrix."""

    name: str = ""
    preferred_for_writes: bool = False

    @abstractmethod
    async def fetch_rows(self) -> list[ProgressRow]:
        """All matrix rows; an absent table reads as zero rows."""

    @abstractmethod
    async def write_cell(self, row_id: str, column_id: str, cell: MatrixCell) -> WriteResult:
        """Persist one cell of one row."""


def _cell_from_json(value: Any) -> MatrixCell:
    if isinstance(value, Mapping):
        return MatrixCell.model_validate(
            {
                "code": value.get("code"),
                "status": value.get("status"),
                "file_url": value.get("fileUrl", value.get("file_url")),
                "last_updated": value.get("lastUpdated", value.get("last_updated")),
                "updated_by": value.get("updatedBy", value.get("updated_by")),
            }
        )
    return MatrixCell.empty()


def cell_to_json(cell: MatrixCell) -> dict[str, Any]:
    return cell.model_dump(mode="json", exclude_none=True)


class LegacyProgressSource(ProgressRowSource):
    """``progress_matrix``: whole-map writes, last writer wins."""

    name = "legacy"

    def __init__(self, store: RecordStore):
        self.store = store

    @staticmethod
    def _to_row(record: Record) -> ProgressRow:
        cells = record.get("cells") or {}
        return ProgressRow(
            id=record["id"],
            structure_id=record["structure_id"],
            structure_group_id=record.get("structure_group_id"),
            location=record.get("location"),
            foundation_type=record.get("foundation_type"),
            order_index=record.get("order_index") or 0,
            direction=record.get("direction"),
            cells={col_id: _cell_from_json(value) for col_id, value in cells.items()},
        )

    async def fetch_rows(self) -> list[ProgressRow]:
        records = await self.store.list_optional(LEGACY_ROWS)
        rows = [self._to_row(record) for record in records]
        rows.sort(key=lambda r: r.order_index)
        return rows

    async def find_row_for_group(self, group_id: str) -> ProgressRow | None:
        records = await self.store.list_optional(
            LEGACY_ROWS, {"structure_group_id": group_id}
        )
        return self._to_row(records[0]) if records else None

    async def insert_row(self, row: ProgressRow) -> ProgressRow:
        payload = {
            "structure_id": row.structure_id,
            "structure_group_id": row.structure_group_id,
            "location": row.location,
            "foundation_type": row.foundation_type,
            "direction": row.direction,
            "order_index": row.order_index,
            "cells": {col_id: cell_to_json(cell) for col_id, cell in row.cells.items()},
        }
        if row.id:
            payload["id"] = row.id
        return self._to_row(await self.store.insert(LEGACY_ROWS, payload))

    async def update_matrix_cells(self, row_id: str, cells: Mapping[str, MatrixCell]) -> bool:
        """Replace the row's entire cell map."""
        return await self.store.update(
            LEGACY_ROWS,
            row_id,
            {"cells": {col_id: cell_to_json(cell) for col_id, cell in cells.items()}},
        )

    async def write_cell(self, row_id: str, column_id: str, cell: MatrixCell) -> WriteResult:
        """Read-modify-replace of one row's map. Concurrent writers may
        overwrite each other's cells.

        Raises:
            NotFoundError: If the row does not exist
        """
        record = await self.store.get(LEGACY_ROWS, row_id)
        if record is None:
            raise NotFoundError("progress row", row_id)
        cells = self._to_row(record).cells
        cells[column_id] = cell
        if not await self.update_matrix_cells(row_id, cells):
            raise NotFoundError("progress row", row_id)
        return WriteResult(status=WriteStatus.SUCCESS, entity_id=row_id)


class RelationalProgressSource(ProgressRowSource):
    """``progress_items`` joined with groups; the write-preferred path."""

    name = "relational"
    preferred_for_writes = True

    def __init__(self, store: RecordStore):
        self.store = store

    async def fetch_rows(self) -> list[ProgressRow]:
        groups = await self.store.list_optional(GROUPS)
        items = await self.store.list_optional(PROGRESS_ITEMS)

        items_by_group: dict[str, list[Record]] = {}
        for item in items:
            items_by_group.setdefault(item["structure_group_id"], []).append(item)

        rows = []
        for group in groups:
            cells = {
                item["matrix_column_id"]: MatrixCell(
                    code=item.get("reference_code"),
                    status=item.get("status"),
                    file_url=item.get("file_url"),
                    last_updated=item.get("updated_at"),
                )
                for item in items_by_group.get(group["id"], [])
            }
            rows.append(
                ProgressRow(
                    id=group["id"],
                    structure_id=group["structure_id"],
                    structure_group_id=group["id"],
                    location=group.get("name"),
                    foundation_type=group.get("group_type"),
                    order_index=group.get("order_index") or 0,
                    direction=group.get("direction") or "C",
                    cells=cells,
                )
            )
        rows.sort(key=lambda r: r.order_index)
        return rows

    async def upsert_cell(self, group_id: str, column_id: str, cell: MatrixCell) -> WriteResult:
        """Insert or replace the item for (group, column)."""
        record = await self.store.upsert(
            PROGRESS_ITEMS,
            {
                "structure_group_id": group_id,
                "matrix_column_id": column_id,
                "status": cell.status,
                "reference_code": cell.code,
                "file_url": cell.file_url,
                "updated_at": datetime.now(timezone.utc),
            },
            conflict_keys=ITEM_KEYS,
        )
        return WriteResult(status=WriteStatus.SUCCESS, entity_id=record["id"])

    async def write_cell(self, row_id: str, column_id: str, cell: MatrixCell) -> WriteResult:
        return await self.upsert_cell(row_id, column_id, cell)

    async def bulk_upsert_cells(
        self, updates: Sequence[CellUpdate], concurrency: int = 16
    ) -> BulkWriteResult:
        """Upsert every entry independently; failures are counted."""
        result = BulkWriteResult(submitted=len(updates))
        if not updates:
            return result

        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def write(update: CellUpdate) -> WriteResult:
            async with semaphore:
                return await self.upsert_cell(
                    update.structure_group_id,
                    update.matrix_column_id,
                    MatrixCell(status=update.status, code=update.code),
                )

        outcomes = await asyncio.gather(
            *(write(update) for update in updates), return_exceptions=True
        )
        for update, outcome in zip(updates, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                result.failed += 1
                result.errors.append(
                    f"{update.structure_group_id}/{update.matrix_column_id}: {outcome}"
                )
            else:
                result.succeeded += 1

        if result.failed:
            logger.warning(
                f"Bulk cell upsert: {result.failed}/{result.submitted} entries failed"
            )
        return result


_BLANK_CELLS = {"", EMPTY_CODE, "0"}


def parse_matrix_paste(
    text: str, rows: Sequence[ProgressRow], columns: Iterable[MatrixColumn]
) -> list[CellUpdate]:
    """Map a pasted spreadsheet block onto the visible matrix.

    Pasted line N fills visible row N and pasted column M fills visible
    column M; overflow in either direction is ignored. Blank, "-" and "0"
    cells are dropped. Every kept cell is written as a reference code with
    status EMPTY.
    """
    columns = list(columns)
    updates: list[CellUpdate] = []
    for row_idx, line in enumerate(text.strip("\r\n").splitlines()):
        if row_idx >= len(rows):
            break
        row = rows[row_idx]
        group_id = row.structure_group_id or row.id
        if group_id is None:
            continue
        for col_idx, raw in enumerate(line.split("\t")):
            if col_idx >= len(columns):
                break
            code = raw.strip()
            if code in _BLANK_CELLS or columns[col_idx].id is None:
                continue
            updates.append(
                CellUpdate(
                    structure_group_id=group_id,
                    matrix_column_id=columns[col_idx].id,
                    status=MatrixStatus.EMPTY.value,
                    code=code,
                )
            )
    return updates
