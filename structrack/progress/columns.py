"""Matrix column registry (``pvla_matrix_columns``)."""

from __future__ import annotations

import logging
from typing import Any

from structrack.config import MatrixConfig
from structrack.db.store import Record, RecordStore
from structrack.inventory.models import LocalizedText
from structrack.progress.models import MatrixColumn, MatrixType

logger = logging.getLogger(__name__)

COLUMNS = "pvla_matrix_columns"


def _parse_matrix_type(value: str | None) -> MatrixType | None:
    text = (value or "").strip().lower()
    for matrix_type in MatrixType:
        if matrix_type.value.lower() == text:
            return matrix_type
    return None


def _to_column(row: Record, matrix_type: MatrixType) -> MatrixColumn:
    return MatrixColumn(
        id=row["id"],
        matrix_type=matrix_type,
        name=LocalizedText(
            tr=row.get("name_tr") or "",
            en=row.get("name_en") or "",
            ro=row.get("name_ro") or "",
        ),
        group=LocalizedText(
            tr=row.get("group_tr") or "",
            en=row.get("group_en") or "",
            ro=row.get("group_ro") or "",
        ),
        col_type=row.get("col_type") or "VERIFICARE",
        order_index=row.get("order_index") or 0,
    )


class ColumnRegistry:
    """Checklist columns per matrix type, ordered by ``order_index``."""

    def __init__(self, store: RecordStore, config: MatrixConfig | None = None):
        self.store = store
        self.config = config or MatrixConfig()

    async def list_columns(self) -> dict[MatrixType, list[MatrixColumn]]:
        """All columns grouped by matrix type. An absent table reads as empty."""
        columns: dict[MatrixType, list[MatrixColumn]] = {t: [] for t in MatrixType}
        rows = await self.store.list_optional(COLUMNS)
        for row in sorted(rows, key=lambda r: r.get("order_index") or 0):
            matrix_type = _parse_matrix_type(row.get("type"))
            if matrix_type is None:
                logger.debug(f"Ignoring column {row.get('id')} with type {row.get('type')!r}")
                continue
            columns[matrix_type].append(_to_column(row, matrix_type))
        return columns

    async def columns_for(self, matrix_type: MatrixType) -> list[MatrixColumn]:
        return (await self.list_columns())[matrix_type]

    async def add_column(self, column: MatrixColumn) -> MatrixColumn:
        payload = _column_payload(column)
        if "order_index" not in column.model_fields_set:
            payload["order_index"] = self.config.default_column_order
        row = await self.store.insert(COLUMNS, payload)
        return _to_column(row, column.matrix_type)

    async def update_column(self, column_id: str, column: MatrixColumn) -> bool:
        return await self.store.update(COLUMNS, column_id, _column_payload(column))

    async def delete_column(self, column_id: str) -> bool:
        return await self.store.delete(COLUMNS, column_id)


def _column_payload(column: MatrixColumn) -> dict[str, Any]:
    return {
        "type": column.matrix_type.value,
        "name_tr": column.name.tr,
        "name_en": column.name.en,
        "name_ro": column.name.ro,
        "group_tr": column.group.tr,
        "group_en": column.group.en,
        "group_ro": column.group.ro,
        "col_type": column.col_type,
        "order_index": column.order_index,
    }
