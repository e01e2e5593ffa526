"""Progress matrix routes.

Routes:
- GET    /api/matrix                      - Matrix rows (?source=relational|legacy)
- PUT    /api/matrix/cells                - Upsert one cell (relational)
- POST   /api/matrix/cells/bulk           - Upsert many cells independently
- POST   /api/matrix/paste                - Spreadsheet paste onto visible matrix
- GET    /api/matrix/columns              - Columns per matrix type
- POST   /api/matrix/columns              - Add a column
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from structrack.progress.models import MatrixColumn, ProgressRow
from structrack.service import StructureManager
from structrack.web.dependencies import get_manager
from structrack.web.models import (
    BulkCellRequest,
    BulkWriteResponse,
    CellUpsertRequest,
    MatrixPasteRequest,
    WriteResponse,
)

router = APIRouter(prefix="/api/matrix", tags=["matrix"])


@router.get("", response_model=list[ProgressRow])
async def get_matrix(
    source: str = Query(default="relational"),
    manager: StructureManager = Depends(get_manager),
):
    return await manager.get_matrix(source=source)


@router.put("/cells")
async def upsert_cell(
    payload: CellUpsertRequest, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    result = await manager.upsert_cell(
        payload.structure_group_id, payload.matrix_column_id, payload.cell
    )
    return WriteResponse.from_result(result)


@router.post("/cells/bulk")
async def bulk_upsert_cells(
    payload: BulkCellRequest, manager: StructureManager = Depends(get_manager)
) -> BulkWriteResponse:
    return BulkWriteResponse.from_result(await manager.bulk_upsert_cells(payload.updates))


@router.post("/paste")
async def paste_matrix(
    payload: MatrixPasteRequest, manager: StructureManager = Depends(get_manager)
) -> BulkWriteResponse:
    result = await manager.paste_matrix(
        payload.text, payload.matrix_type, structure_id=payload.structure_id
    )
    return BulkWriteResponse.from_result(result)


@router.get("/columns")
async def list_columns(
    manager: StructureManager = Depends(get_manager),
) -> dict[str, list[MatrixColumn]]:
    columns = await manager.list_columns()
    return {matrix_type.value: items for matrix_type, items in columns.items()}


@router.post("/columns", status_code=status.HTTP_201_CREATED)
async def add_column(
    payload: MatrixColumn, manager: StructureManager = Depends(get_manager)
) -> WriteResponse:
    return WriteResponse.from_result(await manager.add_column(payload))
