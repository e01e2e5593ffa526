"""Request/response models for the Structrack HTTP API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from structrack.inventory.models import ElementCoordinates, StructureElement
from structrack.progress.models import CellUpdate, MatrixCell, MatrixType
from structrack.results import BulkImportResult, BulkWriteResult, WriteResult


# ============================================================================
# Inventory
# ============================================================================


class ElementCreate(StructureElement):
    """Used by: POST /api/elements"""

    coordinates: ElementCoordinates = Field(default_factory=ElementCoordinates)


class BulkImportRequest(BaseModel):
    """Pasted tab-separated rows. Used by: POST /api/groups/{id}/elements/bulk"""

    text: str


# ============================================================================
# Matrix
# ============================================================================


class CellUpsertRequest(BaseModel):
    """Used by: PUT /api/matrix/cells"""

    structure_group_id: str
    matrix_column_id: str
    cell: MatrixCell = Field(default_factory=MatrixCell)


class BulkCellRequest(BaseModel):
    """Used by: POST /api/matrix/cells/bulk"""

    updates: list[CellUpdate]


class MatrixPasteRequest(BaseModel):
    """Used by: POST /api/matrix/paste"""

    text: str
    matrix_type: MatrixType
    structure_id: Optional[str] = None


# ============================================================================
# Responses
# ============================================================================


class WriteResponse(BaseModel):
    status: str
    success: bool
    entity_id: Optional[str] = None
    message: str = ""
    error_details: Optional[dict] = None
    sync: Optional[dict[str, Any]] = None

    @classmethod
    def from_result(cls, result: WriteResult) -> WriteResponse:
        sync = None
        if result.sync is not None:
            report = result.sync
            sync = {
                "outcome": report.outcome.value,
                "legacy_code": report.legacy_code,
                "matrix_type": report.matrix_type.value if report.matrix_type else None,
                "column_count": report.column_count,
                "progress_row_id": report.progress_row_id,
                "completed_steps": report.completed_steps,
                "failed_step": report.failed_step,
                "error": report.error,
                "message": report.message,
            }
        return cls(
            status=result.status.value,
            success=result.success,
            entity_id=result.entity_id,
            message=result.message,
            error_details=result.error_details,
            sync=sync,
        )


class BulkWriteResponse(BaseModel):
    status: str
    submitted: int
    succeeded: int
    failed: int
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: BulkWriteResult) -> BulkWriteResponse:
        return cls(
            status=result.status.value,
            submitted=result.submitted,
            succeeded=result.succeeded,
            failed=result.failed,
            errors=result.errors,
        )


class BulkImportResponse(BulkWriteResponse):
    group_id: str
    success_count: int
    rows_seen: int
    skipped: int
    element_ids: list[str] = Field(default_factory=list)
    message: str = ""

    @classmethod
    def from_import(cls, result: BulkImportResult) -> BulkImportResponse:
        return cls(
            status=result.status.value,
            submitted=result.submitted,
            succeeded=result.succeeded,
            failed=result.failed,
            errors=result.errors,
            group_id=result.group_id,
            success_count=result.success_count,
            rows_seen=result.rows_seen,
            skipped=result.skipped,
            element_ids=result.element_ids,
            message=result.message,
        )
