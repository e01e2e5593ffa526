"""Progress matrix models shared by the legacy and relational schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from structrack.inventory.models import LocalizedText

EMPTY_CODE = "-"


class MatrixType(str, Enum):
    """Checklist family a structure type is tracked under."""

    BRIDGE = "Bridge"
    CULVERT = "Culvert"


# Structure type code -> matrix type. Any other code is not tracked.
MATRIX_TYPE_BY_CODE = {
    "POD": MatrixType.BRIDGE,
    "DG": MatrixType.CULVERT,
}


def matrix_type_for(type_code: str | None) -> MatrixType | None:
    """Map a structure type code onto its matrix type, or None."""
    if not type_code:
        return None
    return MATRIX_TYPE_BY_CODE.get(type_code.strip().upper())


class MatrixStatus(str, Enum):
    """Known cell statuses. Stored as free text so custom states round-trip."""

    EMPTY = "EMPTY"
    PREPARING = "PREPARING"
    PENDING = "PENDING"
    SIGNED = "SIGNED"
    REJECTED = "REJECTED"


class MatrixCell(BaseModel):
    code: str = EMPTY_CODE
    status: str = MatrixStatus.EMPTY.value
    file_url: str | None = None
    last_updated: datetime | None = None
    updated_by: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> str:
        if isinstance(v, MatrixStatus):
            return v.value
        text = str(v or "").strip().upper()
        return text or MatrixStatus.EMPTY.value

    @field_validator("code", mode="before")
    @classmethod
    def default_code(cls, v: Any) -> str:
        text = str(v).strip() if v is not None else ""
        return text or EMPTY_CODE

    @classmethod
    def empty(cls) -> MatrixCell:
        return cls(code=EMPTY_CODE, status=MatrixStatus.EMPTY.value)


class MatrixColumn(BaseModel):
    """Checklist item tracked per structure group."""

    id: str | None = None
    matrix_type: MatrixType
    name: LocalizedText = Field(default_factory=LocalizedText)
    group: LocalizedText = Field(default_factory=LocalizedText)
    col_type: str = "VERIFICARE"  # TRASARE | VERIFICARE | INFO
    order_index: int = 0


class ProgressRow(BaseModel):
    """One matrix row, in the shape the UI renders for either schema."""

    id: str | None = None
    structure_id: str
    structure_group_id: str | None = None
    location: str | None = None
    foundation_type: str | None = None
    order_index: int = 0
    direction: str | None = None
    cells: dict[str, MatrixCell] = Field(default_factory=dict)


class LegacyStructure(BaseModel):
    """Legacy shadow record; ``id`` is the structure's natural code."""

    id: str
    name: str | None = None
    km: str | None = None
    km_start: float | None = None
    km_end: float | None = None
    type: MatrixType | None = None
    path: str | None = None


class CellUpdate(BaseModel):
    """One entry of a spreadsheet-style bulk cell write."""

    structure_group_id: str
    matrix_column_id: str
    status: str = MatrixStatus.EMPTY.value
    code: str | None = None


class SyncOutcome(str, Enum):
    """Outcome of the legacy progress synchronization for a new group."""

    SYNCHRONIZED = "synchronized"
    NOT_MATRIX_ELIGIBLE = "not_matrix_eligible"
    NO_COLUMNS = "no_columns"
    MISSING_LEGACY_CODE = "missing_legacy_code"
    STRUCTURE_NOT_FOUND = "structure_not_found"
    DISABLED = "disabled"
    SYNC_FAILED = "sync_failed"


# Bridge steps, in order
STEP_RESOLVE_STRUCTURE = "resolve_structure"
STEP_RESOLVE_COLUMNS = "resolve_columns"
STEP_SHADOW_RECORD = "shadow_record"
STEP_PROGRESS_ROW = "progress_row"


@dataclass
class SyncReport:
    """What the bridge did for one group, step by step."""

    group_id: str
    outcome: SyncOutcome
    structure_id: Optional[str] = None
    matrix_type: Optional[MatrixType] = None
    legacy_code: Optional[str] = None
    column_count: int = 0
    progress_row_id: Optional[str] = None
    completed_steps: list[str] = field(default_factory=list)
    failed_step: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.outcome == SyncOutcome.SYNC_FAILED

    @property
    def tracked(self) -> bool:
        """A legacy progress row exists for the group."""
        return self.outcome == SyncOutcome.SYNCHRONIZED

    @property
    def message(self) -> str:
        if self.outcome == SyncOutcome.SYNCHRONIZED:
            return (
                f"Group tracked under '{self.legacy_code}' "
                f"({self.matrix_type.value if self.matrix_type else '-'}, "
                f"{self.column_count} columns)"
            )
        if self.outcome == SyncOutcome.SYNC_FAILED:
            return f"Group created but not tracked: {self.failed_step} failed ({self.error})"
        return f"Group created, not tracked: {self.outcome.value}"
