"""Result types for write operations.

Every multi-step write reports which step succeeded and which did not, so a
"group created but not tracked" state is visible to operators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from structrack.progress.models import SyncReport


class WriteStatus(str, Enum):
    """Status of a write operation."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    SKIPPED = "SKIPPED"


@dataclass
class WriteResult:
    """Result of a single-entity write."""

    status: WriteStatus
    entity_id: Optional[str] = None
    message: str = ""
    error_details: Optional[dict] = None
    sync: Optional["SyncReport"] = None

    @property
    def success(self) -> bool:
        """The primary entity was written."""
        return self.status in (WriteStatus.SUCCESS, WriteStatus.PARTIAL_SUCCESS)


@dataclass
class BulkWriteResult:
    """Result of a fan-out write where every entry is independent."""

    submitted: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def status(self) -> WriteStatus:
        if self.submitted == 0:
            return WriteStatus.SKIPPED
        if self.failed == 0:
            return WriteStatus.SUCCESS
        if self.succeeded == 0:
            return WriteStatus.FAILED
        return WriteStatus.PARTIAL_SUCCESS


@dataclass
class BulkImportResult(BulkWriteResult):
    """Result of a pasted coordinate import.

    ``skipped`` counts rows rejected while parsing (too few columns,
    non-numeric coordinates); they never reach the store.
    """

    group_id: str = ""
    rows_seen: int = 0
    skipped: int = 0
    element_ids: list[str] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return self.succeeded

    @property
    def message(self) -> str:
        return (
            f"{self.succeeded}/{self.submitted} elements created, "
            f"{self.skipped} rows skipped, {self.failed} failed"
        )
