"""Bulk coordinate import for pasted survey tables.

Input is tab-separated text copied from a spreadsheet, one element per line:

    name <TAB> x <TAB> y <TAB> z [<TAB> d1 [<TAB> d2 [<TAB> d3]]]

Malformed rows are counted and skipped; they never abort the batch.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field

from structrack.config import ImportConfig
from structrack.errors import NotFoundError
from structrack.inventory.models import (
    Dimensions,
    ElementClass,
    ElementCoordinates,
    Point3,
    Shape,
    StructureElement,
)
from structrack.inventory.repository import InventoryRepository
from structrack.results import BulkImportResult

logger = logging.getLogger(__name__)

MIN_COLUMNS = 4


@dataclass
class BulkRow:
    """One accepted import row."""

    line_no: int
    name: str | None
    coordinates: ElementCoordinates


@dataclass
class ParsedBulk:
    rows: list[BulkRow] = field(default_factory=list)
    skipped: int = 0
    reasons: list[str] = field(default_factory=list)

    @property
    def rows_seen(self) -> int:
        return len(self.rows) + self.skipped


def parse_number(text: str | None) -> float | None:
    """Parse a locale-tolerant number ("100,5" == "100.5"); None if not finite."""
    if text is None:
        return None
    try:
        value = float(text.strip().replace(",", "."))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_bulk_rows(text: str, config: ImportConfig | None = None) -> ParsedBulk:
    """Split pasted text into element rows.

    Rules:
    - Blank lines are ignored and not counted
    - Fewer than 4 tab-separated columns -> skipped
    - Non-numeric or non-finite x/y/z -> skipped
    - Missing or unparseable d1/d2/d3 fall back to the configured defaults
    - d3 > 0 renders as BOX, otherwise CYLINDER
    - Rows past ``max_rows`` are counted as skipped
    """
    config = config or ImportConfig()
    parsed = ParsedBulk()

    for line_no, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue

        if len(parsed.rows) >= config.max_rows:
            parsed.skipped += 1
            parsed.reasons.append(f"Line {line_no}: row limit {config.max_rows} reached")
            continue

        cols = line.split("\t")
        if len(cols) < MIN_COLUMNS:
            parsed.skipped += 1
            parsed.reasons.append(f"Line {line_no}: expected at least {MIN_COLUMNS} columns")
            continue

        x, y, z = (parse_number(c) for c in cols[1:4])
        if x is None or y is None or z is None:
            parsed.skipped += 1
            parsed.reasons.append(f"Line {line_no}: invalid coordinates")
            continue

        dims = [parse_number(cols[i]) if len(cols) > i else None for i in (4, 5, 6)]
        d1 = dims[0] if dims[0] is not None else config.default_d1
        d2 = dims[1] if dims[1] is not None else config.default_d2
        d3 = dims[2] if dims[2] is not None else config.default_d3

        parsed.rows.append(
            BulkRow(
                line_no=line_no,
                name=cols[0].strip() or None,
                coordinates=ElementCoordinates(
                    shape=Shape.BOX if d3 > 0 else Shape.CYLINDER,
                    position=Point3(x=x, y=y, z=z),
                    dimensions=Dimensions(d1=d1, d2=d2, d3=d3),
                    rotation=Point3(),
                ),
            )
        )

    return parsed


class BulkCoordinateImporter:
    """Creates one element (plus coordinates) per pasted row, concurrently."""

    def __init__(self, repository: InventoryRepository, config: ImportConfig | None = None):
        self.repository = repository
        self.config = config or ImportConfig()

    async def import_bulk(self, group_id: str, raw_text: str) -> BulkImportResult:
        """Import pasted rows into a group.

        Every valid row is submitted as an independent element creation;
        failures are counted, never raised.

        Raises:
            NotFoundError: If the target group does not exist
        """
        if await self.repository.get_group(group_id) is None:
            raise NotFoundError("group", group_id)

        parsed = parse_bulk_rows(raw_text, self.config)
        result = BulkImportResult(
            group_id=group_id,
            rows_seen=parsed.rows_seen,
            skipped=parsed.skipped,
            submitted=len(parsed.rows),
        )
        if not parsed.rows:
            logger.info(f"Bulk import into group {group_id}: no valid rows")
            return result

        semaphore = asyncio.Semaphore(max(1, self.config.concurrency))

        async def create(row: BulkRow) -> str:
            async with semaphore:
                element = await self.repository.add_element(
                    StructureElement(
                        group_id=group_id,
                        name=row.name,
                        element_class=ElementClass.PILE.value,
                    ),
                    row.coordinates,
                )
                return element.id

        outcomes = await asyncio.gather(
            *(create(row) for row in parsed.rows), return_exceptions=True
        )

        for row, outcome in zip(parsed.rows, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                result.failed += 1
                result.errors.append(f"Line {row.line_no} ({row.name}): {outcome}")
                logger.warning(f"Bulk import row {row.line_no} failed: {outcome}")
            else:
                result.succeeded += 1
                result.element_ids.append(outcome)

        logger.info(f"Bulk import into group {group_id}: {result.message}")
        return result
