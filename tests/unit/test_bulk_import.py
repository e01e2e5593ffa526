"""Tests for structrack.inventory.bulk_import - pasted coordinate import."""

from __future__ import annotations

import pytest

from structrack.config import ImportConfig
from structrack.errors import NotFoundError, StoreError
from structrack.inventory.bulk_import import parse_bulk_rows, parse_number
from structrack.inventory.models import Shape
from structrack.results import WriteStatus


class TestParseNumber:
    def test_comma_decimal(self):
        assert parse_number("100,5") == 100.5

    def test_non_numeric(self):
        assert parse_number("abc") is None
        assert parse_number("") is None
        assert parse_number(None) is None

    def test_non_finite_rejected(self):
        assert parse_number("nan") is None
        assert parse_number("inf") is None


class TestParseBulkRows:
    def test_decimal_locale(self):
        parsed = parse_bulk_rows("Pile-1\t100,5\t200,25\t10,0")

        assert parsed.skipped == 0
        position = parsed.rows[0].coordinates.position
        assert (position.x, position.y, position.z) == (100.5, 200.25, 10.0)

    def test_defaults_and_cylinder(self):
        parsed = parse_bulk_rows("P1\t1\t2\t3")

        coords = parsed.rows[0].coordinates
        assert parsed.rows[0].name == "P1"
        assert coords.shape == Shape.CYLINDER
        assert (coords.dimensions.d1, coords.dimensions.d2, coords.dimensions.d3) == (
            0.8,
            10.0,
            0.0,
        )
        assert (coords.rotation.x, coords.rotation.y, coords.rotation.z) == (0, 0, 0)

    def test_positive_d3_is_box(self):
        parsed = parse_bulk_rows("F1\t1\t2\t3\t4\t1,5\t6")

        coords = parsed.rows[0].coordinates
        assert coords.shape == Shape.BOX
        assert (coords.dimensions.d1, coords.dimensions.d2, coords.dimensions.d3) == (
            4.0,
            1.5,
            6.0,
        )

    def test_unparseable_dimension_falls_back(self):
        parsed = parse_bulk_rows("P1\t1\t2\t3\tx\t\t-")

        dims = parsed.rows[0].coordinates.dimensions
        assert (dims.d1, dims.d2, dims.d3) == (0.8, 10.0, 0.0)

    def test_configured_defaults(self):
        config = ImportConfig(default_d1=1.2, default_d2=18.0, default_d3=0.0)

        parsed = parse_bulk_rows("P1\t1\t2\t3", config)

        assert parsed.rows[0].coordinates.dimensions.d1 == 1.2
        assert parsed.rows[0].coordinates.dimensions.d2 == 18.0

    def test_short_and_non_numeric_rows_skipped(self):
        text = "\n".join(
            [
                "P1\t1\t2\t3",
                "P2\t1\t2",
                "P3\tx\t2\t3",
                "P4\t1\t2\tnan",
            ]
        )

        parsed = parse_bulk_rows(text)

        assert [row.name for row in parsed.rows] == ["P1"]
        assert parsed.skipped == 3
        assert parsed.rows_seen == 4

    def test_blank_lines_ignored(self):
        parsed = parse_bulk_rows("\nP1\t1\t2\t3\n   \n\nP2\t4\t5\t6\n")

        assert len(parsed.rows) == 2
        assert parsed.skipped == 0

    def test_row_cap(self):
        text = "\n".join(f"P{i}\t{i}\t0\t0" for i in range(5))

        parsed = parse_bulk_rows(text, ImportConfig(max_rows=3))

        assert len(parsed.rows) == 3
        assert parsed.skipped == 2


class TestBulkCoordinateImporter:
    @pytest.mark.asyncio
    async def test_tolerates_malformed_rows(self, manager, pier_group):
        """10 rows: 3 too short, 2 with non-numeric coordinates -> 5 created."""
        rows = [f"Pile-{i}\t{100 + i},5\t200,25\t10,0" for i in range(5)]
        rows += ["Short-1\t1\t2", "Short-2", "Short-3\t1"]
        rows += ["Bad-1\tabc\t2\t3", "Bad-2\t1\t2\tzz"]

        result = await manager.import_bulk(pier_group, "\n".join(rows))

        assert result.success_count == 5
        assert result.submitted == 5
        assert result.skipped == 5
        assert result.rows_seen == 10
        assert result.status == WriteStatus.SUCCESS
        assert len(result.element_ids) == 5

        tree = await manager.get_tree()
        elements = tree[0].groups[0].elements
        assert sorted(e.name for e in elements) == [f"Pile-{i}" for i in range(5)]
        assert all(e.element_class == "PILE" for e in elements)
        assert all(e.coordinates is not None for e in elements)

    @pytest.mark.asyncio
    async def test_individual_failures_counted(self, manager, pier_group, monkeypatch):
        original = manager.inventory.add_element

        async def flaky(element, coordinates):
            if element.name == "Pile-2":
                raise StoreError("structure_elements", "connection reset")
            return await original(element, coordinates)

        monkeypatch.setattr(manager.inventory, "add_element", flaky)
        text = "\n".join(f"Pile-{i}\t{i}\t0\t0" for i in range(4))

        result = await manager.import_bulk(pier_group, text)

        assert result.succeeded == 3
        assert result.failed == 1
        assert result.status == WriteStatus.PARTIAL_SUCCESS
        assert "Pile-2" in result.errors[0]

    @pytest.mark.asyncio
    async def test_unknown_group_raises(self, manager):
        with pytest.raises(NotFoundError):
            await manager.import_bulk("missing-group", "P1\t1\t2\t3")

    @pytest.mark.asyncio
    async def test_no_valid_rows(self, manager, pier_group):
        result = await manager.import_bulk(pier_group, "junk\nmore junk")

        assert result.success_count == 0
        assert result.skipped == 2
        assert result.status == WriteStatus.SKIPPED
