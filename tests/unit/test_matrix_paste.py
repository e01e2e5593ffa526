"""Tests for spreadsheet paste onto the progress matrix."""

from __future__ import annotations

import pytest

from structrack.progress.models import MatrixColumn, MatrixType, ProgressRow
from structrack.progress.sources import parse_matrix_paste


@pytest.fixture
def rows():
    return [
        ProgressRow(id="g1", structure_id="s1", structure_group_id="g1"),
        ProgressRow(id="g2", structure_id="s1", structure_group_id="g2"),
    ]


@pytest.fixture
def columns():
    return [
        MatrixColumn(id=f"c{i}", matrix_type=MatrixType.BRIDGE, order_index=i)
        for i in range(3)
    ]


def test_positional_mapping(rows, columns):
    updates = parse_matrix_paste("A\tB\tC\nD\tE\tF", rows, columns)

    assert [(u.structure_group_id, u.matrix_column_id, u.code) for u in updates] == [
        ("g1", "c0", "A"),
        ("g1", "c1", "B"),
        ("g1", "c2", "C"),
        ("g2", "c0", "D"),
        ("g2", "c1", "E"),
        ("g2", "c2", "F"),
    ]
    assert {u.status for u in updates} == {"EMPTY"}


def test_placeholders_dropped(rows, columns):
    updates = parse_matrix_paste("-\t0\t \nPV-3\t\t-", rows, columns)

    assert [(u.structure_group_id, u.code) for u in updates] == [("g2", "PV-3")]


def test_overflow_ignored(rows, columns):
    text = "A\tB\tC\tD\tE\nF\nG\nH"

    updates = parse_matrix_paste(text, rows, columns)

    assert len(updates) == 4
    assert all(u.matrix_column_id in {"c0", "c1", "c2"} for u in updates)
    assert {u.structure_group_id for u in updates} == {"g1", "g2"}


def test_windows_line_endings(rows, columns):
    updates = parse_matrix_paste("A\tB\r\nC\r\n", rows, columns)

    assert [u.code for u in updates] == ["A", "B", "C"]


def test_legacy_rows_fall_back_to_row_id(columns):
    rows = [ProgressRow(id="legacy-1", structure_id="POD-12")]

    updates = parse_matrix_paste("X", rows, columns)

    assert updates[0].structure_group_id == "legacy-1"


def test_empty_paste(rows, columns):
    assert parse_matrix_paste("", rows, columns) == []
    assert parse_matrix_paste("A\tB", [], columns) == []
