"""Tests for structrack.progress.columns - matrix column registry."""

from __future__ import annotations

import pytest

from structrack.config import MatrixConfig
from structrack.inventory.models import LocalizedText
from structrack.progress.columns import ColumnRegistry
from structrack.progress.models import MatrixColumn, MatrixType


@pytest.fixture
def registry(store) -> ColumnRegistry:
    return ColumnRegistry(store, MatrixConfig(default_column_order=99))


class TestColumnRegistry:
    @pytest.mark.asyncio
    async def test_grouped_and_sorted(self, registry, store):
        await store.insert("pvla_matrix_columns", {"type": "Bridge", "name_en": "B2", "order_index": 2})
        await store.insert("pvla_matrix_columns", {"type": "bridge", "name_en": "B1", "order_index": 1})
        await store.insert("pvla_matrix_columns", {"type": "Culvert", "name_en": "C1", "order_index": 5})
        await store.insert("pvla_matrix_columns", {"type": "Tunnel", "name_en": "T1", "order_index": 0})

        columns = await registry.list_columns()

        assert [c.name.en for c in columns[MatrixType.BRIDGE]] == ["B1", "B2"]
        assert [c.name.en for c in columns[MatrixType.CULVERT]] == ["C1"]
        assert set(columns) == {MatrixType.BRIDGE, MatrixType.CULVERT}

    @pytest.mark.asyncio
    async def test_add_column_default_order(self, registry):
        column = await registry.add_column(
            MatrixColumn(matrix_type=MatrixType.CULVERT, name=LocalizedText(en="Drainage"))
        )

        assert column.order_index == 99
        assert column.id is not None
        assert (await registry.columns_for(MatrixType.CULVERT))[0].name.en == "Drainage"

    @pytest.mark.asyncio
    async def test_add_column_explicit_order(self, registry):
        column = await registry.add_column(
            MatrixColumn(matrix_type=MatrixType.BRIDGE, order_index=0, col_type="TRASARE")
        )

        assert column.order_index == 0
        assert column.col_type == "TRASARE"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, registry):
        column = await registry.add_column(MatrixColumn(matrix_type=MatrixType.BRIDGE))

        updated = MatrixColumn(
            matrix_type=MatrixType.BRIDGE, name=LocalizedText(en="Rebar"), order_index=3
        )
        assert await registry.update_column(column.id, updated) is True
        assert (await registry.columns_for(MatrixType.BRIDGE))[0].name.en == "Rebar"

        assert await registry.delete_column(column.id) is True
        assert await registry.columns_for(MatrixType.BRIDGE) == []

    @pytest.mark.asyncio
    async def test_absent_table_reads_empty(self, registry, session_factory):
        from structrack.db.models import MatrixColumnModel

        async with session_factory() as session:
            await session.run_sync(lambda s: MatrixColumnModel.__table__.drop(s.connection()))
            await session.commit()

        assert await registry.list_columns() == {MatrixType.BRIDGE: [], MatrixType.CULVERT: []}
