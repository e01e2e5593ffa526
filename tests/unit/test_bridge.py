"""Tests for structrack.progress.bridge - legacy progress synchronization.

Covers every branch of the group-creation state machine plus the failure
and repair paths.
"""

from __future__ import annotations

import pytest

from structrack.config import MatrixConfig
from structrack.errors import NotFoundError, StoreError
from structrack.inventory.models import Structure, StructureGroup
from structrack.progress.bridge import format_km
from structrack.progress.models import (
    STEP_PROGRESS_ROW,
    STEP_RESOLVE_COLUMNS,
    STEP_RESOLVE_STRUCTURE,
    STEP_SHADOW_RECORD,
    MatrixType,
    SyncOutcome,
)
from structrack.results import WriteStatus
from structrack.service import StructureManager


async def _add_group(manager, structure_id: str, name: str = "Pier-1"):
    return await manager.add_group(StructureGroup(structure_id=structure_id, name=name))


class TestFormatKm:
    def test_range(self):
        assert format_km(12.4, 12.6) == "12.4 - 12.6"

    def test_single_point(self):
        assert format_km(3.0, None) == "3"
        assert format_km(3.5, 3.5) == "3.5"

    def test_missing(self):
        assert format_km(None, None) is None


class TestBridgeBranches:
    @pytest.mark.asyncio
    async def test_not_matrix_eligible(self, manager, factory, store):
        """(a) type not matrix-eligible: group created, no progress row."""
        type_id = await factory.structure_type("WALL")
        structure_id = await factory.structure(type_id, "W-1")
        await factory.columns(MatrixType.BRIDGE, 2)

        result = await _add_group(manager, structure_id)

        assert result.status == WriteStatus.SUCCESS
        assert result.sync.outcome == SyncOutcome.NOT_MATRIX_ELIGIBLE
        assert await store.get("structure_groups", result.entity_id) is not None
        assert await store.list("progress_matrix") == []
        assert await store.list("pvla_structures") == []

    @pytest.mark.asyncio
    async def test_no_columns(self, manager, bridge_structure, store):
        """(b) eligible, zero columns: informational outcome, no row."""
        result = await _add_group(manager, bridge_structure)

        assert result.status == WriteStatus.SUCCESS
        assert result.sync.outcome == SyncOutcome.NO_COLUMNS
        assert result.sync.is_error is False
        assert result.sync.completed_steps == [STEP_RESOLVE_STRUCTURE, STEP_RESOLVE_COLUMNS]
        assert await store.list("progress_matrix") == []

    @pytest.mark.asyncio
    async def test_synchronized(self, manager, factory, bridge_structure, store):
        """(c) eligible, columns configured, code present: shadow + row."""
        column_ids = await factory.columns(MatrixType.BRIDGE, 3)
        await factory.columns(MatrixType.CULVERT, 2)

        result = await _add_group(manager, bridge_structure)

        report = result.sync
        assert result.status == WriteStatus.SUCCESS
        assert report.outcome == SyncOutcome.SYNCHRONIZED
        assert report.tracked is True
        assert report.legacy_code == "POD-12"
        assert report.column_count == 3
        assert report.completed_steps == [
            STEP_RESOLVE_STRUCTURE,
            STEP_RESOLVE_COLUMNS,
            STEP_SHADOW_RECORD,
            STEP_PROGRESS_ROW,
        ]

        shadow = await store.get("pvla_structures", "POD-12")
        assert shadow["type"] == "Bridge"
        assert shadow["km"] == "12.4 - 12.6"

        rows = await store.list("progress_matrix")
        assert len(rows) == 1
        assert rows[0]["id"] == report.progress_row_id
        assert rows[0]["structure_id"] == "POD-12"
        assert rows[0]["structure_group_id"] == result.entity_id
        assert rows[0]["location"] == "Pier-1"
        assert rows[0]["cells"] == {
            column_id: {"code": "-", "status": "EMPTY"} for column_id in column_ids
        }

    @pytest.mark.asyncio
    async def test_missing_legacy_code(self, manager, factory, store):
        """(d) legacy code absent: group created, informational outcome."""
        type_id = await factory.structure_type("DG")
        structure_id = await factory.structure(type_id, code="  ", name=None)
        await factory.columns(MatrixType.CULVERT, 1)

        result = await _add_group(manager, structure_id)

        assert result.status == WriteStatus.SUCCESS
        assert result.sync.outcome == SyncOutcome.MISSING_LEGACY_CODE
        assert await store.list("pvla_structures") == []
        assert await store.list("progress_matrix") == []

    @pytest.mark.asyncio
    async def test_name_used_when_code_missing(self, manager, factory, store):
        type_id = await factory.structure_type("dg")
        structure_id = await factory.structure(type_id, code=None, name="DG004 (Bretea 1)")
        await factory.columns(MatrixType.CULVERT, 1)

        result = await _add_group(manager, structure_id)

        assert result.sync.outcome == SyncOutcome.SYNCHRONIZED
        assert result.sync.matrix_type == MatrixType.CULVERT
        assert (await store.get("pvla_structures", "DG004 (Bretea 1)"))["type"] == "Culvert"

    @pytest.mark.asyncio
    async def test_disabled(self, store, factory, bridge_structure):
        await factory.columns(MatrixType.BRIDGE, 1)
        manager = StructureManager(store, matrix=MatrixConfig(legacy_enabled=False))

        result = await _add_group(manager, bridge_structure)

        assert result.status == WriteStatus.SUCCESS
        assert result.sync.outcome == SyncOutcome.DISABLED
        assert await store.list("progress_matrix") == []

    @pytest.mark.asyncio
    async def test_structure_not_found_for_orphan_group(self, manager, store):
        group = await store.insert("structure_groups", {"structure_id": "gone", "name": "Lost"})

        report = await manager.bridge.resync(group["id"])

        assert report.outcome == SyncOutcome.STRUCTURE_NOT_FOUND


class TestSyncFailures:
    @pytest.mark.asyncio
    async def test_shadow_failure_keeps_group(self, manager, factory, bridge_structure, store, monkeypatch):
        await factory.columns(MatrixType.BRIDGE, 2)

        async def boom(*args, **kwargs):
            raise StoreError("pvla_structures", "permission denied")

        monkeypatch.setattr(manager.bridge, "upsert_shadow_record", boom)

        result = await _add_group(manager, bridge_structure)

        assert result.status == WriteStatus.PARTIAL_SUCCESS
        assert result.success is True
        assert result.sync.outcome == SyncOutcome.SYNC_FAILED
        assert result.sync.failed_step == STEP_SHADOW_RECORD
        assert STEP_SHADOW_RECORD not in result.sync.completed_steps
        assert result.error_details["failed_step"] == STEP_SHADOW_RECORD
        assert await store.get("structure_groups", result.entity_id) is not None
        # Row insert never attempted
        assert await store.list("progress_matrix") == []

    @pytest.mark.asyncio
    async def test_row_failure_after_shadow(self, manager, factory, bridge_structure, store, monkeypatch):
        await factory.columns(MatrixType.BRIDGE, 2)

        async def boom(row):
            raise StoreError("progress_matrix", "connection reset")

        monkeypatch.setattr(manager.legacy, "insert_row", boom)

        result = await _add_group(manager, bridge_structure)

        assert result.status == WriteStatus.PARTIAL_SUCCESS
        assert result.sync.failed_step == STEP_PROGRESS_ROW
        assert STEP_SHADOW_RECORD in result.sync.completed_steps
        assert await store.get("pvla_structures", "POD-12") is not None

    @pytest.mark.asyncio
    async def test_resync_repairs_failed_group(self, manager, factory, bridge_structure, store, monkeypatch):
        await factory.columns(MatrixType.BRIDGE, 2)

        async def boom(row):
            raise StoreError("progress_matrix", "connection reset")

        monkeypatch.setattr(manager.legacy, "insert_row", boom)
        failed = await _add_group(manager, bridge_structure)
        monkeypatch.undo()

        repaired = await manager.resync_group(failed.entity_id)

        assert repaired.status == WriteStatus.SUCCESS
        assert repaired.sync.outcome == SyncOutcome.SYNCHRONIZED
        assert len(await store.list("progress_matrix")) == 1

    @pytest.mark.asyncio
    async def test_resync_is_idempotent(self, manager, factory, bridge_structure, store):
        await factory.columns(MatrixType.BRIDGE, 2)
        created = await _add_group(manager, bridge_structure)

        first = await manager.resync_group(created.entity_id)
        second = await manager.resync_group(created.entity_id)

        assert first.sync.progress_row_id == created.sync.progress_row_id
        assert second.sync.progress_row_id == created.sync.progress_row_id
        assert len(await store.list("progress_matrix")) == 1
        assert len(await store.list("pvla_structures")) == 1

    @pytest.mark.asyncio
    async def test_resync_unknown_group(self, manager):
        with pytest.raises(NotFoundError):
            await manager.resync_group("missing")


class TestShadowRecord:
    @pytest.mark.asyncio
    async def test_upsert_twice_gives_one_record(self, manager, store):
        structure = Structure(id="s1", code="POD-12", name="Viaduct", km_start=1.0, km_end=1.2)

        await manager.bridge.upsert_shadow_record(structure, MatrixType.BRIDGE)
        await manager.bridge.upsert_shadow_record(
            structure.model_copy(update={"name": "Viaduct North"}), MatrixType.BRIDGE
        )

        records = await store.list("pvla_structures")
        assert len(records) == 1
        assert records[0]["id"] == "POD-12"
        assert records[0]["name"] == "Viaduct North"

    @pytest.mark.asyncio
    async def test_upsert_requires_legacy_code(self, manager):
        with pytest.raises(ValueError):
            await manager.bridge.upsert_shadow_record(Structure(), MatrixType.BRIDGE)

    @pytest.mark.asyncio
    async def test_groups_share_shadow_record(self, manager, factory, bridge_structure, store):
        await factory.columns(MatrixType.BRIDGE, 1)

        results = [
            await _add_group(manager, bridge_structure, f"Pier-{i}") for i in range(4)
        ]

        assert all(r.sync.outcome == SyncOutcome.SYNCHRONIZED for r in results)
        assert len(await store.list("pvla_structures")) == 1
        assert len(await store.list("progress_matrix")) == 4
