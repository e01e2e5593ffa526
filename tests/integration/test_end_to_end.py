"""Integration tests for Structrack end-to-end workflows.

Tests:
1. New pier under a bridge shows up in the legacy matrix with empty cells
2. Seeded reference data drives the bridge for both matrix types
3. Pasted coordinate import lands in the tree
4. Deleting a structure removes its inventory but keeps progress history
"""

from __future__ import annotations

import pytest

from structrack.inventory.models import Structure, StructureGroup
from structrack.progress.models import MatrixCell, MatrixType, SyncOutcome
from structrack.results import WriteStatus
from structrack.seed import MATRIX_COLUMNS, seed_reference_data


async def _type_id(manager, code: str) -> str:
    types = await manager.list_structure_types()
    return next(t.id for t in types if t.code == code)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_new_pier_tracked_in_legacy_matrix(manager, factory, store):
    type_id = await factory.structure_type("POD")
    column_ids = await factory.columns(MatrixType.BRIDGE, 2)
    structure = await manager.add_structure(Structure(type_id=type_id, code="POD-12"))

    result = await manager.add_group(
        StructureGroup(structure_id=structure.entity_id, name="Pier-1")
    )

    assert result.status == WriteStatus.SUCCESS
    assert result.sync.outcome == SyncOutcome.SYNCHRONIZED

    shadows = await store.list("pvla_structures")
    assert [s["id"] for s in shadows] == ["POD-12"]

    rows = await manager.get_matrix("legacy")
    assert len(rows) == 1
    assert rows[0].structure_id == "POD-12"
    assert rows[0].structure_group_id == result.entity_id
    assert rows[0].cells == {column_id: MatrixCell.empty() for column_id in column_ids}

    stored = await store.get("progress_matrix", rows[0].id)
    assert list(stored["cells"].values()) == [{"code": "-", "status": "EMPTY"}] * 2


@pytest.mark.integration
@pytest.mark.asyncio
async def test_seeded_reference_data(manager, store):
    types_added, columns_added = await seed_reference_data(manager)

    assert types_added == 6
    assert columns_added == sum(len(c) for c in MATRIX_COLUMNS.values())
    assert await seed_reference_data(manager) == (0, 0)

    bridge = await manager.add_structure(
        Structure(type_id=await _type_id(manager, "POD"), code="POD-3", km_start=4.1, km_end=4.3)
    )
    culvert = await manager.add_structure(
        Structure(type_id=await _type_id(manager, "DG"), name="DG004 (Bretea 1)")
    )
    wall = await manager.add_structure(
        Structure(type_id=await _type_id(manager, "WALL"), code="W-7")
    )

    outcomes = {}
    for structure in (bridge, culvert, wall):
        result = await manager.add_group(StructureGroup(structure_id=structure.entity_id))
        outcomes[structure.entity_id] = result.sync

    assert outcomes[bridge.entity_id].column_count == len(MATRIX_COLUMNS[MatrixType.BRIDGE])
    assert outcomes[culvert.entity_id].matrix_type == MatrixType.CULVERT
    assert outcomes[wall.entity_id].outcome == SyncOutcome.NOT_MATRIX_ELIGIBLE

    shadows = {s["id"]: s for s in await store.list("pvla_structures")}
    assert set(shadows) == {"POD-3", "DG004 (Bretea 1)"}
    assert shadows["POD-3"]["km"] == "4.1 - 4.3"
    assert len(await manager.get_matrix("legacy")) == 2


@pytest.mark.integration
@pytest.mark.asyncio
async def test_bulk_import_into_tree(manager, pier_group):
    text = "\n".join(
        [
            "P1\t100,5\t200\t3\t1.2\t12",
            "P2\t101\t201\t3",
            "P3\tabc\t202\t3",
            "",
            "P4\t102",
        ]
    )

    result = await manager.import_bulk(pier_group, text)

    assert result.succeeded == 2
    assert result.skipped == 2
    tree = await manager.get_tree()
    elements = {e.name: e for e in tree[0].groups[0].elements}
    assert set(elements) == {"P1", "P2"}
    assert elements["P1"].coordinates.position.x == 100.5
    assert elements["P1"].coordinates.dimensions.d1 == 1.2


@pytest.mark.integration
@pytest.mark.asyncio
async def test_delete_structure_keeps_progress(manager, factory, bridge_structure, store):
    await factory.columns(MatrixType.BRIDGE, 2)
    group = await manager.add_group(StructureGroup(structure_id=bridge_structure, name="Pier-1"))
    await manager.import_bulk(group.entity_id, "P1\t1\t2\t3")

    await manager.delete_structure(bridge_structure)

    assert await manager.get_tree() == []
    assert await store.list("structure_groups") == []
    assert await store.list("structure_elements") == []
    assert await store.list("element_coordinates") == []
    # Legacy tracking survives the inventory delete
    assert len(await store.list("progress_matrix")) == 1
    assert len(await store.list("pvla_structures")) == 1
