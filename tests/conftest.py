"""Pytest configuration and fixtures for Structrack tests.

Store-backed tests run against a file SQLite database per test (aiosqlite),
so concurrent fan-out writes use separate connections like they do in
production.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from structrack.config import ImportConfig, MatrixConfig
from structrack.db.models import Base
from structrack.db.store import SQLRecordStore
from structrack.inventory.models import LocalizedText, Structure, StructureGroup, StructureType
from structrack.progress.models import MatrixColumn, MatrixType
from structrack.service import StructureManager


@pytest.fixture(autouse=True)
def database_url(monkeypatch, tmp_path):
    """Point the config singleton at a throwaway database."""
    from structrack.config import reset_config

    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/env.db")
    reset_config()
    yield
    reset_config()


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/structrack.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def store(session_factory) -> SQLRecordStore:
    return SQLRecordStore(session_factory)


@pytest.fixture
def manager(store) -> StructureManager:
    return StructureManager(
        store,
        imports=ImportConfig(concurrency=4),
        matrix=MatrixConfig(),
    )


class Factory:
    """Builds inventory and matrix fixtures through the manager."""

    def __init__(self, manager: StructureManager):
        self.manager = manager

    async def structure_type(self, code: str) -> str:
        result = await self.manager.add_structure_type(
            StructureType(code=code, name=LocalizedText(tr=code, en=code, ro=code))
        )
        return result.entity_id

    async def structure(
        self, type_id: str, code: str | None, name: str | None = None
    ) -> str:
        result = await self.manager.add_structure(
            Structure(type_id=type_id, code=code, name=name, km_start=12.4, km_end=12.6)
        )
        return result.entity_id

    async def columns(self, matrix_type: MatrixType, count: int) -> list[str]:
        ids = []
        for i in range(count):
            result = await self.manager.add_column(
                MatrixColumn(
                    matrix_type=matrix_type,
                    name=LocalizedText(tr=f"Col {i}", en=f"Col {i}", ro=f"Col {i}"),
                    order_index=i,
                )
            )
            ids.append(result.entity_id)
        return ids


@pytest.fixture
def factory(manager) -> Factory:
    return Factory(manager)


@pytest_asyncio.fixture()
async def bridge_structure(factory) -> str:
    """A POD structure "POD-12" with no columns configured yet."""
    type_id = await factory.structure_type("POD")
    return await factory.structure(type_id, "POD-12")


@pytest_asyncio.fixture()
async def pier_group(manager, bridge_structure) -> str:
    result = await manager.add_group(
        StructureGroup(structure_id=bridge_structure, name="Pier-1")
    )
    return result.entity_id
