"""Health check API routes.

Routes:
- GET /health         - Database connectivity
- GET /health/schema  - Which known tables exist (rollout is incremental)
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncSession

from structrack.db.connection import get_db
from structrack.db.models import Base

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected"}
    except Exception as e:
        return {"status": "error", "database": "disconnected", "detail": str(e)}


@router.get("/schema", status_code=status.HTTP_200_OK)
async def schema_check(db: AsyncSession = Depends(get_db)):
    """Report known tables missing from the database.

    Missing optional tables (layers, surfaces, legacy matrix, progress items)
    read as empty; missing core tables break writes.
    """
    existing = await db.run_sync(
        lambda sync_session: set(inspect(sync_session.connection()).get_table_names())
    )
    missing = sorted(set(Base.metadata.tables) - existing)
    return {"status": "ok" if not missing else "incomplete", "missing_tables": missing}
