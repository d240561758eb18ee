from fastapi import APIRouter, Depends, Request
from fastapi.openapi.utils import get_openapi
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.system import SystemStats

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/stats", response_model=SystemStats)
async def get_stats(db: AsyncSession = Depends(get_db)):
    """Return system-wide statistics."""
    totals = await db.execute(text("""
        SELECT
            (SELECT COUNT(*) FROM boards) AS boards,
            (SELECT COUNT(*) FROM board_collaborators) AS collaborators
    """))
    by_status = await db.execute(text("SELECT status, COUNT(*) AS n FROM boards GROUP BY status"))

    row = totals.mappings().first()
    return {
        "boards": row["boards"],
        "collaborators": row["collaborators"],
        "by_status": {r["status"]: r["n"] for r in by_status.mappings().all()},
    }


@router.get("/docs.json", include_in_schema=False)
async def get_openapi_json(request: Request):
    """Return the full OpenAPI schema in JSON format."""
    app = request.app
    return get_openapi(
        title="Journeyboard API",
        version="1.0.0",
        description="Full OpenAPI specification for the Journeyboard backend.",
        routes=app.routes,
    )
