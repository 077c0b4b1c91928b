"""Liveness and database reachability."""

from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel

from curation.core.config import settings
from curation.database.client import db_client

router = APIRouter()


class HealthReport(BaseModel):
    status: str
    service: str
    version: str
    database: Dict[str, Any]


@router.get("/", response_model=HealthReport, operation_id="get_health")
async def health() -> HealthReport:
    """Always 200; ``status`` is ``degraded`` while the database is unreachable."""
    database = await db_client.health_check()
    return HealthReport(
        status="healthy" if database["connected"] else "degraded",
        service=settings.app_name,
        version=settings.app_version,
        database=database,
    )
