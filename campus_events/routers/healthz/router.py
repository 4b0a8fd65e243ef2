import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.config.database import get_async_session

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str
    version: str = "0.1.0"
    database: str
    reminder_scheduler: str


async def check_database(session: AsyncSession) -> str:
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check could not reach the database")
        return "unavailable"
    return "ok"


@router.get("/", response_model=HealthCheckResponse)
async def health_check(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
) -> HealthCheckResponse:
    """
    Health check endpoint to verify the API and its database are up.
    The reminder scheduler is reported but does not affect the status.
    """
    database = await check_database(session)

    scheduler = getattr(request.app.state, "reminder_scheduler", None)
    if scheduler is None:
        reminder_scheduler = "disabled"
    elif scheduler.is_running:
        reminder_scheduler = "running"
    else:
        reminder_scheduler = "stopped"

    return HealthCheckResponse(
        status="healthy" if database == "ok" else "degraded",
        database=database,
        reminder_scheduler=reminder_scheduler,
    )
