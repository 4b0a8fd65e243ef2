import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from campus_events.config.database import upgrade_database
from campus_events.config.logging import setup_logging
from campus_events.config.settings import settings
from campus_events.registrations.routers import router as registrations_router
from campus_events.reminders.router import router as reminders_router
from campus_events.reminders.scheduler import start_reminder_scheduler
from campus_events.routers.healthz.router import router as healthz_router

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        await upgrade_database()

    scheduler = None
    if settings.reminders_enabled:
        scheduler = await start_reminder_scheduler()
    else:
        logger.info("Reminders are disabled, scheduler not started")
    app.state.reminder_scheduler = scheduler

    yield

    if scheduler is not None:
        await scheduler.stop()


if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        profiles_sample_rate=settings.SENTRY_PROFILES_SAMPLE_RATE,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )

app = FastAPI(
    title="Campus Events API",
    description="API for event registrations and reminder scheduling",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(healthz_router, prefix="/healthz", tags=["Healthz"])
app.include_router(registrations_router, tags=["Registrations"])
app.include_router(reminders_router, tags=["Reminders"])


@app.get("/", tags=["Root"])
async def root():
    return {"message": "Welcome to the Campus Events API"}
