"""FastAPI application entry point: wires everything together.

Usage:
    python -m quoteflow.main
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from quoteflow.api.errors import register_error_handlers
from quoteflow.api.routes import router as quotes_router
from quoteflow.config import settings
from quoteflow.db.engine import db_lifespan
from quoteflow.events.bus import EventBus
from quoteflow.notifications.reminders import ReminderService
from quoteflow.schemas.events import EventType, SystemEvent
from quoteflow.security.audit import audit_on_event

# ── Logging setup ────────────────────────────────────────────────────

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    stream=sys.stdout,
)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = logging.getLogger(__name__)

# ── FastAPI lifespan ─────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup and shutdown lifecycle."""
    logger.info("Starting QuoteFlow (env=%s)", settings.environment)

    # 1. Database
    async with db_lifespan():
        logger.info("Database initialized")

        # 2. Event bus + subscribers
        bus = EventBus()
        bus.subscribe(audit_on_event)
        reminders = ReminderService(publisher=bus)
        bus.subscribe(reminders.on_event, event_types=[EventType.QUOTE_STATUS_CHANGED])
        await bus.start()
        app.state.event_bus = bus
        await bus.publish(SystemEvent(event_type=EventType.SYSTEM_STARTUP, source_module="main"))

        try:
            yield
        finally:
            logger.info("Shutting down QuoteFlow...")
            await bus.publish(SystemEvent(event_type=EventType.SYSTEM_SHUTDOWN, source_module="main"))
            await bus.stop()

    logger.info("QuoteFlow shutdown complete")


# ── FastAPI app ──────────────────────────────────────────────────────

app = FastAPI(
    title="QuoteFlow API",
    description="Commercial proposals: pricing, payment terms and lifecycle",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(quotes_router)
register_error_handlers(app)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "company": settings.company_name,
    }


# ── Entry point ──────────────────────────────────────────────────────

if __name__ == "__main__":
    uvicorn.run(
        "quoteflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
