"""Gatekeeper FastAPI service: StatTaq webhooks, account connections and verification."""

import datetime
from contextlib import asynccontextmanager
from pathlib import Path

import newrelic.agent

from src.utils.config import get_gradeup_environment

config_path = Path(__file__).parent / "newrelic.toml"
# Initialize New Relic with the gatekeeper-specific TOML config and environment
newrelic.agent.initialize(str(config_path), environment=get_gradeup_environment())

import asyncpg
from fastapi import FastAPI, HTTPException, Request

from src.clients import redis as redis_client
from src.clients.supabase import SupabaseDB
from src.connections.routes import router as connections_router
from src.connections.service import StatTaqConnectionService
from src.ingest.gatekeeper.error_handlers import register_error_handlers
from src.ingest.gatekeeper.routes import router as webhook_router
from src.ingest.gatekeeper.services.webhook_processor import WebhookProcessor
from src.notifications.routes import router as notifications_router
from src.utils.config import get_config_value
from src.utils.logging import get_logger, get_uvicorn_log_config
from src.verification.routes import router as verification_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup and handle graceful shutdown."""
    logger.info("🚀 Starting Gatekeeper service...")

    db = SupabaseDB()
    webhook_processor = WebhookProcessor(db=db)
    await webhook_processor.initialize()

    app.state.db = db
    app.state.webhook_processor = webhook_processor
    app.state.connection_service = StatTaqConnectionService()

    logger.info("✅ Gatekeeper service startup complete")

    yield

    logger.info("🛑 Shutting down Gatekeeper service...")

    await redis_client.close()
    await webhook_processor.cleanup()

    logger.info("✅ Gatekeeper service shutdown complete")


app = FastAPI(
    title="GradeUp Gatekeeper",
    description="StatTaq webhook ingestion, account linking and athlete verification",
    version="1.0.0",
    lifespan=lifespan,
)
register_error_handlers(app)


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    try:
        webhook_processor: WebhookProcessor = request.app.state.webhook_processor
        health_status = await webhook_processor.health_check()
    except (asyncpg.PostgresError, OSError) as e:
        newrelic.agent.record_exception()
        logger.error("Health check failed", error=str(e))
        raise HTTPException(status_code=503, detail={"status": "unhealthy", "error": str(e)})

    if health_status["status"] != "healthy":
        raise HTTPException(status_code=503, detail=health_status)
    return health_status


@app.get("/health/live")
async def liveness_check():
    """Liveness probe endpoint - checks if the application is alive."""
    return {"status": "alive", "timestamp": datetime.datetime.now().isoformat()}


@app.get("/health/ready")
async def readiness_check(request: Request):
    """Readiness probe endpoint - checks if the application is ready to serve traffic."""
    try:
        webhook_processor: WebhookProcessor = request.app.state.webhook_processor
        health_status = await webhook_processor.health_check()
    except (asyncpg.PostgresError, OSError) as e:
        newrelic.agent.record_exception()
        logger.error("Readiness check failed", error=str(e))
        raise HTTPException(status_code=503, detail={"status": "not_ready", "error": str(e)})

    if health_status["status"] != "healthy":
        raise HTTPException(
            status_code=503, detail={"status": "not_ready", "components": health_status}
        )
    return {"status": "ready", "components": health_status}


app.include_router(webhook_router)
app.include_router(connections_router)
app.include_router(verification_router)
app.include_router(notifications_router)


def main():
    """Run the gatekeeper service."""
    import uvicorn

    port = get_config_value("GATEKEEPER_PORT", 8001)

    uvicorn.run(
        "src.ingest.gatekeeper.main:app",
        host="0.0.0.0",
        port=port,
        log_config=get_uvicorn_log_config(),
    )


if __name__ == "__main__":
    main()
