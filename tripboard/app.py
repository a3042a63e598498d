"""FastAPI application factory"""

import asyncio
import logging
import os
import signal
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from tripboard.core.clock import date_window, local_today
from tripboard.core.config import Settings, get_settings
from tripboard.core.database import DatabaseManager, PoolConfig
from tripboard.core.logging import setup_logging
from tripboard.live import (
    ConnectionRegistry,
    CounterPolicy,
    LiveCounterService,
    ServiceAvailabilityGate,
    SnapshotCache,
)
from tripboard.migrations import MigrationRunner
from tripboard.repositories import (
    AuditRecordRepository,
    CounterRepository,
    RegionRepository,
    TimePeriodRepository,
)
from tripboard.routers import availability_router, counters_router, live_router, records_router
from tripboard.services import CounterAdminService, ProvisioningService, provisioning_loop

logger = logging.getLogger(__name__)

SERVICE_NAME = "tripboard"
VERSION = "1.0.0"


def _install_loop_exception_handler(settings: Settings) -> None:
    """Log errors escaping background tasks; optionally shut the process down."""
    loop = asyncio.get_running_loop()

    def handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        logger.error(
            f"Unhandled error in event loop: {context.get('message')}",
            exc_info=exc,
        )
        if settings.exit_on_unhandled_error:
            logger.critical("exit_on_unhandled_error is set, shutting down")
            os.kill(os.getpid(), signal.SIGTERM)

    loop.set_exception_handler(handler)


def build_services(app: FastAPI, settings: Settings, db_manager: DatabaseManager) -> None:
    """Wire repositories and live services onto ``app.state``."""
    pool = db_manager.pool
    zone = settings.zone

    counters = CounterRepository(pool)
    cache = SnapshotCache(counters, enabled_only=settings.snapshot_enabled_only)
    registry = ConnectionRegistry()

    def serving_dates():
        return date_window(local_today(zone), settings.warm_days_ahead + 1)

    gate = ServiceAvailabilityGate(cache, serving_dates)
    live = LiveCounterService(
        counters=counters,
        audit_log=AuditRecordRepository(pool),
        cache=cache,
        registry=registry,
        gate=gate,
        zone=zone,
        policy=CounterPolicy(
            min_value=settings.counter_min_value,
            clamp=settings.counter_saturation == "clamp",
        ),
    )

    app.state.db = db_manager
    app.state.cache = cache
    app.state.registry = registry
    app.state.gate = gate
    app.state.live = live
    app.state.counter_admin = CounterAdminService(counters, gate)
    app.state.provisioning = ProvisioningService(
        counters=counters,
        regions=RegionRepository(pool),
        time_periods=TimePeriodRepository(pool),
        cache=cache,
        gate=gate,
        days_ahead=settings.provision_days_ahead,
        retention_days=settings.retention_days,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    settings: Settings = app.state.settings
    app.state.start_time = time.time()
    _install_loop_exception_handler(settings)

    logger.info("Starting tripboard server")
    logger.info(f"Environment: {settings.environment} | Timezone: {settings.timezone}")

    db_manager = DatabaseManager(settings.database_url, PoolConfig.from_settings(settings))
    await db_manager.connect()

    migrations = MigrationRunner(db_manager.pool)
    if settings.run_migrations:
        await migrations.run_pending()
    else:
        pending = await migrations.pending()
        if pending:
            logger.warning(
                f"{len(pending)} pending migration(s) not applied: "
                f"{', '.join(m.version for m in pending)}"
            )

    build_services(app, settings, db_manager)

    if settings.gate_enabled_on_startup:
        try:
            await app.state.gate.enable()
        except Exception as e:
            logger.error(f"Initial cache warm failed: {type(e).__name__}: {e}")

    provisioning_task = asyncio.create_task(
        provisioning_loop(app.state.provisioning, settings.zone, settings.provision_at)
    )

    yield

    logger.info("Shutting down tripboard server")
    provisioning_task.cancel()
    try:
        await provisioning_task
    except asyncio.CancelledError:
        pass
    await db_manager.disconnect()


def create_app(settings: Settings | None = None, *, use_lifespan: bool = True) -> FastAPI:
    """Create and configure FastAPI application"""
    settings = settings or get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="Tripboard",
        description="Live trip counters per region and time slot",
        version=VERSION,
        lifespan=lifespan if use_lifespan else None,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.settings = settings
    app.state.start_time = time.time()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(live_router.router)
    app.include_router(availability_router.router)
    app.include_router(records_router.router)
    app.include_router(counters_router.router)

    @app.get("/")
    async def root():
        """Root endpoint - minimal service info"""
        return {"service": SERVICE_NAME, "status": "running"}

    @app.get("/health")
    async def health():
        """Liveness check (no DB dependency)"""
        return {
            "status": "healthy",
            "uptime_seconds": int(time.time() - app.state.start_time),
        }

    @app.get("/status")
    async def status():
        """Readiness / status endpoint, includes DB health and live counts"""
        db_manager = getattr(app.state, "db", None)
        db_ok = db_manager is not None and await db_manager.check_health()
        gate = getattr(app.state, "gate", None)
        registry = getattr(app.state, "registry", None)
        cache = getattr(app.state, "cache", None)
        return {
            "service": SERVICE_NAME,
            "version": VERSION,
            "uptime_seconds": int(time.time() - app.state.start_time),
            "db_connected": db_ok,
            "live_enabled": gate.is_enabled if gate else False,
            "connected_clients": len(registry) if registry else 0,
            "served_dates": [d.isoformat() for d in cache.dates] if cache else [],
            "environment": settings.environment,
        }

    @app.api_route("/ping", methods=["GET", "HEAD"], response_class=PlainTextResponse)
    async def ping():
        """Ping endpoint"""
        return "pong"

    logger.info("FastAPI application configured")

    return app
