"""Dependency injection utilities for FastAPI

Long-lived services are built once in the application lifespan and stored
on ``app.state``; these helpers hand them to routes (HTTP and WebSocket).
"""

import logging

import asyncpg
from fastapi import Depends, HTTPException
from starlette.requests import HTTPConnection

from tripboard.core.database import DatabaseManager
from tripboard.live.gate import ServiceAvailabilityGate
from tripboard.live.service import LiveCounterService
from tripboard.repositories.audit_record import AuditRecordRepository
from tripboard.services.counter_admin import CounterAdminService

logger = logging.getLogger(__name__)


def _state(connection: HTTPConnection, name: str):
    service = getattr(connection.app.state, name, None)
    if service is None:
        logger.warning(f"Service '{name}' requested before startup completed")
        raise HTTPException(status_code=503, detail="Service not ready")
    return service


def get_database_manager(connection: HTTPConnection) -> DatabaseManager:
    return _state(connection, "db")


def get_db_pool(connection: HTTPConnection) -> asyncpg.Pool:
    db_manager = get_database_manager(connection)
    if not db_manager.is_connected:
        raise HTTPException(status_code=503, detail="Database not ready")
    return db_manager.pool


def get_live_service(connection: HTTPConnection) -> LiveCounterService:
    return _state(connection, "live")


def get_gate(connection: HTTPConnection) -> ServiceAvailabilityGate:
    return _state(connection, "gate")


def get_counter_admin(connection: HTTPConnection) -> CounterAdminService:
    return _state(connection, "counter_admin")


def get_record_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> AuditRecordRepository:
    """Get AuditRecordRepository instance (dependency injection)"""
    return AuditRecordRepository(pool)
