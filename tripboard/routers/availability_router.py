"""Maintenance switch API routes"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, StrictBool

from tripboard.core.dependencies import get_gate
from tripboard.live.gate import ServiceAvailabilityGate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/availability", tags=["availability"])


class AvailabilityResponse(BaseModel):
    cacheEnabled: bool


class AvailabilityUpdate(BaseModel):
    enabled: StrictBool


class AvailabilityUpdateResponse(BaseModel):
    message: str
    cacheEnabled: bool


@router.get("", response_model=AvailabilityResponse)
async def get_availability(
    gate: ServiceAvailabilityGate = Depends(get_gate),
) -> AvailabilityResponse:
    """Current switch state; clients poll this to show the maintenance overlay."""
    return AvailabilityResponse(cacheEnabled=gate.is_enabled)


@router.post("", response_model=AvailabilityUpdateResponse)
async def update_availability(
    body: AvailabilityUpdate,
    gate: ServiceAvailabilityGate = Depends(get_gate),
) -> AvailabilityUpdateResponse:
    """Enable (warm the cache) or disable (clear it) the live service."""
    try:
        await gate.set_enabled(body.enabled)
    except Exception as e:
        logger.exception(f"Failed to switch live service to enabled={body.enabled}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load counters") from None

    state = "enabled" if body.enabled else "disabled"
    return AvailabilityUpdateResponse(message=f"Live service {state}", cacheEnabled=gate.is_enabled)
