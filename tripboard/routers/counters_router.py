"""Back-office counter API routes"""

import logging
from dataclasses import asdict
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, StrictBool

from tripboard.core.dependencies import get_counter_admin
from tripboard.live.errors import LiveError
from tripboard.services.counter_admin import CounterAdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/counters", tags=["counters"])


# ============================================
# Response / Request Models
# ============================================


class SnapshotResponse(BaseModel):
    id: int
    area: str
    counter_time: str
    date: str
    counter_value: int
    max_counter_value: int
    state: bool


class BoundUpdate(BaseModel):
    operation: str


class BoundUpdateResponse(BaseModel):
    id: int
    counter_value: int
    max_counter_value: int


class StateUpdate(BaseModel):
    date: date
    enabled: StrictBool
    region_id: int | None = None


class StateUpdateResponse(BaseModel):
    changed: int


# ============================================
# Endpoints
# ============================================


@router.get("/{day}", response_model=list[SnapshotResponse])
async def list_counters(
    day: date,
    admin: CounterAdminService = Depends(get_counter_admin),
) -> list[SnapshotResponse]:
    """All counters of a date straight from the store, enabled or not."""
    try:
        snapshots = await admin.list_for_date(day)
        return [SnapshotResponse(**asdict(s)) for s in snapshots]
    except Exception as e:
        logger.exception(f"Failed to list counters for {day}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch counters") from None


@router.put("/state", response_model=StateUpdateResponse)
async def update_state(
    body: StateUpdate,
    admin: CounterAdminService = Depends(get_counter_admin),
) -> StateUpdateResponse:
    """Enable or disable the counters of a date, optionally for one region."""
    try:
        changed = await admin.set_state(body.date, body.enabled, body.region_id)
        return StateUpdateResponse(changed=changed)
    except LiveError as e:
        raise HTTPException(status_code=e.status, detail=e.message) from None
    except Exception as e:
        logger.exception(f"Failed to update counter state: {e}")
        raise HTTPException(status_code=500, detail="Failed to update state") from None


@router.put("/{counter_id}/bound", response_model=BoundUpdateResponse)
async def update_bound(
    counter_id: int,
    body: BoundUpdate,
    admin: CounterAdminService = Depends(get_counter_admin),
) -> BoundUpdateResponse:
    """Raise or lower a counter's maximum by one."""
    try:
        counter = await admin.adjust_bound(counter_id, body.operation)
        return BoundUpdateResponse(
            id=counter.id,
            counter_value=counter.counter_value,
            max_counter_value=counter.max_counter_value,
        )
    except LiveError as e:
        raise HTTPException(status_code=e.status, detail=e.message) from None
    except Exception as e:
        logger.exception(f"Failed to update bound of counter {counter_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update counter") from None
