"""Audit record API routes"""

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from tripboard.core.dependencies import get_record_repository
from tripboard.repositories.audit_record import AuditRecordRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/records", tags=["records"])


class AuditRecordResponse(BaseModel):
    id: int
    record_date: date
    time_period: str
    content: str
    created_at: datetime | None = None


@router.get("", response_model=list[AuditRecordResponse])
async def list_records(
    start_date: date | None = None,
    end_date: date | None = None,
    time_period: str | None = None,
    repo: AuditRecordRepository = Depends(get_record_repository),
) -> list[AuditRecordResponse]:
    """List audit records filtered by date range and/or time slot."""
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    try:
        records = await repo.search(
            start_date=start_date, end_date=end_date, time_period=time_period
        )
        return [
            AuditRecordResponse(
                id=r.id,
                record_date=r.record_date,
                time_period=r.time_period,
                content=r.content,
                created_at=r.created_at,
            )
            for r in records
        ]
    except Exception as e:
        logger.exception(f"Failed to fetch audit records: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch records") from None


@router.delete("/{record_id}")
async def delete_record(
    record_id: int,
    repo: AuditRecordRepository = Depends(get_record_repository),
) -> dict:
    """Delete one audit record."""
    try:
        deleted = await repo.delete(record_id)
    except Exception as e:
        logger.exception(f"Failed to delete audit record {record_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete record") from None

    if not deleted:
        raise HTTPException(status_code=404, detail="Record not found")
    logger.info(f"Deleted audit record {record_id}")
    return {"success": True}
