"""WebSocket frame shapes.

Inbound frames are a discriminated union on ``type``; outbound frames are
plain pydantic models dumped to JSON. Field names are the wire keys.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from tripboard.live.errors import InvalidMessageError, LiveError
from tripboard.models.counter import Snapshot

# ============================================
# Inbound (client -> server)
# ============================================


class NameSubmission(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["nameSubmission"]
    name: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v


class DateSelection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["dateSelection"]
    date: date


class CounterAction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["action"]
    id: int
    action: Literal["increment", "decrement"]
    timestamp: int | float | str | None = None
    userName: str | None = None

    @property
    def delta(self) -> int:
        return 1 if self.action == "increment" else -1


InboundMessage = Annotated[
    NameSubmission | DateSelection | CounterAction,
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[NameSubmission | DateSelection | CounterAction] = TypeAdapter(
    InboundMessage
)


def parse_inbound(raw: str | bytes) -> NameSubmission | DateSelection | CounterAction:
    """Decode one text frame. Raises InvalidMessageError on anything unusable."""
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise InvalidMessageError("Message is not valid JSON") from e

    if not isinstance(payload, dict):
        raise InvalidMessageError("Message must be a JSON object")

    try:
        return _inbound_adapter.validate_python(payload)
    except ValidationError as e:
        if payload.get("type") == "action" and any(
            err["loc"][:2] == ("action", "action") for err in e.errors()
        ):
            raise InvalidMessageError("Invalid operation type") from None
        raise InvalidMessageError(_describe(e)) from None


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"Invalid message: {location}: {first['msg']}" if location else "Invalid message"


# ============================================
# Outbound (server -> client)
# ============================================


def _snapshot_list(snapshots: list[Snapshot]) -> list[dict[str, Any]]:
    return [asdict(s) for s in snapshots]


class RegionDataMessage(BaseModel):
    type: Literal["regionData"] = "regionData"
    regionData: list[dict[str, Any]]
    status: int = 200

    @classmethod
    def build(cls, snapshots: list[Snapshot]) -> RegionDataMessage:
        return cls(regionData=_snapshot_list(snapshots))


class CounterUpdateMessage(BaseModel):
    type: Literal["counterUpdate"] = "counterUpdate"
    area: str
    counter_time: str
    counter: int
    changedBy: str
    timestamp: str
    date: str
    regionData: list[dict[str, Any]]
    status: int = 200

    @classmethod
    def build(
        cls,
        *,
        snapshot: Snapshot,
        value: int,
        changed_by: str,
        timestamp: str,
        day: date,
        snapshots: list[Snapshot],
    ) -> CounterUpdateMessage:
        return cls(
            area=snapshot.area,
            counter_time=snapshot.counter_time,
            counter=value,
            changedBy=changed_by,
            timestamp=timestamp,
            date=day.isoformat(),
            regionData=_snapshot_list(snapshots),
        )


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    message: str
    status: int

    @classmethod
    def from_error(cls, error: LiveError) -> ErrorMessage:
        return cls(message=error.message, status=error.status)
