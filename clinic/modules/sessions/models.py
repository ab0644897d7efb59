from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
import uuid

from clinic.core.errors import InvalidInput
from clinic.core.timeutils import normalize_timestamp
from clinic.modules.refunds.policy import to_amount


class SessionStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    APPROVED = "APPROVED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    DECLINED = "DECLINED"
    NO_SHOW = "NO_SHOW"


# Booked and not yet resolved
ACTIVE_STATUSES = frozenset({
    SessionStatus.SCHEDULED,
    SessionStatus.APPROVED,
    SessionStatus.CONFIRMED,
})

TERMINAL_STATUSES = frozenset({
    SessionStatus.COMPLETED,
    SessionStatus.CANCELLED,
    SessionStatus.DECLINED,
    SessionStatus.NO_SHOW,
})

# A new status must be placed in exactly one of the sets above
if ACTIVE_STATUSES | TERMINAL_STATUSES != set(SessionStatus) or ACTIVE_STATUSES & TERMINAL_STATUSES:
    raise RuntimeError("Every SessionStatus must be either active or terminal")

_TRANSITIONS = {
    SessionStatus.SCHEDULED: {SessionStatus.COMPLETED, SessionStatus.CANCELLED, SessionStatus.NO_SHOW, SessionStatus.DECLINED},
    SessionStatus.APPROVED: {SessionStatus.COMPLETED, SessionStatus.CANCELLED, SessionStatus.NO_SHOW},
    SessionStatus.CONFIRMED: {SessionStatus.COMPLETED, SessionStatus.CANCELLED, SessionStatus.NO_SHOW},
}


def parse_status(value) -> SessionStatus:
    if isinstance(value, SessionStatus):
        return value
    try:
        return SessionStatus(str(value).upper())
    except ValueError:
        raise InvalidInput(f"Unknown session status: {value!r}")


def can_transition(current, target) -> bool:
    """Transitions are enforced by whoever writes the status; this only reads them."""
    return parse_status(target) in _TRANSITIONS.get(parse_status(current), set())


class TherapySession(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    therapist_id: str
    therapist_user_id: Optional[str] = None
    patient_id: str
    patient_name: Optional[str] = None
    guardian_user_ids: List[str] = []
    scheduled_at: datetime
    duration_minutes: int = Field(gt=0)
    status: SessionStatus = SessionStatus.SCHEDULED
    rate_at_booking: Decimal = Field(default=Decimal("0"), ge=0)
    version: int = 0
    updated_at: Optional[datetime] = None
    session_notes: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict, tz=None) -> "TherapySession":
        """Build from a stored document, normalising the scheduled time at the boundary."""
        data = dict(doc)
        data.pop("_id", None)
        data["scheduled_at"] = normalize_timestamp(data.get("scheduled_at"), tz)
        data["status"] = parse_status(data.get("status", SessionStatus.SCHEDULED))
        duration = data.get("duration_minutes")
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidInput(f"duration_minutes must be a positive integer, got {duration!r}")
        if data.get("rate_at_booking") is None:
            data["rate_at_booking"] = Decimal("0")
        else:
            data["rate_at_booking"] = to_amount(data["rate_at_booking"], "rate_at_booking")
        return cls(**data)


class Notification(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sender_id: Optional[str] = None
    receiver_id: str
    type: str
    title: str
    message: str
    session_id: Optional[str] = None
    is_read: bool = False
    is_urgent: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
