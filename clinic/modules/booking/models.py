from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
import uuid

from clinic.modules.refunds.models import BankDetails, RefundQuote


class RescheduleReason(str, Enum):
    OK = "OK"
    RATE_CHANGED = "RATE_CHANGED"
    NOT_ELIGIBLE_STATUS = "NOT_ELIGIBLE_STATUS"


class RescheduleEligibility(BaseModel):
    model_config = ConfigDict(frozen=True)
    can_reschedule: bool
    reason: RescheduleReason
    message: str
    original_rate: Optional[Decimal] = None
    current_rate: Optional[Decimal] = None


class RefundStatus(str, Enum):
    pending = "PENDING"
    not_applicable = "NOT_APPLICABLE"


class CancellationRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str
    cancelled_by: str
    reason: Optional[str] = None
    applied_refund: RefundQuote
    refund_status: RefundStatus
    bank_details: Optional[BankDetails] = None
    idempotency_key: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RescheduleRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str
    requested_by: str
    original_scheduled_at: datetime
    new_scheduled_at: datetime
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
