from pydantic import BaseModel, Field
from typing import Optional, Union
from datetime import datetime
from decimal import Decimal

from clinic.modules.refunds.models import BankDetails


class SessionIdRequest(BaseModel):
    session_id: str


class CancelSessionRequest(BaseModel):
    session_id: str
    # Version and amount the parent saw when confirming
    expected_version: int
    quoted_refund_amount: Decimal
    policy_version: Optional[str] = None
    cancel_reason: Optional[str] = Field(default=None, max_length=1000)
    bank_details: Optional[BankDetails] = None


class RescheduleSessionRequest(BaseModel):
    session_id: str
    expected_version: int
    # ISO string without offset means clinic local time
    new_scheduled_at: Union[datetime, str]
    reason: Optional[str] = Field(default=None, max_length=1000)
