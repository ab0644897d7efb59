from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class RefundTier(BaseModel):
    model_config = ConfigDict(frozen=True)
    min_hours_before: float
    percentage: int = Field(ge=0, le=100)


class RefundPolicy(BaseModel):
    """
    Versioned cancellation refund policy.

    A cancellation made ``h`` hours before the session gets the percentage of
    the first tier (highest threshold first) with ``h >= min_hours_before``.
    When no tier matches, nothing is refunded.
    """
    model_config = ConfigDict(frozen=True)
    version: str
    tiers: List[RefundTier]

    @model_validator(mode="after")
    def check_tiers(self):
        if not self.tiers:
            raise ValueError("A refund policy needs at least one tier")
        thresholds = [t.min_hours_before for t in self.tiers]
        if len(set(thresholds)) != len(thresholds):
            raise ValueError("Refund tier thresholds must be unique")
        ordered = self.ordered_tiers
        for earlier, later in zip(ordered, ordered[1:]):
            if later.percentage > earlier.percentage:
                raise ValueError("Refund percentage cannot grow closer to the session")
        return self

    @property
    def ordered_tiers(self) -> List[RefundTier]:
        return sorted(self.tiers, key=lambda t: t.min_hours_before, reverse=True)


class RefundQuote(BaseModel):
    model_config = ConfigDict(frozen=True)
    session_id: Optional[str] = None
    original_amount: Decimal
    refund_amount: Decimal
    refund_percentage: int
    cancellation_fee: Decimal
    hours_before_session: float
    can_refund: bool
    policy_version: str
    quoted_at: datetime


class BankDetails(BaseModel):
    bank_account_name: str = ""
    bank_name: str = ""
    account_number: str = ""
    branch_code: Optional[str] = None
    swift_code: Optional[str] = None
