"""
Cancellation refund policy engine.

Quotes are computed the same way for the client preview and for the
authoritative commit; the commit path recomputes and compares the two with
``verify_client_quote`` rather than trusting a submitted amount.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple
import re

from clinic.core.config import (
    CURRENCY_PREFIX,
    REFUND_FULL_PERCENTAGE,
    REFUND_FULL_REFUND_HOURS,
    REFUND_PARTIAL_PERCENTAGE,
    REFUND_POLICY_VERSION,
)
from clinic.core.errors import InvalidInput, QuoteMismatch
from clinic.core.timeutils import TimestampLike, hours_between, normalize_timestamp
from clinic.modules.refunds.models import BankDetails, RefundPolicy, RefundQuote, RefundTier

CENT = Decimal("0.01")
SWIFT_PATTERN = re.compile(r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$")


def default_refund_policy() -> RefundPolicy:
    return RefundPolicy(
        version=REFUND_POLICY_VERSION,
        tiers=[
            RefundTier(min_hours_before=REFUND_FULL_REFUND_HOURS, percentage=REFUND_FULL_PERCENTAGE),
            RefundTier(min_hours_before=0, percentage=REFUND_PARTIAL_PERCENTAGE),
        ],
    )


def to_amount(value, field: str = "amount") -> Decimal:
    """Parse a money value without coercing bad input to zero."""
    if value is None or isinstance(value, bool):
        raise InvalidInput(f"{field} is required", {"field": field})
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{field} is not a number: {value!r}", {"field": field})
    if not amount.is_finite():
        raise InvalidInput(f"{field} must be finite", {"field": field})
    if amount < 0:
        raise InvalidInput(f"{field} cannot be negative", {"field": field})
    return amount


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def refund_percentage(hours_before_session: float, policy: RefundPolicy) -> Tuple[int, bool]:
    """Percentage and whether any tier applied."""
    for tier in policy.ordered_tiers:
        if hours_before_session >= tier.min_hours_before:
            return tier.percentage, True
    return 0, False


def compute_refund_quote(
    original_amount,
    scheduled_at: TimestampLike,
    now: datetime,
    policy: Optional[RefundPolicy] = None,
    session_id: Optional[str] = None,
) -> RefundQuote:
    policy = policy or default_refund_policy()
    amount = to_amount(original_amount, "original_amount")
    start = normalize_timestamp(scheduled_at)
    current = normalize_timestamp(now)

    hours_before = hours_between(current, start)
    percentage, can_refund = refund_percentage(hours_before, policy)
    refund_amount = quantize(amount * percentage / 100)

    return RefundQuote(
        session_id=session_id,
        original_amount=quantize(amount),
        refund_amount=refund_amount,
        refund_percentage=percentage,
        cancellation_fee=quantize(amount - refund_amount),
        hours_before_session=hours_before,
        can_refund=can_refund,
        policy_version=policy.version,
        quoted_at=current,
    )


def verify_client_quote(
    client_refund_amount,
    server_quote: RefundQuote,
    client_policy_version: Optional[str] = None,
) -> None:
    client_amount = quantize(to_amount(client_refund_amount, "quoted_refund_amount"))
    mismatch = client_amount != server_quote.refund_amount
    if client_policy_version is not None and client_policy_version != server_quote.policy_version:
        mismatch = True
    if mismatch:
        raise QuoteMismatch(
            "Refund amount has changed since it was quoted. Please review the new amount and confirm again.",
            {
                "quoted_refund_amount": str(client_amount),
                "current_refund_amount": str(server_quote.refund_amount),
                "current_refund_percentage": server_quote.refund_percentage,
                "policy_version": server_quote.policy_version,
            },
        )


def _format_hours(hours: float) -> str:
    return f"{hours:g}"


def describe_policy(policy: Optional[RefundPolicy] = None) -> Dict[str, object]:
    policy = policy or default_refund_policy()
    rules: List[str] = []
    for tier in policy.ordered_tiers:
        fee = 100 - tier.percentage
        when = (
            "up to the session start"
            if tier.min_hours_before == 0
            else f"{_format_hours(tier.min_hours_before)}+ hours before the session"
        )
        line = f"{tier.percentage}% refund when cancelled {when}"
        if fee:
            line += f" ({fee}% cancellation fee)"
        rules.append(line)
    rules.append("No refund once the session has started")
    return {"version": policy.version, "rules": rules}


def format_currency(amount) -> str:
    return f"{CURRENCY_PREFIX} {quantize(Decimal(str(amount))):,.2f}"


def validate_bank_details(details: BankDetails) -> Tuple[bool, List[str]]:
    errors: List[str] = []

    if not details.bank_account_name.strip():
        errors.append("Bank account holder name is required")

    if not details.bank_name.strip():
        errors.append("Bank name is required")

    account_number = re.sub(r"\s+", "", details.account_number)
    if not account_number:
        errors.append("Account number is required")
    elif not account_number.isdigit():
        errors.append("Account number should contain only numbers")

    if details.swift_code and details.swift_code.strip():
        if not SWIFT_PATTERN.match(details.swift_code.strip().upper()):
            errors.append("Invalid SWIFT code format")

    return len(errors) == 0, errors
