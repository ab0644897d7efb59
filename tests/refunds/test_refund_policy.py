from datetime import timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from clinic.core.errors import InvalidInput, InvalidTimestamp, QuoteMismatch
from clinic.modules.refunds.models import BankDetails, RefundPolicy, RefundTier
from clinic.modules.refunds.policy import (
    compute_refund_quote,
    default_refund_policy,
    describe_policy,
    format_currency,
    validate_bank_details,
    verify_client_quote,
)


class TestComputeRefundQuote:
    def test_full_refund_a_day_ahead(self, now, policy):
        quote = compute_refund_quote(Decimal("3000"), now + timedelta(hours=30), now, policy)

        assert quote.refund_percentage == 100
        assert quote.refund_amount == Decimal("3000.00")
        assert quote.cancellation_fee == Decimal("0.00")
        assert quote.can_refund is True
        assert quote.hours_before_session == pytest.approx(30.0)

    def test_partial_refund_inside_a_day(self, now, policy):
        quote = compute_refund_quote(Decimal("3000"), now + timedelta(hours=10), now, policy)

        assert quote.refund_percentage == 60
        assert quote.refund_amount == Decimal("1800.00")
        assert quote.cancellation_fee == Decimal("1200.00")
        assert quote.can_refund is True

    def test_no_refund_once_started(self, now, policy):
        quote = compute_refund_quote(Decimal("3000"), now - timedelta(hours=1), now, policy)

        assert quote.refund_percentage == 0
        assert quote.refund_amount == Decimal("0.00")
        assert quote.cancellation_fee == Decimal("3000.00")
        assert quote.can_refund is False
        assert quote.hours_before_session == pytest.approx(-1.0)

    def test_exact_threshold_gets_the_higher_tier(self, now, policy):
        quote = compute_refund_quote(3000, now + timedelta(hours=24), now, policy)
        assert quote.refund_percentage == 100

    def test_start_instant_still_matches_the_zero_tier(self, now, policy):
        quote = compute_refund_quote(3000, now, now, policy)

        assert quote.refund_percentage == 60
        assert quote.can_refund is True

    def test_rounds_half_up_to_cents(self, now):
        half = RefundPolicy(version="half", tiers=[RefundTier(min_hours_before=0, percentage=50)])
        quote = compute_refund_quote("10.01", now + timedelta(hours=1), now, half)

        assert quote.refund_amount == Decimal("5.01")
        assert quote.cancellation_fee == Decimal("5.00")

    def test_refund_plus_fee_is_original(self, now, policy):
        for hours in (-3, 0, 5, 23.5, 24, 100):
            quote = compute_refund_quote("2750.55", now + timedelta(hours=hours), now, policy)
            assert quote.refund_amount + quote.cancellation_fee == quote.original_amount
            assert Decimal("0") <= quote.refund_amount <= quote.original_amount

    def test_refund_never_grows_closer_to_the_session(self, now, policy):
        amounts = [
            compute_refund_quote(1000, now + timedelta(hours=h), now, policy).refund_amount
            for h in (72, 30, 24, 23.9, 10, 0, -0.5, -10)
        ]
        assert amounts == sorted(amounts, reverse=True)

    def test_quote_records_policy_and_clock(self, now, policy):
        quote = compute_refund_quote(1000, now + timedelta(hours=2), now, policy, session_id="s9")

        assert quote.policy_version == "test-1"
        assert quote.quoted_at == now
        assert quote.session_id == "s9"

    def test_naive_schedule_is_clinic_time(self, now, policy):
        # 15:30 Colombo is 10:00 UTC, i.e. exactly now
        quote = compute_refund_quote(1000, "2025-03-04T15:30:00", now, policy)
        assert quote.hours_before_session == pytest.approx(0.0)

    def test_default_policy_is_used_when_none_given(self, now):
        quote = compute_refund_quote(1000, now + timedelta(hours=48), now)

        assert quote.policy_version == default_refund_policy().version
        assert quote.refund_percentage == 100

    @pytest.mark.parametrize("amount", [None, "abc", "-5", -1, "NaN", float("inf"), True])
    def test_bad_amounts_raise(self, now, policy, amount):
        with pytest.raises(InvalidInput):
            compute_refund_quote(amount, now + timedelta(hours=30), now, policy)

    def test_bad_schedule_raises(self, now, policy):
        with pytest.raises(InvalidTimestamp):
            compute_refund_quote(1000, "next tuesday", now, policy)


class TestVerifyClientQuote:
    @pytest.fixture
    def quote(self, now, policy):
        return compute_refund_quote(Decimal("3000"), now + timedelta(hours=10), now, policy)

    @pytest.mark.parametrize("client_amount", [Decimal("1800.00"), "1800", 1800, 1800.0])
    def test_matching_amount_passes(self, quote, client_amount):
        verify_client_quote(client_amount, quote, "test-1")

    def test_changed_amount_raises_with_current_quote(self, quote):
        with pytest.raises(QuoteMismatch) as exc_info:
            verify_client_quote("3000", quote)

        payload = exc_info.value.to_payload()
        assert payload["error"] == "QUOTE_MISMATCH"
        assert payload["quoted_refund_amount"] == "3000.00"
        assert payload["current_refund_amount"] == "1800.00"
        assert payload["current_refund_percentage"] == 60
        assert payload["policy_version"] == "test-1"

    def test_stale_policy_version_raises(self, quote):
        with pytest.raises(QuoteMismatch):
            verify_client_quote("1800", quote, "2023-07")

    def test_bad_client_amount_is_invalid_input(self, quote):
        with pytest.raises(InvalidInput):
            verify_client_quote("lots", quote)


class TestRefundPolicyModel:
    def test_tiers_need_not_be_given_in_order(self):
        policy = RefundPolicy(
            version="v",
            tiers=[RefundTier(min_hours_before=0, percentage=50), RefundTier(min_hours_before=48, percentage=100)],
        )
        assert [t.min_hours_before for t in policy.ordered_tiers] == [48, 0]

    def test_empty_tiers_rejected(self):
        with pytest.raises(ValidationError):
            RefundPolicy(version="v", tiers=[])

    def test_duplicate_thresholds_rejected(self):
        with pytest.raises(ValidationError):
            RefundPolicy(
                version="v",
                tiers=[RefundTier(min_hours_before=24, percentage=100), RefundTier(min_hours_before=24, percentage=50)],
            )

    def test_growing_percentage_rejected(self):
        with pytest.raises(ValidationError):
            RefundPolicy(
                version="v",
                tiers=[RefundTier(min_hours_before=24, percentage=50), RefundTier(min_hours_before=0, percentage=80)],
            )

    def test_percentage_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            RefundTier(min_hours_before=0, percentage=120)


def test_describe_policy_lists_every_tier(policy):
    assert describe_policy(policy) == {
        "version": "test-1",
        "rules": [
            "100% refund when cancelled 24+ hours before the session",
            "60% refund when cancelled up to the session start (40% cancellation fee)",
            "No refund once the session has started",
        ],
    }


@pytest.mark.parametrize("amount,expected", [
    (Decimal("1234.5"), "Rs. 1,234.50"),
    (0, "Rs. 0.00"),
    ("1800", "Rs. 1,800.00"),
    (Decimal("999999.995"), "Rs. 1,000,000.00"),
])
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


class TestValidateBankDetails:
    def test_complete_details_pass(self):
        details = BankDetails(
            bank_account_name="Nimali Perera",
            bank_name="Bank of Ceylon",
            account_number="0012 3456 789",
            swift_code="bceylklx",
        )
        assert validate_bank_details(details) == (True, [])

    def test_missing_fields_are_reported(self):
        is_valid, errors = validate_bank_details(BankDetails())

        assert is_valid is False
        assert errors == [
            "Bank account holder name is required",
            "Bank name is required",
            "Account number is required",
        ]

    def test_non_numeric_account_number(self):
        details = BankDetails(bank_account_name="A", bank_name="B", account_number="12-34")
        assert validate_bank_details(details) == (False, ["Account number should contain only numbers"])

    def test_bad_swift_code(self):
        details = BankDetails(bank_account_name="A", bank_name="B", account_number="1234", swift_code="BAD")
        assert validate_bank_details(details) == (False, ["Invalid SWIFT code format"])
