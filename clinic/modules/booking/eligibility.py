from clinic.modules.booking.models import RescheduleEligibility, RescheduleReason
from clinic.modules.refunds.policy import to_amount
from clinic.modules.sessions.models import ACTIVE_STATUSES, parse_status


def check_reschedule_eligibility(rate_at_booking, current_therapist_rate, status) -> RescheduleEligibility:
    """
    A session can move to another slot only while it is booked and the
    therapist still charges what was paid. Otherwise the parent has to cancel
    and book again at the current rate.
    """
    status = parse_status(status)
    if status not in ACTIVE_STATUSES:
        return RescheduleEligibility(
            can_reschedule=False,
            reason=RescheduleReason.NOT_ELIGIBLE_STATUS,
            message=f"Cannot reschedule a {status.value.lower().replace('_', '-')} session",
        )

    original_rate = to_amount(rate_at_booking, "rate_at_booking")
    current_rate = to_amount(current_therapist_rate, "current_therapist_rate")
    if original_rate != current_rate:
        return RescheduleEligibility(
            can_reschedule=False,
            reason=RescheduleReason.RATE_CHANGED,
            message=(
                "The therapist has changed their rates since your original booking. "
                "If you can't attend the scheduled session, please cancel this appointment "
                "and make a new booking at the current rate."
            ),
            original_rate=original_rate,
            current_rate=current_rate,
        )

    return RescheduleEligibility(
        can_reschedule=True,
        reason=RescheduleReason.OK,
        message="Session can be rescheduled",
    )
