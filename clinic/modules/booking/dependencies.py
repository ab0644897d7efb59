from fastapi import Depends
from clinic.core.email_service.email_instance import get_email_service
from clinic.core.email_service.email_service import EmailService
from clinic.modules.booking.repository import BookingRepository
from clinic.modules.booking.service import BookingService
from clinic.modules.refunds.models import RefundPolicy
from clinic.modules.refunds.policy import default_refund_policy
from clinic.modules.sessions.repository import SessionRepository
from clinic.modules.therapists.repository import TherapistRepository


def get_refund_policy() -> RefundPolicy:
    return default_refund_policy()


def get_booking_service(
    session_repo: SessionRepository = Depends(),
    therapist_repo: TherapistRepository = Depends(),
    booking_repo: BookingRepository = Depends(),
    email_service: EmailService = Depends(get_email_service),
    policy: RefundPolicy = Depends(get_refund_policy),
) -> BookingService:
    return BookingService(
        session_repo=session_repo,
        therapist_repo=therapist_repo,
        booking_repo=booking_repo,
        email_service=email_service,
        policy=policy,
    )
