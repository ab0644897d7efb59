from fastapi import HTTPException
from typing import Dict, Optional
from datetime import datetime
from decimal import Decimal
import logging

from clinic.core.email_service.email_service import EmailService
from clinic.core.errors import ClinicError, ConcurrentModification, InvalidInput, NotEligible
from clinic.core.timeutils import format_local, normalize_timestamp
from clinic.modules.auth.utility import PARENT, require_role
from clinic.modules.booking.eligibility import check_reschedule_eligibility
from clinic.modules.booking.models import (
    CancellationRecord,
    RefundStatus,
    RescheduleEligibility,
    RescheduleReason,
    RescheduleRecord,
)
from clinic.modules.booking.repository import BookingRepository
from clinic.modules.booking.schemas import CancelSessionRequest, RescheduleSessionRequest
from clinic.modules.refunds.models import RefundPolicy, RefundQuote
from clinic.modules.refunds.policy import (
    compute_refund_quote,
    default_refund_policy,
    describe_policy,
    format_currency,
    to_amount,
    validate_bank_details,
    verify_client_quote,
)
from clinic.modules.sessions.lifecycle import SessionPhase, allowed_actions, phase_of
from clinic.modules.sessions.models import (
    ACTIVE_STATUSES,
    Notification,
    SessionStatus,
    TherapySession,
    can_transition,
)
from clinic.modules.sessions.repository import SessionRepository
from clinic.modules.sessions.service import describe_session, ensure_session_access
from clinic.modules.therapists.repository import TherapistRepository

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self,
                 session_repo: SessionRepository,
                 therapist_repo: TherapistRepository,
                 booking_repo: BookingRepository,
                 email_service: EmailService,
                 policy: Optional[RefundPolicy] = None
                 ):
        self.session_repo = session_repo
        self.therapist_repo = therapist_repo
        self.booking_repo = booking_repo
        self.email_service = email_service
        self.policy = policy or default_refund_policy()

    async def _load_session(self, session_id: str, current_user: Dict) -> TherapySession:
        # Always a fresh read; commits never reuse what a preview saw
        doc = await self.session_repo.get_session_by_id(session_id)
        if not doc:
            raise HTTPException(status_code=404, detail="Session not found or unauthorized")
        session = TherapySession.from_document(doc)
        ensure_session_access(session, current_user)
        return session

    async def _current_rate(self, therapist_id: str) -> Decimal:
        therapist = await self.therapist_repo.get_therapist_by_id(therapist_id)
        if not therapist:
            raise HTTPException(status_code=404, detail="Therapist not found")
        return to_amount(therapist.get("session_rate"), "session_rate")

    def _ensure_cancellable_status(self, session: TherapySession):
        if session.status == SessionStatus.CANCELLED:
            raise NotEligible("Session is already cancelled", {"status": session.status.value})
        if session.status == SessionStatus.COMPLETED:
            raise NotEligible("Cannot cancel a completed session", {"status": session.status.value})
        if session.status not in ACTIVE_STATUSES:
            raise NotEligible(
                f"Cannot cancel a session with status {session.status.value}",
                {"status": session.status.value},
            )

    def _ensure_version(self, session: TherapySession, expected_version: int):
        if session.version != expected_version:
            raise ConcurrentModification(
                "This session was changed after you opened it. Please refresh and try again.",
                {"expected_version": expected_version, "current_version": session.version},
            )

    async def compute_refund_quote(self, session_id: str, current_user: Dict, now: datetime) -> Dict:
        session = await self._load_session(session_id, current_user)
        self._ensure_cancellable_status(session)

        quote = compute_refund_quote(
            session.rate_at_booking, session.scheduled_at, now, self.policy, session_id=session.id
        )
        return {
            "success": True,
            "session": {
                "id": session.id,
                "scheduled_at": session.scheduled_at.isoformat(),
                "patient_name": session.patient_name,
                "version": session.version,
            },
            "refund": quote.model_dump(mode="json"),
            "formatted": {
                "original_amount": format_currency(quote.original_amount),
                "refund_amount": format_currency(quote.refund_amount),
                "cancellation_fee": format_currency(quote.cancellation_fee),
                "hours_before_session": f"{max(0.0, quote.hours_before_session):.1f}",
            },
            "refund_policy": describe_policy(self.policy),
        }

    async def check_reschedule_eligibility(self, session_id: str, current_user: Dict) -> RescheduleEligibility:
        session = await self._load_session(session_id, current_user)
        current_rate = await self._current_rate(session.therapist_id)
        return check_reschedule_eligibility(session.rate_at_booking, current_rate, session.status)

    async def submit_cancellation(
        self,
        request: CancelSessionRequest,
        current_user: Dict,
        now: datetime,
        idempotency_key: Optional[str] = None,
    ) -> Dict:
        require_role(current_user, [PARENT])
        try:
            session = await self._load_session(request.session_id, current_user)

            if idempotency_key:
                previous = await self.booking_repo.find_cancellation_by_key(session.id, idempotency_key)
                if previous and previous.get("cancelled_by") == current_user["id"]:
                    logger.info(f"Replaying cancellation of session {session.id} for key {idempotency_key}")
                    return {
                        "success": True,
                        "message": "Session cancelled successfully",
                        "applied_refund": RefundQuote(**previous["applied_refund"]).model_dump(mode="json"),
                    }

            self._ensure_cancellable_status(session)
            if not allowed_actions(phase_of(session, now)).can_cancel:
                raise NotEligible("Session has already started and can no longer be cancelled", {"status": session.status.value})
            self._ensure_version(session, request.expected_version)

            quote = compute_refund_quote(
                session.rate_at_booking, session.scheduled_at, now, self.policy, session_id=session.id
            )
            verify_client_quote(request.quoted_refund_amount, quote, request.policy_version)

            refund_due = quote.refund_amount > 0
            if request.bank_details is not None and refund_due:
                is_valid, errors = validate_bank_details(request.bank_details)
                if not is_valid:
                    raise InvalidInput("Invalid bank details", {"errors": errors})

            if not can_transition(session.status, SessionStatus.CANCELLED):
                raise NotEligible(f"Cannot cancel a session with status {session.status.value}", {"status": session.status.value})
            notes = "Cancelled by parent"
            if request.cancel_reason:
                notes += f". Reason: {request.cancel_reason}"
            matched = await self.session_repo.update_session_if_version(
                session.id,
                request.expected_version,
                {
                    "status": SessionStatus.CANCELLED.value,
                    "updated_at": now,
                    "session_notes": notes,
                },
            )
            if not matched:
                raise ConcurrentModification(
                    "This session was changed while cancelling. Please refresh and try again.",
                    {"expected_version": request.expected_version},
                )

            record = CancellationRecord(
                session_id=session.id,
                cancelled_by=current_user["id"],
                reason=request.cancel_reason,
                applied_refund=quote,
                refund_status=RefundStatus.pending if refund_due else RefundStatus.not_applicable,
                bank_details=request.bank_details if refund_due else None,
                idempotency_key=idempotency_key,
                created_at=now,
            )
            await self.booking_repo.add_cancellation(record)

            logger.info(
                f"Session {session.id} cancelled: {quote.refund_percentage}% refund "
                f"({quote.refund_amount}) {quote.hours_before_session:.2f}h before start"
            )

            await self._notify_therapist(
                session,
                sender_id=current_user["id"],
                title="Session Cancelled",
                message=f"A therapy session scheduled for {format_local(session.scheduled_at)} has been cancelled by the parent.",
                now=now,
            )
            await self._email_therapist(session, "cancel", {
                "patient_name": session.patient_name or "your patient",
                "session_time": format_local(session.scheduled_at),
                "reason": request.cancel_reason,
            })

            return {
                "success": True,
                "message": "Session cancelled successfully",
                "applied_refund": quote.model_dump(mode="json"),
            }
        except (HTTPException, ClinicError):
            raise
        except Exception:
            logger.exception(f"Error cancelling session {request.session_id}")
            raise

    async def submit_reschedule(self, request: RescheduleSessionRequest, current_user: Dict, now: datetime) -> Dict:
        require_role(current_user, [PARENT])
        try:
            session = await self._load_session(request.session_id, current_user)

            if session.status not in ACTIVE_STATUSES:
                raise NotEligible(
                    f"Cannot reschedule a {session.status.value.lower()} session",
                    {"reason": RescheduleReason.NOT_ELIGIBLE_STATUS.value, "status": session.status.value},
                )
            if phase_of(session, now) != SessionPhase.UPCOMING:
                raise NotEligible("Session has already started and can no longer be rescheduled", {"status": session.status.value})

            current_rate = await self._current_rate(session.therapist_id)
            eligibility = check_reschedule_eligibility(session.rate_at_booking, current_rate, session.status)
            if not eligibility.can_reschedule:
                raise NotEligible(eligibility.message, eligibility.model_dump(mode="json", exclude={"message", "can_reschedule"}))

            new_time = normalize_timestamp(request.new_scheduled_at)
            if new_time <= now:
                raise InvalidInput("New session time must be in the future")

            self._ensure_version(session, request.expected_version)

            notes = f"Rescheduled by parent from {format_local(session.scheduled_at)} to {format_local(new_time)}"
            update_data = {
                "scheduled_at": new_time,
                "status": SessionStatus.SCHEDULED.value,
                "updated_at": now,
                "session_notes": notes,
            }
            matched = await self.session_repo.update_session_if_version(session.id, request.expected_version, update_data)
            if not matched:
                raise ConcurrentModification(
                    "This session was changed while rescheduling. Please refresh and try again.",
                    {"expected_version": request.expected_version},
                )

            await self.booking_repo.add_reschedule(RescheduleRecord(
                session_id=session.id,
                requested_by=current_user["id"],
                original_scheduled_at=session.scheduled_at,
                new_scheduled_at=new_time,
                reason=request.reason,
                created_at=now,
            ))

            logger.info(f"Session {session.id} rescheduled from {session.scheduled_at.isoformat()} to {new_time.isoformat()}")

            await self._notify_therapist(
                session,
                sender_id=current_user["id"],
                title="Session Rescheduled",
                message=f"A therapy session has been rescheduled to {format_local(new_time)}.",
                now=now,
            )
            await self._email_therapist(session, "reschedule", {
                "patient_name": session.patient_name or "your patient",
                "old_time": format_local(session.scheduled_at),
                "new_time": format_local(new_time),
            })

            updated = session.model_copy(update={**update_data, "status": SessionStatus.SCHEDULED, "version": session.version + 1})
            return {
                "success": True,
                "message": "Session rescheduled successfully",
                "session": describe_session(updated, now),
            }
        except (HTTPException, ClinicError):
            raise
        except Exception:
            logger.exception(f"Error rescheduling session {request.session_id}")
            raise

    async def get_reschedule_history(self, session_id: str, current_user: Dict) -> Dict:
        session = await self._load_session(session_id, current_user)
        history = await self.booking_repo.find_reschedule_history(session.id)
        return {"session_id": session.id, "history": history, "count": len(history)}

    async def _notify_therapist(self, session: TherapySession, sender_id: str, title: str, message: str, now: datetime):
        # Runs after the commit; failures are logged, never raised
        if not session.therapist_user_id:
            logger.warning(f"Session {session.id} has no therapist user; skipping notification")
            return
        try:
            await self.session_repo.add_notification(Notification(
                sender_id=sender_id,
                receiver_id=session.therapist_user_id,
                type="APPOINTMENT",
                title=title,
                message=message,
                session_id=session.id,
                is_urgent=True,
                created_at=now,
            ))
        except Exception as e:
            logger.error(f"Failed to notify therapist about session {session.id}: {e}")
            logger.exception("Full traceback:")

    async def _email_therapist(self, session: TherapySession, kind: str, data: Dict):
        if not session.therapist_user_id:
            return
        try:
            therapist_user = await self.therapist_repo.get_user_by_id(session.therapist_user_id)
            if not therapist_user or not therapist_user.get("email"):
                return
            if kind == "cancel":
                self.email_service.send_cancellation_notice(therapist_user["email"], data)
            else:
                self.email_service.send_reschedule_notice(therapist_user["email"], data)
        except Exception as e:
            logger.error(f"Failed to email therapist about session {session.id}: {e}")
            logger.exception("Full traceback:")
