from fastapi import APIRouter, Depends, Header
from typing import Dict, Optional
from datetime import datetime
from clinic.core.timeutils import utc_now
from clinic.modules.auth.utility import get_current_user
from clinic.modules.booking.dependencies import get_booking_service, get_refund_policy
from clinic.modules.booking.schemas import CancelSessionRequest, RescheduleSessionRequest, SessionIdRequest
from clinic.modules.booking.service import BookingService
from clinic.modules.refunds.models import RefundPolicy
from clinic.modules.refunds.policy import describe_policy

booking_router = APIRouter(prefix="/parent/sessions", tags=["Booking"])
history_router = APIRouter(prefix="/sessions", tags=["Booking"])
policy_router = APIRouter(tags=["Refund Policy"])


@booking_router.post("/calculate-refund")
async def calculate_refund(
    data: SessionIdRequest,
    current_user: Dict = Depends(get_current_user),
    now: datetime = Depends(utc_now),
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.compute_refund_quote(data.session_id, current_user, now)

@booking_router.post("/check-reschedule")
async def check_reschedule(
    data: SessionIdRequest,
    current_user: Dict = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
):
    eligibility = await booking_service.check_reschedule_eligibility(data.session_id, current_user)
    return eligibility.model_dump(mode="json")

@booking_router.post("/cancel")
async def cancel_session(
    data: CancelSessionRequest,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    current_user: Dict = Depends(get_current_user),
    now: datetime = Depends(utc_now),
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.submit_cancellation(data, current_user, now, idempotency_key)

@booking_router.post("/reschedule")
async def reschedule_session(
    data: RescheduleSessionRequest,
    current_user: Dict = Depends(get_current_user),
    now: datetime = Depends(utc_now),
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.submit_reschedule(data, current_user, now)

@history_router.get("/{session_id}/reschedule-history")
async def get_reschedule_history(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.get_reschedule_history(session_id, current_user)

@policy_router.get("/refund-policy")
async def get_refund_policy_description(policy: RefundPolicy = Depends(get_refund_policy)):
    return describe_policy(policy)
