from fastapi import APIRouter, Depends
from typing import Dict, Optional
from datetime import datetime
from clinic.core.timeutils import utc_now
from clinic.modules.auth.utility import get_current_user
from clinic.modules.sessions.dependencies import get_session_service
from clinic.modules.sessions.lifecycle import SessionTab
from clinic.modules.sessions.service import SessionService

session_router = APIRouter(prefix="/sessions", tags=["Sessions"])
therapist_session_router = APIRouter(prefix="/therapist/sessions", tags=["Therapist Sessions"])


@session_router.get("/")
async def list_sessions(
    tab: Optional[SessionTab] = None,
    current_user: Dict = Depends(get_current_user),
    now: datetime = Depends(utc_now),
    session_service: SessionService = Depends(get_session_service),
):
    return await session_service.list_sessions(current_user, tab, now)

@session_router.get("/{session_id}")
async def get_session(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    now: datetime = Depends(utc_now),
    session_service: SessionService = Depends(get_session_service),
):
    return await session_service.get_session(session_id, current_user, now)

@therapist_session_router.post("/check-pending-documentation")
async def check_pending_documentation(
    current_user: Dict = Depends(get_current_user),
    now: datetime = Depends(utc_now),
    session_service: SessionService = Depends(get_session_service),
):
    return await session_service.check_pending_documentation(current_user, now)
