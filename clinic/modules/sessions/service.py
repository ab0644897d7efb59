from fastapi import HTTPException
from typing import Dict, List, Optional
from datetime import datetime, timedelta
import logging

from clinic.core.config import DOCUMENTATION_LOOKBACK_DAYS, DOCUMENTATION_REMINDER_INTERVAL_HOURS
from clinic.core.errors import InvalidInput
from clinic.core.timeutils import format_local
from clinic.modules.auth.utility import ADMIN, PARENT, THERAPIST, require_role
from clinic.modules.sessions.lifecycle import (
    SessionTab,
    allowed_actions,
    classify_session,
    filter_sessions,
    phase_of,
)
from clinic.modules.sessions.models import ACTIVE_STATUSES, Notification, TherapySession
from clinic.modules.sessions.repository import SessionRepository

logger = logging.getLogger(__name__)

DOCUMENTATION_REMINDER_TITLE = "Session Documentation Reminder"


def ensure_session_access(session: TherapySession, current_user: Dict):
    role = current_user.get("role")
    if role == ADMIN:
        return
    if role == THERAPIST and session.therapist_id == current_user.get("therapist_id"):
        return
    if role == PARENT and current_user.get("id") in session.guardian_user_ids:
        return
    # Unauthorized and missing look the same to the caller
    raise HTTPException(status_code=404, detail="Session not found or unauthorized")


def describe_session(session: TherapySession, now: datetime) -> Dict:
    """Session plus the timing, phase and actions the dashboards render from."""
    phase = phase_of(session, now)
    timing = classify_session(session.scheduled_at, session.duration_minutes, session.status, now)
    return {
        **session.model_dump(mode="json"),
        "timing": timing.model_dump(),
        "phase": phase.value,
        "actions": allowed_actions(phase).model_dump(),
    }


class SessionService:
    def __init__(self,
                 session_repo: SessionRepository
                 ):
        self.session_repo = session_repo

    async def load_session(self, session_id: str, current_user: Dict) -> TherapySession:
        doc = await self.session_repo.get_session_by_id(session_id)
        if not doc:
            raise HTTPException(status_code=404, detail="Session not found or unauthorized")
        session = TherapySession.from_document(doc)
        ensure_session_access(session, current_user)
        return session

    async def _sessions_for(self, current_user: Dict) -> List[TherapySession]:
        role = current_user.get("role")
        if role == THERAPIST:
            docs = await self.session_repo.find_sessions_for_therapist(current_user.get("therapist_id"))
        elif role == PARENT:
            docs = await self.session_repo.find_sessions_for_guardian(current_user["id"])
        elif role == ADMIN:
            docs = await self.session_repo.find_sessions({})
        else:
            raise HTTPException(status_code=403, detail="Access denied")
        return [TherapySession.from_document(doc) for doc in docs]

    async def list_sessions(self, current_user: Dict, tab: Optional[SessionTab], now: datetime) -> Dict:
        try:
            tab = SessionTab(tab or SessionTab.all)
        except ValueError:
            raise InvalidInput(f"Unknown tab: {tab!r}")
        sessions = await self._sessions_for(current_user)
        selected = filter_sessions(sessions, tab, now)
        return {
            "tab": tab.value,
            "count": len(selected),
            "sessions": [describe_session(s, now) for s in selected],
        }

    async def get_session(self, session_id: str, current_user: Dict, now: datetime) -> Dict:
        session = await self.load_session(session_id, current_user)
        return describe_session(session, now)

    async def check_pending_documentation(self, current_user: Dict, now: datetime) -> Dict:
        """
        Remind a therapist about recent sessions whose time has passed but
        whose outcome was never recorded.

        Only sessions that started within the lookback window are considered,
        and a session is reminded about at most once per reminder interval.
        """
        require_role(current_user, [THERAPIST])

        since = now - timedelta(days=DOCUMENTATION_LOOKBACK_DAYS)
        docs = await self.session_repo.find_sessions_with_status(
            therapist_id=current_user.get("therapist_id"),
            statuses=[s.value for s in ACTIVE_STATUSES],
        )
        overdue = [
            s for s in (TherapySession.from_document(doc) for doc in docs)
            if since <= s.scheduled_at < now
            and classify_session(s.scheduled_at, s.duration_minutes, s.status, now).needs_documentation
        ]

        recent = await self.session_repo.find_recent_notifications(
            receiver_id=current_user["id"],
            title=DOCUMENTATION_REMINDER_TITLE,
            since=now - timedelta(hours=DOCUMENTATION_REMINDER_INTERVAL_HOURS),
        )
        already_notified = {n.get("session_id") for n in recent}

        sent = 0
        for session in overdue:
            if session.id in already_notified:
                continue
            await self.session_repo.add_notification(Notification(
                sender_id=current_user["id"],
                receiver_id=current_user["id"],
                type="REMINDER",
                title=DOCUMENTATION_REMINDER_TITLE,
                message=f"Please complete documentation for your session on {format_local(session.scheduled_at)}.",
                session_id=session.id,
                created_at=now,
            ))
            sent += 1

        logger.info(f"Documentation check for therapist {current_user.get('therapist_id')}: {len(overdue)} pending, {sent} reminders sent")

        return {
            "message": "Documentation check completed",
            "sessions_needing_documentation": len(overdue),
            "notifications_sent": sent,
            "sessions": [
                {
                    "id": s.id,
                    "patient_id": s.patient_id,
                    "scheduled_at": s.scheduled_at.isoformat(),
                    "duration_minutes": s.duration_minutes,
                }
                for s in overdue
            ],
        }
