"""
Session lifecycle classification.

Everything here is a pure function of (scheduled_at, duration, status, now).
``now`` is always passed in; nothing reads the clock.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from clinic.core.errors import InvalidInput
from clinic.core.timeutils import TimestampLike, normalize_timestamp
from clinic.modules.sessions.models import (
    ACTIVE_STATUSES,
    SessionStatus,
    TherapySession,
    parse_status,
)


class SessionPhase(str, Enum):
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    NEEDS_DOCUMENTATION = "NEEDS_DOCUMENTATION"
    DOCUMENTED = "DOCUMENTED"
    TERMINAL = "TERMINAL"


class SessionTab(str, Enum):
    all = "all"
    upcoming = "upcoming"
    needs_documentation = "needs_documentation"
    past = "past"
    cancelled = "cancelled"


class SessionTiming(BaseModel):
    model_config = ConfigDict(frozen=True)
    is_past: bool
    is_ongoing: bool
    is_completed_by_time: bool
    needs_documentation: bool


class SessionActions(BaseModel):
    model_config = ConfigDict(frozen=True)
    can_reschedule: bool = False
    can_cancel: bool = False
    can_document: bool = False
    can_join: bool = False
    can_view_details: bool = False


_ACTIONS = {
    SessionPhase.UPCOMING: SessionActions(can_reschedule=True, can_cancel=True),
    SessionPhase.ONGOING: SessionActions(can_document=True, can_join=True),
    SessionPhase.NEEDS_DOCUMENTATION: SessionActions(can_document=True),
    SessionPhase.TERMINAL: SessionActions(),
    SessionPhase.DOCUMENTED: SessionActions(can_view_details=True),
}

if set(_ACTIONS) != set(SessionPhase):
    raise RuntimeError("Every SessionPhase needs an entry in the actions table")


def _check_duration(duration_minutes) -> int:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidInput(f"duration_minutes must be an integer, got {duration_minutes!r}")
    if duration_minutes <= 0:
        raise InvalidInput(f"duration_minutes must be positive, got {duration_minutes}")
    return duration_minutes


def classify_session(
    scheduled_at: TimestampLike,
    duration_minutes: int,
    status,
    now: datetime,
) -> SessionTiming:
    start = normalize_timestamp(scheduled_at)
    current = normalize_timestamp(now)
    end = start + timedelta(minutes=_check_duration(duration_minutes))
    status = parse_status(status)

    # At current == end the session is still ongoing: completion needs strictly later
    is_ongoing = start <= current <= end
    is_completed_by_time = current > end

    return SessionTiming(
        is_past=start <= current,
        is_ongoing=is_ongoing,
        is_completed_by_time=is_completed_by_time,
        needs_documentation=is_completed_by_time and status in ACTIVE_STATUSES,
    )


def session_phase(
    scheduled_at: TimestampLike,
    duration_minutes: int,
    status,
    now: datetime,
) -> SessionPhase:
    timing = classify_session(scheduled_at, duration_minutes, status, now)
    status = parse_status(status)

    if status == SessionStatus.COMPLETED:
        return SessionPhase.DOCUMENTED
    if status not in ACTIVE_STATUSES:
        return SessionPhase.TERMINAL
    if timing.is_ongoing:
        return SessionPhase.ONGOING
    if timing.needs_documentation:
        return SessionPhase.NEEDS_DOCUMENTATION
    return SessionPhase.UPCOMING


def allowed_actions(phase: SessionPhase) -> SessionActions:
    return _ACTIONS[SessionPhase(phase)]


def phase_of(session: TherapySession, now: datetime) -> SessionPhase:
    return session_phase(session.scheduled_at, session.duration_minutes, session.status, now)


def _matches_tab(session: TherapySession, phase: SessionPhase, tab: SessionTab) -> bool:
    if tab == SessionTab.all:
        return True
    if tab == SessionTab.upcoming:
        return phase in (SessionPhase.UPCOMING, SessionPhase.ONGOING)
    if tab == SessionTab.needs_documentation:
        return phase == SessionPhase.NEEDS_DOCUMENTATION
    if tab == SessionTab.past:
        return phase in (SessionPhase.DOCUMENTED, SessionPhase.TERMINAL, SessionPhase.NEEDS_DOCUMENTATION)
    if tab == SessionTab.cancelled:
        return session.status in (SessionStatus.CANCELLED, SessionStatus.DECLINED, SessionStatus.NO_SHOW)
    raise InvalidInput(f"Unknown tab: {tab}")


def filter_sessions(
    sessions: Iterable[TherapySession],
    tab: Optional[SessionTab],
    now: datetime,
) -> List[TherapySession]:
    """Sessions for a list tab; upcoming oldest-first, every other tab newest-first."""
    try:
        tab = SessionTab(tab or SessionTab.all)
    except ValueError:
        raise InvalidInput(f"Unknown tab: {tab!r}")
    selected = [s for s in sessions if _matches_tab(s, phase_of(s, now), tab)]
    return sorted(
        selected,
        key=lambda s: s.scheduled_at,
        reverse=tab != SessionTab.upcoming,
    )
