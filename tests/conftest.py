"""
Shared test fixtures and configuration for entire test suite.

Provides: fixed clock, session documents, users, mocked repositories and a
BookingService wired to them.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from clinic.modules.booking.service import BookingService
from clinic.modules.refunds.models import RefundPolicy, RefundTier
from clinic.modules.sessions.service import SessionService

NOW = datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)


def make_session_doc(**overrides) -> dict:
    doc = {
        "id": "s1",
        "therapist_id": "t1",
        "therapist_user_id": "tu1",
        "patient_id": "p1",
        "patient_name": "Amal Perera",
        "guardian_user_ids": ["parent-1"],
        "scheduled_at": NOW + timedelta(hours=30),
        "duration_minutes": 60,
        "status": "SCHEDULED",
        "rate_at_booking": Decimal("3000"),
        "version": 3,
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def policy() -> RefundPolicy:
    return RefundPolicy(
        version="test-1",
        tiers=[
            RefundTier(min_hours_before=24, percentage=100),
            RefundTier(min_hours_before=0, percentage=60),
        ],
    )


@pytest.fixture
def parent_user() -> dict:
    return {"id": "parent-1", "role": "parent", "name": "Nimali Perera"}


@pytest.fixture
def therapist_user() -> dict:
    return {"id": "tu1", "role": "therapist", "therapist_id": "t1", "email": "therapist@clinic.lk"}


@pytest.fixture
def make_session():
    """Factory for session documents relative to the fixed clock."""
    return make_session_doc


@pytest.fixture
def session_doc() -> dict:
    return make_session_doc()


@pytest.fixture
def mock_session_repo(session_doc):
    repo = AsyncMock()
    repo.get_session_by_id = AsyncMock(return_value=session_doc)
    repo.update_session_if_version = AsyncMock(return_value=1)
    repo.add_notification = AsyncMock()
    repo.find_recent_notifications = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_therapist_repo():
    repo = AsyncMock()
    repo.get_therapist_by_id = AsyncMock(return_value={"id": "t1", "session_rate": 3000})
    repo.get_user_by_id = AsyncMock(return_value={"id": "tu1", "email": "therapist@clinic.lk"})
    return repo


@pytest.fixture
def mock_booking_repo():
    repo = AsyncMock()
    repo.find_cancellation_by_key = AsyncMock(return_value=None)
    repo.add_cancellation = AsyncMock()
    repo.add_reschedule = AsyncMock()
    repo.find_reschedule_history = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_email_service():
    return MagicMock()


@pytest.fixture
def booking_service(mock_session_repo, mock_therapist_repo, mock_booking_repo, mock_email_service, policy):
    return BookingService(
        session_repo=mock_session_repo,
        therapist_repo=mock_therapist_repo,
        booking_repo=mock_booking_repo,
        email_service=mock_email_service,
        policy=policy,
    )


@pytest.fixture
def session_service(mock_session_repo):
    return SessionService(mock_session_repo)
