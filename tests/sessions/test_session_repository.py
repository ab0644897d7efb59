from unittest.mock import AsyncMock, MagicMock

import pytest

from clinic.modules.sessions import repository as session_repository
from clinic.modules.sessions.repository import SessionRepository


@pytest.fixture
def sessions_collection(monkeypatch):
    collection = MagicMock()
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor

    db = MagicMock()
    db.therapy_sessions = collection
    monkeypatch.setattr(session_repository.mongodb, "db", db)
    return collection


@pytest.mark.asyncio
async def test_version_zero_also_matches_unversioned_documents(sessions_collection):
    matched = await SessionRepository().update_session_if_version("s1", 0, {"status": "CANCELLED"})

    query, update = sessions_collection.update_one.call_args.args
    assert matched == 1
    assert query == {"id": "s1", "$or": [{"version": 0}, {"version": {"$exists": False}}]}
    assert update == {"$set": {"status": "CANCELLED"}, "$inc": {"version": 1}}


@pytest.mark.asyncio
async def test_later_versions_match_exactly(sessions_collection):
    await SessionRepository().update_session_if_version("s1", 4, {"status": "CANCELLED"})

    query, _ = sessions_collection.update_one.call_args.args
    assert query == {"id": "s1", "version": 4}


@pytest.mark.asyncio
async def test_status_lookup_leaves_time_filtering_to_the_caller(sessions_collection):
    await SessionRepository().find_sessions_with_status("t1", ["SCHEDULED", "CONFIRMED"])

    query = sessions_collection.find.call_args.args[0]
    assert query == {"therapist_id": "t1", "status": {"$in": ["SCHEDULED", "CONFIRMED"]}}
