from datetime import datetime
from typing import Any, Dict, List, Optional

from clinic.core.database import mongodb
from clinic.modules.sessions.models import Notification


class SessionRepository:
    """Read and conditional-write access to therapy sessions."""

    async def get_session_by_id(self, session_id: str) -> Optional[dict]:
        return await mongodb.db.therapy_sessions.find_one({"id": session_id}, {"_id": 0})

    async def find_sessions(self, query: Dict[str, Any], limit: int = 500) -> List[dict]:
        return await mongodb.db.therapy_sessions.find(query, {"_id": 0}).sort("scheduled_at", -1).to_list(limit)

    async def find_sessions_for_therapist(self, therapist_id: str) -> List[dict]:
        return await self.find_sessions({"therapist_id": therapist_id})

    async def find_sessions_for_guardian(self, user_id: str) -> List[dict]:
        return await self.find_sessions({"guardian_user_ids": user_id})

    async def find_sessions_with_status(self, therapist_id: str, statuses: List[str]) -> List[dict]:
        # scheduled_at may be stored as a date or an ISO string, so time windows are applied by the caller
        return await self.find_sessions({
            "therapist_id": therapist_id,
            "status": {"$in": statuses},
        })

    async def update_session_if_version(self, session_id: str, expected_version: int, update_data: Dict[str, Any]) -> int:
        """Apply the update only if nobody wrote since ``expected_version``; returns matched count."""
        query = {"id": session_id, "version": expected_version}
        if expected_version == 0:
            # Documents written before versioning have no version field
            query = {"id": session_id, "$or": [{"version": 0}, {"version": {"$exists": False}}]}
        result = await mongodb.db.therapy_sessions.update_one(
            query,
            {
                "$set": update_data,
                "$inc": {"version": 1},
            })
        return result.matched_count

    async def add_notification(self, notification: Notification):
        return await mongodb.db.notifications.insert_one(notification.model_dump())

    async def find_recent_notifications(self, receiver_id: str, title: str, since: datetime) -> List[dict]:
        return await mongodb.db.notifications.find({
            "receiver_id": receiver_id,
            "title": title,
            "created_at": {"$gte": since},
        }, {"_id": 0}).to_list(1000)
