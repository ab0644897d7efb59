from typing import Optional

from clinic.core.database import mongodb


class TherapistRepository:
    async def get_therapist_by_id(self, therapist_id: str) -> Optional[dict]:
        return await mongodb.db.therapists.find_one({"id": therapist_id}, {"_id": 0})

    async def get_user_by_id(self, user_id: str) -> Optional[dict]:
        return await mongodb.db.users.find_one({"id": user_id}, {"_id": 0, "hashed_password": 0})
