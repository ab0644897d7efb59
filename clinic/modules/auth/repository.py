from clinic.core.database import mongodb


class AuthRepository:
    async def find_user_by_id(self, id: str) -> dict:
        return await mongodb.db.users.find_one({"id": id}, {"_id": 0, "hashed_password": 0})
