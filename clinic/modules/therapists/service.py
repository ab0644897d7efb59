from fastapi import HTTPException
from decimal import Decimal

from clinic.modules.refunds.policy import to_amount
from clinic.modules.therapists.repository import TherapistRepository


class TherapistService:
    def __init__(self,
                 therapist_repo: TherapistRepository
                 ):
        self.therapist_repo = therapist_repo

    async def get_therapist(self, therapist_id: str) -> dict:
        therapist = await self.therapist_repo.get_therapist_by_id(therapist_id)
        if not therapist:
            raise HTTPException(status_code=404, detail="Therapist not found")
        return therapist

    async def get_current_rate(self, therapist_id: str) -> Decimal:
        therapist = await self.get_therapist(therapist_id)
        return to_amount(therapist.get("session_rate"), "session_rate")

    async def get_rate(self, therapist_id: str) -> dict:
        rate = await self.get_current_rate(therapist_id)
        return {"therapist_id": therapist_id, "session_rate": str(rate)}
