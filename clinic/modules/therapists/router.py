from fastapi import APIRouter, Depends
from typing import Dict
from clinic.modules.auth.utility import get_current_user
from clinic.modules.therapists.dependencies import get_therapist_service
from clinic.modules.therapists.service import TherapistService

therapist_router = APIRouter(prefix="/therapists", tags=["Therapists"])

@therapist_router.get("/{therapist_id}/rate")
async def get_therapist_rate(
    therapist_id: str,
    current_user: Dict = Depends(get_current_user),
    therapist_service: TherapistService = Depends(get_therapist_service),
):
    return await therapist_service.get_rate(therapist_id)
