from fastapi import Depends
from clinic.modules.therapists.repository import TherapistRepository
from clinic.modules.therapists.service import TherapistService

def get_therapist_service(
    therapist_repo: TherapistRepository = Depends(),
) -> TherapistService:
    return TherapistService(therapist_repo)
