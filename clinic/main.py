import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from clinic.core.database import connect_to_mongo, close_mongo_connection
from clinic.core.email_service.email_instance import email_service
from clinic.core.errors import ClinicError
from clinic.modules.booking.router import booking_router, history_router, policy_router
from clinic.modules.sessions.router import session_router, therapist_session_router
from clinic.modules.therapists.router import therapist_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_to_mongo()
    if email_service.client:
        logger.info("Email service initialized (SendGrid)")
    else:
        logger.info("Email service running in MOCK mode")
    yield
    # Shutdown
    await close_mongo_connection()


app = FastAPI(title="Clinic Sessions API", lifespan=lifespan)


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError):
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.code} - {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.get("/")
async def root():
    return {"message": "Clinic Sessions API"}


app.include_router(session_router, prefix="/api")
app.include_router(therapist_session_router, prefix="/api")
app.include_router(therapist_router, prefix="/api")
app.include_router(booking_router, prefix="/api")
app.include_router(history_router, prefix="/api")
app.include_router(policy_router, prefix="/api")
