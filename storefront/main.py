import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import models so they're registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS, SECURITY_HEADERS_ENABLED
from .database import Base, SessionLocal, engine
from .domain.consultations.router import router as consultations_router
from .domain.consultations.side_effects import SideEffectDispatcher
from .domain.payments.router import router as payments_router
from .email_service import send_consultation_confirmation
from .exceptions import StorefrontError
from .security_headers import SecurityHeadersMiddleware
from .services.google_calendar_service import ConsultationCalendar
from .services.razorpay_service import RazorpayGateway

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    app.state.payment_gateway = RazorpayGateway.from_config()
    calendar = ConsultationCalendar.from_config()
    app.state.dispatcher = SideEffectDispatcher(
        session_factory=SessionLocal,
        calendar=calendar,
        send_confirmation_email=send_consultation_confirmation,
    )
    logger.info(
        f"Payment gateway configured: {app.state.payment_gateway.is_configured()}, "
        f"Google Calendar connected: {calendar.is_connected()}"
    )

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Minimalist Consultations API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(StorefrontError)
async def storefront_exception_handler(request: Request, exc: StorefrontError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"⚠️ Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Invalid request",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(SecurityHeadersMiddleware, exclude_paths=["/health"])
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(payments_router)
app.include_router(consultations_router)


@app.get("/")
def root():
    return {"message": "Minimalist Consultations API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
