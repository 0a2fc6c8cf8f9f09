from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from http import HTTPStatus
import time
import logging

from .api.v1.appointments import router as appointments_router
from .api.v1.doctors import router as doctors_router
from .api.v1.patient import router as patient_router
from .api.v1.slots import router as slots_router
from .api.v1.staff import router as staff_router
from .core.config import settings
from .core.database import SessionLocal, init_db
from .core.errors import ClinicConfigurationError
from .services.clinic_settings_service import load_clinic_config

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Clinic appointment booking and arrival queue",
    openapi_url="/api/v1/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Middleware setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Only add TrustedHostMiddleware in production, not in testing
if not settings.TESTING:
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["localhost", "127.0.0.1", "*.localhost", "testserver"]
    )

# Custom middleware for request logging and timing
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Log request; query strings and bodies are left out
    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Time: {process_time:.4f}s"
    )

    return response

# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc, ClinicConfigurationError):
        logger.error(f"Clinic configuration error: {exc.reason}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": HTTPStatus(exc.status_code).phrase,
            "message": exc.detail
        },
        headers=getattr(exc, "headers", None)
    )

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Submitted values are never echoed back: the body may carry a national ID
    details = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
        details.setdefault(field, []).append(error["msg"])

    first_field, first_messages = next(iter(details.items()), ("body", ["Invalid request"]))
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid input",
            "message": f"{first_field}: {first_messages[0]}",
            "details": details
        }
    )

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc.__class__.__name__}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "Something went wrong. Please try again later."
        }
    )

# Include routers
app.include_router(doctors_router, prefix="/api/v1")
app.include_router(slots_router, prefix="/api/v1")
app.include_router(patient_router, prefix="/api/v1")
app.include_router(appointments_router, prefix="/api/v1")
app.include_router(staff_router, prefix="/api/v1")

# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    logger.info("Starting Clinic Queue...")

    db_url = settings.get_database_url
    db_type = "PostgreSQL" if "postgresql" in db_url else "SQLite" if "sqlite" in db_url else "Unknown"
    logger.info(f"Using {db_type} database")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    # Refuse to serve bookings without clinic settings
    db = SessionLocal()
    try:
        clinic_config = load_clinic_config(db)
    except ClinicConfigurationError as e:
        logger.error(
            f"Clinic settings unusable ({e.reason}). "
            "Seed them with `python -m clinic_queue.seed`."
        )
        raise
    finally:
        db.close()

    logger.info(
        f"Clinic settings: {clinic_config.slot_duration_min} min slots, "
        f"{clinic_config.booking_window_days} day booking window, {clinic_config.timezone}"
    )
    if not settings.NRIC_HASH_SECRET:
        logger.warning("NRIC_HASH_SECRET is not set; profile updates will fail")

    logger.info("Application startup complete")

@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on application shutdown."""
    logger.info("Shutting down Clinic Queue...")

# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.VERSION
    }

# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Welcome to Clinic Queue API",
        "version": settings.VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health"
    }

# API Info endpoint
@app.get("/api/v1/info")
async def api_info():
    """API information endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "endpoints": {
            "doctors": "/api/v1/doctors",
            "slots": "/api/v1/slots",
            "patient": "/api/v1/patient/profile",
            "appointments": "/api/v1/appointments",
            "staff": "/api/v1/staff/appointments",
            "docs": "/docs",
            "openapi": "/api/v1/openapi.json"
        }
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "clinic_queue.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
