"""
FastAPI application factory and main app configuration.
"""

import logging
import uuid
from contextlib import asynccontextmanager

import certifi
from beanie import init_beanie
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient

from .adapters.db.mongo.models.scheduling_m import AppointmentMongo, PatientMongo
from .adapters.db.mongo.models.session_m import SessionFileMongo, SessionMongo
from .adapters.db.mongo.models.treatment_plan_m import (
    EvolutionReportMongo,
    PlanVersionMongo,
    TreatmentPlanMongo,
)
from .adapters.storage.azure_blob_service import get_azure_blob_service
from .api.errors import APIError, to_api_error
from .api.routers import health, patients, sessions, treatment_plans
from .api.schemas.common import ErrorResponse
from .core.config import get_settings
from .core.exceptions import ClinicRecordsException, StorageError
from .core.structured_logger import configure_logging
from .domain.errors import DomainError

DOCUMENT_MODELS = [
    PatientMongo,
    AppointmentMongo,
    SessionMongo,
    SessionFileMongo,
    TreatmentPlanMongo,
    PlanVersionMongo,
    EvolutionReportMongo,
]


def create_mongo_client(uri: str) -> AsyncIOMotorClient:
    """Motor client; TLS with the certifi CA bundle for Atlas SRV URIs."""
    if uri.startswith("mongodb+srv://"):
        return AsyncIOMotorClient(
            uri,
            serverSelectionTimeoutMS=15000,
            tls=True,
            tlsCAFile=certifi.where(),
            tz_aware=True,
        )
    return AsyncIOMotorClient(uri, serverSelectionTimeoutMS=15000, tz_aware=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.logging.level, settings.logging.format)
    logger = logging.getLogger(__name__)
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.app_env})")

    client = create_mongo_client(settings.database.uri)
    try:
        await init_beanie(database=client[settings.database.db_name], document_models=DOCUMENT_MODELS)
    except Exception as e:
        logger.error(f"Database connection failed: {e}", exc_info=True)
        client.close()
        raise
    logger.info("Database connection established")

    if not settings.azure_openai.is_configured:
        logger.warning("Azure OpenAI is not configured; summary, evolution and plan generation will fail")
    if settings.azure_blob.connection_string:
        try:
            await get_azure_blob_service().ensure_container_exists()
        except StorageError as e:
            logger.error(f"Azure Blob Storage initialization failed: {e}")
    else:
        logger.warning("Azure Blob Storage is not configured; session file endpoints will fail")

    yield

    client.close()
    logger.info(f"{settings.app_name} stopped")


def _error_response(request: Request, status_code: int, error: str, message: str, details: dict = None) -> JSONResponse:
    req_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            request_id=req_id or "",
            details=details or {},
        ).model_dump(mode="json"),
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Clinical record reconciliation: sessions, treatment plans and patient evolution",
        version=settings.app_version,
        debug=settings.debug,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    app.include_router(health.router)
    app.include_router(patients.router)
    app.include_router(sessions.router)
    app.include_router(treatment_plans.router)

    logger = logging.getLogger(__name__)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        api_error = to_api_error(exc)
        logger.info(f"{api_error.code} ({api_error.http_status}) {exc.message}")
        return _error_response(request, api_error.http_status, api_error.code, api_error.message, api_error.details)

    @app.exception_handler(ClinicRecordsException)
    async def infrastructure_error_handler(request: Request, exc: ClinicRecordsException):
        api_error = to_api_error(exc)
        logger.error(f"{api_error.code} ({api_error.http_status}) {exc.message}")
        return _error_response(request, api_error.http_status, api_error.code, api_error.message, api_error.details)

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        req_id = getattr(request.state, "request_id", None)
        logger.error(f"APIError: {exc.code} ({exc.http_status}) {exc.message} | request_id={req_id}")
        return _error_response(request, exc.http_status, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"ValidationError on {request.method} {request.url.path}: {exc.errors()}")
        return _error_response(
            request,
            422,
            "INVALID_INPUT",
            "Request validation failed",
            {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]},
        )

    @app.get("/", tags=["health"])
    async def root():
        """Root endpoint."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "status": "running",
        }

    return app


# Create app instance
app = create_app()
