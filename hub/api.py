"""FastAPI app with health, candidate upsert endpoint, and error handling.

Validation failures come back as a field → messages map; persistence
failures come back as a generic 500 with no internal detail.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .db import get_session, init_models
from .logging_config import setup_logging
from .models import CandidateRecord
from .pipelines.upsert import CandidateUpserter, ValidationFailedError, get_upserter
from .store import CandidateStore, StorePersistError

logger = logging.getLogger(__name__)


# Pydantic request/response models
class CandidateFields(BaseModel):
    """Candidate fields with their JSON (camelCase) names.

    Every field is an optional string here; required/format rules live in
    ``hub.validation`` so all violations can be reported together.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    phone_number: str | None = Field(default=None, alias="phoneNumber")
    email: str | None = Field(default=None, alias="email")
    best_time_to_call: str | None = Field(
        default=None,
        alias="bestTimeToCall",
        description="Best time to call, formatted as 'HH:mm-HH:mm'",
    )
    linkedin_profile: str | None = Field(default=None, alias="linkedInProfile")
    github_profile: str | None = Field(default=None, alias="gitHubProfile")
    comments: str | None = Field(default=None, alias="comments")


class CandidateRequest(CandidateFields):
    """Upsert request body. An ``id`` in the body is ignored."""

    def to_record(self) -> CandidateRecord:
        return CandidateRecord(**self.model_dump(by_alias=False))


class CandidateResponse(CandidateFields):
    """Persisted candidate."""
    id: int

    @classmethod
    def from_record(cls, record: CandidateRecord) -> CandidateResponse:
        return cls(
            id=record.id,
            first_name=record.first_name,
            last_name=record.last_name,
            phone_number=record.phone_number,
            email=record.email,
            best_time_to_call=record.best_time_to_call,
            linkedin_profile=record.linkedin_profile,
            github_profile=record.github_profile,
            comments=record.comments,
        )


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class ValidationErrorResponse(ErrorResponse):
    """Validation error response, keyed by JSON field name."""
    errors: dict[str, list[str]] = Field(default_factory=dict)


def _json_name(field: str) -> str:
    info = CandidateFields.model_fields.get(field)
    return info.alias if info is not None and info.alias else field


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    # Startup
    setup_logging()
    logger.info(f"{settings.app_name} v{settings.version} starting up")
    if settings.db.create_tables:
        await init_models()

    yield

    # Shutdown
    logger.info("Application shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Insert-or-update job candidates keyed by email",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(ValidationFailedError)
async def validation_error_handler(request, exc: ValidationFailedError):
    """Report every broken field rule at once."""
    errors: dict[str, list[str]] = {}
    for field, messages in exc.by_field().items():
        errors.setdefault(_json_name(field), []).extend(messages)
    logger.info(f"Rejected candidate payload: {sorted(errors)}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ValidationErrorResponse(
            error="validation_error",
            detail="One or more fields are invalid",
            errors=errors,
        ).model_dump(),
    )


@app.exception_handler(StorePersistError)
async def store_error_handler(request, exc: StorePersistError):
    """Handle database failures without leaking their details."""
    logger.error(
        f"Persistence error during {exc.operation}: {exc}",
        exc_info=exc,
        extra={"operation": exc.operation},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="persistence_error",
            detail="Could not save candidate",
        ).model_dump(),
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        version=settings.version,
    )


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.version,
        "endpoints": {
            "health": "/health",
            "upsert_candidate": f"{settings.api_prefix}/candidates",
            "docs": "/docs",
        },
    }


router = APIRouter(prefix=settings.api_prefix)


@router.post(
    "/candidates",
    response_model=CandidateResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ValidationErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def upsert_candidate(
    request: CandidateRequest,
    session: AsyncSession = Depends(get_session),
    upserter: CandidateUpserter = Depends(get_upserter),
) -> CandidateResponse:
    """Create a candidate, or update the one that already has this email.

    The email identifies the candidate; all other fields are replaced by the
    values in the request.
    """
    record = await upserter.upsert(CandidateStore(session), request.to_record())
    return CandidateResponse.from_record(record)


app.include_router(router)
