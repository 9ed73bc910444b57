import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import ConcurrentUpdateError, ErrorKind, TaskError, TaskNotFoundError
from .logging_setup import setup_logging
from .routers import tasks as tasks_router
from .settings import get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "Read, create, edit and close technician tasks.",
    },
]

_settings = get_settings()
setup_logging(level=_settings.log_level, log_file=_settings.log_file)

app = FastAPI(
    title="Task Accounter",
    description="Tracks technician work tasks with role-based access and encrypted summaries.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATUS_BY_KIND = {
    ErrorKind.TECHNICIAN_ROLE_REQUIRED: 403,
    ErrorKind.TASK_NOT_OWNED_BY_USER: 403,
    ErrorKind.TASK_CLOSED: 409,
    ErrorKind.INVALID_TASK_DATA: 422,
}


def status_for(exc: TaskError) -> int:
    """Map an error kind (and, for storage kinds, its cause) to an HTTP status."""
    if exc.kind in _STATUS_BY_KIND:
        return _STATUS_BY_KIND[exc.kind]
    if exc.kind is ErrorKind.FIND_TASK_BY_ID and isinstance(exc.cause, TaskNotFoundError):
        return 404
    if exc.kind is ErrorKind.SAVE_TASK and isinstance(exc.cause, ConcurrentUpdateError):
        return 409
    return 500


@app.exception_handler(TaskError)
async def task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    """
    Return a stable JSON body for use case failures.

    Response format:
        {
            "error": "TASK_CLOSED",
            "message": "task is closed"
        }
    """
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=code, content=exc.to_dict())


# Global exception handlers for consistent JSON on validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": exc.errors(),
        },
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# PUBLIC_INTERFACE
@app.get("/ping", summary="Ping", tags=["health"])
def ping():
    """Liveness check."""
    return {"message": "pong"}


# Include routers
app.include_router(tasks_router.router)
