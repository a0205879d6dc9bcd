"""
UniShare

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from unishare.config import get_settings
from unishare.database import init_db, close_db
from unishare.api.v1 import router as api_v1_router
from unishare.api.middleware.rate_limit import RateLimitMiddleware
from unishare.api.middleware.request_id import RequestIdMiddleware
from unishare.kernel.slugs import InvalidInputError, SlugExhaustedError
from unishare.schemas.common import HealthResponse
from unishare.logging_config import configure_logging, get_logger

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Configure logging, create tables, and dispose of the engine on shutdown."""
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    UniShare - study resources shared between university students.
    
    ## Features
    
    - **Resources**: Publish links to notes and papers, tagged by branch and semester
    - **Discovery**: Browse, filter and search resources; rate and comment on them
    - **Profiles**: Public pages listing each contributor's resources
    - **Moderation**: Administrators block resources, manage users and view statistics
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# add_middleware stacks innermost-first: the last one added is outermost.
# CORS goes last so every response, 429s included, carries its headers.
_cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
]
if not (settings.debug or settings.environment == "development"):
    _cors_origins = [settings.public_base_url.rstrip("/")] + _cors_origins

app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_headers(request: Request) -> dict:
    """CORS and request-id headers for error responses built outside the middleware."""
    origin = request.headers.get("origin") or ""
    headers = {
        "Access-Control-Allow-Origin": origin if origin in _cors_origins else _cors_origins[0],
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "*",
        "Access-Control-Allow-Headers": "*",
    }
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
    return headers


def _error_response(
    request: Request,
    status_code: int,
    content: dict,
    extra_headers: Optional[dict] = None,
) -> JSONResponse:
    headers = _error_headers(request)
    if extra_headers:
        headers.update(extra_headers)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    content = {"detail": exc.detail}
    req_id = getattr(request.state, "request_id", None)
    if req_id and exc.status_code >= 500:
        content["request_id"] = req_id
    return _error_response(request, exc.status_code, content, exc.headers)


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return _error_response(request, status.HTTP_400_BAD_REQUEST, {"detail": str(exc)})


@app.exception_handler(SlugExhaustedError)
async def slug_exhausted_handler(request: Request, exc: SlugExhaustedError):
    logger.error(
        "Slug allocation exhausted",
        extra={"attempts": exc.attempts, "base": exc.base, "path": request.url.path},
    )
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        {"detail": "Could not allocate a unique identifier, please try again"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
):
    """Flatten validation errors into one entry per field."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"detail": "Validation error", "errors": errors},
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
):
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {
            "detail": str(exc),
            "type": type(exc).__name__,
            "request_id": req_id,
        }
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, content)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    return HealthResponse(status="ok", version=settings.version, database="connected")


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": settings.api_v1_prefix,
        },
    }


app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "unishare.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
