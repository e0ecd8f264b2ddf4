"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import settings
from .core.exceptions import MissingInput, MultipartError
from .middleware.rate_limit import limiter
from .routers import multipart
from .utils.logger import configure_logging, get_logger

# Configure logging
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(
        "Starting application",
        version=settings.app_version,
        storage_provider=settings.storage_provider,
        bucket=settings.s3_bucket_name,
    )
    yield
    # Shutdown
    logger.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Relay for resumable multipart uploads to S3-compatible object stores",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(exc: MultipartError) -> JSONResponse:
    """Serialize a classified failure."""
    return JSONResponse(status_code=exc.status_code, content={"err": exc.to_dict()})


# Exception handlers
@app.exception_handler(MultipartError)
async def multipart_exception_handler(request: Request, exc: MultipartError):
    """Classified multipart failures."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Multipart operation failed",
        kind=exc.kind,
        error=exc.message,
        path=request.url.path,
    )
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Schema failures are reported as missing input."""
    return error_response(
        MissingInput("Malformed request", details={"errors": jsonable_errors(exc)})
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


# Include routers
app.include_router(multipart.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "multipart_relay.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
