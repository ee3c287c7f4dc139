# Main application entry point
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api import auth_router, health_router, locks_router, notes_router
from .config import get_settings
from .core.errors import (
    LeaseLostError,
    LockConflictError,
    LockRejectedError,
    NoteGuardError,
    NoteNotFound,
    PermissionDenied,
)
from .core.logging import LoggingMiddleware, get_logger, setup_logging
from .core.redis_client import get_redis_client
from .core.schemas.common import ErrorResponse
from .database import create_tables, dispose_engine

# before anything logs
setup_logging()
logger = get_logger("main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting NoteGuard",
        extra={"version": __version__, "environment": settings.environment, "debug": settings.debug},
    )

    revocations = get_redis_client()
    try:
        await revocations.connect()
    except Exception as e:
        # logout answers 503 until Redis is back
        logger.warning(f"Redis unavailable, token revocation disabled: {e}")

    if os.getenv("NOTEGUARD_SKIP_LIFESPAN_DB") == "1":
        logger.info("NOTEGUARD_SKIP_LIFESPAN_DB=1, not touching the database schema")
    else:
        await create_tables()

    yield

    logger.info("Shutting down NoteGuard")
    await revocations.disconnect()
    await dispose_engine()


app = FastAPI(
    title="NoteGuard",
    description="Access control and edit leases for shared notes",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api")
app.include_router(notes_router, prefix="/api")
app.include_router(locks_router, prefix="/api")
app.include_router(health_router, prefix="/api")


_STATUS_BY_ERROR = (
    (NoteNotFound, status.HTTP_404_NOT_FOUND),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (LockConflictError, status.HTTP_409_CONFLICT),
    (LockRejectedError, status.HTTP_409_CONFLICT),
    (LeaseLostError, status.HTTP_409_CONFLICT),
)


@app.exception_handler(NoteGuardError)
async def noteguard_error_handler(request: Request, exc: NoteGuardError):
    status_code = next(
        (code for error_cls, code in _STATUS_BY_ERROR if isinstance(exc, error_cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    body = ErrorResponse(error=exc.error_type, message=exc.message, details=exc.to_details())
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.get("/")
async def root():
    return {"message": "NoteGuard API"}


@app.get("/api/")
async def api_root():
    return {
        "message": "NoteGuard API",
        "version": __version__,
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "endpoints": {
            "auth": "/api/auth/",
            "notes": "/api/notes/",
            "locks": "/api/notes/{note_id}/lock",
            "health": "/api/health/"
        }
    }


# Basic unprefixed health endpoint for load balancers
@app.get("/health")
async def basic_health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("noteguard.main:app", host=settings.host, port=settings.port, reload=settings.reload)
