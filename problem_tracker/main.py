"""
problem_tracker entry point.

Serves the tracker REST API under /api/v1. The storage backend is chosen by
``settings.storage_backend`` at startup.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from problem_tracker.config import settings
from problem_tracker.api.v1.router import api_router
from problem_tracker.api.v1.helpers.responses import error_body
from problem_tracker.core.errors import field_errors_from_pydantic
from problem_tracker.core.tracker_store import TrackerStore
from problem_tracker.db.base import KeyValueBackend
from problem_tracker.db.memory import InMemoryBackend
from problem_tracker.db.valkey import ValkeyBackend
from logging import getLogger, Filter
import logging

logger = getLogger(__name__)
logger.setLevel(logging.INFO)


class HealthCheckFilter(Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.getMessage().find("/health") == -1


logging.getLogger("uvicorn.access").addFilter(HealthCheckFilter())


app = FastAPI(title=settings.app_name, debug=settings.debug, redirect_slashes=False)


def build_backend() -> KeyValueBackend:
    if settings.storage_backend == "memory":
        logger.warning("Using in-memory storage; data is lost on restart")
        return InMemoryBackend()
    return ValkeyBackend.from_settings(settings)


@app.on_event("startup")
async def startup_event():
    logger.info("--- Starting problem_tracker ---")
    app.state.tracker_store = TrackerStore(build_backend())
    logger.info(f"--- Storage backend: {settings.storage_backend} ---")


@app.on_event("shutdown")
async def shutdown_event():
    try:
        logger.info("--- Server shutting down! ---")
        store = getattr(app.state, "tracker_store", None)
        if store is not None:
            await store.backend.close()
        logger.info("--- Storage connections closed. ---")
    except Exception as e:
        logger.error(f"Warning: Error during shutdown: {e}")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = field_errors_from_pydantic(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": error_body("Validation failed", errors)},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"message": "Welcome to Problem Tracker"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
