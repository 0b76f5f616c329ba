"""RecoveryFinder API — FastAPI application for nearby recovery resources.

Run:
    uvicorn recoveryfinder.api.main:app --reload
    # or
    recoveryfinder-api
"""

import logging
import uuid
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from recoveryfinder.api.routes import router
from recoveryfinder.config import settings
from recoveryfinder.core.errors import InternalError, RecoveryFinderError
from recoveryfinder.observability.logging import correlation_id, setup_logging
from recoveryfinder.observability.tracing import configure_tracing
from recoveryfinder.retrieval.geoapify import GeoapifyClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate the provider credential and open the shared HTTP client."""
    setup_logging(json_format=settings.log_json, level=settings.log_level)
    configure_tracing(
        settings.tracing_enabled,
        settings.mlflow_tracking_uri,
        settings.mlflow_experiment_name,
    )

    if settings.has_provider_credentials:
        app.state.provider = GeoapifyClient.from_settings(
            settings,
            http=httpx.AsyncClient(limits=httpx.Limits(max_connections=50, max_keepalive_connections=20)),
        )
        logger.info("Geoapify client ready: %s", settings.geoapify_base_url)
    else:
        app.state.provider = None
        logger.error("GEOAPIFY_API_KEY not set — searches will fail until it is configured")

    logger.info("RecoveryFinder API ready")
    yield
    logger.info("Shutting down")
    if app.state.provider is not None:
        await app.state.provider.aclose()


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Set correlation ID from X-Request-ID header or generate a new one."""

    async def dispatch(self, request: Request, call_next):
        cid = request.headers.get("x-request-id", str(uuid.uuid4()))
        token = correlation_id.set(cid)
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = cid
            return response
        finally:
            correlation_id.reset(token)


app = FastAPI(
    title="RecoveryFinder",
    description="Find treatment, wellness, fitness and career-support resources near a location.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.exception_handler(RecoveryFinderError)
async def recoveryfinder_error_handler(request: Request, exc: RecoveryFinderError):
    """Translate pipeline errors into {"error": message} with the mapped status."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.detail or exc.message)
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Request validation failures are client errors (400), reported as one message."""
    return JSONResponse(status_code=400, content={"error": _first_validation_message(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Anything that escapes a route still gets the JSON error body."""
    logger.exception("Unhandled %s on %s", type(exc).__name__, request.url.path)
    return JSONResponse(status_code=500, content={"error": InternalError.default_message})


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    ctx_error = (first.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    if first.get("type") == "json_invalid":
        return "Request body must be valid JSON"
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{field}: {first.get('msg')}" if field else str(first.get("msg"))


@app.get("/health")
async def health():
    """Health check — reports whether the provider credential is configured."""
    checks = {
        "geoapify": "configured" if getattr(app.state, "provider", None) is not None else "missing_api_key",
    }
    status = "healthy" if checks["geoapify"] == "configured" else "degraded"
    return {"status": status, "checks": checks}


def run():
    """Entry point for recoveryfinder-api console script."""
    uvicorn.run("recoveryfinder.api.main:app", host="0.0.0.0", port=8000, reload=True)
