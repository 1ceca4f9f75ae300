import logging
from typing import Mapping, Optional

import sentry_sdk
from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration

from .config import (
    ALLOW_CREDENTIALS,
    ALLOWED_ORIGINS,
    API_PREFIX,
    SENTRY_DSN,
    SENTRY_ENVIRONMENT,
    SENTRY_PROFILES_SAMPLE_RATE,
    SENTRY_TRACES_SAMPLE_RATE,
)
from .exceptions import DomainException, ProblemDetail
from .routers import games, pins, stats

logger = logging.getLogger(__name__)


def _init_sentry() -> None:
    if not SENTRY_DSN:
        logger.info("SENTRY_DSN not provided; skipping Sentry initialization.")
        return

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[FastApiIntegration()],
        environment=SENTRY_ENVIRONMENT,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        profiles_sample_rate=SENTRY_PROFILES_SAMPLE_RATE,
    )
    logger.info(
        "Initialized Sentry for bowling tracker%s",
        f" (environment={SENTRY_ENVIRONMENT})" if SENTRY_ENVIRONMENT else "",
    )


_init_sentry()

# -----------------------------------------------------------------------------
# FastAPI app
# -----------------------------------------------------------------------------
app = FastAPI(
    title="Bowling Score Tracker API",
    description="Ten-pin scoring with pin-level physics checks.",
    version="0.1.0",
)

if ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=ALLOW_CREDENTIALS,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
else:
    logger.info("ALLOWED_ORIGINS empty; CORS middleware disabled.")

logger.info("Serving bowling API under %r", API_PREFIX)


@app.get("/healthz", tags=["health"])  # Unprefixed for reverse proxy / uptime checks
def root_healthz():
    return {"status": "ok"}


# -----------------------------------------------------------------------------
# Error handling: every failure leaves as application/problem+json
# -----------------------------------------------------------------------------
def _problem_response(
    problem: ProblemDetail, headers: Optional[Mapping[str, str]] = None
) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(),
        media_type="application/problem+json",
        headers=headers,
    )


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    return _problem_response(
        ProblemDetail(
            type=exc.type,
            title=exc.title,
            detail=exc.detail,
            status=exc.status_code,
            instance=request.url.path,
            code=exc.code,
            errors=getattr(exc, "errors", None),
            invalid_pins=getattr(exc, "invalid_pins", None),
        )
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    problem = ProblemDetail(
        title=message,
        detail=message,
        status=exc.status_code,
        instance=request.url.path,
        code=getattr(exc, "code", f"http_{exc.status_code}"),
    )
    return _problem_response(problem, getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=(type(exc), exc, exc.__traceback__))
    return _problem_response(
        ProblemDetail(
            title="Internal Server Error",
            status=500,
            detail=str(exc),
            code="internal_server_error",
        )
    )


# -----------------------------------------------------------------------------
# Routers: API_PREFIX + /v0 + resource prefix
# -----------------------------------------------------------------------------
api_router = APIRouter(prefix=API_PREFIX, tags=["meta"])


@api_router.get("/healthz", tags=["health"])
def api_healthz():
    return {"status": "ok"}


@api_router.get("")
def api_root():
    return {"message": "Bowling Score Tracker API. See /docs."}


v0_router = APIRouter(prefix="/v0")
for resource in (games, pins, stats):
    v0_router.include_router(resource.router)

api_router.include_router(v0_router)
app.include_router(api_router)
