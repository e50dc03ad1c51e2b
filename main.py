# type: ignore
# pyright: reportGeneralTypeIssues=false
# pyright: reportOptionalMemberAccess=false
"""
EntryStack Insights Service
===========================
Risk analysis and notification content for the EntryStack event CRM.

  GET  /ai/events/{eventId}/risks  full six-rule risk analysis for one event
  GET  /ai/events/risks            coarse risk overview for every event
  POST /ai/email/generate          render notification email content

Reads the CRM's PostgreSQL schema; never writes to it.

Port: 8000
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from entrystack.controllers import email_controller, risk_controller, system_controller
from entrystack.core.config import settings
from entrystack.core.dependencies import get_event_repo
from entrystack.core.logging import get_logger
from entrystack.middleware import APIKeyAuthMiddleware, MetricsMiddleware, RequestIDMiddleware

logger = get_logger("entrystack")


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    logger.info(
        "Starting %s v%s (auth %s)",
        settings.SERVICE_NAME, settings.SERVICE_VERSION,
        "enabled" if settings.AUTH_ENABLED else "disabled",
    )
    yield
    get_event_repo().dispose()
    logger.info("Shutting down, connection pool disposed")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="EntryStack Insights Service",
    description="Event risk analysis and notification email content.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

# Last added runs first: request id, then metrics, then auth.
app.add_middleware(APIKeyAuthMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc)},
    )


app.include_router(system_controller.router)
app.include_router(risk_controller.router)
app.include_router(email_controller.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
