"""FastAPI application initialization."""

import os
from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration

from defaultanswer.api import health, reports, sweep
from defaultanswer.config import get_settings
from defaultanswer.logging_config import setup_logfire
from defaultanswer.middleware.correlation_id import CorrelationIDMiddleware
from defaultanswer.services.report_service import reset_belief_tracker
from defaultanswer.services.sweep_prompts import PROMPT_SET_VERSION

VERSION = "0.3.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()

    setup_logfire(app)

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.env,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            integrations=[FastApiIntegration()],
        )

    logfire.info(
        "Application startup complete",
        environment=settings.env,
        history_configured=settings.history_configured,
        prompt_set_version=PROMPT_SET_VERSION,
    )

    yield

    reset_belief_tracker()
    logfire.info("Application shutdown complete")


app = FastAPI(
    title="DefaultAnswer",
    description="Scores how ready a website is to be recommended by AI assistants",
    version=VERSION,
    lifespan=lifespan,
)

# Correlation ID middleware (must be first for request tracing)
app.add_middleware(CorrelationIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["health"])
app.include_router(reports.router, prefix="/defaultanswer", tags=["reports"])
app.include_router(sweep.router, prefix="/admin/sweep", tags=["sweep"])


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "DefaultAnswer API", "version": VERSION}


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "defaultanswer.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("ENV") == "local",
    )
