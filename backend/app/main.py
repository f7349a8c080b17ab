"""
FastAPI application entry point.

Configures logging, middleware, routes, and exception handlers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.dependencies import get_redis
from app.core.locks import build_keyed_lock

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    redis = await get_redis() if settings.BOOTSTRAP_LOCK_BACKEND == "redis" else None
    app.state.bootstrap_locks = build_keyed_lock(redis)
    logger.info(
        "Starting SiteLedger API in %s mode (bootstrap locks: %s)",
        settings.ENVIRONMENT,
        settings.BOOTSTRAP_LOCK_BACKEND,
    )
    yield
    logger.info("Shutting down SiteLedger API")


app = FastAPI(
    title="SiteLedger API",
    description="Multi-tenant construction project management platform",
    version="1.0.0",
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.DEBUG:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": str(exc),
                    "type": type(exc).__name__,
                }
            },
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0",
    }


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    return {
        "message": "SiteLedger API",
        "version": "1.0.0",
        "docs": "/api/docs" if settings.DEBUG else "disabled",
    }


from app.routers import (
    activity,
    approvals,
    contacts,
    costs,
    me,
    notes,
    organizations,
    phases,
    projects,
    shares,
    tasks,
    timeline,
    webhooks,
)

app.include_router(me.router, prefix="/api/v1/me", tags=["Me"])
app.include_router(organizations.router, prefix="/api/v1/organizations", tags=["Organizations"])
app.include_router(contacts.router, prefix="/api/v1", tags=["Contacts"])
app.include_router(projects.router, prefix="/api/v1", tags=["Projects"])
app.include_router(shares.router, prefix="/api/v1", tags=["Shares"])
app.include_router(phases.router, prefix="/api/v1", tags=["Phases"])
app.include_router(notes.router, prefix="/api/v1", tags=["Notes"])
app.include_router(tasks.router, prefix="/api/v1", tags=["Tasks"])
app.include_router(timeline.router, prefix="/api/v1", tags=["Timeline"])
app.include_router(approvals.router, prefix="/api/v1", tags=["Approvals"])
app.include_router(activity.router, prefix="/api/v1", tags=["Activity"])
app.include_router(costs.router, prefix="/api/v1", tags=["Costs"])
app.include_router(webhooks.router, prefix="/api/v1/webhooks", tags=["Webhooks"])
