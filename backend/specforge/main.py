"""
Spec Forge Backend - FastAPI Application Entry Point
====================================================

Turns a short app idea into a multi-document technical specification
(PRD, tech stack, project structure, schema design and more) with an AI
model, and lets the user refine it one section at a time.

Architecture Overview:
----------------------
- FastAPI for the async REST API with automatic OpenAPI documentation
- PostgreSQL (via asyncpg) for user profiles, usage metering and saved specs
- OpenAI chat completions for generation, elaboration, regeneration and review
- Server-sent events (sse-starlette) for streaming the generated document

Identity:
---------
The identity provider in front of this service forwards the signed-in
user's id in the X-User-Id header (configurable via AUTH_HEADER).

Errors:
-------
Every SpecForgeError raised by a route or a service is rendered by one
handler as {"error": <kind>, "detail": <message>, ...}. Raw backend
exceptions never reach the client.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from specforge.api.routes import generation, profile, specs
from specforge.config import settings
from specforge.db import close_db, init_db
from specforge.errors import SpecForgeError


# Uses DEBUG in development for detailed traces
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - handles startup and shutdown.

    Startup creates missing tables. The AI backend is not contacted; a
    missing API key is only reported, since saved specs stay usable
    without it.
    """
    logger.info(f"Starting {settings.app_name}...")

    await init_db()
    logger.info("Database initialized")

    if not settings.ai_configured:
        logger.warning("OPENAI_API_KEY is not set; AI operations will be refused")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.app_name,
    description="AI-powered technical specification generator",
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SpecForgeError)
async def spec_forge_error_handler(request: Request, exc: SpecForgeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# =============================================================================
# API Routes
# =============================================================================

app.include_router(
    profile.router,
    prefix=settings.api_prefix,
    tags=["profile"],
)
app.include_router(
    generation.router,
    prefix=f"{settings.api_prefix}/generation",
    tags=["generation"],
)
app.include_router(
    specs.router,
    prefix=f"{settings.api_prefix}/specs",
    tags=["specs"],
)


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get("/")
async def root():
    """Basic API information."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health():
    """
    Health check endpoint for load balancers and container orchestrators.

    Stays healthy without an API key but reports the AI backend as
    unconfigured, so a missing credential is visible before a user hits it.
    """
    return {
        "status": "healthy",
        "ai_configured": settings.ai_configured,
        "quota_mode": settings.quota_mode,
    }
