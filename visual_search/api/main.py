"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..errors import CutError, ProviderError, ValidationError
from ..orchestrator import Orchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the orchestrator on startup and restore the last session."""
    if app.state.orchestrator is None:
        from ..clustering.cache import SessionCache
        app.state.orchestrator = Orchestrator(cache=SessionCache())
        try:
            app.state.orchestrator.restore_session()
        except Exception as e:
            logger.warning("Could not restore session: %s", e)

    yield

    await app.state.orchestrator.wait_pending()
    logger.info("Shutting down Visual Search API.")


def create_app(orchestrator: Optional[Orchestrator] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Visual Search API",
        description="Search articles, project them to 2D and cluster them by topic.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ProviderError)
    async def provider_error(request: Request, exc: ProviderError):
        logger.error("Provider failure: %s", exc)
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(CutError)
    async def cut_error(request: Request, exc: CutError):
        logger.error("Cluster cut failure: %s", exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    from .routes import clusters, search
    app.include_router(search.router, prefix="/api")
    app.include_router(clusters.router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Visual Search API",
            "version": "0.1.0",
            "status": "running",
            "docs": "/docs",
            "health": "/api/health",
            "endpoints": {
                "search": "/api/search",
                "clusterize": "/api/clusterize",
                "params": "/api/params",
                "state": "/api/state",
                "progress": "/api/progress",
                "plot": "/api/plot",
            },
        }

    @app.get("/api/health")
    async def health():
        orch = app.state.orchestrator
        return {
            "status": "ok",
            "state": orch.state.tag if orch is not None else None,
        }

    return app


# For uvicorn direct run
app = create_app()
