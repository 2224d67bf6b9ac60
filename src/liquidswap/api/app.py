"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from liquidswap import __version__
from liquidswap.charms.factory import create_prover_client
from liquidswap.config import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    app.state.prover_client = create_prover_client()
    yield
    # Shutdown
    await app.state.prover_client.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Liquid Nation Swap API",
        description="Charms spell validation and proving backend",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    from liquidswap.api.routes import health, spells

    app.include_router(health.router, tags=["Health"])
    app.include_router(spells.router, prefix="/api/v1", tags=["Spells"])

    return app
