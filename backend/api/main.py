"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.dependencies import Services, build_services
from api.routes import clips, collections, favorites, places
from repositories import CollectionStore
from services.demo_seed import seed_demo_data
from services.media import register_heif_opener
from settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class PrivateNetworkAccessMiddleware(BaseHTTPMiddleware):
    """Middleware to handle Private Network Access preflight requests."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=204)
            response.headers["Access-Control-Allow-Origin"] = "*"
            response.headers["Access-Control-Allow-Methods"] = "*"
            response.headers["Access-Control-Allow-Headers"] = "*"
            response.headers["Access-Control-Allow-Private-Network"] = "true"
            return response

        response = await call_next(request)
        response.headers["Access-Control-Allow-Private-Network"] = "true"
        return response


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CollectionStore] = None,
    model=None,
) -> FastAPI:
    """
    Build the application.

    Tests pass their own settings, store and fake model; production uses the
    environment-derived defaults.
    """
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL)

    # Register HEIF/HEIC opener (for iPhone photos)
    register_heif_opener()

    services: Services = build_services(settings, store=store, model=model)
    if settings.SEED_DEMO_DATA:
        seed_demo_data(services.store)

    app = FastAPI(
        title="SpotClip API",
        description="Extract places from short clips and organize them into collections",
        version="0.1.0",
    )
    app.state.services = services

    # Private Network Access middleware (must be before CORS)
    app.add_middleware(PrivateNetworkAccessMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(clips.router, prefix="/clips", tags=["clips"])
    app.include_router(collections.router, prefix="/collections", tags=["collections"])
    app.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
    app.include_router(places.router, prefix="/places", tags=["places"])

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok"}

    logger.info("SpotClip API ready (store=%s)", settings.COLLECTION_STORE)
    return app


app = create_app()
