"""
IPFS Gallery API
FastAPI + Cloudflare IPFS pinning + key-value catalog
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s:     %(message)s'
)

logger = logging.getLogger(__name__)

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ipfs_gallery.config import Settings, settings as default_settings
from ipfs_gallery.exceptions import GalleryError, InputError
from ipfs_gallery.middleware.request_logging import RequestLoggingMiddleware
from ipfs_gallery.routers import gallery_router
from ipfs_gallery.services.metadata_store import MetadataStore, create_metadata_store
from ipfs_gallery.services.pinning import CloudflarePinningClient, PinningClient


def create_app(
    settings: Optional[Settings] = None,
    pinning_client: Optional[PinningClient] = None,
    metadata_store: Optional[MetadataStore] = None
) -> FastAPI:
    """
    Build the application

    Collaborators that are not passed in are created on startup from
    settings and closed on shutdown.
    """
    settings = settings or default_settings
    logging.getLogger().setLevel(settings.LOG_LEVEL.upper())

    # ============================================================================
    # Lifespan Context Manager
    # ============================================================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # ========== STARTUP ==========
        logger.info("Starting IPFS Gallery...")

        owned = []
        store = metadata_store
        if store is None:
            store = await create_metadata_store(settings)
            owned.append(store)
        logger.info(f"Metadata store: {type(store).__name__}")

        client = pinning_client
        if client is None:
            client = CloudflarePinningClient(settings)
            owned.append(client)

        app.state.settings = settings
        app.state.metadata_store = store
        app.state.pinning_client = client

        logger.info("IPFS Gallery API ready!")

        yield

        # ========== SHUTDOWN ==========
        logger.info("Shutting down IPFS Gallery...")
        for resource in owned:
            await resource.close()
        logger.info("IPFS Gallery API stopped")

    docs_url = "/api/docs" if settings.ENABLE_DOCS else None
    app = FastAPI(
        title="IPFS Gallery API",
        description="Pin uploads to IPFS and browse them newest first",
        version="1.0.0",
        docs_url=docs_url,
        redoc_url="/api/redoc" if settings.ENABLE_DOCS else None,
        openapi_url="/api/openapi.json" if settings.ENABLE_DOCS else None,
        lifespan=lifespan,
        redirect_slashes=False
    )

    # ============================================================================
    # Middleware Configuration
    # ============================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # ============================================================================
    # Error Handlers
    # ============================================================================

    @app.exception_handler(GalleryError)
    async def gallery_error_handler(request: Request, exc: GalleryError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        error = InputError("Invalid upload: expected a multipart body with a 'file' field")
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Unknown path or unsupported method
        if exc.status_code in (404, 405):
            return PlainTextResponse("Not Found", status_code=404)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    # ============================================================================
    # Include Routers
    # ============================================================================

    app.include_router(gallery_router.router, tags=["Gallery"])

    if settings.ENVIRONMENT == "development":
        for route in app.routes:
            if hasattr(route, 'methods') and hasattr(route, 'path') and route.methods:
                logger.debug(f"Route: {','.join(sorted(route.methods)):6} {route.path}")

    return app


app = create_app()
