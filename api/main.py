"""
Listings API - main application.

FastAPI application over the listings package: listing CRUD with
geocode-on-save, proximity search, export and statistics.
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listings.errors import InvalidInput, NotFound, PermissionDenied, ProviderError
from listings.geocoding import GeocodingClient

from .config import config
from .database import get_db_connection, init_database
from .routes import listings_router, search_router, stats_router, users_router

# Configure logging
_handlers = [logging.StreamHandler(sys.stdout)]
if config.LOG_FILE:
    _handlers.append(logging.FileHandler(config.LOG_FILE))
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=_handlers,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    logger.info("Starting Listings API...")
    owns_geocoder = False
    try:
        config.validate()
        init_database()
        logger.info(f"Database path: {config.DB_PATH}")

        # A geocoder set on app.state before startup belongs to the caller
        if getattr(app.state, "geocoder", None) is None:
            app.state.geocoder = GeocodingClient(
                base_url=config.GEOCODER_URL,
                user_agent=config.GEOCODER_USER_AGENT,
                timeout=config.GEOCODER_TIMEOUT,
                limit=config.GEOCODER_LIMIT,
            )
            owns_geocoder = True
        logger.info(f"Geocoder: {config.GEOCODER_URL}")
        logger.info("API startup complete")
        yield
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise
    finally:
        # Shutdown
        if owns_geocoder:
            app.state.geocoder.close()
            app.state.geocoder = None
        logger.info("Shutting down Listings API...")

# Create FastAPI application
app = FastAPI(
    title=config.API_TITLE,
    version=config.API_VERSION,
    description=config.API_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ALLOW_CREDENTIALS,
    allow_methods=config.CORS_ALLOW_METHODS,
    allow_headers=config.CORS_ALLOW_HEADERS,
)


# Domain errors: "fix your input" vs "try again"
@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PermissionDenied)
async def permission_denied_handler(request: Request, exc: PermissionDenied):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    logger.warning(f"Geocoding provider failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Geocoding service unavailable, please try again", "retryable": True},
        headers={"Retry-After": str(config.PROVIDER_RETRY_AFTER)},
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


# Health check endpoint
@app.get("/health")
def health_check():
    """Health check endpoint."""
    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1").fetchone()

        return {
            "status": "healthy",
            "version": config.API_VERSION,
            "database": "connected"
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable")

# Include routers
app.include_router(users_router)
app.include_router(listings_router)
app.include_router(search_router)
app.include_router(stats_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=config.LOG_LEVEL.lower()
    )
