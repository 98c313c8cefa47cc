"""
API configuration and settings management.
"""
import os


class Config:
    """Application configuration."""

    # Database
    DB_PATH: str = os.getenv("LISTINGS_DB", "./data/db/listings.db")

    # Geocoding provider
    GEOCODER_URL: str = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org")
    GEOCODER_USER_AGENT: str = os.getenv("GEOCODER_USER_AGENT", "listings-geosearch/1.0")
    GEOCODER_TIMEOUT: float = float(os.getenv("GEOCODER_TIMEOUT", "10"))
    GEOCODER_LIMIT: int = int(os.getenv("GEOCODER_LIMIT", "1"))

    # Proximity search
    DEFAULT_RADIUS_KM: float = float(os.getenv("DEFAULT_RADIUS_KM", "50"))
    MAX_RADIUS_KM: float = 20037.5  # half the equator
    PROVIDER_RETRY_AFTER: int = 30  # seconds

    # API settings
    API_TITLE: str = "Listings API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Marketplace listings with geocoded proximity search"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Pagination defaults
    DEFAULT_API_LIMIT: int = 50
    MAX_API_LIMIT: int = 500

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE_PATH", "api.log")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration on startup."""
        if not cls.DB_PATH:
            raise ValueError("Database path not configured")
        if cls.GEOCODER_TIMEOUT <= 0:
            raise ValueError(f"GEOCODER_TIMEOUT must be positive: {cls.GEOCODER_TIMEOUT}")
        if cls.GEOCODER_LIMIT < 1:
            raise ValueError(f"GEOCODER_LIMIT must be at least 1: {cls.GEOCODER_LIMIT}")
        if not 0 < cls.DEFAULT_RADIUS_KM <= cls.MAX_RADIUS_KM:
            raise ValueError(f"DEFAULT_RADIUS_KM out of range: {cls.DEFAULT_RADIUS_KM}")
        if cls.DB_PATH != ":memory:":
            os.makedirs(os.path.dirname(cls.DB_PATH) or ".", exist_ok=True)

# Global config instance
config = Config()
