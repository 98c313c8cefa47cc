"""
Route package initialization.
"""
from .listings import router as listings_router
from .search import router as search_router
from .stats import router as stats_router
from .users import router as users_router

__all__ = ["listings_router", "search_router", "stats_router", "users_router"]
