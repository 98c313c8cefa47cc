"""
Pydantic models for API request/response serialization.
"""
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class UserIn(BaseModel):
    """Input model for user registration."""
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")


class UserOut(BaseModel):
    """Output model for user data."""
    id: int
    name: str
    email: str
    created_at: Optional[str] = None


class ListingIn(BaseModel):
    """Input model for listing creation. Coordinates are never accepted."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=200)
    price: Union[float, str]
    location: str = ""
    description: str = ""


class ListingUpdate(BaseModel):
    """Input model for partial listing updates."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    price: Optional[Union[float, str]] = None
    location: Optional[str] = None
    description: Optional[str] = None


class ListingOut(BaseModel):
    """Output model for listing data."""
    id: int
    user_id: int
    name: str
    price: float
    location: str = ""
    description: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ListingsResponse(BaseModel):
    """Response model for paginated listings."""
    total: int
    items: List[ListingOut]


class NearbyListingOut(ListingOut):
    """Listing with its distance from the search point."""
    distance_km: float


class SearchResponse(BaseModel):
    """Response model for proximity search."""
    query: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_km: float
    total: int
    items: List[NearbyListingOut]


class StatsOut(BaseModel):
    """Model for statistics data."""
    total_listings: int
    total_users: int
    geocoded_listings: int
    ungeocoded_listings: int
    min_price: Optional[float]
    max_price: Optional[float]
    avg_price: Optional[float]
