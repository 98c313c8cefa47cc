"""
Geocode-on-save hook.

Runs before a listing is written and keeps its coordinates in step with its
location text. The store write happens only after this returns, so a
ProviderError leaves nothing half-applied.
"""
import logging
from typing import Optional

from .geocoding import Geocoder
from .models import Listing
from .utils import clean_text

logger = logging.getLogger(__name__)


def location_changed(new_location: Optional[str], previous_location: Optional[str]) -> bool:
    return clean_text(new_location) != clean_text(previous_location)


def geocode_on_save(listing: Listing, previous_location: Optional[str], geocoder: Geocoder) -> bool:
    """
    Update listing coordinates if its location differs from the persisted one.

    previous_location is None or "" when the listing is being created.
    Returns True when the location was dirty. ProviderError propagates.
    """
    listing.location = clean_text(listing.location)
    if not location_changed(listing.location, previous_location):
        return False

    if not listing.location:
        logger.debug(f"Location cleared for listing {listing.id}; dropping coordinates")
        listing.clear_coordinates()
        return True

    result = geocoder.resolve(listing.location)
    if result is None:
        logger.info(f"No geocoding match for '{listing.location}'; saving without coordinates")
        listing.clear_coordinates()
    else:
        listing.set_coordinates(result)
    return True
