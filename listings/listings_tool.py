#!/usr/bin/env python3
"""
Command-line tool for the listings database.

    python -m listings.listings_tool --db data/db/listings.db --backfill
    python -m listings.listings_tool --search "Cairo, Egypt" --radius-km 10 --out near.csv
"""
import argparse
import os
import sys

from .core import backfill_coordinates
from .database import db_connect, db_init
from .errors import InvalidInput, ProviderError
from .export import export_all_listings, nearby_frame, save_frame
from .geocoding import DEFAULT_USER_AGENT, NOMINATIM_BASE, NOMINATIM_TIMEOUT, GeocodingClient
from .proximity import DEFAULT_RADIUS_KM, search_near_text
from .utils import init_logger


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Listings database maintenance and proximity search")
    ap.add_argument("--db", type=str, default=os.getenv("LISTINGS_DB", "./data/db/listings.db"),
                    help="Path to SQLite DB")
    ap.add_argument("--backfill", action="store_true",
                    help="Geocode listings that have a location but no coordinates")
    ap.add_argument("--limit", type=int, default=None, help="Maximum listings to backfill")
    ap.add_argument("--search", type=str, default="", help="Place to search around, e.g. 'Cairo, Egypt'")
    ap.add_argument("--radius-km", type=float, default=DEFAULT_RADIUS_KM, help="Search radius in km")
    ap.add_argument("--out", type=str, default="",
                    help="CSV/XLSX to export search results (or all listings without --search)")
    ap.add_argument("--geocoder-url", default=os.getenv("GEOCODER_URL", NOMINATIM_BASE),
                    help="Nominatim-compatible geocoder base URL")
    ap.add_argument("--user-agent", default=os.getenv("GEOCODER_USER_AGENT", DEFAULT_USER_AGENT))
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "listings.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or listings.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    logger = init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )

    conn = db_connect(args.db)
    db_init(conn)
    geocoder = GeocodingClient(
        base_url=args.geocoder_url,
        user_agent=args.user_agent,
        timeout=float(os.getenv("GEOCODER_TIMEOUT", NOMINATIM_TIMEOUT)),
    )
    try:
        if args.backfill:
            counts = backfill_coordinates(conn, geocoder, limit=args.limit)
            logger.info(f">>> Backfill: {counts}")

        if args.search.strip():
            results = search_near_text(conn, geocoder, args.search, radius_km=args.radius_km)
            logger.info(f">>> {len(results)} listings within {args.radius_km} km of '{args.search}'")
            for r in results:
                logger.info(f"    #{r.listing.id} {r.listing.name} ({r.listing.location}) {r.distance_km:.2f} km")
            if args.out:
                save_frame(nearby_frame(results), args.out, logger)
        elif args.out:
            save_frame(export_all_listings(conn), args.out, logger)
    except InvalidInput as e:
        logger.error(f"Invalid input: {e}")
        return 2
    except ProviderError as e:
        logger.error(f"Geocoding provider unavailable, try again later: {e}")
        return 3
    finally:
        geocoder.close()
        conn.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
