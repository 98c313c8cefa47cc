"""
Utility functions for text normalisation, price parsing, and logging.
"""
import logging
import math
import re
from datetime import datetime, timezone
from typing import Optional, Union

from .errors import InvalidInput


def init_logger(
    name: str = "listings",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "listings.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def parse_price(price: Union[int, float, str, None]) -> float:
    """
    Parse a listing price given as a number or as text like "$1,200.50".

    Raises InvalidInput for missing, negative or unparseable prices.
    """
    if price is None or isinstance(price, bool):
        raise InvalidInput("Price is required")

    if isinstance(price, (int, float)):
        value = float(price)
    else:
        s = str(price).replace(",", "").replace("\xa0", " ")
        m = re.search(r"(\d+(?:\.\d+)?)", s)
        if not m:
            raise InvalidInput(f"Unparseable price: {price!r}")
        if re.search(r"-\s*[^\d\s]*\s*\d", s):
            raise InvalidInput(f"Price must not be negative: {price!r}")
        value = float(m.group(1))

    if not math.isfinite(value):
        raise InvalidInput(f"Price must be finite: {price!r}")
    if value < 0:
        raise InvalidInput(f"Price must not be negative: {price!r}")
    return value
