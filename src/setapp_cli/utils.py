import datetime
import logging
import re
import secrets
import time

from dateutil.parser import parse as parse_date

logger = logging.getLogger(__name__)

_MAX_AGE_RE = re.compile(r"max-age=(\d+)")


def try_parse_date(date_str: str | None) -> datetime.datetime | None:
    """Try to parse a date string into a timestamp.

    Args:
        date_str: The date string to parse (e.g., from HTTP Expires header)

    Returns:
        The parsed timestamp, or None if parsing failed or date_str is None.
        Naive results are assumed to be UTC.
    """

    try:
        parsed = parse_date(date_str) if date_str else None
    except Exception as e:
        logger.debug(f"Failed to parse date '{date_str}': {e}")
        return None
    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


def parse_max_age(cache_control: str | None) -> int | None:
    """Extract the max-age directive (in seconds) from a Cache-Control header."""
    if not cache_control:
        return None
    if match := _MAX_AGE_RE.search(cache_control):
        return int(match.group(1))
    return None


def now_millis() -> int:
    return time.time_ns() // 1_000_000


def random_token(n_bytes: int = 8) -> str:
    return secrets.token_hex(n_bytes)
