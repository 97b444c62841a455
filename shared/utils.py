"""Shared utility functions for the Pole Capture application.

Display formatting used by both the client views and the CLI, and the
log filter both sides install.
"""

import logging
import re
from datetime import datetime

logger = logging.getLogger(__name__)

LOCATION_UNAVAILABLE = 'Location unavailable'
NO_CONFIDENCE_DATA = 'No confidence data available'


def _coordinates(location):
    """Pull (latitude, longitude) out of a mapping or an object with attributes."""
    if location is None:
        return None, None
    if isinstance(location, dict):
        return location.get('latitude'), location.get('longitude')
    return getattr(location, 'latitude', None), getattr(location, 'longitude', None)


def format_location(location):
    """Format a location for display.

    Zero is treated as "unknown" for either axis, matching the 0/0 sentinel
    written when no fix was available at capture time.
    """
    latitude, longitude = _coordinates(location)
    if not latitude or not longitude:
        return LOCATION_UNAVAILABLE
    return f"Lat: {latitude:.3f}, Lon: {longitude:.3f}"


def format_timestamp(value):
    """Format a capture timestamp as e.g. 'Monday, October 19, 2026 at 3:04:05 PM'."""
    if not value:
        return 'Unknown'
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            logger.warning(f"Unparseable timestamp: {value}")
            return 'Unknown'
    hour = value.hour % 12 or 12
    meridiem = 'AM' if value.hour < 12 else 'PM'
    return f"{value:%A, %B} {value.day}, {value.year} at {hour}:{value:%M:%S} {meridiem}"


def format_confidence(lower_confidence, upper_confidence):
    """Describe a confidence interval."""
    if lower_confidence is None or upper_confidence is None:
        return NO_CONFIDENCE_DATA
    return f"{lower_confidence:g}% to {upper_confidence:g}% confidence"


def maps_url(latitude, longitude, label='Pole Location'):
    """Build a ``geo:`` URI for opening a capture in a maps application.

    Returns None when the location is missing or is the 0/0 sentinel.
    """
    if not latitude or not longitude:
        return None
    return f"geo:0,0?q={latitude},{longitude}({label})"


# The whole query string of a presigned URL is credential material
SIGNED_QUERY_PATTERN = re.compile(r'(https?://[^\s?]+)\?\S*X-Amz-Signature=\S*')


def redact_signed_url(text):
    """Replace the query string of every presigned URL in ``text`` with ``?<signed>``."""
    return SIGNED_QUERY_PATTERN.sub(r'\1?<signed>', text)


class SignedUrlFilter(logging.Filter):
    """Logging filter that redacts presigned URLs from formatted messages."""

    def filter(self, record):
        message = record.getMessage()
        redacted = redact_signed_url(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True
