"""Tropical zodiac lookup used by the astro tool set."""

from datetime import date
from typing import Optional

UNKNOWN_SIGN = "Unknown"

# (sign, start month, start day); each sign runs until the next one starts
_SIGN_STARTS = (
    ("Capricorn", 1, 1),
    ("Aquarius", 1, 20),
    ("Pisces", 2, 19),
    ("Aries", 3, 21),
    ("Taurus", 4, 20),
    ("Gemini", 5, 21),
    ("Cancer", 6, 21),
    ("Leo", 7, 23),
    ("Virgo", 8, 23),
    ("Libra", 9, 23),
    ("Scorpio", 10, 23),
    ("Sagittarius", 11, 22),
    ("Capricorn", 12, 22),
)


def parse_iso_date(value) -> Optional[date]:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def zodiac_sign(value) -> str:
    """Sign for an ISO ``YYYY-MM-DD`` string, or ``"Unknown"`` if it does not parse."""
    day = parse_iso_date(value)
    if day is None:
        return UNKNOWN_SIGN
    sign = UNKNOWN_SIGN
    for name, month, start in _SIGN_STARTS:
        if (day.month, day.day) >= (month, start):
            sign = name
    return sign


def daily_fortune(sign) -> str:
    return f"A lucky break awaits, {sign or UNKNOWN_SIGN}."
