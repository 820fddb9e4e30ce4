"""Canonicalization of free-form and OCR-extracted field values.

Every function here is total: ambiguous input degrades to a documented
sentinel (``"unavl"`` / ``"NONE"`` / empty string) instead of raising, so
the encoder can always produce a record from intermediate form state.

Example:
    >>> normalize_height("5-11")
    '071 IN'
    >>> normalize_weight("185 lbs")
    '185 LB'
    >>> sanitize_text("  o'brien ")
    "O'BRIEN"
"""

import logging
import re
from datetime import datetime
from typing import Iterable, Optional

from dateutil import parser as date_parser

from .types import NONE_PLACEHOLDER, UNAVAILABLE

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")
_NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")
_HEIGHT_SEPARATORS = re.compile(r"['\-]+")
_LEADING_INT = re.compile(r"\s*(\d+)")
_COMPARISON_NOISE = re.compile(r"[\s\-']")

# Two defaults that differ in every field; a date that parses differently
# under each is missing a day, month or year
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))

_MALE = {"1", "M", "MALE", "MAN"}
_FEMALE = {"2", "F", "FEMALE", "WOMAN"}


def _digits(raw: Optional[str]) -> str:
    return _NON_DIGITS.sub("", raw or "")


def _leading_int(part: str) -> Optional[int]:
    match = _LEADING_INT.match(part)
    return int(match.group(1)) if match else None


def normalize_height(raw: Optional[str]) -> str:
    """Convert a height to the AAMVA ``"NNN IN"`` form.

    Feet/inches input (``5-11``, ``5'11"``, ``5'-11"``) is split on apostrophe
    and hyphen runs and converted to total inches when both parts start with
    a number. Anything else is reduced to its digits, which keeps the
    canonical form stable: ``normalize_height("071 IN") == "071 IN"``.

    Args:
        raw: Height as typed or extracted

    Returns:
        Zero-padded inches followed by " IN", or "unavl" if no digits exist.
    """
    text = raw or ""
    parts = [part for part in _HEIGHT_SEPARATORS.split(text) if part.strip()]
    if len(parts) >= 2:
        feet = _leading_int(parts[0])
        inches = _leading_int(parts[1])
        if feet is not None and inches is not None:
            return f"{feet * 12 + inches:03d} IN"

    digits = _digits(text)
    if not digits:
        return UNAVAILABLE
    return f"{digits.zfill(3)} IN"


def normalize_weight(raw: Optional[str]) -> str:
    """Convert a weight to the AAMVA ``"NNN LB"`` form ("unavl" if empty)."""
    digits = _digits(raw)
    if not digits:
        return UNAVAILABLE
    return f"{digits.zfill(3)} LB"


def sanitize_text(raw: Optional[str], placeholder: str = NONE_PLACEHOLDER) -> str:
    """Uppercase, strip non-printable ASCII and trim.

    Args:
        raw: Free text value
        placeholder: Returned when nothing printable remains ("NONE" for
            mandatory elements, "unavl" for optional ones)

    Returns:
        Sanitized text or the placeholder.
    """
    cleaned = _NON_PRINTABLE.sub("", (raw or "").upper()).strip()
    return cleaned or placeholder


def normalize_date(raw: Optional[str]) -> str:
    """Convert an extracted date to ``MMDDYYYY``.

    Resolution order:
        1. exactly 8 digits -> returned as-is (taken to be MMDDYYYY already)
        2. a complete parseable date ("Jan 15, 1990", "1/15/1990") -> reformatted;
           partial dates ("15", "1/15", "March") are not completed
        3. otherwise the digits, right-padded with zeros / cut to 8

    Empty input returns an empty string so an element the extractor did not
    find stays absent. Results of step 3 may still fail a digits-only date
    rule; callers treat that as a quality signal.
    """
    if not raw or not raw.strip():
        return ""

    digits = _digits(raw)
    if len(digits) == 8:
        return digits

    try:
        first, second = (date_parser.parse(raw, default=default) for default in _DATE_DEFAULTS)
        if first == second:
            return first.strftime("%m%d%Y")
        logger.debug(f"Partial date {raw!r}, falling back to digits")
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse date {raw!r}: {e}")

    return digits.ljust(8, "0")[:8]


def normalize_sex(raw: Optional[str]) -> str:
    """Map a sex value to the AAMVA code: 1 (male), 2 (female), 9 (unknown)."""
    text = (raw or "").strip().upper()
    if not text:
        return ""
    if text in _MALE:
        return "1"
    if text in _FEMALE:
        return "2"
    return "9"


def normalize_flag(
    raw: Optional[str],
    truthy: str,
    falsy: str,
    true_values: Iterable[str] = ("Y", "YES", "TRUE", "1"),
) -> str:
    """Collapse a yes/no answer onto a two-valued element code.

    Values already equal to ``truthy`` or ``falsy`` pass through. Empty input
    stays empty.

    Example:
        >>> normalize_flag("yes", truthy="F", falsy="N")
        'F'
        >>> normalize_flag("0", truthy="1", falsy="0")
        '0'
    """
    text = (raw or "").strip().upper()
    if not text:
        return ""
    if text in (truthy, falsy):
        return text
    return truthy if text in set(true_values) else falsy


def comparison_key(value: Optional[str]) -> str:
    """Reduce a value to the form used when reconciling scans with forms."""
    return _COMPARISON_NOISE.sub("", value or "").upper()
