"""Postcode normalization.

UK postcodes are an outward code ("SW1A") and an inward code ("1AA"). The
sector form keeps the outward code and all but the last two characters of
the inward code, which is what the sales fallback searches on when a full
postcode has no recorded sales.
"""

from sold_finder.errors import MissingInputError
from sold_finder.models import NormalizedPostcode


def clean_postcode(raw: str) -> str:
    """Uppercase, collapse internal whitespace and trim."""
    return " ".join(raw.upper().split())


def normalize_postcode(raw: str | None) -> NormalizedPostcode:
    """Canonicalize a free-form postcode.

    Examples:
        "sw1a  1aa " -> full "SW1A 1AA", sector "SW1A1", compact "SW1A1AA"
        "e8"         -> full "E8", sector "E8", compact "E8"

    Raises:
        MissingInputError: If the input is None or only whitespace.
    """
    if raw is None:
        raise MissingInputError("Postcode required")

    full = clean_postcode(raw)
    if not full:
        raise MissingInputError("Postcode required")

    compact = full.replace(" ", "")
    if " " not in full:
        return NormalizedPostcode(full=full, sector=full, compact=compact)

    outward, _, inward = full.rpartition(" ")
    # Inward codes are 3 characters in practice; anything shorter loses all of it
    sector = outward.replace(" ", "") + inward[:-2]
    return NormalizedPostcode(full=full, sector=sector, compact=compact)


def format_postcode(value: str) -> str:
    """Format an upstream postcode for display, tolerating compact forms."""
    cleaned = clean_postcode(value)
    if " " in cleaned or len(cleaned) < 5:
        return cleaned
    return f"{cleaned[:-3]} {cleaned[-3:]}"
