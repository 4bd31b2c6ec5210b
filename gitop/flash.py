"""Highlight decay: maps a flash and the current instant to an emphasis tier.

A flash is pure data (color class, expiry instant, total duration). Nothing
counts it down; every reader derives the tier from wall-clock time, and an
expired flash reads as no flash at all.
"""

from enum import Enum
from typing import Optional

from .models import Flash, FlashColor

ALERT_DURATION = 30.0
SYNCED_DURATION = 5.0

_DURATIONS = {
    FlashColor.ALERT: ALERT_DURATION,
    FlashColor.SYNCED: SYNCED_DURATION,
}


class EmphasisTier(Enum):
    """Render intensity of a flashing row, strongest first."""
    MAXIMUM = "maximum"  # bold + blink
    STRONG = "strong"    # bold
    PLAIN = "plain"      # color only
    SUBDUED = "subdued"  # underline
    MINIMAL = "minimal"  # dim
    NONE = "none"        # no active flash


# (lower bound on remaining fraction, tier), evaluated top-down with ">"
_TIER_BANDS = [
    (0.8, EmphasisTier.MAXIMUM),
    (0.6, EmphasisTier.STRONG),
    (0.4, EmphasisTier.PLAIN),
    (0.2, EmphasisTier.SUBDUED),
]


def start_flash(color: FlashColor, now: float) -> Flash:
    """Enter the active state for a color class with its standard duration."""
    return Flash.start(color, _DURATIONS[color], now)


def active_flash(flash: Optional[Flash], now: float) -> Optional[Flash]:
    """Return the flash if it has not expired yet, else None."""
    if flash is None or not flash.is_active(now):
        return None
    return flash


def emphasis_tier(flash: Optional[Flash], now: float) -> EmphasisTier:
    """Band the remaining fraction of a flash into one of five tiers."""
    current = active_flash(flash, now)
    if current is None:
        return EmphasisTier.NONE

    fraction = current.remaining_fraction(now)
    for lower_bound, tier in _TIER_BANDS:
        if fraction > lower_bound:
            return tier
    return EmphasisTier.MINIMAL
