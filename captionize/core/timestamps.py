"""SubRip timestamp rendering.

WHY: SRT players parse "HH:MM:SS,mmm" exactly. Any rounding would shift
caption boundaries by up to a second and break comparisons with the
provider's own SRT output, so every component is truncated.

HOW: Truncate to whole milliseconds, then split into hours, minutes,
seconds, and milliseconds with integer division and zero-pad each part.

RULES:
- Comma before milliseconds (SubRip format, not a locale choice)
- Every component uses floor, never round
- Hours are true elapsed hours; content past 59 minutes renders "01:..."
- Negative or non-finite values raise InvalidInputError
"""

from __future__ import annotations

import math

from captionize.core.segmenter import InvalidInputError


def _split(seconds: float):
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        raise InvalidInputError("Timestamp must be a number, got {!r}".format(seconds))
    if not math.isfinite(seconds) or seconds < 0:
        raise InvalidInputError(
            "Timestamp must be a finite, non-negative number of seconds, got {!r}".format(seconds)
        )

    # Whole milliseconds first; round away float noise (2.8 * 1000 may land
    # on 2799.9999...) before truncating.
    total_ms = math.floor(round(seconds * 1000, 6))
    total_s, millis = divmod(total_ms, 1000)
    hours, rest = divmod(total_s, 3600)
    minutes, secs = divmod(rest, 60)
    return hours, minutes, secs, millis


def format_timestamp(seconds: float) -> str:
    """Render seconds as an SRT timestamp.

    >>> format_timestamp(3725.25)
    '01:02:05,250'
    """
    hours, minutes, secs, millis = _split(seconds)
    return "{:02d}:{:02d}:{:02d},{:03d}".format(hours, minutes, secs, millis)


def format_clock(seconds: float) -> str:
    """Render seconds as a whole-second "HH:MM:SS" display clock."""
    hours, minutes, secs, _ = _split(seconds)
    return "{:02d}:{:02d}:{:02d}".format(hours, minutes, secs)
