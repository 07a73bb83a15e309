"""Output formatter registry.

WHY: The CLI and the HTTP server need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["srt"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and API requests)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from captionize.formatters.captions_json import CaptionsJSONFormatter
from captionize.formatters.plain_text import PlainTextFormatter
from captionize.formatters.srt_captions import SRTCaptionFormatter

if TYPE_CHECKING:
    from captionize.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "srt": SRTCaptionFormatter,
    "captions_json": CaptionsJSONFormatter,
    "plain_text": PlainTextFormatter,
}
