"""Caption core: data model, segmentation, timestamps, and SRT serialization.

WHY: The only part of the system with real algorithmic content is the
grouping of timestamped words into caption cues and the exact rendering
of their timing. Keeping it in one I/O-free package makes it trivially
testable and safe to call concurrently.

HOW: ir.py defines the immutable records, segmenter.py groups words into
captions, timestamps.py renders seconds, srt.py emits the document.

RULES:
- Pure functions only: no network, no files, no clocks
- Captions are regenerated from the full word list, never patched
"""

from captionize.core.ir import Caption, CaptionDocument, PreviewCaption, Word
from captionize.core.segmenter import InvalidInputError, segment, validate_words
from captionize.core.srt import serialize, to_preview
from captionize.core.timestamps import format_clock, format_timestamp

__all__ = [
    "Caption",
    "CaptionDocument",
    "InvalidInputError",
    "PreviewCaption",
    "Word",
    "format_clock",
    "format_timestamp",
    "segment",
    "serialize",
    "to_preview",
    "validate_words",
]
