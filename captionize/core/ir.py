"""Immutable records shared by the segmenter, serializer, and formatters.

WHY: The provider returns loosely typed JSON words; captions, previews,
and formatter input need a stable, typed contract. Frozen dataclasses
make the "derived, never mutated" lifecycle of captions explicit.

HOW: Four dataclasses:
  Word            — one timestamped word from the speech-to-text provider
  Caption         — one numbered cue (index, start, end, text)
  PreviewCaption  — compact display form of a cue (id, clock start, text)
  CaptionDocument — everything a formatter needs to render output files

RULES:
- All times are float seconds
- Word.confidence is carried for the provider contract; segmentation ignores it
- Caption.index is 1-based, sequential, and gapless within one segmentation
- Caption.start is its first word's start, Caption.end its last word's end
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Tuple


@dataclass(frozen=True)
class Word:
    """A single timestamped word from a completed transcription.

    RULES:
    - text: the word as transcribed, including attached punctuation ("show.")
    - start / end: float seconds from the beginning of the audio
    - confidence: provider score in [0, 1]
    """

    text: str
    start: float
    end: float
    confidence: float = 1.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Word:
        """Build a Word from a plain dict with seconds-based timing."""
        return cls(
            text=data["text"],
            start=float(data["start"]),
            end=float(data["end"]),
            confidence=float(data.get("confidence", 1.0)),
        )


@dataclass(frozen=True)
class Caption:
    """One subtitle cue produced by the segmenter."""

    index: int
    start: float
    end: float
    text: str

    @classmethod
    def from_words(cls, index: int, words: Sequence[Word]) -> Caption:
        """Close a run of words into a cue.

        The cue spans from the first word's start to the last word's end.
        Text is the words joined by a single space, in their original order.
        """
        return cls(
            index=index,
            start=words[0].start,
            end=words[-1].end,
            text=" ".join(w.text for w in words),
        )


@dataclass(frozen=True)
class PreviewCaption:
    """Compact caption entry for interactive preview lists."""

    id: int
    start: str
    text: str


@dataclass(frozen=True)
class CaptionDocument:
    """The complete input handed to every formatter.

    RULES:
    - source_name: original file name or URL-derived name (for output naming)
    - title: human-readable title from the source metadata
    - duration_s: audio duration when known, else the end of the last word
    """

    source_name: str
    title: str
    duration_s: float
    words: Tuple[Word, ...] = field(default_factory=tuple)
    captions: Tuple[Caption, ...] = field(default_factory=tuple)
