"""Greedy caption segmentation of a timestamped word stream.

WHY: A flat word list is unreadable as subtitles. Viewers need short
cues that respect sentence boundaries where possible, without ever
growing past what fits comfortably on screen.

HOW: A single forward pass. Each word joins the pending cue; after every
word the pending cue is closed if it reached the word cap, if the word
ends a sentence and the cue already has substance, or if the word is the
last one. There is no backtracking and no look-ahead beyond "is this the
last word".

RULES:
- Never more than MAX_CAPTION_WORDS (7) words per caption
- Sentence-ending punctuation (. ! ?) closes a caption only when it holds
  more than MIN_SENTENCE_WORDS (3) words
- The final word always closes the pending caption, however short
- Caption timing comes strictly from its own words; adjacent captions are
  never snapped together, so gaps and overlaps in the input survive
- Word.confidence is ignored
- Input is validated up front; malformed words raise InvalidInputError
"""

from __future__ import annotations

import math
from typing import Iterable, Iterator, List, Sequence, Tuple

from captionize.core.ir import Caption, Word

MAX_CAPTION_WORDS = 7
MIN_SENTENCE_WORDS = 3

_SENTENCE_ENDINGS = (".", "!", "?")


class InvalidInputError(ValueError):
    """Raised when word data or a timestamp is malformed.

    WHY: NaN, infinite, or negative timestamps would silently produce
    nonsense SRT timing. Failing fast surfaces provider bugs instead.

    RULES:
    - Raised before any caption is produced
    - The message names the offending word position when there is one
    """


def _check_seconds(value: float, what: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError("{} must be a number, got {!r}".format(what, value))
    if not math.isfinite(value):
        raise InvalidInputError("{} must be finite, got {!r}".format(what, value))
    if value < 0:
        raise InvalidInputError("{} must be non-negative, got {!r}".format(what, value))


def validate_words(words: Sequence[Word]) -> None:
    """Check every word's timing before segmentation.

    RULES:
    - start and end must be finite, non-negative numbers
    - end must not precede start within a single word
    - Ordering between words is NOT checked (input order is trusted)
    """
    for position, word in enumerate(words):
        label = "word {} ({!r})".format(position, getattr(word, "text", None))
        if not isinstance(word.text, str):
            raise InvalidInputError("{}: text must be a string".format(label))
        _check_seconds(word.start, "{} start".format(label))
        _check_seconds(word.end, "{} end".format(label))
        if word.end < word.start:
            raise InvalidInputError(
                "{}: end ({}) is before start ({})".format(label, word.end, word.start)
            )


def ends_sentence(text: str) -> bool:
    """True when the word's text ends with ".", "!" or "?"."""
    return text.endswith(_SENTENCE_ENDINGS)


def _should_close(pending_count: int, word: Word, is_last: bool) -> bool:
    if pending_count >= MAX_CAPTION_WORDS:
        return True
    if ends_sentence(word.text) and pending_count > MIN_SENTENCE_WORDS:
        return True
    return is_last


def _iter_captions(words: Sequence[Word]) -> Iterator[Caption]:
    pending: List[Word] = []
    index = 1
    last_position = len(words) - 1

    for position, word in enumerate(words):
        pending.append(word)
        if _should_close(len(pending), word, position == last_position):
            yield Caption.from_words(index, pending)
            index += 1
            pending = []


def segment(words: Iterable[Word]) -> Tuple[Caption, ...]:
    """Group an ordered word stream into numbered caption cues.

    Args:
        words: Words ordered by start time. Read only; not re-sorted.

    Returns:
        An immutable tuple of Captions, indexed from 1. Empty input gives
        an empty tuple.

    Raises:
        InvalidInputError: If any word has malformed timing.
    """
    words = tuple(words)
    validate_words(words)
    return tuple(_iter_captions(words))
