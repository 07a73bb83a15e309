"""SubRip document serialization and caption previews.

WHY: The caption list is the editing surface; the .srt document is the
deliverable. Both are rendered from the same immutable captions so they
can never disagree.

HOW: Each caption becomes a three-line block (index, time range, text)
terminated by a newline. Blocks are joined with one more newline, which
leaves a single blank line between cues.

RULES:
- Block format: "{index}\\n{start} --> {end}\\n{text}\\n"
- Blocks are joined with "\\n"; no trailing blank line after the last cue
- Empty caption list → "" (no header, no newline)
- Output is deterministic for a given caption list
"""

from __future__ import annotations

from typing import Iterable, List

from captionize.core.ir import Caption, PreviewCaption
from captionize.core.timestamps import format_clock, format_timestamp


def format_block(caption: Caption) -> str:
    """Render one caption as an SRT block, newline included."""
    return "{index}\n{start} --> {end}\n{text}\n".format(
        index=caption.index,
        start=format_timestamp(caption.start),
        end=format_timestamp(caption.end),
        text=caption.text,
    )


def serialize(captions: Iterable[Caption]) -> str:
    """Serialize captions into a complete SRT document string."""
    return "\n".join(format_block(c) for c in captions)


def to_preview(captions: Iterable[Caption]) -> List[PreviewCaption]:
    """Build the compact preview list (id, clock start, text)."""
    return [
        PreviewCaption(id=c.index, start=format_clock(c.start), text=c.text)
        for c in captions
    ]
