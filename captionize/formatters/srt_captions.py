"""SRT caption formatter.

WHY: The .srt file is the main deliverable, directly loadable by video
players and editors.

HOW: Delegates to core.srt.serialize on the document's captions, which
were produced by the segmenter.

RULES:
- Output suffix: "-captions.srt"
- Media type: "application/x-subrip"
- An empty caption list produces empty content
"""

from __future__ import annotations

from typing import List

from captionize.core.ir import CaptionDocument
from captionize.core.srt import serialize
from captionize.formatters.base import BaseFormatter, FormatterOutput


class SRTCaptionFormatter(BaseFormatter):
    """Formatter that writes the segmented captions as a SubRip document."""

    @property
    def name(self) -> str:
        return "SRT Captions"

    @property
    def suffix(self) -> str:
        return "-captions.srt"

    def format(self, document: CaptionDocument) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix=self.suffix,
                content=serialize(document.captions),
                media_type="application/x-subrip",
            )
        ]
