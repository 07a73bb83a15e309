"""Plain text transcript formatter.

WHY: Reviewers often want the spoken text without any timing, for
reading, search, or pasting into show notes.

HOW: Joins every word's text with a single space and terminates the
result with a newline.

RULES:
- Output suffix: "-transcript.txt", media type "text/plain"
- Words keep their attached punctuation as transcribed
- No words → empty content (no newline)
"""

from __future__ import annotations

from typing import List

from captionize.core.ir import CaptionDocument
from captionize.formatters.base import BaseFormatter, FormatterOutput


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces the transcript as a single line of text."""

    @property
    def name(self) -> str:
        return "Plain Text"

    @property
    def suffix(self) -> str:
        return "-transcript.txt"

    def format(self, document: CaptionDocument) -> List[FormatterOutput]:
        content = " ".join(w.text for w in document.words)
        if content:
            content += "\n"
        return [
            FormatterOutput(
                suffix=self.suffix,
                content=content,
                media_type="text/plain",
            )
        ]
