"""Caption JSON formatter for preview and editing tools.

WHY: Editing surfaces want structured captions, not SRT text to re-parse.
This output carries both numeric seconds (for editing) and the rendered
SRT timestamps (for display), plus the source title and duration.

HOW: Builds a plain dict from the document and dumps it with json.dumps.

RULES:
- Output suffix: "-captions.json", media type "application/json"
- Captions keep their segmenter index, start, end, and text unchanged
- "start_time"/"end_time" use the SRT timestamp format
- Two-space indentation, UTF-8 text kept as-is (ensure_ascii=False)
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from captionize.core.ir import CaptionDocument
from captionize.core.timestamps import format_timestamp
from captionize.formatters.base import BaseFormatter, FormatterOutput


def document_to_dict(document: CaptionDocument) -> Dict[str, Any]:
    return {
        "title": document.title,
        "source": document.source_name,
        "duration": document.duration_s,
        "captions": [
            {
                "index": c.index,
                "start": c.start,
                "end": c.end,
                "start_time": format_timestamp(c.start),
                "end_time": format_timestamp(c.end),
                "text": c.text,
            }
            for c in document.captions
        ],
    }


class CaptionsJSONFormatter(BaseFormatter):
    """Formatter that writes captions as structured JSON."""

    @property
    def name(self) -> str:
        return "Caption JSON"

    @property
    def suffix(self) -> str:
        return "-captions.json"

    def format(self, document: CaptionDocument) -> List[FormatterOutput]:
        content = json.dumps(document_to_dict(document), indent=2, ensure_ascii=False)
        return [
            FormatterOutput(
                suffix=self.suffix,
                content=content + "\n",
                media_type="application/json",
            )
        ]
