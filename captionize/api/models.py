"""AssemblyAI response dataclasses and the saved-transcript schema.

WHY: The AssemblyAI v2 API returns loosely shaped JSON for transcript
status and words. Typed dataclasses make the fields explicit and keep
millisecond-to-second conversion in exactly one place.

HOW: TranscriptStatus.from_dict parses GET /transcript/{id}. Provider
words carry integer milliseconds; they are converted to core Word
objects in float seconds. TRANSCRIPT_SCHEMA describes the same payload
for jsonschema validation of transcripts saved to disk.

RULES:
- status is one of: "queued", "processing", "completed", "error"
- words is empty until status is "completed"
- Provider start/end are milliseconds; Word.start/end are seconds
- error is only present when status is "error"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from captionize.core.ir import Word

TERMINAL_STATUSES = frozenset({"completed", "error"})

TRANSCRIPT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["id", "status"],
    "properties": {
        "id": {"type": "string"},
        "status": {"type": "string"},
        "text": {"type": ["string", "null"]},
        "audio_duration": {"type": ["number", "null"]},
        "words": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "required": ["text", "start", "end"],
                "properties": {
                    "text": {"type": "string"},
                    "start": {"type": "number", "minimum": 0},
                    "end": {"type": "number", "minimum": 0},
                    "confidence": {"type": "number", "minimum": 0, "maximum": 1},
                },
            },
        },
    },
}
"""JSON Schema for a completed GET /transcript/{id} response saved to disk."""


def word_from_provider(data: Dict[str, Any]) -> Word:
    """Convert one provider word (milliseconds) into a core Word (seconds)."""
    return Word(
        text=data["text"],
        start=data["start"] / 1000.0,
        end=data["end"] / 1000.0,
        confidence=float(data.get("confidence", 1.0)),
    )


@dataclass
class TranscriptStatus:
    """Status and (when completed) words of one transcription job.

    RULES:
    - id and status are always present
    - audio_duration_s is seconds, None until the provider knows it
    """

    id: str
    status: str
    words: List[Word] = field(default_factory=list)
    text: Optional[str] = None
    error: Optional[str] = None
    audio_duration_s: Optional[float] = None
    audio_url: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TranscriptStatus:
        """Parse a TranscriptStatus from a raw API response dict."""
        duration = data.get("audio_duration")
        return cls(
            id=data["id"],
            status=data["status"],
            words=[word_from_provider(w) for w in data.get("words") or []],
            text=data.get("text"),
            error=data.get("error"),
            audio_duration_s=float(duration) if duration is not None else None,
            audio_url=data.get("audio_url"),
        )


def progress_for_status(status: str) -> int:
    """Rough progress percentage for a provider status string."""
    if status == "queued":
        return 10
    if status == "processing":
        return 50
    if status == "completed":
        return 100
    return 25
