"""AssemblyAI API client package — async HTTP interface to the speech-to-text service.

WHY: Captioning needs word timestamps from a provider. This package
encapsulates all AssemblyAI communication behind an async client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. Response data is
parsed into typed dataclasses defined in models.py.

RULES:
- All provider HTTP calls go through AssemblyAIClient
- The API key is injected by the caller, never read here
"""

from captionize.api.client import (
    AssemblyAIClient,
    AssemblyAIError,
    TranscriptionError,
    TranscriptionTimeoutError,
    TranscriptNotFoundError,
)
from captionize.api.models import TranscriptStatus, progress_for_status

__all__ = [
    "AssemblyAIClient",
    "AssemblyAIError",
    "TranscriptNotFoundError",
    "TranscriptStatus",
    "TranscriptionError",
    "TranscriptionTimeoutError",
    "progress_for_status",
]
