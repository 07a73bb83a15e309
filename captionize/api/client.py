"""Async HTTP client for the AssemblyAI v2 speech-to-text API.

WHY: Captioning needs word-level timestamps for an audio file. This
module hides the upload → create → poll workflow behind one client class
so the pipeline, CLI, and server don't need to know HTTP details.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. AssemblyAIClient is
an async context manager: enter it to get an authenticated client, exit
to close the connection pool. Each API step is a separate method:
upload_audio → create_transcript → poll_until_complete (transcribe()
combines the first two).

RULES:
- Always use the async context manager (async with AssemblyAIClient(...) as client:)
- The API key is passed in by the caller; it is sent as the raw
  "authorization" header (no Bearer prefix)
- Polling uses a fixed interval and an overall timeout; no retries
- A 404 on a status or SRT lookup means "unknown job" and returns None
- Status callback (on_status) is optional; when provided, called with status strings
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Optional

import httpx

from captionize.api.models import TranscriptStatus
from captionize.config import DEFAULT_BASE_URL, DEFAULT_POLL_INTERVAL_S, DEFAULT_POLL_TIMEOUT_S

logger = logging.getLogger(__name__)


class AssemblyAIError(Exception):
    """Raised when the AssemblyAI API returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response body text
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"AssemblyAI API error {status_code}: {message}")


class TranscriptionError(Exception):
    """Raised when a transcription job ends in the "error" status."""


class TranscriptNotFoundError(LookupError):
    """Raised when the provider no longer knows a transcript ID."""


class TranscriptionTimeoutError(TimeoutError):
    """Raised when polling exceeds the configured timeout."""


class AssemblyAIClient:
    """Async client for the AssemblyAI transcription API.

    WHY: Provides a typed interface for the transcription workflow and
    keeps auth, polling, and error wrapping out of the callers.

    HOW: Wraps httpx.AsyncClient with the API key header. transport is
    exposed so tests can plug in httpx.MockTransport.

    RULES:
    - api_key is required (see Settings.require_api_key)
    - poll_interval_s / timeout_s default to the config defaults
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        timeout_s: float = DEFAULT_POLL_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("AssemblyAIClient requires an API key")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._poll_interval_s = poll_interval_s
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> AssemblyAIClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"authorization": self._api_key},
            timeout=httpx.Timeout(300.0, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "AssemblyAIClient must be used as an async context manager: "
                "async with AssemblyAIClient(api_key) as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Step 1: Upload audio
    # ------------------------------------------------------------------

    async def upload_audio(
        self,
        audio: bytes,
        on_status: Callable[[str], None] | None = None,
    ) -> str:
        """Upload raw audio bytes and return the provider's upload URL.

        RULES:
        - Body is sent as application/octet-stream
        - Raises AssemblyAIError on non-2xx responses
        """
        client = self._ensure_client()
        if on_status:
            on_status("Uploading audio ({:,} bytes)...".format(len(audio)))

        resp = await client.post(
            "/upload",
            content=audio,
            headers={"content-type": "application/octet-stream"},
        )
        if resp.status_code not in (200, 201):
            raise AssemblyAIError(resp.status_code, resp.text)

        return resp.json()["upload_url"]

    # ------------------------------------------------------------------
    # Step 2: Create transcript
    # ------------------------------------------------------------------

    async def create_transcript(
        self,
        audio_url: str,
        on_status: Callable[[str], None] | None = None,
    ) -> str:
        """Submit a transcription job for an uploaded file; return its ID."""
        client = self._ensure_client()
        if on_status:
            on_status("Submitting transcription...")

        resp = await client.post("/transcript", json={"audio_url": audio_url})
        if resp.status_code not in (200, 201):
            raise AssemblyAIError(resp.status_code, resp.text)

        transcript_id = resp.json()["id"]
        logger.info("Created transcript %s", transcript_id)
        return transcript_id

    async def transcribe(
        self,
        audio: bytes,
        on_status: Callable[[str], None] | None = None,
    ) -> str:
        """Upload audio and start its transcription; return the job ID."""
        audio_url = await self.upload_audio(audio, on_status=on_status)
        return await self.create_transcript(audio_url, on_status=on_status)

    # ------------------------------------------------------------------
    # Step 3: Poll
    # ------------------------------------------------------------------

    async def poll_status(self, transcript_id: str) -> Optional[TranscriptStatus]:
        """Fetch the current status of a job, or None if it does not exist."""
        client = self._ensure_client()
        resp = await client.get(f"/transcript/{transcript_id}")
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise AssemblyAIError(resp.status_code, resp.text)
        return TranscriptStatus.from_dict(resp.json())

    async def poll_until_complete(
        self,
        transcript_id: str,
        on_status: Callable[[str], None] | None = None,
        on_poll: Callable[[TranscriptStatus], None] | None = None,
    ) -> TranscriptStatus:
        """Poll a job on a fixed interval until it completes or fails.

        RULES:
        - Returns the TranscriptStatus when status is "completed"
        - Raises TranscriptionError when status is "error"
        - Raises TranscriptNotFoundError when the job disappears (404)
        - Raises TranscriptionTimeoutError after timeout_s
        - on_poll receives every polled TranscriptStatus, terminal ones included
        """
        start_time = time.monotonic()

        while True:
            elapsed = time.monotonic() - start_time
            if elapsed > self._timeout_s:
                raise TranscriptionTimeoutError(
                    f"Transcript {transcript_id} timed out after "
                    f"{elapsed:.0f}s (limit: {self._timeout_s:.0f}s)"
                )

            status = await self.poll_status(transcript_id)
            if status is None:
                raise TranscriptNotFoundError(f"Transcript not found: {transcript_id}")

            logger.debug("Transcript %s is %s", transcript_id, status.status)
            if on_poll:
                on_poll(status)
            if on_status:
                if status.status == "queued":
                    on_status("Transcription queued...")
                elif status.status == "processing":
                    on_status(
                        f"Transcribing... (elapsed: {int(elapsed) // 60}m {int(elapsed) % 60:02d}s)"
                    )
                elif status.status == "completed":
                    on_status("Transcription complete.")

            if status.is_terminal:
                if status.status == "error":
                    raise TranscriptionError(
                        f"Transcription failed: {status.error or 'Unknown error'}"
                    )
                return status

            await asyncio.sleep(self._poll_interval_s)

    # ------------------------------------------------------------------
    # Provider SRT (for comparison)
    # ------------------------------------------------------------------

    async def fetch_srt(self, transcript_id: str) -> Optional[str]:
        """Fetch the provider's own SRT rendering, or None if unknown."""
        client = self._ensure_client()
        resp = await client.get(f"/transcript/{transcript_id}/srt")
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise AssemblyAIError(resp.status_code, resp.text)
        return resp.text
