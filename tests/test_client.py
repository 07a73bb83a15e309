"""Tests for the AssemblyAI async client.

WHY: The client is the only code that talks to the provider. Wrong
paths, a missing authorization header, or unit mix-ups (milliseconds vs
seconds) would break every transcription, and polling must stop cleanly
on errors, vanished jobs, and timeouts.

HOW: httpx.MockTransport stands in for the network. Each test records
the requests it sees and replies with canned JSON. Async methods are
driven with asyncio.run().

RULES:
- No network access; every request goes through the mock transport
- poll_interval_s is 0 so polling tests run instantly
"""

import asyncio
import json

import httpx
import pytest

from captionize.api.client import (
    AssemblyAIClient,
    AssemblyAIError,
    TranscriptionError,
    TranscriptionTimeoutError,
    TranscriptNotFoundError,
)
from captionize.api.models import TranscriptStatus, progress_for_status
from captionize.core.ir import Word

API_KEY = "test-key-123"
TRANSCRIPT_ID = "5551722-f677-48a4-a4a2-6d4b1f7a1f00"


def _client(handler, **kwargs):
    kwargs.setdefault("poll_interval_s", 0)
    return AssemblyAIClient(API_KEY, transport=httpx.MockTransport(handler), **kwargs)


def _run(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Construction and context management
# ---------------------------------------------------------------------------


class TestClientSetup:

    def test_empty_api_key_rejected(self):
        with pytest.raises(ValueError):
            AssemblyAIClient("")

    def test_methods_require_context_manager(self):
        client = AssemblyAIClient(API_KEY)
        with pytest.raises(RuntimeError, match="async context manager"):
            _run(client.poll_status(TRANSCRIPT_ID))

    def test_raw_authorization_header(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": TRANSCRIPT_ID, "status": "queued"})

        async def go():
            async with _client(handler) as client:
                await client.poll_status(TRANSCRIPT_ID)

        _run(go())
        assert seen[0].headers["authorization"] == API_KEY
        assert seen[0].url.host == "api.assemblyai.com"
        assert seen[0].url.path == "/v2/transcript/" + TRANSCRIPT_ID

    def test_custom_base_url(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text="")

        async def go():
            async with _client(handler, base_url="https://eu.example.test/v2/") as client:
                await client.fetch_srt(TRANSCRIPT_ID)

        _run(go())
        assert str(seen[0].url) == "https://eu.example.test/v2/transcript/{}/srt".format(TRANSCRIPT_ID)


# ---------------------------------------------------------------------------
# Upload and create
# ---------------------------------------------------------------------------


class TestTranscribe:

    def test_upload_then_create(self):
        seen = []

        def handler(request):
            seen.append(request)
            if request.url.path == "/v2/upload":
                return httpx.Response(200, json={"upload_url": "https://cdn.example.com/abc"})
            if request.url.path == "/v2/transcript":
                return httpx.Response(200, json={"id": TRANSCRIPT_ID, "status": "queued"})
            return httpx.Response(404)

        messages = []

        async def go():
            async with _client(handler) as client:
                return await client.transcribe(b"\x00\x01audio", on_status=messages.append)

        assert _run(go()) == TRANSCRIPT_ID

        upload, create = seen
        assert upload.method == "POST"
        assert upload.headers["content-type"] == "application/octet-stream"
        assert upload.content == b"\x00\x01audio"
        assert create.method == "POST"
        assert json.loads(create.content) == {"audio_url": "https://cdn.example.com/abc"}
        assert messages[0].startswith("Uploading audio")

    def test_upload_error_raises(self):
        def handler(request):
            return httpx.Response(401, text="Invalid API key")

        async def go():
            async with _client(handler) as client:
                await client.upload_audio(b"data")

        with pytest.raises(AssemblyAIError) as excinfo:
            _run(go())
        assert excinfo.value.status_code == 401
        assert excinfo.value.message == "Invalid API key"

    def test_create_error_raises(self):
        def handler(request):
            if request.url.path == "/v2/upload":
                return httpx.Response(200, json={"upload_url": "https://cdn.example.com/abc"})
            return httpx.Response(400, text="bad audio_url")

        async def go():
            async with _client(handler) as client:
                await client.transcribe(b"data")

        with pytest.raises(AssemblyAIError, match="400"):
            _run(go())


# ---------------------------------------------------------------------------
# Status and polling
# ---------------------------------------------------------------------------


class TestPolling:

    def test_poll_status_converts_milliseconds(self, provider_transcript):
        def handler(request):
            return httpx.Response(200, json=provider_transcript)

        async def go():
            async with _client(handler) as client:
                return await client.poll_status(TRANSCRIPT_ID)

        status = _run(go())
        assert isinstance(status, TranscriptStatus)
        assert status.status == "completed"
        assert status.words[0] == Word("Hi", 0.0, 0.5, 0.98)
        assert status.words[-1].end == 4.4
        assert status.audio_duration_s == 5.0

    def test_poll_status_404_returns_none(self):
        async def go():
            async with _client(lambda r: httpx.Response(404, text="not found")) as client:
                return await client.poll_status("missing")

        assert _run(go()) is None

    def test_poll_status_500_raises(self):
        async def go():
            async with _client(lambda r: httpx.Response(500, text="boom")) as client:
                return await client.poll_status(TRANSCRIPT_ID)

        with pytest.raises(AssemblyAIError):
            _run(go())

    def test_polls_until_completed(self, provider_transcript):
        replies = iter([
            {"id": TRANSCRIPT_ID, "status": "queued"},
            {"id": TRANSCRIPT_ID, "status": "processing"},
            {"id": TRANSCRIPT_ID, "status": "processing"},
            provider_transcript,
        ])
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=next(replies))

        messages = []

        async def go():
            async with _client(handler) as client:
                return await client.poll_until_complete(TRANSCRIPT_ID, on_status=messages.append)

        status = _run(go())
        assert status.status == "completed"
        assert len(status.words) == 11
        assert len(calls) == 4
        assert messages[0] == "Transcription queued..."
        assert messages[1].startswith("Transcribing...")
        assert messages[-1] == "Transcription complete."

    def test_on_poll_sees_every_status(self, provider_transcript):
        replies = iter([
            {"id": TRANSCRIPT_ID, "status": "queued"},
            {"id": TRANSCRIPT_ID, "status": "processing"},
            provider_transcript,
        ])
        polled = []

        async def go():
            async with _client(lambda r: httpx.Response(200, json=next(replies))) as client:
                return await client.poll_until_complete(TRANSCRIPT_ID, on_poll=polled.append)

        _run(go())
        assert [s.status for s in polled] == ["queued", "processing", "completed"]
        assert [s.is_terminal for s in polled] == [False, False, True]

    def test_on_poll_sees_error_before_raise(self):
        polled = []

        def handler(request):
            return httpx.Response(200, json={"id": TRANSCRIPT_ID, "status": "error", "error": "bad"})

        async def go():
            async with _client(handler) as client:
                await client.poll_until_complete(TRANSCRIPT_ID, on_poll=polled.append)

        with pytest.raises(TranscriptionError):
            _run(go())
        assert [s.status for s in polled] == ["error"]

    def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(200, json={
                "id": TRANSCRIPT_ID, "status": "error", "error": "Audio file is empty",
            })

        async def go():
            async with _client(handler) as client:
                await client.poll_until_complete(TRANSCRIPT_ID)

        with pytest.raises(TranscriptionError, match="Audio file is empty"):
            _run(go())

    def test_vanished_job_raises_not_found(self):
        async def go():
            async with _client(lambda r: httpx.Response(404)) as client:
                await client.poll_until_complete("gone")

        with pytest.raises(TranscriptNotFoundError):
            _run(go())

    def test_timeout(self):
        def handler(request):
            return httpx.Response(200, json={"id": TRANSCRIPT_ID, "status": "processing"})

        async def go():
            async with _client(handler, timeout_s=-1) as client:
                await client.poll_until_complete(TRANSCRIPT_ID)

        with pytest.raises(TranscriptionTimeoutError):
            _run(go())

    def test_timeout_is_a_timeout_error(self):
        assert issubclass(TranscriptionTimeoutError, TimeoutError)


# ---------------------------------------------------------------------------
# Provider SRT
# ---------------------------------------------------------------------------


class TestFetchSrt:

    def test_returns_text(self, provider_srt):
        async def go():
            async with _client(lambda r: httpx.Response(200, text=provider_srt)) as client:
                return await client.fetch_srt(TRANSCRIPT_ID)

        assert _run(go()) == provider_srt

    def test_unknown_job_returns_none(self):
        async def go():
            async with _client(lambda r: httpx.Response(404)) as client:
                return await client.fetch_srt("missing")

        assert _run(go()) is None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TestTranscriptStatus:

    def test_minimal_payload(self):
        status = TranscriptStatus.from_dict({"id": "abc", "status": "queued", "words": None})
        assert status.words == []
        assert status.audio_duration_s is None
        assert not status.is_terminal

    def test_terminal_statuses(self):
        assert TranscriptStatus("a", "completed").is_terminal
        assert TranscriptStatus("a", "error").is_terminal
        assert not TranscriptStatus("a", "processing").is_terminal

    @pytest.mark.parametrize("status,expected", [
        ("queued", 10), ("processing", 50), ("completed", 100), ("other", 25),
    ])
    def test_progress_for_status(self, status, expected):
        assert progress_for_status(status) == expected
