"""Tests for the shared captioning pipeline.

WHY: The CLI and the server both depend on run_pipeline() calling its
collaborators in order and handing the completed word list to the
segmenter exactly once.

HOW: Fake fetcher and client objects record their calls. The pipeline is
driven with asyncio.run().
"""

import asyncio

import pytest

from captionize.api.client import TranscriptionError
from captionize.api.models import TranscriptStatus, word_from_provider
from captionize.core.ir import Word
from captionize.media.acquisition import AudioMetadata
from captionize.pipeline import CaptionResult, build_result, run_pipeline

METADATA = AudioMetadata(
    source="https://example.com/watch?v=1",
    title="Show Intro",
    filename="Show_Intro.mp3",
    duration_s=6.0,
)


class FakeFetcher:
    def __init__(self):
        self.sources = []

    def fetch_audio(self, source):
        self.sources.append(source)
        return b"mp3-bytes", METADATA


class FakeClient:
    def __init__(self, status):
        self.status = status
        self.calls = []

    async def transcribe(self, audio, on_status=None):
        self.calls.append(("transcribe", audio))
        return self.status.id

    async def poll_until_complete(self, transcript_id, on_status=None, on_poll=None):
        self.calls.append(("poll", transcript_id))
        if on_poll:
            on_poll(TranscriptStatus(id=transcript_id, status="processing"))
            on_poll(self.status)
        if self.status.status == "error":
            raise TranscriptionError("Transcription failed: bad audio")
        return self.status


@pytest.fixture
def completed_status(provider_transcript):
    return TranscriptStatus.from_dict(provider_transcript)


class TestRunPipeline:

    def test_happy_path(self, completed_status, provider_srt):
        fetcher = FakeFetcher()
        client = FakeClient(completed_status)

        result = asyncio.run(run_pipeline(METADATA.source, fetcher, client))

        assert isinstance(result, CaptionResult)
        assert fetcher.sources == [METADATA.source]
        assert client.calls == [("transcribe", b"mp3-bytes"), ("poll", completed_status.id)]
        assert result.transcript_id == completed_status.id
        assert len(result.words) == 11
        assert [c.text for c in result.captions] == [
            "Hi there, welcome to the show.",
            "Thanks for joining us today!",
        ]
        assert result.srt == provider_srt
        assert result.duration_s == 5.0

    def test_stage_and_status_callbacks(self, completed_status):
        stages, messages = [], []
        asyncio.run(run_pipeline(
            "talk.mp3", FakeFetcher(), FakeClient(completed_status),
            on_status=messages.append, stage_callback=stages.append,
        ))
        assert stages == ["downloading", "uploading", "transcribing", "converting"]
        assert messages[0] == "Fetching audio from talk.mp3..."
        assert messages[-1] == "Segmenting 11 words into captions..."

    def test_poll_callback_forwarded(self, completed_status):
        polled = []
        asyncio.run(run_pipeline(
            "talk.mp3", FakeFetcher(), FakeClient(completed_status), on_poll=polled.append,
        ))
        assert [s.status for s in polled] == ["processing", "completed"]

    def test_provider_failure_propagates(self):
        failed = TranscriptStatus(id="t-1", status="error", error="bad audio")
        stages = []
        with pytest.raises(TranscriptionError):
            asyncio.run(run_pipeline(
                "talk.mp3", FakeFetcher(), FakeClient(failed), stage_callback=stages.append,
            ))
        assert "converting" not in stages

    def test_empty_transcript_gives_empty_srt(self):
        silent = TranscriptStatus(id="t-2", status="completed", words=[])
        result = asyncio.run(run_pipeline("quiet.wav", FakeFetcher(), FakeClient(silent)))
        assert result.captions == ()
        assert result.srt == ""


class TestCaptionResult:

    def test_document_uses_provider_duration(self, provider_transcript):
        words = tuple(word_from_provider(w) for w in provider_transcript["words"])
        doc = build_result("t-1", METADATA, words, duration_s=5.0).document()
        assert doc.duration_s == 5.0
        assert doc.title == "Show Intro"
        assert doc.source_name == "Show_Intro.mp3"
        assert len(doc.captions) == 2

    def test_document_falls_back_to_metadata_duration(self):
        doc = build_result("t-1", METADATA, (Word("hi", 0.0, 0.4),)).document()
        assert doc.duration_s == 6.0

    def test_document_falls_back_to_last_word(self):
        meta = AudioMetadata(source="a.mp3", title="a", filename="a.mp3")
        words = (Word("one", 0.0, 0.4), Word("two", 0.4, 1.25))
        assert build_result("t-1", meta, words).document().duration_s == 1.25

    def test_document_without_words_or_duration(self):
        meta = AudioMetadata(source="a.mp3", title="a", filename="a.mp3")
        assert build_result("t-1", meta, ()).document().duration_s == 0.0
