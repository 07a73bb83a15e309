"""End-to-end captioning pipeline shared by the CLI and the HTTP server.

WHY: Both entry points run the same steps: acquire audio, transcribe it,
segment the words, and render SRT. Keeping the sequence in one function
means the two surfaces can never drift apart.

HOW: run_pipeline() awaits each collaborator in turn and returns a
CaptionResult. The collaborators are passed in, so tests substitute
fakes and deployments choose their own configuration.

RULES:
- fetch_audio runs in a worker thread (yt-dlp is blocking)
- The core is invoked once, on the full word list of a completed job
- on_status receives human-readable progress strings; stage_callback
  receives a stage name ("downloading", "uploading", ...) for job stores;
  on_poll receives each raw provider status while the job is transcribing
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional, Tuple

from captionize.api.client import AssemblyAIClient
from captionize.api.models import TranscriptStatus
from captionize.core.ir import Caption, CaptionDocument, Word
from captionize.core.segmenter import segment
from captionize.core.srt import serialize
from captionize.media.acquisition import AudioFetcher, AudioMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptionResult:
    """Everything produced for one source."""

    transcript_id: str
    metadata: AudioMetadata
    words: Tuple[Word, ...]
    captions: Tuple[Caption, ...]
    srt: str
    duration_s: Optional[float] = field(default=None)

    def document(self) -> CaptionDocument:
        """Build the formatter input for this result."""
        duration = self.duration_s
        if duration is None:
            duration = self.metadata.duration_s
        if duration is None:
            duration = self.words[-1].end if self.words else 0.0
        return CaptionDocument(
            source_name=self.metadata.filename,
            title=self.metadata.title,
            duration_s=duration,
            words=self.words,
            captions=self.captions,
        )


def build_result(
    transcript_id: str,
    metadata: AudioMetadata,
    words: Tuple[Word, ...],
    duration_s: Optional[float] = None,
) -> CaptionResult:
    """Segment words and render SRT into a CaptionResult."""
    captions = segment(words)
    return CaptionResult(
        transcript_id=transcript_id,
        metadata=metadata,
        words=tuple(words),
        captions=captions,
        srt=serialize(captions),
        duration_s=duration_s,
    )


async def run_pipeline(
    source: str,
    fetcher: AudioFetcher,
    client: AssemblyAIClient,
    on_status: Callable[[str], None] | None = None,
    stage_callback: Callable[[str], None] | None = None,
    on_poll: Callable[[TranscriptStatus], None] | None = None,
) -> CaptionResult:
    """Acquire, transcribe, and caption a single source.

    Args:
        source: Video URL or local media file path.
        fetcher: Audio acquisition collaborator.
        client: An entered AssemblyAIClient.
        on_status: Optional callback for human-readable status lines.
        stage_callback: Optional callback for machine-readable stage names.
        on_poll: Optional callback for each provider status seen while polling.

    Returns:
        CaptionResult with words, captions, and the SRT document.
    """
    def _stage(name: str) -> None:
        if stage_callback:
            stage_callback(name)

    _stage("downloading")
    if on_status:
        on_status("Fetching audio from {}...".format(source))
    audio, metadata = await asyncio.to_thread(fetcher.fetch_audio, source)

    _stage("uploading")
    transcript_id = await client.transcribe(audio, on_status=on_status)

    _stage("transcribing")
    status = await client.poll_until_complete(
        transcript_id, on_status=on_status, on_poll=on_poll
    )

    _stage("converting")
    if on_status:
        on_status("Segmenting {} words into captions...".format(len(status.words)))
    result = build_result(
        transcript_id,
        metadata,
        tuple(status.words),
        duration_s=status.audio_duration_s,
    )
    logger.info(
        "Transcript %s: %d words, %d captions",
        transcript_id, len(result.words), len(result.captions),
    )
    return result
