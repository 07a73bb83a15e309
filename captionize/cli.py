"""Command-line interface for Captionize.

WHY: Users need a simple way to caption a video from the terminal. The
CLI wires together the full pipeline (audio acquisition, AssemblyAI
transcription, caption segmentation, formatter output, and file saving)
behind a single command.

HOW: Uses argparse to accept a source (URL or media file), output format
selection, and output directory. Runs the async pipeline via
asyncio.run(). With --from-transcript the source is a saved AssemblyAI
transcript JSON, validated with jsonschema and captioned offline.
Status messages go to stderr; output files go to --output-dir.

RULES:
- Positional argument: source (URL, media file, or transcript JSON)
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-captions-2.srt)
- Status output goes to stderr (not stdout)
- --compare-provider-srt checks our SRT against the provider's rendering
- Exit code 1 on errors, 130 on Ctrl-C
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from pathlib import Path
from typing import List, Optional

import jsonschema

from captionize.api.client import AssemblyAIClient
from captionize.api.models import TRANSCRIPT_SCHEMA, TranscriptStatus
from captionize.config import Settings, load_settings
from captionize.formatters import FORMATTERS
from captionize.formatters.base import FormatterOutput
from captionize.media.acquisition import AudioFetcher, AudioMetadata, is_url
from captionize.pipeline import CaptionResult, build_result, run_pipeline


def _status(msg: str) -> None:
    """Print a status message to stderr (stdout stays pipeable)."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    """Write one formatter output without overwriting existing files.

    RULES:
    - First choice: {stem}{suffix}
    - On conflict: {stem}{suffix-base}-2{ext}, -3, ... (e.g. talk-captions-2.srt)
    """
    suffix_path = Path(output.suffix)
    base, ext = suffix_path.stem, suffix_path.suffix
    candidate = output_dir / "{}{}".format(stem, output.suffix)
    counter = 2
    while candidate.exists():
        candidate = output_dir / "{}{}-{}{}".format(stem, base, counter, ext)
        counter += 1

    if isinstance(output.content, bytes):
        candidate.write_bytes(output.content)
    else:
        candidate.write_text(output.content, encoding="utf-8")
    return candidate


def load_transcript_file(path: Path) -> TranscriptStatus:
    """Load and validate a saved AssemblyAI transcript response.

    Raises:
        ValueError: If the file is not valid JSON, does not match
            TRANSCRIPT_SCHEMA, or the transcript is not completed.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError("{} is not valid JSON: {}".format(path.name, exc))

    try:
        jsonschema.validate(instance=data, schema=TRANSCRIPT_SCHEMA)
    except jsonschema.ValidationError as exc:
        raise ValueError("{} is not a transcript response: {}".format(path.name, exc.message))

    status = TranscriptStatus.from_dict(data)
    if status.status != "completed":
        raise ValueError(
            "Transcript {} is not completed (status: {})".format(status.id, status.status)
        )
    return status


def _caption_saved_transcript(path: Path) -> CaptionResult:
    status = load_transcript_file(path)
    _status("Loaded {} words from {}".format(len(status.words), path.name))
    metadata = AudioMetadata(source=str(path), title=path.stem, filename=path.name)
    return build_result(
        status.id,
        metadata,
        tuple(status.words),
        duration_s=status.audio_duration_s,
    )


async def _caption_source(source: str, settings: Settings) -> CaptionResult:
    fetcher = AudioFetcher(work_dir=settings.work_dir)
    async with AssemblyAIClient(
        settings.require_api_key(),
        base_url=settings.base_url,
        poll_interval_s=settings.poll_interval_s,
        timeout_s=settings.poll_timeout_s,
    ) as client:
        return await run_pipeline(source, fetcher, client, on_status=_status)


async def _fetch_provider_srt(transcript_id: str, settings: Settings) -> Optional[str]:
    async with AssemblyAIClient(
        settings.require_api_key(),
        base_url=settings.base_url,
    ) as client:
        return await client.fetch_srt(transcript_id)


def _srt_blocks(srt: str) -> List[str]:
    text = srt.replace("\r\n", "\n").strip()
    return [b.strip() for b in text.split("\n\n") if b.strip()]


def _compare_provider_srt(
    result: CaptionResult,
    provider_srt: Optional[str],
) -> Optional[FormatterOutput]:
    """Report how the provider's SRT compares with ours.

    Returns the provider SRT as an extra output when the two differ.
    """
    if provider_srt is None:
        _status("Provider has no SRT for transcript {}".format(result.transcript_id))
        return None
    ours, theirs = _srt_blocks(result.srt), _srt_blocks(provider_srt)
    if ours == theirs:
        _status("Provider SRT matches ({} captions)".format(len(ours)))
        return None
    _status("Provider SRT differs: {} captions here, {} from the provider".format(
        len(ours), len(theirs)
    ))
    return FormatterOutput(
        suffix="-provider.srt",
        content=provider_srt,
        media_type="application/x-subrip",
    )


def _run(args: argparse.Namespace) -> None:
    # Determine which formatters to run
    if args.formats:
        format_keys = [f.strip() for f in args.formats.split(",") if f.strip()]
        for key in format_keys:
            if key not in FORMATTERS:
                _fail("Unknown format '{}'. Available formats: {}".format(
                    key, ", ".join(sorted(FORMATTERS.keys()))
                ))
    else:
        format_keys = list(FORMATTERS.keys())

    source = args.source
    if args.output_dir:
        output_dir = Path(args.output_dir).resolve()
    elif is_url(source):
        output_dir = Path.cwd()
    else:
        output_dir = Path(source).resolve().parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    settings = load_settings()
    if args.poll_interval is not None:
        settings = dataclasses.replace(settings, poll_interval_s=args.poll_interval)

    if args.from_transcript:
        transcript_path = Path(source)
        if not transcript_path.is_file():
            _fail("File not found: {}".format(transcript_path))
        result = _caption_saved_transcript(transcript_path)
    else:
        result = asyncio.run(_caption_source(source, settings))

    _status("  {} captions".format(len(result.captions)))

    document = result.document()
    stem = Path(result.metadata.filename).stem
    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        for output in formatter.format(document):
            saved_files.append(_save_output(output, stem, output_dir))

    if args.compare_provider_srt:
        provider_srt = asyncio.run(_fetch_provider_srt(result.transcript_id, settings))
        extra = _compare_provider_srt(result, provider_srt)
        if extra is not None:
            saved_files.append(_save_output(extra, stem, output_dir))

    _status("")
    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    for f in saved_files:
        _status("  {}".format(f.name))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="captionize",
        description="Caption a video URL or media file with AssemblyAI and "
                    "write SRT, caption JSON, and plain text outputs.",
    )

    parser.add_argument(
        "source",
        help="Video URL, local audio/video file, or (with --from-transcript) "
             "a saved AssemblyAI transcript JSON.",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: next to a local source, "
             "or the current directory for URLs).",
    )

    parser.add_argument(
        "--from-transcript",
        action="store_true",
        help="Treat SOURCE as a saved transcript JSON and caption it offline.",
    )

    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between provider status checks (default: from settings).",
    )

    parser.add_argument(
        "--compare-provider-srt",
        action="store_true",
        help="Also fetch AssemblyAI's own SRT for the transcript, report whether it "
             "matches, and save it as {stem}-provider.srt when it does not.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m captionize`` and the console script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        _run(args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except Exception as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
