"""FastAPI application with captioning routes and OpenAPI docs.

WHY: Browsers and other tools need an HTTP API to submit a video URL or
upload a file, poll for status, preview captions, and download the SRT.
FastAPI provides automatic OpenAPI documentation, request validation,
and background task support.

HOW: A single FastAPI app. POST /transcriptions/url and POST
/transcriptions create a job and run the captioning pipeline in the
background; the other endpoints read the job store. Settings are loaded
when a pipeline starts and passed to the fetcher and provider client.

RULES:
- Error responses use the ErrorResponse schema
- Background work uses FastAPI BackgroundTasks + JobStore.run_in_background
- The job store is a module-level singleton; expired jobs are purged every 5 minutes
- Uploaded file extensions are checked against SUPPORTED_MEDIA_FORMATS
"""

from __future__ import annotations

import asyncio
import logging
import unicodedata
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, List, Optional
from urllib.parse import quote

from fastapi import BackgroundTasks, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import HttpUrl, TypeAdapter, ValidationError

from captionize import __version__
from captionize.api.client import AssemblyAIClient
from captionize.api.models import TranscriptStatus, progress_for_status
from captionize.config import SUPPORTED_MEDIA_FORMATS, load_settings
from captionize.core.srt import to_preview
from captionize.core.timestamps import format_timestamp
from captionize.formatters import FORMATTERS
from captionize.media.acquisition import AudioFetcher
from captionize.pipeline import run_pipeline
from captionize.server.jobs import STATUS_PROGRESS, Job, JobStatus, JobStore
from captionize.server.models import (
    CaptionListResponse,
    CaptionModel,
    ErrorResponse,
    FileInfo,
    FileListResponse,
    FormatInfo,
    HealthResponse,
    JobCreatedResponse,
    JobResponse,
    PreviewCaptionModel,
    UrlTranscriptionRequest,
)

logger = logging.getLogger(__name__)

_CLEANUP_INTERVAL_S = 300

_URL_ADAPTER = TypeAdapter(HttpUrl)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

job_store = JobStore()


async def _periodic_cleanup() -> None:
    """Run job cleanup every 5 minutes."""
    while True:
        await asyncio.sleep(_CLEANUP_INTERVAL_S)
        job_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Captionize API",
    description=(
        "Turn a video URL or uploaded media file into time-aligned SRT captions. "
        "Submit a source, poll for status, preview the captions, and download results."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _job_to_response(job: Job) -> JobResponse:
    """Convert an internal Job dataclass to a JobResponse model."""
    completed = job.status == JobStatus.COMPLETED
    captions = None
    if completed:
        captions = [
            PreviewCaptionModel(id=p.id, start=p.start, text=p.text)
            for p in to_preview(job.captions)
        ]
    return JobResponse(
        id=job.id,
        status=job.status.value,
        progress=job.progress,
        source=job.source,
        created_at=job.created_at,
        title=job.title,
        duration=job.duration_s,
        config=job.config,
        error=job.error,
        captions=captions,
        output_files=job.output_files if completed and job.output_files else None,
    )


def _get_job_or_404(job_id: str) -> Job:
    job = job_store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return job


def _require_completed(job: Job) -> None:
    if job.status != JobStatus.COMPLETED:
        raise HTTPException(
            status_code=409,
            detail="Job is not completed (current status: {}).".format(job.status.value),
        )


def _validate_file_extension(filename: str) -> None:
    """Raise HTTPException if the file extension is not supported."""
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_MEDIA_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_MEDIA_FORMATS))
            ),
        )


def _validate_output_formats(format_keys: Optional[List[str]]) -> None:
    for key in format_keys or []:
        if key not in FORMATTERS:
            raise HTTPException(
                status_code=400,
                detail="Unknown output format '{}'. Available: {}".format(
                    key, ", ".join(sorted(FORMATTERS.keys()))
                ),
            )


def _transcribing_progress(status: TranscriptStatus) -> int:
    """Scale a provider status into the transcribing → converting progress band."""
    low = STATUS_PROGRESS[JobStatus.TRANSCRIBING]
    high = STATUS_PROGRESS[JobStatus.CONVERTING]
    return low + (high - low) * progress_for_status(status.status) // 100


def _title_stem(title: Optional[str]) -> str:
    """Turn a video title into a download filename stem.

    Dots and non-ASCII letters are kept; path separators, quotes and
    control characters are not.
    """
    stem = "".join(ch for ch in title or "" if unicodedata.category(ch)[0] != "C")
    stem = stem.replace("/", "_").replace("\\", "_").replace('"', "").strip()
    return stem or "captions"


def _attachment_disposition(stem: str, suffix: str) -> str:
    """Build a Content-Disposition value that is safe for any filename.

    RULES:
    - filename= always holds an ASCII fallback (headers are encoded as latin-1)
    - filename*= (RFC 5987) carries the UTF-8 name when the fallback differs
    """
    ascii_stem = unicodedata.normalize("NFKD", stem).encode("ascii", "ignore").decode("ascii")
    ascii_stem = " ".join(ascii_stem.replace('"', "").split()) or "captions"
    value = 'attachment; filename="{}{}"'.format(ascii_stem, suffix)
    if ascii_stem != stem:
        value += "; filename*=UTF-8''{}".format(quote(stem + suffix))
    return value


def _create_job_or_429(source: str, config: dict) -> Job:
    try:
        return job_store.create_job(source=source, config=config)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))


async def _run_captioning_pipeline(job_id: str, store: JobStore) -> None:
    """Run fetch → transcribe → segment → format for one job.

    RULES:
    - Each pipeline stage is mirrored into the job status
    - While transcribing, provider polls move progress within the stage
    - Output files are written to the job's output_dir as {stem}{suffix}
    - Exceptions propagate; JobStore.run_in_background marks the job failed
    """
    job = store.get_job(job_id)
    if job is None:
        return

    settings = load_settings()
    source = str(job.input_path) if job.input_path else job.source
    format_keys = job.config.get("output_formats") or list(FORMATTERS.keys())

    fetcher = AudioFetcher(work_dir=job.output_dir)
    async with AssemblyAIClient(
        settings.require_api_key(),
        base_url=settings.base_url,
        poll_interval_s=settings.poll_interval_s,
        timeout_s=settings.poll_timeout_s,
    ) as client:
        result = await run_pipeline(
            source,
            fetcher,
            client,
            stage_callback=lambda stage: store.update_job(job_id, status=JobStatus(stage)),
            on_poll=lambda status: store.update_job(
                job_id, progress=_transcribing_progress(status)
            ),
        )

    document = result.document()
    stem = Path(result.metadata.filename).stem or "captions"
    output_filenames = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        for output in formatter.format(document):
            out_filename = "{}{}".format(stem, output.suffix)
            out_path = job.output_dir / out_filename
            if isinstance(output.content, bytes):
                out_path.write_bytes(output.content)
            else:
                out_path.write_text(output.content, encoding="utf-8")
            output_filenames.append(out_filename)

    store.update_job(
        job_id,
        status=JobStatus.COMPLETED,
        title=result.metadata.title,
        duration_s=document.duration_s,
        transcript_id=result.transcript_id,
        captions=result.captions,
        srt=result.srt,
        output_files=output_filenames,
    )
    logger.info("Job %s completed with %d captions", job_id, len(result.captions))


def _run_captioning_sync(job_id: str, store: JobStore) -> None:
    """Synchronous wrapper for the async pipeline (BackgroundTasks runs sync callables)."""
    store.run_in_background(
        job_id,
        lambda jid, s: asyncio.run(_run_captioning_pipeline(jid, s)),
    )


def _infer_media_type(filename: str) -> str:
    """Infer MIME type from filename extension."""
    ext = Path(filename).suffix.lower()
    mapping = {
        ".json": "application/json",
        ".srt": "application/x-subrip",
        ".txt": "text/plain",
    }
    return mapping.get(ext, "application/octet-stream")


# ---------------------------------------------------------------------------
# Endpoints: Transcriptions
# ---------------------------------------------------------------------------


@app.post(
    "/transcriptions/url",
    response_model=JobCreatedResponse,
    status_code=201,
    tags=["transcriptions"],
    summary="Caption a video URL",
    description=(
        "Submit a video page or media URL. Returns a job ID immediately; "
        "poll GET /transcriptions/{id} for progress."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL or output format"},
        429: {"model": ErrorResponse, "description": "Too many concurrent jobs"},
    },
)
async def create_url_transcription(
    request: UrlTranscriptionRequest,
    background_tasks: BackgroundTasks,
) -> JobCreatedResponse:
    try:
        _URL_ADAPTER.validate_python(request.url)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid URL")
    if not request.url.startswith(("http://", "https://")):
        raise HTTPException(status_code=400, detail="Invalid URL")

    _validate_output_formats(request.output_formats)

    job = _create_job_or_429(
        request.url,
        {"kind": "url", "output_formats": request.output_formats},
    )
    background_tasks.add_task(_run_captioning_sync, job.id, job_store)

    return JobCreatedResponse(id=job.id, status=job.status.value, source=job.source)


@app.post(
    "/transcriptions",
    response_model=JobCreatedResponse,
    status_code=201,
    tags=["transcriptions"],
    summary="Caption an uploaded file",
    description=(
        "Upload an audio or video file. Returns a job ID immediately; "
        "poll GET /transcriptions/{id} for progress."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid file type or output format"},
        429: {"model": ErrorResponse, "description": "Too many concurrent jobs"},
    },
)
async def create_file_transcription(
    background_tasks: BackgroundTasks,
    file: Annotated[
        UploadFile,
        File(description="Audio or video file to caption"),
    ],
    output_formats: Annotated[
        Optional[str],
        Form(description="Comma-separated output formats (srt, captions_json, plain_text). Defaults to all."),
    ] = None,
) -> JobCreatedResponse:
    # Strip any client-supplied directories from the name
    filename = Path(file.filename or "upload").name
    _validate_file_extension(filename)

    format_keys = None  # type: Optional[List[str]]
    if output_formats:
        format_keys = [f.strip() for f in output_formats.split(",") if f.strip()]
        _validate_output_formats(format_keys)

    job = _create_job_or_429(filename, {"kind": "file", "output_formats": format_keys})

    input_path = job.output_dir / filename
    input_path.write_bytes(await file.read())
    job_store.update_job(job.id, input_path=input_path)

    background_tasks.add_task(_run_captioning_sync, job.id, job_store)

    return JobCreatedResponse(id=job.id, status=job.status.value, source=job.source)


@app.get(
    "/transcriptions/{job_id}",
    response_model=JobResponse,
    tags=["transcriptions"],
    summary="Get captioning job status",
    responses={404: {"model": ErrorResponse, "description": "Job not found"}},
)
async def get_transcription(job_id: str) -> JobResponse:
    return _job_to_response(_get_job_or_404(job_id))


@app.get(
    "/transcriptions/{job_id}/captions",
    response_model=CaptionListResponse,
    tags=["transcriptions"],
    summary="Get the full caption list",
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
        409: {"model": ErrorResponse, "description": "Job not yet completed"},
    },
)
async def get_transcription_captions(job_id: str) -> CaptionListResponse:
    job = _get_job_or_404(job_id)
    _require_completed(job)
    return CaptionListResponse(
        job_id=job.id,
        captions=[
            CaptionModel(
                index=c.index,
                start=c.start,
                end=c.end,
                start_time=format_timestamp(c.start),
                end_time=format_timestamp(c.end),
                text=c.text,
            )
            for c in job.captions
        ],
    )


@app.get(
    "/transcriptions/{job_id}/srt",
    tags=["transcriptions"],
    summary="Download the SRT document",
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
        409: {"model": ErrorResponse, "description": "Job not yet completed"},
    },
)
async def download_transcription_srt(job_id: str) -> Response:
    job = _get_job_or_404(job_id)
    _require_completed(job)
    return Response(
        content=job.srt or "",
        media_type="application/x-subrip",
        headers={"Content-Disposition": _attachment_disposition(_title_stem(job.title), ".srt")},
    )


@app.get(
    "/transcriptions/{job_id}/files",
    response_model=FileListResponse,
    tags=["transcriptions"],
    summary="List output files for a completed job",
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
        409: {"model": ErrorResponse, "description": "Job not yet completed"},
    },
)
async def list_transcription_files(job_id: str) -> FileListResponse:
    job = _get_job_or_404(job_id)
    _require_completed(job)

    files = []
    for fname in job.output_files:
        fpath = job.output_dir / fname
        if fpath.exists():
            files.append(FileInfo(
                filename=fname,
                media_type=_infer_media_type(fname),
                size=fpath.stat().st_size,
            ))

    return FileListResponse(job_id=job.id, files=files)


@app.get(
    "/transcriptions/{job_id}/files/{filename}",
    tags=["transcriptions"],
    summary="Download a single output file",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid filename"},
        404: {"model": ErrorResponse, "description": "Job or file not found"},
        409: {"model": ErrorResponse, "description": "Job not yet completed"},
    },
)
async def download_transcription_file(job_id: str, filename: str) -> Response:
    if "/" in filename or "\\" in filename or ".." in filename:
        raise HTTPException(status_code=400, detail="Invalid filename")

    job = _get_job_or_404(job_id)
    _require_completed(job)

    if filename not in job.output_files:
        raise HTTPException(
            status_code=404,
            detail="File '{}' not found in job output files.".format(filename),
        )

    fpath = job.output_dir / filename
    if not fpath.exists():
        raise HTTPException(
            status_code=404,
            detail="File '{}' not found on disk.".format(filename),
        )

    return Response(
        content=fpath.read_bytes(),
        media_type=_infer_media_type(filename),
        headers={
            "Content-Disposition": _attachment_disposition(
                Path(filename).stem, Path(filename).suffix
            ),
        },
    )


@app.delete(
    "/transcriptions/{job_id}",
    status_code=204,
    tags=["transcriptions"],
    summary="Delete a captioning job",
    responses={404: {"model": ErrorResponse, "description": "Job not found"}},
)
async def delete_transcription(job_id: str) -> Response:
    if not job_store.delete_job(job_id):
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Formats and health
# ---------------------------------------------------------------------------


@app.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List available output formats",
)
async def list_formats() -> List[FormatInfo]:
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        result.append(FormatInfo(key=key, name=formatter.name, suffix=formatter.suffix))
    return result


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the captionize-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
