"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: Each endpoint has its own model. All models include Field
descriptions for the /docs UI.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Times are float seconds; display strings are explicitly named
- Response models never expose internal paths or temp directories
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class UrlTranscriptionRequest(BaseModel):
    """Body of POST /transcriptions/url."""

    url: str = Field(description="Video page or media URL to caption (http or https).")
    output_formats: Optional[List[str]] = Field(
        default=None,
        description="Output formats to generate. Defaults to all available formats.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {"url": "https://www.youtube.com/watch?v=dQw4w9WgXcQ", "output_formats": ["srt"]}
        ]
    }}


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class CaptionModel(BaseModel):
    """One caption cue as produced by the segmenter."""

    index: int = Field(description="1-based, gapless cue number.")
    start: float = Field(description="Cue start in seconds.")
    end: float = Field(description="Cue end in seconds.")
    start_time: str = Field(description="Cue start as an SRT timestamp (HH:MM:SS,mmm).")
    end_time: str = Field(description="Cue end as an SRT timestamp (HH:MM:SS,mmm).")
    text: str = Field(description="Cue text.")


class PreviewCaptionModel(BaseModel):
    """Compact caption entry for preview lists."""

    id: int = Field(description="Cue number.")
    start: str = Field(description="Cue start as a whole-second HH:MM:SS clock.")
    text: str = Field(description="Cue text.")


class JobResponse(BaseModel):
    """Captioning job status response.

    RULES:
    - error is only set when status is 'failed'
    - captions and output_files are only populated when status is 'completed'
    """

    id: str = Field(description="Unique job identifier.")
    status: str = Field(description="Current job status.")
    progress: int = Field(description="Rough completion percentage (0-100).")
    source: str = Field(description="Submitted URL or uploaded filename.")
    created_at: float = Field(description="Job creation timestamp (Unix epoch seconds).")
    title: Optional[str] = Field(default=None, description="Source title, once known.")
    duration: Optional[float] = Field(default=None, description="Audio duration in seconds, once known.")
    config: Dict[str, Any] = Field(default_factory=dict, description="Job configuration.")
    error: Optional[str] = Field(
        default=None,
        description="Error message, only present when status is 'failed'.",
    )
    captions: Optional[List[PreviewCaptionModel]] = Field(
        default=None,
        description="Caption preview, only present when status is 'completed'.",
    )
    output_files: Optional[List[str]] = Field(
        default=None,
        description="Output filenames, only present when status is 'completed'.",
    )


class JobCreatedResponse(BaseModel):
    """Response returned when a new captioning job is submitted."""

    id: str = Field(description="Unique job identifier for polling status.")
    status: str = Field(description="Initial job status (always 'pending').")
    source: str = Field(description="Submitted URL or uploaded filename.")


class CaptionListResponse(BaseModel):
    """Full caption list for a completed job."""

    job_id: str = Field(description="The job ID these captions belong to.")
    captions: List[CaptionModel] = Field(description="Segmented captions in order.")


class FileInfo(BaseModel):
    """Metadata for a single output file."""

    filename: str = Field(description="Output filename.")
    media_type: str = Field(description="MIME type of the file content.")
    size: int = Field(description="File size in bytes.")


class FileListResponse(BaseModel):
    """List of output files for a completed job."""

    job_id: str = Field(description="The job ID these files belong to.")
    files: List[FileInfo] = Field(description="Available output files.")


class FormatInfo(BaseModel):
    """Description of an available output format."""

    key: str = Field(description="Format identifier used in API requests.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '-captions.srt').")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
