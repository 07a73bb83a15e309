"""In-memory job store with background task execution and TTL cleanup.

WHY: The HTTP API needs to track captioning jobs through their lifecycle
(pending → downloading → uploading → transcribing → converting →
completed | failed). Jobs take from seconds to many minutes, so the API
returns a job ID immediately and processes work in the background. An
in-memory store is sufficient; there are no persistence requirements.

HOW: Three components work together:
  JobStatus  — enum of valid job states
  Job        — dataclass holding job metadata, results, and temp directory
  JobStore   — thread-safe dict-based store with create/update/get/list/delete,
               background task execution, and TTL cleanup

RULES:
- All store mutations are protected by threading.Lock
- Each job gets a dedicated temp directory for uploads and output files
- TTL-based expiry removes stale jobs and their temp directories
- Background runner updates job status to 'failed' on unhandled exceptions
- Job IDs are UUID4 hex strings generated at creation time
- Default TTL is 1 hour (3600 seconds)
"""

from __future__ import annotations

import enum
import logging
import shutil
import tempfile
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from captionize.core.ir import Caption

logger = logging.getLogger(__name__)

# Default time-to-live for completed/failed jobs (seconds)
DEFAULT_TTL_SECONDS = 3600


class JobStatus(str, enum.Enum):
    """Valid states for a captioning job.

    RULES:
    - pending: job created, not yet started
    - downloading: audio being fetched from the source
    - uploading: audio being uploaded to the provider
    - transcribing: provider processing the audio
    - converting: words segmented, formatters running
    - completed: captions and output files ready
    - failed: unrecoverable error at any stage
    """

    PENDING = "pending"
    DOWNLOADING = "downloading"
    UPLOADING = "uploading"
    TRANSCRIBING = "transcribing"
    CONVERTING = "converting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Progress percentage reported for each status.
STATUS_PROGRESS: Dict[JobStatus, int] = {
    JobStatus.PENDING: 0,
    JobStatus.DOWNLOADING: 10,
    JobStatus.UPLOADING: 25,
    JobStatus.TRANSCRIBING: 50,
    JobStatus.CONVERTING: 90,
    JobStatus.COMPLETED: 100,
    JobStatus.FAILED: 100,
}


@dataclass
class Job:
    """Metadata, state, and results for a single captioning job.

    RULES:
    - source: URL or uploaded filename, as submitted
    - output_dir: temp directory for the upload and output files
    - input_path: the saved upload, for jobs created from a file
    - progress: 0–100, follows STATUS_PROGRESS unless set explicitly
    - captions / srt: only set once the job is completed
    """

    id: str
    status: JobStatus
    source: str
    output_dir: Path
    created_at: float
    updated_at: float
    completed_at: Optional[float] = None
    error: Optional[str] = None
    progress: int = 0
    title: Optional[str] = None
    duration_s: Optional[float] = None
    transcript_id: Optional[str] = None
    captions: Tuple[Caption, ...] = ()
    srt: Optional[str] = None
    input_path: Optional[Path] = None
    config: Dict[str, Any] = field(default_factory=dict)
    output_files: List[str] = field(default_factory=list)


class JobStore:
    """Thread-safe in-memory store for captioning jobs.

    WHY: Concurrent API requests and background tasks access job state
    simultaneously. A centralized store with locking prevents races.

    RULES:
    - All public methods that mutate state acquire self._lock
    - get_job() returns None for missing job IDs (no exceptions)
    - File system work happens outside the lock
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_jobs: int = 100,
    ) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_jobs = max_jobs

    def create_job(
        self,
        source: str,
        config: Optional[Dict[str, Any]] = None,
    ) -> Job:
        """Create a new job in PENDING state with a dedicated temp directory.

        Raises:
            ValueError: If max_jobs jobs are already stored.
        """
        with self._lock:
            if len(self._jobs) >= self.max_jobs:
                raise ValueError(
                    "Maximum number of concurrent jobs ({}) reached".format(
                        self.max_jobs
                    )
                )

            job_id = uuid.uuid4().hex
            now = time.time()
            output_dir = Path(tempfile.mkdtemp(prefix="captionize_job_"))

            job = Job(
                id=job_id,
                status=JobStatus.PENDING,
                source=source,
                output_dir=output_dir,
                created_at=now,
                updated_at=now,
                config=config or {},
            )

            self._jobs[job_id] = job

        logger.info("Created job %s for %s", job_id, source)
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        """Retrieve a job by ID, or None if not found."""
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> List[Job]:
        """Return all jobs, oldest first."""
        with self._lock:
            return sorted(self._jobs.values(), key=lambda j: j.created_at)

    def update_job(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        error: Optional[str] = None,
        progress: Optional[int] = None,
        title: Optional[str] = None,
        duration_s: Optional[float] = None,
        transcript_id: Optional[str] = None,
        captions: Optional[Tuple[Caption, ...]] = None,
        srt: Optional[str] = None,
        output_files: Optional[List[str]] = None,
        input_path: Optional[Path] = None,
    ) -> Optional[Job]:
        """Update a job's mutable fields.

        RULES:
        - Returns the updated Job, or None if job_id not found
        - Only non-None arguments are applied
        - A status change also sets progress from STATUS_PROGRESS unless
          progress is given explicitly
        - completed_at is set when status becomes COMPLETED or FAILED
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None

            now = time.time()

            if status is not None:
                job.status = status
                job.progress = STATUS_PROGRESS[status]
            if progress is not None:
                job.progress = progress
            if error is not None:
                job.error = error
            if title is not None:
                job.title = title
            if duration_s is not None:
                job.duration_s = duration_s
            if transcript_id is not None:
                job.transcript_id = transcript_id
            if captions is not None:
                job.captions = tuple(captions)
            if srt is not None:
                job.srt = srt
            if output_files is not None:
                job.output_files = output_files
            if input_path is not None:
                job.input_path = input_path

            job.updated_at = now

            if job.status.is_terminal:
                job.completed_at = now

            return job

    def run_in_background(
        self,
        job_id: str,
        task: Callable[[str, JobStore], None],
    ) -> None:
        """Run ``task(job_id, store)`` and mark the job failed if it raises.

        RULES:
        - Exceptions are logged with traceback and stored as the job error
        - The exception is not re-raised (background context has no caller)
        """
        try:
            task(job_id, self)
        except Exception as exc:
            logger.exception("Background task failed for job %s", job_id)
            self.update_job(job_id, status=JobStatus.FAILED, error=str(exc))

    def delete_job(self, job_id: str) -> bool:
        """Delete a job and clean up its temp directory.

        Returns True if the job was found and deleted, False otherwise.
        """
        with self._lock:
            job = self._jobs.pop(job_id, None)

        if job is None:
            return False

        self._cleanup_output_dir(job.output_dir)
        logger.info("Deleted job %s", job_id)
        return True

    def cleanup_expired(self) -> int:
        """Remove terminal jobs whose completed_at is older than the TTL.

        Returns the count of removed jobs.
        """
        now = time.time()
        expired_jobs: List[Job] = []

        with self._lock:
            for job_id, job in list(self._jobs.items()):
                if not job.status.is_terminal or job.completed_at is None:
                    continue
                if now - job.completed_at > self._ttl_seconds:
                    expired_jobs.append(self._jobs.pop(job_id))

        for job in expired_jobs:
            self._cleanup_output_dir(job.output_dir)
            logger.info("Expired job %s (completed %.0fs ago)", job.id, now - job.completed_at)

        return len(expired_jobs)

    @staticmethod
    def _cleanup_output_dir(output_dir: Path) -> None:
        """Remove a job's temp directory tree; never raises."""
        if output_dir.exists():
            try:
                shutil.rmtree(output_dir)
            except OSError:
                logger.warning("Failed to clean up temp dir: %s", output_dir)
