"""Audio acquisition from video URLs and local media files.

WHY: The transcription provider needs audio bytes, but users hand us a
video page URL or an uploaded file. This module turns either into
(audio_bytes, metadata) and nothing more.

HOW: URLs are handed to yt-dlp, which downloads the best audio stream
and converts it to mp3 through its FFmpegExtractAudio postprocessor.
Each download gets a unique file name inside the work directory; the
file is read and removed. Local paths are checked for existence and
extension and read directly.

RULES:
- http:// and https:// sources are URLs; anything else is a file path
- Local files must have an extension in SUPPORTED_MEDIA_FORMATS
- Downloaded files never outlive fetch_audio()
- Known extractor errors become friendly AudioAcquisitionError messages
"""

from __future__ import annotations

import logging
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yt_dlp

from captionize.config import SUPPORTED_MEDIA_FORMATS

logger = logging.getLogger(__name__)

# Substrings of yt-dlp error output mapped to user-facing explanations.
_KNOWN_ERRORS = (
    ("HTTP Error 403: Forbidden",
     "Access to this video is forbidden. It may be private or region-restricted."),
    ("This video is unavailable",
     "This video is unavailable. It may have been removed or made private."),
    ("Sign in to confirm your age",
     "This video requires age verification and cannot be accessed."),
    ("unable to download",
     "Unable to download the video due to access restrictions or network issues."),
)


class AudioAcquisitionError(Exception):
    """Raised when audio cannot be obtained from a source."""


@dataclass(frozen=True)
class AudioMetadata:
    """Descriptive information about an acquired source.

    RULES:
    - source: the URL or path exactly as given
    - filename: name of the audio file that was read (used for output naming)
    - duration_s / author are None when the source does not report them
    """

    source: str
    title: str
    filename: str
    duration_s: Optional[float] = None
    author: Optional[str] = None


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def friendly_download_error(message: str) -> str:
    """Translate a raw yt-dlp error message into a user-facing one."""
    for needle, friendly in _KNOWN_ERRORS:
        if needle in message:
            return friendly
    return message


class AudioFetcher:
    """Fetch audio bytes and metadata for a URL or local file.

    WHY: The download location and cookies are deployment settings, so
    they are constructor arguments instead of module globals.

    RULES:
    - work_dir None → a fresh temporary directory per URL download
    - cookies_file is forwarded to yt-dlp for sites that need a login
    """

    def __init__(
        self,
        work_dir: Optional[Path] = None,
        cookies_file: Optional[Path] = None,
    ) -> None:
        self._work_dir = Path(work_dir) if work_dir else None
        self._cookies_file = cookies_file

    def fetch_audio(self, source: str) -> Tuple[bytes, AudioMetadata]:
        """Return the audio bytes and metadata for a source.

        Raises:
            AudioAcquisitionError: If the URL cannot be downloaded or the
                file is missing or has an unsupported extension.
        """
        if is_url(source):
            if self._work_dir is not None:
                self._work_dir.mkdir(parents=True, exist_ok=True)
                return self._download(source, self._work_dir)
            with tempfile.TemporaryDirectory(prefix="captionize_") as tmp:
                return self._download(source, Path(tmp))
        return self._read_local(source)

    # ------------------------------------------------------------------
    # Local files
    # ------------------------------------------------------------------

    @staticmethod
    def _read_local(source: str) -> Tuple[bytes, AudioMetadata]:
        path = Path(source)
        if not path.is_file():
            raise AudioAcquisitionError("File not found: {}".format(path))

        ext = path.suffix.lower()
        if ext not in SUPPORTED_MEDIA_FORMATS:
            raise AudioAcquisitionError(
                "Unsupported file type '{}'. Supported formats: {}".format(
                    ext, ", ".join(sorted(SUPPORTED_MEDIA_FORMATS))
                )
            )

        return path.read_bytes(), AudioMetadata(
            source=source,
            title=path.stem,
            filename=path.name,
        )

    # ------------------------------------------------------------------
    # URL downloads
    # ------------------------------------------------------------------

    def _ydl_options(self, output_template: str) -> Dict[str, Any]:
        opts: Dict[str, Any] = {
            "format": "bestaudio/best",
            "outtmpl": output_template,
            "quiet": True,
            "noprogress": True,
            "noplaylist": True,
            "postprocessors": [{
                "key": "FFmpegExtractAudio",
                "preferredcodec": "mp3",
            }],
        }
        if self._cookies_file is not None:
            opts["cookiefile"] = str(self._cookies_file)
        return opts

    def _download(self, url: str, directory: Path) -> Tuple[bytes, AudioMetadata]:
        uid = uuid.uuid4().hex
        output_template = str(directory / "{}.%(ext)s".format(uid))

        logger.info("Downloading audio from %s", url)
        try:
            with yt_dlp.YoutubeDL(self._ydl_options(output_template)) as ydl:
                info = ydl.extract_info(url, download=True)
        except yt_dlp.utils.DownloadError as exc:
            raise AudioAcquisitionError(friendly_download_error(str(exc))) from exc

        downloaded = sorted(directory.glob("{}.*".format(uid)))
        if not downloaded:
            raise AudioAcquisitionError("Failed to find downloaded audio for {}".format(url))

        audio_path = downloaded[0]
        try:
            audio = audio_path.read_bytes()
        finally:
            for path in downloaded:
                path.unlink(missing_ok=True)

        info = info or {}
        duration = info.get("duration")
        title = info.get("title") or "Video Transcription"
        metadata = AudioMetadata(
            source=url,
            title=title,
            filename="{}{}".format(_safe_stem(title), audio_path.suffix),
            duration_s=float(duration) if duration is not None else None,
            author=info.get("channel") or info.get("uploader"),
        )
        logger.info("Downloaded %s (%d bytes)", metadata.title, len(audio))
        return audio, metadata


def _safe_stem(title: str) -> str:
    """Reduce a video title to a conservative file-name stem."""
    cleaned = "".join(c if c.isalnum() or c in "-_ " else "_" for c in title).strip()
    return cleaned.replace(" ", "_")[:80] or "video"
