"""Audio acquisition for URLs (via yt-dlp) and local media files."""

from captionize.media.acquisition import AudioAcquisitionError, AudioFetcher, AudioMetadata

__all__ = ["AudioAcquisitionError", "AudioFetcher", "AudioMetadata"]
