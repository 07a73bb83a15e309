"""Captionize — turn a video source into time-aligned SRT captions.

WHY: Speech-to-text providers return a flat list of timestamped words.
Viewers need short, readable caption cues with exact SubRip timing. This
package fetches the audio, transcribes it, and segments the word stream
into captions.

HOW: Four stages — acquire (media), transcribe (api), segment and
serialize (core), format (pluggable formatters). The core is pure and
has no I/O; everything else is a thin adapter around it.

RULES:
- The core (segmenter, timestamps, srt) never performs I/O
- Provider keys and work directories are passed in explicitly
- All formatters consume the same CaptionDocument
"""

__version__ = "0.1.0"
