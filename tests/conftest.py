"""Shared test fixtures for the captionize test suite.

WHY: Several test modules need the same word streams and provider
responses. Centralizing them keeps every test on the same data.

HOW: Plain module constants plus pytest fixtures that return fresh
copies. Provider payloads use milliseconds (as AssemblyAI does); core
Word fixtures use seconds.

RULES:
- SHOW_WORDS is the six-word "Hi there, welcome to the show." sentence
- PROVIDER_TRANSCRIPT is a completed GET /transcript/{id} response
"""

from typing import Any, Dict, List

import pytest

from captionize.core.ir import Word


SHOW_WORDS: List[Word] = [
    Word("Hi",       0.0, 0.5, 0.98),
    Word("there,",   0.5, 1.0, 0.97),
    Word("welcome",  1.0, 1.5, 0.95),
    Word("to",       1.5, 1.7, 0.99),
    Word("the",      1.7, 1.9, 0.99),
    Word("show.",    1.9, 2.5, 0.96),
]


def make_plain_words(count: int, step: float = 0.5) -> List[Word]:
    """Unpunctuated words w1..wN, each `step` seconds long, back to back."""
    return [
        Word("w{}".format(i + 1), i * step, (i + 1) * step, 0.9)
        for i in range(count)
    ]


PROVIDER_TRANSCRIPT: Dict[str, Any] = {
    "id": "5551722-f677-48a4-a4a2-6d4b1f7a1f00",
    "status": "completed",
    "text": "Hi there, welcome to the show. Thanks for joining us today!",
    "audio_duration": 5,
    "audio_url": "https://cdn.example.com/upload/abc",
    "words": [
        {"text": "Hi",      "start": 0,    "end": 500,  "confidence": 0.98},
        {"text": "there,",  "start": 500,  "end": 1000, "confidence": 0.97},
        {"text": "welcome", "start": 1000, "end": 1500, "confidence": 0.95},
        {"text": "to",      "start": 1500, "end": 1700, "confidence": 0.99},
        {"text": "the",     "start": 1700, "end": 1900, "confidence": 0.99},
        {"text": "show.",   "start": 1900, "end": 2500, "confidence": 0.96},
        {"text": "Thanks",  "start": 2800, "end": 3100, "confidence": 0.94},
        {"text": "for",     "start": 3100, "end": 3250, "confidence": 0.99},
        {"text": "joining", "start": 3250, "end": 3700, "confidence": 0.93},
        {"text": "us",      "start": 3700, "end": 3850, "confidence": 0.99},
        {"text": "today!",  "start": 3850, "end": 4400, "confidence": 0.92},
    ],
}

PROVIDER_SRT = (
    "1\n00:00:00,000 --> 00:00:02,500\nHi there, welcome to the show.\n\n"
    "2\n00:00:02,800 --> 00:00:04,400\nThanks for joining us today!\n"
)


@pytest.fixture
def show_words():
    return list(SHOW_WORDS)


@pytest.fixture
def provider_transcript():
    return {
        **PROVIDER_TRANSCRIPT,
        "words": [dict(w) for w in PROVIDER_TRANSCRIPT["words"]],
    }


@pytest.fixture
def plain_words():
    """Factory fixture: plain_words(8) → eight unpunctuated words."""
    return make_plain_words


@pytest.fixture
def provider_srt():
    return PROVIDER_SRT
