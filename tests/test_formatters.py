"""Unit tests for all formatter modules.

WHY: Each formatter turns the same CaptionDocument into a different
deliverable. A wrong suffix breaks output naming; a wrong media type
breaks downloads; malformed JSON breaks editing tools.

HOW: Tests run every formatter against a document built from the shared
provider transcript:
  - SRT: identical to core.srt.serialize, subrip media type
  - Caption JSON: structure validated with jsonschema, SRT-style time strings
  - Plain text: words joined by single spaces
  - Registry: every key maps to a BaseFormatter subclass

RULES:
- All tests use the provider_transcript fixture from conftest.py.
"""

import json

import jsonschema
import pytest

from captionize.api.models import word_from_provider
from captionize.core.ir import Caption, CaptionDocument
from captionize.core.segmenter import segment
from captionize.core.srt import serialize
from captionize.formatters import FORMATTERS
from captionize.formatters.base import BaseFormatter
from captionize.formatters.captions_json import CaptionsJSONFormatter, document_to_dict
from captionize.formatters.plain_text import PlainTextFormatter
from captionize.formatters.srt_captions import SRTCaptionFormatter

CAPTIONS_JSON_SCHEMA = {
    "type": "object",
    "required": ["title", "source", "duration", "captions"],
    "properties": {
        "title": {"type": "string"},
        "source": {"type": "string"},
        "duration": {"type": "number"},
        "captions": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["index", "start", "end", "start_time", "end_time", "text"],
                "properties": {
                    "index": {"type": "integer", "minimum": 1},
                    "start": {"type": "number"},
                    "end": {"type": "number"},
                    "start_time": {"type": "string", "pattern": r"^\d{2,}:\d{2}:\d{2},\d{3}$"},
                    "end_time": {"type": "string", "pattern": r"^\d{2,}:\d{2}:\d{2},\d{3}$"},
                    "text": {"type": "string"},
                },
                "additionalProperties": False,
            },
        },
    },
}


@pytest.fixture
def document(provider_transcript):
    words = tuple(word_from_provider(w) for w in provider_transcript["words"])
    return CaptionDocument(
        source_name="show-intro.mp3",
        title="Show Intro",
        duration_s=5.0,
        words=words,
        captions=segment(words),
    )


@pytest.fixture
def empty_document():
    return CaptionDocument(source_name="silence.wav", title="Silence", duration_s=3.0)


class TestSRTCaptionFormatter:

    def test_single_output(self, document):
        outputs = SRTCaptionFormatter().format(document)
        assert len(outputs) == 1
        assert outputs[0].suffix == "-captions.srt"
        assert outputs[0].media_type == "application/x-subrip"

    def test_content_matches_serializer(self, document):
        output = SRTCaptionFormatter().format(document)[0]
        assert output.content == serialize(document.captions)

    def test_content_matches_provider_export(self, document, provider_srt):
        assert SRTCaptionFormatter().format(document)[0].content == provider_srt

    def test_empty_document(self, empty_document):
        assert SRTCaptionFormatter().format(empty_document)[0].content == ""


class TestCaptionsJSONFormatter:

    def test_valid_against_schema(self, document):
        output = CaptionsJSONFormatter().format(document)[0]
        data = json.loads(output.content)
        jsonschema.validate(instance=data, schema=CAPTIONS_JSON_SCHEMA)

    def test_metadata(self, document):
        data = json.loads(CaptionsJSONFormatter().format(document)[0].content)
        assert data["title"] == "Show Intro"
        assert data["source"] == "show-intro.mp3"
        assert data["duration"] == 5.0

    def test_caption_entries(self, document):
        data = json.loads(CaptionsJSONFormatter().format(document)[0].content)
        assert [c["index"] for c in data["captions"]] == [1, 2]
        first = data["captions"][0]
        assert first["text"] == "Hi there, welcome to the show."
        assert first["start"] == 0.0
        assert first["end"] == 2.5
        assert first["start_time"] == "00:00:00,000"
        assert first["end_time"] == "00:00:02,500"
        assert data["captions"][1]["start_time"] == "00:00:02,800"

    def test_suffix_and_media_type(self, document):
        output = CaptionsJSONFormatter().format(document)[0]
        assert output.suffix == "-captions.json"
        assert output.media_type == "application/json"
        assert output.content.endswith("}\n")

    def test_non_ascii_kept(self):
        doc = CaptionDocument(
            source_name="x.mp3", title="Café", duration_s=1.0,
            captions=(Caption(1, 0.0, 1.0, "Grüß dich."),),
        )
        content = CaptionsJSONFormatter().format(doc)[0].content
        assert "Grüß dich." in content
        assert "Café" in content

    def test_empty_document(self, empty_document):
        assert document_to_dict(empty_document)["captions"] == []


class TestPlainTextFormatter:

    def test_words_joined(self, document):
        output = PlainTextFormatter().format(document)[0]
        assert output.content == (
            "Hi there, welcome to the show. Thanks for joining us today!\n"
        )
        assert output.suffix == "-transcript.txt"
        assert output.media_type == "text/plain"

    def test_empty_document(self, empty_document):
        assert PlainTextFormatter().format(empty_document)[0].content == ""


class TestRegistry:

    def test_keys(self):
        assert set(FORMATTERS) == {"srt", "captions_json", "plain_text"}

    @pytest.mark.parametrize("key", sorted(FORMATTERS))
    def test_entries_are_formatter_classes(self, key, document):
        formatter = FORMATTERS[key]()
        assert isinstance(formatter, BaseFormatter)
        assert formatter.name
        outputs = formatter.format(document)
        assert outputs[0].suffix == formatter.suffix
        assert outputs[0].suffix.startswith("-")
