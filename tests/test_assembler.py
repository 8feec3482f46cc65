import copy

import pytest

from common.errors import (
    MalformedMetadataError,
    MalformedTranscriptionError,
    MissingMediaReferenceError,
)
from transcript_service.assembler import (
    assemble,
    extract_media_reference,
    extract_segments,
    extract_words,
    to_webhook,
)
from transcript_service.search import find_objects_with_key


def make_metadata():
    return {
        "assets": [{"mp4_s3_path": "s3://bucket/bot-1.mp4"}],
        "recording": {
            "segments": [
                {"audio_offset": 0, "duration": 10.0, "transcripts": [{"speaker": "Bruna", "text": "..."}]},
                {"audio_offset": 10.0, "duration": 5, "transcripts": [{"speaker": "Ana"}]},
                {"audio_offset": 15.0, "duration": 5, "transcripts": [{"speaker": "Carlos"}]},
            ]
        },
    }


def make_raw():
    return {
        "detected_language": "pt",
        "word_timestamps": [
            {"start": 2.0, "end": 3.0, "word": " olá"},
            {"start": 11.0, "end": 12.0, "word": " tudo"},
            {"start": 12.5, "end": 13.0, "word": " bem"},
        ],
    }


class TestSearch:
    def test_finds_nested_objects_in_document_order(self):
        doc = {"a": [{"word": 1}, {"x": {"word": 2}}], "b": {"word": 3, "inner": {"word": 4}}}
        found = find_objects_with_key(doc, "word")
        assert [n["word"] for n in found] == [1, 2, 3, 4]

    def test_scalars_and_missing_key(self):
        assert find_objects_with_key("word", "word") == []
        assert find_objects_with_key([1, None, {"other": True}], "word") == []

    def test_returns_references_not_copies(self):
        node = {"word": "x"}
        assert find_objects_with_key({"n": node}, "word")[0] is node


class TestExtract:
    def test_segments(self):
        segments = extract_segments(make_metadata())
        assert [(s.speaker, s.offset, s.duration) for s in segments] == [
            ("Bruna", 0.0, 10.0),
            ("Ana", 10.0, 5.0),
            ("Carlos", 15.0, 5.0),
        ]

    def test_missing_audio_offset(self):
        meta = make_metadata()
        del meta["recording"]["segments"][1]["audio_offset"]
        with pytest.raises(MalformedMetadataError, match="audio_offset") as exc_info:
            extract_segments(meta)
        assert exc_info.value.field == "audio_offset"

    def test_string_duration_is_malformed(self):
        meta = make_metadata()
        meta["recording"]["segments"][0]["duration"] = "10"
        with pytest.raises(MalformedMetadataError, match="duration"):
            extract_segments(meta)

    def test_empty_transcripts_list(self):
        meta = make_metadata()
        meta["recording"]["segments"][2]["transcripts"] = []
        with pytest.raises(MalformedMetadataError, match="transcripts"):
            extract_segments(meta)

    def test_missing_speaker(self):
        meta = make_metadata()
        meta["recording"]["segments"][0]["transcripts"] = [{"text": "no speaker"}]
        with pytest.raises(MalformedMetadataError, match="speaker"):
            extract_segments(meta)

    def test_empty_speaker(self):
        meta = make_metadata()
        meta["recording"]["segments"][1]["transcripts"] = [{"speaker": ""}]
        with pytest.raises(MalformedMetadataError, match="speaker") as exc_info:
            extract_segments(meta)
        assert exc_info.value.field == "transcripts[0].speaker"

    def test_words(self):
        words = extract_words(make_raw())
        assert [w.text for w in words] == [" olá", " tudo", " bem"]
        assert words[0].start == 2.0

    def test_word_missing_end(self):
        raw = make_raw()
        del raw["word_timestamps"][2]["end"]
        with pytest.raises(MalformedTranscriptionError, match="end"):
            extract_words(raw)

    def test_word_not_a_string(self):
        raw = make_raw()
        raw["word_timestamps"][0]["word"] = 5
        with pytest.raises(MalformedTranscriptionError):
            extract_words(raw)

    def test_media_reference(self):
        assert extract_media_reference(make_metadata()) == "s3://bucket/bot-1.mp4"

    @pytest.mark.parametrize("meta", [{}, {"assets": []}, {"assets": [{}]}, {"assets": [{"mp4_s3_path": None}]}, []])
    def test_missing_media_reference(self, meta):
        with pytest.raises(MissingMediaReferenceError):
            extract_media_reference(meta)


class TestAssemble:
    def test_record(self):
        record = assemble("bot-1", make_metadata(), make_raw())
        assert record.record_id == "bot-1"
        assert record.media_reference == "s3://bucket/bot-1.mp4"
        assert [(c.speaker, [w.text for w in c.words]) for c in record.transcript] == [
            ("Bruna", [" olá"]),
            ("Ana", [" tudo", " bem"]),
        ]

    def test_speakers_exclude_segments_without_words(self):
        record = assemble("bot-1", make_metadata(), make_raw())
        assert record.speakers == {"Bruna", "Ana"}

    def test_no_words(self):
        record = assemble("bot-1", make_metadata(), {"detected_language": "pt", "word_timestamps": []})
        assert record.transcript == []
        assert record.speakers == set()

    def test_missing_media_fails_record(self):
        meta = make_metadata()
        meta["assets"] = []
        with pytest.raises(MissingMediaReferenceError):
            assemble("bot-1", meta, make_raw())

    def test_does_not_mutate_inputs(self):
        meta, raw = make_metadata(), make_raw()
        before = (copy.deepcopy(meta), copy.deepcopy(raw))
        assemble("bot-1", meta, raw)
        assert (meta, raw) == before


class TestWebhook:
    def test_shape(self):
        data = to_webhook(assemble("bot-1", make_metadata(), make_raw())).model_dump()
        assert data["event"] == "complete"
        assert data["data"]["bot_id"] == "bot-1"
        assert data["data"]["mp4"] == "s3://bucket/bot-1.mp4"
        assert data["data"]["speakers"] == ["Ana", "Bruna"]
        assert data["data"]["transcript"][1] == {
            "speaker": "Ana",
            "offset": 10.0,
            "words": [
                {"start": 11.0, "end": 12.0, "word": " tudo"},
                {"start": 12.5, "end": 13.0, "word": " bem"},
            ],
        }

    def test_serialization_is_byte_identical_across_runs(self):
        first = to_webhook(assemble("bot-1", make_metadata(), make_raw())).model_dump_json(indent=2)
        second = to_webhook(assemble("bot-1", make_metadata(), make_raw())).model_dump_json(indent=2)
        assert first == second
