from __future__ import annotations

import logging
from typing import Any

from common.errors import (
    MalformedMetadataError,
    MalformedTranscriptionError,
    MissingMediaReferenceError,
)
from common.schemas import OutTranscript, Webhook, WebhookData, Word
from transcript_service.aligner import align
from transcript_service.models import OutputRecord, SpeakerSegment, WordToken
from transcript_service.search import iter_objects_with_key

logger = logging.getLogger(__name__)

SEGMENT_KEY = "transcripts"
WORD_KEY = "word"


def _number(node: dict[str, Any], field: str) -> float | None:
    value = node.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _segment_from_node(node: dict[str, Any]) -> SpeakerSegment:
    offset = _number(node, "audio_offset")
    if offset is None:
        raise MalformedMetadataError("audio_offset")
    duration = _number(node, "duration")
    if duration is None:
        raise MalformedMetadataError("duration")

    entries = node[SEGMENT_KEY]
    if not isinstance(entries, list) or not entries:
        raise MalformedMetadataError(SEGMENT_KEY, "is not a non-empty list")
    first = entries[0]
    speaker = first.get("speaker") if isinstance(first, dict) else None
    if not isinstance(speaker, str) or not speaker:
        raise MalformedMetadataError("transcripts[0].speaker")

    return SpeakerSegment(speaker=speaker, offset=offset, duration=duration)


def _word_from_node(node: dict[str, Any]) -> WordToken:
    start = _number(node, "start")
    if start is None:
        raise MalformedTranscriptionError("start")
    end = _number(node, "end")
    if end is None:
        raise MalformedTranscriptionError("end")
    text = node[WORD_KEY]
    if not isinstance(text, str):
        raise MalformedTranscriptionError(WORD_KEY)
    return WordToken(start=start, end=end, text=text)


def extract_segments(metadata_doc: Any) -> list[SpeakerSegment]:
    """Speaker segments in document order. Any bad node fails the whole list."""
    return [_segment_from_node(n) for n in iter_objects_with_key(metadata_doc, SEGMENT_KEY)]


def extract_words(transcription_doc: Any) -> list[WordToken]:
    return [_word_from_node(n) for n in iter_objects_with_key(transcription_doc, WORD_KEY)]


def extract_media_reference(metadata_doc: Any) -> str:
    try:
        media = metadata_doc["assets"][0]["mp4_s3_path"]
    except (KeyError, IndexError, TypeError):
        raise MissingMediaReferenceError() from None
    if not isinstance(media, str):
        raise MissingMediaReferenceError()
    return media


def assemble(record_id: str, metadata_doc: Any, transcription_doc: Any) -> OutputRecord:
    """Build a speaker-attributed transcript from a record's two documents.

    Raises an AssemblyError subclass if a required field is absent.
    """
    segments = extract_segments(metadata_doc)
    words = extract_words(transcription_doc)
    media_reference = extract_media_reference(metadata_doc)

    chunks = align(segments, words)

    attributed = sum(len(c.words) for c in chunks)
    if attributed < len(words):
        logger.warning(
            "Record %s: %d of %d words fall outside any speaker segment and were dropped",
            record_id,
            len(words) - attributed,
            len(words),
        )

    return OutputRecord(
        record_id=record_id,
        media_reference=media_reference,
        speakers={c.speaker for c in chunks},
        transcript=chunks,
    )


def to_webhook(record: OutputRecord) -> Webhook:
    return Webhook(
        data=WebhookData(
            bot_id=record.record_id,
            transcript=[
                OutTranscript(
                    speaker=chunk.speaker,
                    offset=chunk.offset,
                    words=[Word(start=w.start, end=w.end, word=w.text) for w in chunk.words],
                )
                for chunk in record.transcript
            ],
            speakers=sorted(record.speakers),
            mp4=record.media_reference,
        )
    )
