from __future__ import annotations

from typing import Iterable

from transcript_service.models import AttributedChunk, SpeakerSegment, WordToken


def align(
    segments: Iterable[SpeakerSegment],
    words: Iterable[WordToken],
) -> list[AttributedChunk]:
    """Attribute words to speaker segments in a single forward pass.

    Both inputs must already be ordered (segments by offset, words by start);
    neither is re-sorted. For each segment, words are taken from the cursor
    while their start lies in ``[offset, offset + duration)``. Consumption stops
    at the first word outside the window and the cursor never skips ahead, so a
    segment that takes no words produces no chunk.

    Known limitation: a word that starts before the window it is tested
    against (a gap between segments, or timestamp noise) is never consumed.
    It stays at the cursor for all remaining segments, so it and every word
    after it are left unattributed. Callers can detect this by comparing the
    attributed word count against the input.

    If either ordering is violated the result is still produced, but words
    may be attributed to the wrong segment or dropped.
    """
    cursor = iter(words)
    word = next(cursor, None)
    chunks: list[AttributedChunk] = []

    for segment in segments:
        chunk: AttributedChunk | None = None
        while word is not None and segment.contains(word.start):
            if chunk is None:
                chunk = AttributedChunk(speaker=segment.speaker, offset=segment.offset)
            chunk.words.append(word)
            word = next(cursor, None)
        if chunk is not None:
            chunks.append(chunk)

    return chunks
