"""Internal value types for transcript assembly."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SpeakerSegment:
    speaker: str
    offset: float
    duration: float

    @property
    def end(self) -> float:
        return self.offset + self.duration

    def contains(self, t: float) -> bool:
        return self.offset <= t < self.end


@dataclass(frozen=True)
class WordToken:
    start: float
    end: float
    text: str


@dataclass
class AttributedChunk:
    speaker: str
    offset: float
    words: list[WordToken] = field(default_factory=list)


@dataclass
class OutputRecord:
    record_id: str
    media_reference: str
    speakers: set[str]
    transcript: list[AttributedChunk]
