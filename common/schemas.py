from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


# --- RunPod serverless API: /run and /status/{id} ---

class JobStatus(str, Enum):
    queued = "IN_QUEUE"
    in_progress = "IN_PROGRESS"
    completed = "COMPLETED"
    failed = "FAILED"
    cancelled = "CANCELLED"
    timed_out = "TIMED_OUT"


TERMINAL_STATUSES = frozenset(
    {JobStatus.completed, JobStatus.failed, JobStatus.cancelled, JobStatus.timed_out}
)


class DecodingConfig(BaseModel):
    """Whisper decoding options sent with every job."""

    model: str = "large-v3"
    # "plain_text" keeps the response small; words come from word_timestamps
    transcription: str = "plain_text"
    translate: bool = False
    # greedy first pass, raised by temperature_increment_on_fallback on failure
    temperature: float = 0
    best_of: int = 5
    beam_size: int = 5
    patience: float = 1
    suppress_tokens: str = "-1"
    condition_on_previous_text: bool = False
    temperature_increment_on_fallback: float = 0.2
    compression_ratio_threshold: float = 2.4
    logprob_threshold: float = -1
    no_speech_threshold: float = 0.6
    # required: the aligner consumes per-word start/end
    word_timestamps: bool = True
    language: str = "pt"
    # VAD trims audio and shifts timestamps away from the metadata offsets
    enable_vad: bool = False

    def to_payload(self, audio: str) -> dict[str, Any]:
        options = self.model_dump(exclude={"enable_vad"})
        return {
            "input": {"audio": audio, **options},
            "enable_vad": self.enable_vad,
        }


class RunpodWordTimestamp(BaseModel):
    start: float
    end: float
    word: str


class RunpodResult(BaseModel):
    detected_language: str
    word_timestamps: list[RunpodWordTimestamp]


class ApiResponse(BaseModel):
    id: Optional[str] = None
    status: str
    # validated as RunpodResult only once the job has COMPLETED
    output: Optional[Any] = None
    error: Optional[Any] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in {s.value for s in TERMINAL_STATUSES}


# --- Webhook payload written per record ---

class Word(BaseModel):
    start: float
    end: float
    word: str


class OutTranscript(BaseModel):
    speaker: str
    offset: float
    words: list[Word]


class WebhookData(BaseModel):
    bot_id: str
    transcript: list[OutTranscript]
    speakers: list[str]
    mp4: str


class Webhook(BaseModel):
    event: str = "complete"
    data: WebhookData


# --- HTTP service requests ---

class TranscribeRequest(BaseModel):
    media_url: str
