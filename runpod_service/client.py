"""Async client driving one RunPod serverless job from submission to result."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from common.config import RunpodSettings
from common.errors import JobFailedError, JobTimeoutError, TransportError
from common.schemas import ApiResponse, DecodingConfig, JobStatus, RunpodResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollPolicy:
    """How often to poll a job and when to give up.

    With both bounds left as None the loop only ends when the backend reports
    a terminal status.
    """

    interval_s: float = 5.0
    max_attempts: Optional[int] = None
    timeout_s: Optional[float] = None

    @classmethod
    def from_settings(cls, settings: RunpodSettings) -> "PollPolicy":
        return cls(
            interval_s=settings.poll_interval_s,
            max_attempts=settings.poll_max_attempts,
            timeout_s=settings.poll_timeout_s,
        )

    def exhausted(self, attempts: int, elapsed_s: float) -> bool:
        if self.max_attempts is not None and attempts >= self.max_attempts:
            return True
        if self.timeout_s is not None and elapsed_s >= self.timeout_s:
            return True
        return False


def decoding_from_settings(settings: RunpodSettings) -> DecodingConfig:
    return DecodingConfig(model=settings.model_name, language=settings.language)


def _headers(settings: RunpodSettings) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.api_key}",
    }


async def _call(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    settings: RunpodSettings,
    payload: dict[str, Any] | None = None,
) -> ApiResponse:
    try:
        resp = await client.request(method, url, json=payload, headers=_headers(settings))
    except httpx.HTTPError as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc

    if resp.is_error:
        logger.error("RunPod %s %s returned HTTP %d", method, url, resp.status_code)
        raise TransportError(
            f"{method} {url} returned HTTP {resp.status_code}", status_code=resp.status_code
        )

    try:
        return ApiResponse.model_validate_json(resp.content)
    except ValidationError as exc:
        raise TransportError(f"{method} {url} returned a malformed body: {exc}") from exc


async def submit(
    client: httpx.AsyncClient,
    media_url: str,
    settings: RunpodSettings,
    decoding: DecodingConfig,
) -> ApiResponse:
    job = await _call(client, "POST", f"{settings.api_url}/run", settings, decoding.to_payload(media_url))
    if not job.id:
        raise TransportError("RunPod accepted the job without returning an id")
    logger.info("Job %s submitted for %s: %s", job.id, media_url, job.status)
    return job


async def get_status(client: httpx.AsyncClient, job_id: str, settings: RunpodSettings) -> ApiResponse:
    return await _call(client, "GET", f"{settings.api_url}/status/{job_id}", settings)


async def wait_for_result(
    client: httpx.AsyncClient,
    job: ApiResponse,
    settings: RunpodSettings,
    policy: PollPolicy,
) -> RunpodResult:
    """Poll ``job`` sequentially until it reaches a terminal status."""
    job_id = job.id
    loop = asyncio.get_running_loop()
    started = loop.time()
    attempts = 0

    while not job.is_terminal:
        elapsed = loop.time() - started
        if policy.exhausted(attempts, elapsed):
            logger.warning("Giving up on job %s after %d polls", job_id, attempts)
            raise JobTimeoutError(job_id, job.status, attempts, elapsed)

        await asyncio.sleep(policy.interval_s)
        job = await get_status(client, job_id, settings)
        attempts += 1
        logger.info("Job %s status: %s", job_id, job.status)

    if job.status == JobStatus.completed.value:
        if job.output is None:
            raise TransportError(f"Job {job_id} completed without output")
        try:
            result = RunpodResult.model_validate(job.output)
        except ValidationError as exc:
            raise TransportError(f"Job {job_id} completed with a malformed output: {exc}") from exc
        logger.info(
            "Job %s completed: %d words, language=%s",
            job_id,
            len(result.word_timestamps),
            result.detected_language,
        )
        return result

    logger.error("Job %s ended with status %s: %s", job_id, job.status, job.error)
    raise JobFailedError(job_id, job.status, job.error)


async def transcribe(
    media_url: str,
    settings: RunpodSettings | None = None,
    *,
    decoding: DecodingConfig | None = None,
    policy: PollPolicy | None = None,
    client: httpx.AsyncClient | None = None,
) -> RunpodResult:
    """Submit ``media_url`` for transcription and wait for the word timestamps.

    Raises TransportError, JobFailedError or JobTimeoutError. Nothing is
    retried, and a job abandoned by a timeout is not cancelled remotely.
    """
    settings = settings or RunpodSettings()
    decoding = decoding or decoding_from_settings(settings)
    policy = policy or PollPolicy.from_settings(settings)

    if client is None:
        async with httpx.AsyncClient(timeout=settings.request_timeout_s) as own_client:
            job = await submit(own_client, media_url, settings, decoding)
            return await wait_for_result(own_client, job, settings, policy)

    job = await submit(client, media_url, settings, decoding)
    return await wait_for_result(client, job, settings, policy)
