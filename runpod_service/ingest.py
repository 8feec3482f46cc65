from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

import httpx

from common.config import PipelineSettings, RunpodSettings
from common.errors import AssemblyError, JobError, RecordReadError
from common.storage import RecordStore
from runpod_service.client import transcribe
from transcript_service.assembler import extract_media_reference

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    transcribed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


async def _ingest_record(
    bot_id: str,
    store: RecordStore,
    settings: RunpodSettings,
    client: httpx.AsyncClient,
    report: IngestReport,
) -> None:
    try:
        metadata = store.read_metadata(bot_id)
        media_url = extract_media_reference(metadata)
    except (RecordReadError, AssemblyError) as exc:
        logger.error("Skipping %s: %s", bot_id, exc)
        report.failed[bot_id] = str(exc)
        return

    logger.info("Transcribing %s from %s", bot_id, media_url)
    try:
        result = await transcribe(media_url, settings, client=client)
    except JobError as exc:
        logger.error("Transcription failed for %s: %s", bot_id, exc)
        report.failed[bot_id] = str(exc)
        return

    try:
        path = store.write_raw_transcription(bot_id, result)
    except OSError as exc:
        logger.error("Cannot save raw transcription for %s: %s", bot_id, exc)
        report.failed[bot_id] = str(exc)
        return
    logger.info("Raw transcription for %s saved to %s", bot_id, path)
    report.transcribed.append(bot_id)


async def ingest_directory(
    store: RecordStore,
    settings: RunpodSettings | None = None,
    pipeline: PipelineSettings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> IngestReport:
    """Run one RunPod job per metadata document found in the files directory.

    Records run concurrently up to ``pipeline.concurrency``; each record
    polls only its own job and writes only its own result file.
    """
    settings = settings or RunpodSettings()
    pipeline = pipeline or PipelineSettings()
    bot_ids = store.discover()
    report = IngestReport()
    semaphore = asyncio.Semaphore(max(1, pipeline.concurrency))

    async def run(bot_id: str, http: httpx.AsyncClient) -> None:
        async with semaphore:
            await _ingest_record(bot_id, store, settings, http, report)

    async def run_all(http: httpx.AsyncClient) -> None:
        tasks = [asyncio.create_task(run(b, http)) for b in bot_ids]
        try:
            await asyncio.gather(*tasks)
        finally:
            # no task may outlive the call, or the client it uses
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    if client is None:
        async with httpx.AsyncClient(timeout=settings.request_timeout_s) as own_client:
            await run_all(own_client)
    else:
        await run_all(client)

    report.transcribed.sort()
    logger.info(
        "Ingest finished: %d transcribed, %d failed", len(report.transcribed), len(report.failed)
    )
    return report
