#!/usr/bin/env python3
"""Batch run: transcribe every metadata file, then assemble the listed bot ids."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from common.config import PipelineSettings, RunpodSettings
from common.errors import RecordReadError
from common.storage import RecordStore, read_bot_ids
from runpod_service.ingest import ingest_directory
from transcript_service.batch import process_transcriptions

logger = logging.getLogger(__name__)

PHASES = ("all", "transcribe", "assemble")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--phase", choices=PHASES, default="all")
    return parser.parse_args(argv)


async def run(
    phase: str,
    pipeline: PipelineSettings,
    runpod: RunpodSettings,
) -> int:
    store = RecordStore.from_settings(pipeline)

    try:
        if phase in ("all", "transcribe"):
            if not runpod.api_key:
                logger.error("RUNPOD_API_KEY must be set")
                return 1
            await ingest_directory(store, runpod, pipeline)

        if phase in ("all", "assemble"):
            bot_ids = read_bot_ids(pipeline.bot_id_file)
            process_transcriptions(bot_ids, store)
    except RecordReadError as exc:
        logger.error("%s", exc)
        return 1

    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    pipeline = PipelineSettings()
    logging.basicConfig(
        level=pipeline.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args.phase, pipeline, RunpodSettings()))


if __name__ == "__main__":
    sys.exit(main())
