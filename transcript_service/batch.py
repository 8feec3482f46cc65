from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from common.errors import AssemblyError, RecordNotFoundError, RecordReadError
from common.storage import RecordStore
from transcript_service.assembler import assemble, to_webhook

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    written: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)


def process_record(store: RecordStore, bot_id: str) -> Path:
    """Read, assemble and write one record. Returns the output path."""
    metadata = store.read_metadata(bot_id)
    raw = store.read_raw_transcription(bot_id)
    record = assemble(bot_id, metadata, raw)
    return store.write_output(bot_id, to_webhook(record))


def process_transcriptions(bot_ids: Iterable[str], store: RecordStore) -> BatchReport:
    """Assemble every listed record, skipping the ones that cannot be built.

    A missing files directory aborts the batch; everything else is per record.
    """
    if not store.files_dir.is_dir():
        logger.error("Bot misc directory '%s' does not exist", store.files_dir)
        raise RecordNotFoundError(store.files_dir)

    report = BatchReport()
    for bot_id in bot_ids:
        logger.info("Processing bot_id: %s", bot_id)
        try:
            process_record(store, bot_id)
        except RecordNotFoundError as exc:
            logger.error("Skipping %s: input file '%s' not found", bot_id, exc.path)
            report.skipped[bot_id] = str(exc)
        except RecordReadError as exc:
            logger.error("Skipping %s: %s", bot_id, exc)
            report.skipped[bot_id] = str(exc)
        except AssemblyError as exc:
            logger.error("Skipping %s: %s", bot_id, exc)
            report.skipped[bot_id] = str(exc)
        else:
            report.written.append(bot_id)

    logger.info(
        "Assembly finished: %d written, %d skipped", len(report.written), len(report.skipped)
    )
    return report
