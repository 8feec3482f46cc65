"""Per-record document storage keyed by bot id.

Layout, shared by both phases::

    <files_dir>/<bot_id>.json           metadata document
    <files_dir>/<bot_id>.json.runpod    raw RunPod result
    <output_dir>/<bot_id>.json          assembled webhook payload
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from common.config import PipelineSettings
from common.errors import RecordNotFoundError, RecordReadError

logger = logging.getLogger(__name__)

METADATA_SUFFIX = ".json"
RAW_SUFFIX = ".json.runpod"


class RecordStore:
    def __init__(self, files_dir: str | Path, output_dir: str | Path):
        self.files_dir = Path(files_dir)
        self.output_dir = Path(output_dir)

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "RecordStore":
        return cls(settings.files_dir, settings.output_dir)

    def metadata_path(self, bot_id: str) -> Path:
        return self.files_dir / f"{bot_id}{METADATA_SUFFIX}"

    def raw_path(self, bot_id: str) -> Path:
        return self.files_dir / f"{bot_id}{RAW_SUFFIX}"

    def output_path(self, bot_id: str) -> Path:
        return self.output_dir / f"{bot_id}.json"

    def discover(self) -> list[str]:
        """Bot ids of every metadata document in files_dir, sorted."""
        if not self.files_dir.is_dir():
            raise RecordNotFoundError(self.files_dir)
        return sorted(
            p.name[: -len(METADATA_SUFFIX)]
            for p in self.files_dir.iterdir()
            if p.is_file() and p.name.endswith(METADATA_SUFFIX)
        )

    def read_metadata(self, bot_id: str) -> Any:
        return _read_json(self.metadata_path(bot_id))

    def read_raw_transcription(self, bot_id: str) -> Any:
        return _read_json(self.raw_path(bot_id))

    def write_raw_transcription(self, bot_id: str, result: BaseModel) -> Path:
        path = self.raw_path(bot_id)
        _atomic_write(path, result.model_dump_json() + "\n")
        return path

    def write_output(self, bot_id: str, payload: BaseModel) -> Path:
        path = self.output_path(bot_id)
        _atomic_write(path, payload.model_dump_json(indent=2) + "\n")
        logger.info("Output saved to: %s", path)
        return path


def read_bot_ids(path: str | Path) -> list[str]:
    """One bot id per line; blank lines are ignored."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise RecordNotFoundError(path) from None
    except OSError as exc:
        raise RecordReadError(path, str(exc)) from exc
    return [line.strip() for line in text.splitlines() if line.strip()]


def _read_json(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise RecordNotFoundError(path) from None
    except OSError as exc:
        raise RecordReadError(path, str(exc)) from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RecordReadError(path, f"invalid JSON ({exc})") from exc


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        tmp.replace(path)
    except OSError:
        if tmp.is_file():
            tmp.unlink()
        raise
