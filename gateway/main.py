from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException

from common.config import GatewaySettings, PipelineSettings, RunpodSettings
from common.errors import (
    AssemblyError,
    JobError,
    JobTimeoutError,
    RecordNotFoundError,
    RecordReadError,
)
from common.schemas import RunpodResult, TranscribeRequest, Webhook
from common.storage import RecordStore
from runpod_service.client import transcribe
from transcript_service.assembler import assemble, to_webhook

logger = logging.getLogger(__name__)

settings = GatewaySettings()
runpod_settings = RunpodSettings()
store = RecordStore.from_settings(PipelineSettings())
app = FastAPI(title="Transcript Webhook Service")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/transcribe", response_model=RunpodResult)
async def transcribe_media(req: TranscribeRequest):
    try:
        return await transcribe(req.media_url, runpod_settings)
    except JobTimeoutError as exc:
        logger.warning("Transcription timed out: %s", exc)
        raise HTTPException(status_code=504, detail=str(exc))
    except JobError as exc:
        logger.error("Transcription failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))


@app.post("/records/{bot_id}/assemble", response_model=Webhook)
async def assemble_record(bot_id: str):
    try:
        metadata = store.read_metadata(bot_id)
        raw = store.read_raw_transcription(bot_id)
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except RecordReadError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    try:
        record = assemble(bot_id, metadata, raw)
    except AssemblyError as exc:
        logger.error("Cannot assemble %s: %s", bot_id, exc)
        raise HTTPException(status_code=422, detail=str(exc))

    webhook = to_webhook(record)
    store.write_output(bot_id, webhook)
    return webhook


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
