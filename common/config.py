from typing import Optional

from pydantic_settings import BaseSettings


class GatewaySettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {"env_prefix": "GATEWAY_"}


class RunpodSettings(BaseSettings):
    api_key: str = ""
    api_url: str = "https://api.runpod.ai/v2/oq0i26ut0lom1h"
    request_timeout_s: float = 60.0
    poll_interval_s: float = 5.0
    # None keeps polling until the backend reports a terminal status
    poll_max_attempts: Optional[int] = None
    poll_timeout_s: Optional[float] = None
    model_name: str = "large-v3"
    language: str = "pt"

    model_config = {"env_prefix": "RUNPOD_", "env_file": ".env", "extra": "ignore"}


class PipelineSettings(BaseSettings):
    files_dir: str = "./files"
    bot_id_file: str = "bot_ids.txt"
    output_dir: str = "./transcription_output"
    concurrency: int = 1
    log_level: str = "INFO"

    model_config = {"env_prefix": "PIPELINE_", "env_file": ".env", "extra": "ignore"}
