from typing import Literal

from pydantic import BaseModel

from app.shared.config import config


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get_bool("DEBUG")

    # HTTP / WebSocket server
    API_HOST: str = config.get_str("API_HOST", "0.0.0.0")
    API_PORT: int = config.get_int("API_PORT", 4000)
    # Relay state is process-local; more than one worker splits rooms
    API_WORKERS: int = config.get_int("API_WORKERS", 1)
    API_CORS_ORIGINS: list[str] = config.get_list("API_CORS_ORIGINS", "*")
    # Largest inbound relay frame accepted, in bytes
    MAX_MESSAGE_BYTES: int = config.get_int("MAX_MESSAGE_BYTES", 50 * 1024 * 1024)
    # Outbound frames held per connection before new ones are dropped
    WS_MAX_PENDING_FRAMES: int = config.get_int("WS_MAX_PENDING_FRAMES", 256)

    # Recording storage: "local" writes into RECORDINGS_DIR, "s3" uploads on stop
    RECORDINGS_BACKEND: Literal["local", "s3"] = config.get_str("RECORDINGS_BACKEND", "local").lower()  # type: ignore
    RECORDINGS_DIR: str = config.get_str("RECORDINGS_DIR", "uploads")
    RECORDING_EXTENSION: str = config.get_str("RECORDING_EXTENSION", "webm").lstrip(".")
    RECORDINGS_LIST_LIMIT: int = config.get_int("RECORDINGS_LIST_LIMIT", 50)

    # Chat; an explicitly empty prefix is allowed
    CHAT_MESSAGE_PREFIX: str = config.get("CHAT_MESSAGE_PREFIX", "AI: ")  # type: ignore

    # AWS S3 configuration
    AWS_ACCESS_KEY_ID: str | None = config.get_optional("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: str | None = config.get_optional("AWS_SECRET_ACCESS_KEY")
    AWS_REGION: str = config.get_str("AWS_REGION", "us-east-1")
    S3_RECORDINGS_BUCKET: str | None = config.get_optional("S3_RECORDINGS_BUCKET")
    S3_RECORDINGS_PREFIX: str = config.get_str("S3_RECORDINGS_PREFIX", "live_recordings").strip("/")

    # Observability
    LOGFIRE_ENABLE: bool = config.get_bool("LOGFIRE_ENABLE")
    LOGFIRE_TOKEN: str | None = config.get_optional("LOGFIRE_TOKEN")


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
