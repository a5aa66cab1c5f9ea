from typing import Annotated

from fastapi import Depends, Request

from app.app_config import AppEnvironConfig
from app.domain.live.catalog import LocalRecordingCatalog, RecordingCatalog, S3RecordingCatalog
from app.domain.live.recording import (
    LocalRecordingFinalizer,
    RecordingFinalizer,
    RecordingService,
    S3RecordingFinalizer,
)
from app.domain.live.relay_domain import LiveRelay
from app.domain.live.rooms import ChatRelay, RoomHub
from app.domain.live.session.session_registry import SessionRegistry


def build_recording_finalizer(cfg: AppEnvironConfig) -> RecordingFinalizer:
    if cfg.RECORDINGS_BACKEND == "s3":
        return S3RecordingFinalizer()
    return LocalRecordingFinalizer(cfg.RECORDINGS_DIR)


def build_live_relay(cfg: AppEnvironConfig) -> LiveRelay:
    hub = RoomHub()
    return LiveRelay(
        registry=SessionRegistry(),
        hub=hub,
        recordings=RecordingService(
            hub=hub,
            finalizer=build_recording_finalizer(cfg),
            extension=cfg.RECORDING_EXTENSION,
        ),
        chat=ChatRelay(hub, prefix=cfg.CHAT_MESSAGE_PREFIX),
    )


def build_recording_catalog(cfg: AppEnvironConfig) -> RecordingCatalog:
    if cfg.RECORDINGS_BACKEND == "s3":
        return S3RecordingCatalog(
            extension=cfg.RECORDING_EXTENSION,
            limit=cfg.RECORDINGS_LIST_LIMIT,
        )
    return LocalRecordingCatalog(cfg.RECORDINGS_DIR, extension=cfg.RECORDING_EXTENSION)


def get_live_relay(request: Request) -> LiveRelay:
    return request.app.state.live_relay


def get_recording_catalog(request: Request) -> RecordingCatalog:
    return request.app.state.recording_catalog


LiveRelayDep = Annotated[LiveRelay, Depends(get_live_relay)]
RecordingCatalogDep = Annotated[RecordingCatalog, Depends(get_recording_catalog)]
