import time
import traceback
import uuid
from contextlib import asynccontextmanager
from os import environ
from pathlib import Path

import logfire
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.dependency import build_live_relay, build_recording_catalog
from app.api.errors import app_error_handler
from app.api.routers.live_streams import router as live_streams_router
from app.api.routers.recordings import router as recordings_router
from app.api.ws.relay import router as relay_router
from app.app_config import get_app_environ_config
from app.shared.api.health import router as health_router
from app.shared.api.utils import api_failure, init_logger, validation_exception_handler
from app.utils.app_errors import AppError, AppErrorCode


class HTTPLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore
        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]

        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000

            logger.info(
                f"[{request_id}] {request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Duration: {process_time:.2f}ms"
            )

            return response

        except Exception as exc:
            process_time = (time.time() - start_time) * 1000

            logger.error(
                f"[{request_id}] Unhandled exception in {request.method} {request.url.path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            failure = api_failure(
                errcode=AppErrorCode.E_INTERNAL_ERROR.value,
                error=f"Internal server error (request_id: {request_id})",
            )
            return ORJSONResponse(
                status_code=500,
                content=failure.model_dump(),
            )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    cfg = get_app_environ_config()

    if cfg.RECORDINGS_BACKEND == "local":
        recordings_dir = Path(cfg.RECORDINGS_DIR)
        recordings_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Saving recordings to {recordings_dir.resolve()}")
    else:
        logger.info(f"Uploading recordings to s3://{cfg.S3_RECORDINGS_BUCKET}/{cfg.S3_RECORDINGS_PREFIX}")

    server.state.live_relay = build_live_relay(cfg)
    server.state.recording_catalog = build_recording_catalog(cfg)

    if cfg.LOGFIRE_ENABLE:
        logger.info("Logfire initializing")

        logfire.configure(
            token=cfg.LOGFIRE_TOKEN,
            service_name="live-relay",
            service_version=environ.get("BUILD_COMMIT") or "dev",
        )

        logger.info("Logfire instrument fastapi")
        logfire.instrument_fastapi(server, capture_headers=True)

        logger.info("Logfire instrument pydantic")
        logfire.instrument_pydantic()

    yield

    logger.info("Application shutdown...")

    await server.state.live_relay.shutdown()


def create_app() -> FastAPI:
    cfg = get_app_environ_config()

    server = FastAPI(
        version="1.0",
        title="Live Relay API",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    server.add_middleware(HTTPLoggingMiddleware)

    server.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=cfg.API_CORS_ORIGINS,
        allow_credentials="*" not in cfg.API_CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    server.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
    server.add_exception_handler(AppError, app_error_handler)  # type: ignore

    server.include_router(health_router)
    server.include_router(live_streams_router)
    server.include_router(recordings_router)
    server.include_router(relay_router)

    return server


app = create_app()


def build_granian_kwargs():
    cfg = get_app_environ_config()

    kwargs = {
        "interface": "asgi",
        "address": cfg.API_HOST,
        "port": cfg.API_PORT,
        "workers": cfg.API_WORKERS,
        "reload": cfg.DEBUG,
    }

    return kwargs


if __name__ == "__main__":
    granian_kwargs = build_granian_kwargs()
    Granian("app.main:app", **granian_kwargs).serve()
