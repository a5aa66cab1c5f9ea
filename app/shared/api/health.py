from fastapi import APIRouter, Request

from app.app_config import get_app_environ_config

from .utils import ApiSuccess


router = APIRouter()


@router.get('/health', response_model=ApiSuccess)
async def health(request: Request):
    relay = getattr(request.app.state, 'live_relay', None)
    return ApiSuccess(results={
        'status': 'OK',
        'recordings_backend': get_app_environ_config().RECORDINGS_BACKEND,
        'live_streams': len(relay.registry) if relay else 0,
    })
