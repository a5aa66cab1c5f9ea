"""Connections currently live on the relay."""

from fastapi import APIRouter

from app.api.dependency import LiveRelayDep
from app.schemas import LiveStreamsOut

router = APIRouter(tags=["live"])


@router.get("/live-streams")
async def list_live_streams(relay: LiveRelayDep) -> LiveStreamsOut:
    """List open connections with the time they connected."""
    return LiveStreamsOut(streams=relay.registry.list())
