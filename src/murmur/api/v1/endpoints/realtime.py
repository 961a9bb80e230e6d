"""Websocket entry point for realtime events."""

from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket

from murmur.api.v1.dependencies import get_realtime_server_ws
from murmur.realtime import RealtimeServer

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    server: Annotated[RealtimeServer, Depends(get_realtime_server_ws)],
) -> None:
    """Authenticate the socket, then stream events until it disconnects."""
    await server.serve(websocket)
