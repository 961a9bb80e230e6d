"""Point-to-point call signaling.

Signals are forwarded to the other party's live connection or dropped. No
call state is kept here; call history is recorded separately.
"""

from __future__ import annotations

import logging
from typing import Any

from murmur.realtime.connection import Connection
from murmur.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class CallSignalingRelay:
    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry

    async def _forward(self, user_id: str, event: str, data: dict[str, Any]) -> bool:
        target = self.registry.lookup(user_id)
        if target is None:
            logger.debug("Dropped %s for offline user %s", event, user_id)
            return False
        return await target.send(event, data)

    async def call_user(
        self,
        connection: Connection,
        receiver_id: str,
        *,
        type: str,
        agora_token: str | None,
        channel_name: str,
    ) -> bool:
        return await self._forward(
            receiver_id,
            "incoming_call",
            {
                "callerId": connection.user_id,
                "caller": connection.user,
                "type": type,
                "agoraToken": agora_token,
                "channelName": channel_name,
            },
        )

    async def call_response(
        self,
        connection: Connection,
        caller_id: str,
        *,
        accepted: bool,
        agora_token: str | None,
        channel_name: str | None,
    ) -> bool:
        return await self._forward(
            caller_id,
            "call_response",
            {
                "receiverId": connection.user_id,
                "receiver": connection.user,
                "accepted": accepted,
                "agoraToken": agora_token,
                "channelName": channel_name,
            },
        )

    async def call_ended(self, connection: Connection, other_user_id: str) -> bool:
        return await self._forward(other_user_id, "call_ended", {"userId": connection.user_id})
