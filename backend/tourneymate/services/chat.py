"""Bounded per-channel chat logs kept in Redis lists (newest first)."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from pydantic import ValidationError as PydanticValidationError

from ..cache import DecodePolicy
from ..exceptions import StoreUnavailable, ValidationError
from ..limits import CHAT_KEEP_LAST, CHAT_READ_COUNT
from ..schemas import ChatMessage

logger = logging.getLogger(__name__)


class ChatStore:
    def __init__(
        self, client: redis.Redis, *, decode_policy: DecodePolicy = DecodePolicy.DROP
    ) -> None:
        self._redis = client
        self.decode_policy = decode_policy

    async def push_message(
        self,
        channel: str,
        message: ChatMessage,
        keep_last: int | None = CHAT_KEEP_LAST.default,
    ) -> None:
        """Prepend ``message`` and trim the log to the newest ``keep_last``.

        Push and trim go out as one MULTI/EXEC block, so either both apply or
        neither does.
        """

        if not channel or not channel.strip():
            raise ValidationError("channel is required", code="chat_channel_required")

        keep = CHAT_KEEP_LAST.clamp(keep_last)
        payload = message.model_dump_json(by_alias=True)

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.lpush(channel, payload)
            pipe.ltrim(channel, 0, keep - 1)
            await pipe.execute()

    async def get_last(
        self, channel: str, count: int | None = CHAT_READ_COUNT.default
    ) -> list[ChatMessage]:
        """Return the ``count`` newest messages, oldest first."""

        if not channel or not channel.strip():
            return []

        n = CHAT_READ_COUNT.clamp(count)
        raw_items = await self._redis.lrange(channel, 0, n - 1)

        messages: list[ChatMessage] = []
        for raw in raw_items:
            if not raw or not str(raw).strip():
                continue
            try:
                messages.append(ChatMessage.model_validate_json(raw))
            except PydanticValidationError as exc:
                if self.decode_policy is DecodePolicy.RAISE:
                    raise StoreUnavailable(
                        f"undecodable chat entry in {channel}"
                    ) from exc
                logger.warning("Dropping undecodable chat entry in %s", channel)

        messages.reverse()
        return messages
