from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from ..core.config import settings

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "ws-topic:"

_redis_client: Any = None
_consumer_task: Optional[asyncio.Task] = None


def _build_client() -> Any:
    url = (settings.REDIS_URL or "").strip()
    if not url.lower().startswith(("redis://", "rediss://")):
        return None
    return aioredis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=5,
        health_check_interval=30,
        retry_on_timeout=True,
    )


def get_client() -> Any:
    global _redis_client
    if _redis_client is None:
        _redis_client = _build_client()
    return _redis_client


def set_client(client: Any) -> None:
    """Swap the redis client (tests use fakeredis)."""
    global _redis_client
    _redis_client = client


def bus_enabled() -> bool:
    return bool(settings.WS_BUS_ENABLED) and get_client() is not None


async def publish_topic(topic: str, envelope: dict[str, Any] | str) -> None:
    """Publish an envelope to ws-topic:<topic>. No-op when the bus is disabled."""
    if not bus_enabled():
        return
    if isinstance(envelope, str):
        data = envelope
    else:
        env = dict(envelope)
        env.setdefault("v", 1)
        env.setdefault("topic", topic)
        data = json.dumps(env, separators=(",", ":"))
    try:
        await get_client().publish(f"{CHANNEL_PREFIX}{topic}", data)
    except (RedisError, OSError) as exc:
        # Local sockets already got the message; only cross-worker fan-out is lost
        logger.warning("Bus publish failed", extra={"topic": topic, "error": str(exc)})


def _decode(data: Any) -> dict[str, Any]:
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8")
    if isinstance(data, str):
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            return {"payload": {"raw": data}}
        return parsed if isinstance(parsed, dict) else {"payload": {"raw": parsed}}
    return {}


async def start_pattern_consumer(
    pattern: str,
    handler: Callable[[str, dict[str, Any]], Awaitable[None]],
) -> Optional[asyncio.Task]:
    """PSUBSCRIBE to ``pattern`` and dispatch decoded envelopes in a background task.

    Handler receives (topic_without_prefix, envelope_dict).
    """
    global _consumer_task
    if not bus_enabled():
        return None
    if _consumer_task is not None and not _consumer_task.done():
        return _consumer_task

    pubsub = get_client().pubsub()
    await pubsub.psubscribe(pattern)

    async def _loop() -> None:
        try:
            async for msg in pubsub.listen():
                if not isinstance(msg, dict) or msg.get("type") != "pmessage":
                    continue
                topic = str(msg.get("channel")).replace(CHANNEL_PREFIX, "", 1)
                try:
                    await handler(topic, _decode(msg.get("data")))
                except Exception:
                    # One bad message must not stop the stream
                    logger.exception("Bus handler failed", extra={"topic": topic})
        finally:
            await pubsub.aclose()

    _consumer_task = asyncio.create_task(_loop())
    return _consumer_task


async def stop_consumer() -> None:
    global _consumer_task
    if _consumer_task is None:
        return
    _consumer_task.cancel()
    try:
        await _consumer_task
    except asyncio.CancelledError:
        pass
    _consumer_task = None


__all__ = [
    "bus_enabled",
    "get_client",
    "set_client",
    "publish_topic",
    "start_pattern_consumer",
    "stop_consumer",
]
