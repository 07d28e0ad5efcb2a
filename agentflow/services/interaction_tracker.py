"""Fire-and-forget widget click beacon"""
from datetime import datetime, timezone
from typing import Optional, Set
import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class InteractionTracker:
    """
    Posts ``{apiKey, platform, action, timestamp}`` to the tracking endpoint

    Delivery is best effort: failures are dropped, never retried, never raised.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport
        self._pending: Set[asyncio.Task] = set()

    async def send(self, api_key: str, platform: str, action: str = "widget_click") -> bool:
        """Post one beacon; returns whether the endpoint accepted it"""
        body = {
            "apiKey": api_key,
            "platform": platform,
            "action": action,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, json=body)
            if not response.is_success:
                logger.debug(f"Widget beacon rejected: {response.status_code}")
                return False
            return True
        except Exception as e:
            logger.debug(f"Widget beacon dropped: {e}")
            return False

    def fire(self, api_key: str, platform: str, action: str = "widget_click") -> asyncio.Task:
        """Schedule ``send`` in the background and return without waiting"""
        task = asyncio.get_running_loop().create_task(self.send(api_key, platform, action))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)
