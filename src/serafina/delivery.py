"""Report delivery and relay notifications.

Exactly one destination receives each report: the configured webhook,
otherwise the council channel from the live client cache. Delivery
failures are logged and never raised, so the daily schedule keeps running.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from typing import Callable, Optional

import discord
import requests

from .fallback import fallible
from .report import CouncilReport

logger = logging.getLogger(__name__)

RELAY_PAYLOAD = {"from": "Serafina", "to": "Lilybear", "message": "council report triggered"}


class DeliveryTarget(Enum):
    """Where a report was routed."""

    WEBHOOK = auto()
    CHANNEL = auto()
    DROPPED = auto()


def post_webhook(url: str, payload: dict, timeout: float = 15.0) -> bool:
    """POST a JSON payload to a webhook. Returns True on a 2xx response."""
    r = requests.post(url, json=payload, timeout=timeout)
    if r.ok:
        return True
    logger.warning("Webhook returned HTTP %s: %s", r.status_code, r.text[:200])
    return False


def notify_relay(url: str, timeout: float = 15.0) -> bool:
    """Tell the relay endpoint that a council report was triggered."""
    ok = fallible(post_webhook, url, RELAY_PAYLOAD, timeout, fallback=False, label="Relay webhook")
    if ok:
        logger.info("Relay notified")
    return ok


class DeliveryRouter:
    """Routes an assembled report to its single destination."""

    def __init__(
        self,
        webhook_url: str = "",
        channel_resolver: Optional[Callable[[], Optional[discord.abc.Messageable]]] = None,
        timeout: float = 15.0,
    ):
        self.webhook_url = webhook_url
        self.channel_resolver = channel_resolver
        self.timeout = timeout

    def _resolve_channel(self):
        if self.channel_resolver is None:
            return None
        return self.channel_resolver()

    async def deliver(self, report: CouncilReport) -> DeliveryTarget:
        """
        Send ``report`` to the webhook if configured, else to the channel.

        Returns:
            The destination that was attempted (``DROPPED`` if none)
        """
        if self.webhook_url:
            await self._send_webhook(report)
            return DeliveryTarget.WEBHOOK

        channel = self._resolve_channel()
        if channel is None:
            logger.warning("No webhook or council channel available; report dropped")
            return DeliveryTarget.DROPPED

        await self._send_channel(channel, report)
        return DeliveryTarget.CHANNEL

    async def _send_webhook(self, report: CouncilReport) -> None:
        ok = await asyncio.to_thread(
            fallible,
            post_webhook,
            self.webhook_url,
            {"embeds": [report.to_embed_dict()]},
            self.timeout,
            fallback=False,
            label="Council report webhook",
        )
        if ok:
            logger.info("Council report posted via webhook")

    async def _send_channel(self, channel, report: CouncilReport) -> None:
        try:
            await channel.send(embed=report.to_embed())
        except Exception as e:
            logger.error("Council report send error: %s", e)
            return
        logger.info("Council report posted to channel %s", getattr(channel, "id", channel))
