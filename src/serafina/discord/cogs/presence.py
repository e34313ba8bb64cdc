from __future__ import annotations

import logging

import discord
from discord.ext import commands, tasks

LOG = logging.getLogger("serafina.discord.presence")

PRESENCE_TEXT = "whispering across realms"
HEARTBEAT_MINUTES = 15


class PresenceCog(commands.Cog):
    """Announces liveness every 15 minutes; presence is best-effort."""

    def __init__(self, bot):
        self.bot = bot

    async def cog_load(self) -> None:
        self.heartbeat.start()

    async def cog_unload(self) -> None:
        self.heartbeat.cancel()

    async def beat(self) -> None:
        try:
            await self.bot.change_presence(
                activity=discord.Game(name=PRESENCE_TEXT),
                status=discord.Status.online,
            )
        except Exception as e:
            LOG.debug("Presence update failed: %s", e)

    @tasks.loop(minutes=HEARTBEAT_MINUTES)
    async def heartbeat(self) -> None:
        await self.beat()

    @heartbeat.before_loop
    async def before_heartbeat(self) -> None:
        """Wait for the gateway before the first beat."""
        await self.bot.wait_until_ready()

