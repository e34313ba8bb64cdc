"""Council slash commands.

Exposes ``/council report now``. The acknowledgement is sent before the
report is built so the interaction never times out waiting on sources.
"""
from __future__ import annotations

import asyncio
import logging

import discord
from discord import app_commands
from discord.ext import commands

from ...delivery import notify_relay

LOG = logging.getLogger("serafina.discord.council")

ACK_MESSAGE = "Summoning council report..."


class CouncilCog(commands.Cog):
    """Operator-facing council utilities."""

    council = app_commands.Group(name="council", description="Council utilities")
    report = app_commands.Group(name="report", description="Council reports", parent=council)

    def __init__(self, bot):
        self.bot = bot

    @report.command(name="now", description="Send council report immediately")
    async def report_now(self, interaction: discord.Interaction):
        """Send the council report right away (ephemeral ack to the caller)."""
        await interaction.response.send_message(ACK_MESSAGE, ephemeral=True)
        LOG.info("Council report requested by %s", interaction.user)

        await self.bot.send_council_report()

        relay_url = self.bot.config.delivery.relay_webhook_url
        if relay_url:
            await asyncio.to_thread(notify_relay, relay_url, self.bot.config.sources.http_timeout)

