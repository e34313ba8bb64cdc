#!/usr/bin/env python3
# ══════════════════════════════════════════════════════════════════════════════
#  Serafina - Discord Bot Core
#  Copyright (c) 2025 SIRIUS Alpha
# ══════════════════════════════════════════════════════════════════════════════
"""
Serafina Discord bot.

Startup order:
1. HTTP login, then ``setup_hook``: load cogs and push the full slash
   command schema to the guild (declarative replace on every start)
2. Gateway connect
3. On ready: presence heartbeat and the 08:00 UTC council report begin

Registration or login failures propagate so the worker exits non-zero and
the supervisor restarts it.
"""

import asyncio
import logging
from typing import Optional

import discord
from discord.ext import commands

from ..config import Config, get_config
from ..delivery import DeliveryRouter, DeliveryTarget
from ..digest import build_council_report
from .cogs.council import CouncilCog
from .cogs.nightly import NightlyReportCog
from .cogs.presence import PresenceCog

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when the worker cannot start with the current configuration."""


class SerafinaBot(commands.Bot):
    """
    Council relay bot.

    Serves ``/council report now``, keeps a presence heartbeat and posts the
    council report on a daily schedule.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()

        intents = discord.Intents.none()
        intents.guilds = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            application_id=self.config.discord.application_id,
        )

        self.synced_commands: list = []

        self.router = DeliveryRouter(
            webhook_url=self.config.delivery.webhook_url,
            channel_resolver=self._council_channel,
            timeout=self.config.sources.http_timeout,
        )

    # ══════════════════════════════════════════════════════════════════════════
    # LIFECYCLE EVENTS
    # ══════════════════════════════════════════════════════════════════════════

    async def setup_hook(self) -> None:
        """Called after HTTP login, before the gateway connection opens."""
        logger.info("Setting up bot...")

        for cog in (CouncilCog(self), PresenceCog(self), NightlyReportCog(self)):
            await self.add_cog(cog)

        await self.register_commands()

    async def register_commands(self) -> list:
        """Replace the registered slash commands with the current tree."""
        guild_id = self.config.discord.guild_id
        if guild_id:
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to guild %s", len(synced), guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))
        self.synced_commands = synced
        return synced

    async def on_ready(self) -> None:
        logger.info("Serafina online as %s", self.user)

    # ══════════════════════════════════════════════════════════════════════════
    # COUNCIL REPORT
    # ══════════════════════════════════════════════════════════════════════════

    def _council_channel(self):
        channel_id = self.config.discord.council_channel_id
        if not channel_id:
            return None
        return self.get_channel(channel_id)

    async def send_council_report(self) -> DeliveryTarget:
        """Build a fresh council report and deliver it."""
        report = await build_council_report(self.config)
        return await self.router.deliver(report)


# ══════════════════════════════════════════════════════════════════════════════
# RUNNING
# ══════════════════════════════════════════════════════════════════════════════


def _require_token(config: Config) -> str:
    token = config.discord.token
    if not token:
        raise ConfigurationError("Discord bot token not configured. Set DISCORD_TOKEN environment variable.")
    return token


async def _register_only(bot: SerafinaBot, token: str) -> list:
    async with bot:
        # login() runs setup_hook, which syncs the tree
        await bot.login(token)
        return bot.synced_commands


def register_command_schema(config: Optional[Config] = None) -> list:
    """Push the command schema and exit without opening the gateway."""
    config = config or get_config()
    token = _require_token(config)
    return asyncio.run(_register_only(SerafinaBot(config), token))


def run_worker(config: Optional[Config] = None) -> None:
    """
    Run the bot until it is closed.

    Raises:
        ConfigurationError: Token missing
        discord.LoginFailure: Token rejected
    """
    config = config or get_config()
    token = _require_token(config)
    bot = SerafinaBot(config)
    bot.run(token, log_handler=None)
