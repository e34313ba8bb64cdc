from __future__ import annotations

import logging
from datetime import time, timezone

from discord.ext import commands, tasks

LOG = logging.getLogger("serafina.discord.nightly")

REPORT_TIME = time(hour=8, minute=0, tzinfo=timezone.utc)


class NightlyReportCog(commands.Cog):
    """Posts the council report every day at 08:00 UTC."""

    def __init__(self, bot):
        self.bot = bot

    async def cog_load(self) -> None:
        self.nightly_report.start()

    async def cog_unload(self) -> None:
        self.nightly_report.cancel()

    async def run_report(self) -> None:
        LOG.info("Scheduled council report firing")
        try:
            await self.bot.send_council_report()
        except Exception:
            LOG.exception("Scheduled council report failed")

    @tasks.loop(time=REPORT_TIME)
    async def nightly_report(self) -> None:
        await self.run_report()

    @nightly_report.before_loop
    async def before_nightly_report(self) -> None:
        await self.bot.wait_until_ready()

