#!/usr/bin/env python3
# ══════════════════════════════════════════════════════════════════════════════
#  Serafina - CLI Entry Point
#  Copyright (c) 2025 SIRIUS Alpha
# ══════════════════════════════════════════════════════════════════════════════
"""
Command-line interface for Serafina.

Features:
- Worker mode (the Discord bot itself)
- Supervisor mode (restarts the worker with exponential backoff)
- One-shot report builds and command schema deployment
- Structured logging (console + rotating file)
"""

import asyncio
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import click
import discord

from .config import get_config
from .delivery import DeliveryRouter, notify_relay
from .digest import build_council_report
from .discord import ConfigurationError, register_command_schema, run_worker
from .supervisor import BackoffState, Supervisor, worker_command

logger = logging.getLogger("serafina")

# ══════════════════════════════════════════════════════════════════════════════
# LOGGING SETUP
# ══════════════════════════════════════════════════════════════════════════════


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    quiet: bool = False,
) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: Enable DEBUG level
        log_file: Path to log file
        quiet: Suppress console output
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Clear existing handlers
    root.handlers.clear()

    fmt = "%(asctime)s [%(levelname)-.1s] %(name)s: %(message)s"
    datefmt = "%H:%M:%S"
    formatter = logging.Formatter(fmt, datefmt)

    if not quiet:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logging.DEBUG if verbose else logging.INFO)
        console.setFormatter(formatter)
        root.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)

        file_fmt = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
        file_handler.setFormatter(logging.Formatter(file_fmt))
        root.addHandler(file_handler)


# ══════════════════════════════════════════════════════════════════════════════
# CLI COMMANDS
# ══════════════════════════════════════════════════════════════════════════════


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose (debug) output",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress console output",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help="Path to log file",
)
def main(
    verbose: bool,
    quiet: bool,
    log_file: Optional[Path],
) -> None:
    """
    Serafina council relay bot.

    Posts the nightly council report (MCP health + recent commits) and
    serves /council report now.
    """
    config = get_config()
    setup_logging(verbose or config.debug, log_file or config.log_file, quiet)


@main.command()
def run() -> None:
    """
    Run the Discord worker.

    Exits 0 on a clean shutdown and 1 on startup failure (bad token,
    command registration error), which the supervisor treats as a crash.
    """
    try:
        run_worker(get_config())
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)
    except discord.LoginFailure:
        logger.error("Invalid Discord token!")
        sys.exit(1)
    except Exception:
        logger.exception("Worker crashed")
        sys.exit(1)

    logger.info("Worker stopped gracefully")
    sys.exit(0)


@main.command()
@click.option(
    "--initial-backoff",
    type=float,
    help="First restart delay in seconds (default: 2)",
)
@click.option(
    "--max-backoff",
    type=float,
    help="Restart delay cap in seconds (default: 60)",
)
def supervise(initial_backoff: Optional[float], max_backoff: Optional[float]) -> None:
    """
    Run the worker under the restart supervisor.

    Examples:

        serafina supervise

        serafina supervise --initial-backoff 5 --max-backoff 120
    """
    config = get_config()
    backoff = BackoffState(
        initial=initial_backoff or config.supervisor.initial_backoff,
        maximum=max_backoff or config.supervisor.max_backoff,
    )

    supervisor = Supervisor(worker_command(), backoff=backoff)
    try:
        code = supervisor.run()
    except KeyboardInterrupt:
        logger.info("Supervisor shutdown requested")
        code = 0

    sys.exit(code)


@main.command("deploy-commands")
def deploy_commands() -> None:
    """Register the slash command schema without starting the bot."""
    try:
        synced = register_command_schema(get_config())
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)
    except discord.LoginFailure:
        logger.error("Invalid Discord token!")
        sys.exit(1)
    except Exception:
        logger.exception("Command registration failed")
        sys.exit(1)

    click.echo(f"Slash commands deployed ({len(synced)})")


@main.command()
@click.option(
    "--dry-run",
    "-n",
    is_flag=True,
    help="Print the embed JSON instead of delivering it",
)
@click.option(
    "--notify-relay",
    "relay",
    is_flag=True,
    help="Also notify the relay webhook",
)
def report(dry_run: bool, relay: bool) -> None:
    """
    Build the council report once.

    Without a live connection only the webhook destination is available.
    """
    config = get_config()
    council_report = asyncio.run(build_council_report(config))

    if dry_run:
        click.echo(json.dumps({"embeds": [council_report.to_embed_dict()]}, indent=2, ensure_ascii=False))
        return

    router = DeliveryRouter(webhook_url=config.delivery.webhook_url, timeout=config.sources.http_timeout)
    target = asyncio.run(router.deliver(council_report))
    click.echo(f"Delivery: {target.name.lower()}")

    if relay and config.delivery.relay_webhook_url:
        notify_relay(config.delivery.relay_webhook_url, config.sources.http_timeout)


@main.command()
def check() -> None:
    """
    Check configuration.

    Prints the configuration summary and any problems found.
    """
    config = get_config()
    click.echo(config.summary())

    issues = config.validate()
    if not issues:
        click.echo("Configuration OK")
        return

    for issue in issues:
        click.echo(f"[!] {issue}")
    sys.exit(1)


# ══════════════════════════════════════════════════════════════════════════════
# ENTRY POINT
# ══════════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    main()
