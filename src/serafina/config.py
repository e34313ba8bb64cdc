#!/usr/bin/env python3
# ══════════════════════════════════════════════════════════════════════════════
#  Serafina - Configuration Module
#  Copyright (c) 2025 SIRIUS Alpha
# ══════════════════════════════════════════════════════════════════════════════
"""
Configuration management for Serafina.

Loads settings from environment variables (and a project ``.env`` file).
Every optional value disables the feature that depends on it instead of
failing startup.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


def _get_project_root() -> Path:
    """Find the serafina project root directory."""
    current = Path(__file__).resolve().parent
    for _ in range(10):
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    # Fallback to 2 levels up from src/serafina
    return Path(__file__).resolve().parent.parent.parent


def _load_dotenv() -> None:
    """Load the project .env file if present."""
    env_path = _get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)


# Load environment on module import
_load_dotenv()


def _env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default).strip()


def _env_int(key: str) -> Optional[int]:
    """Get optional integer environment variable (snowflake ids)."""
    try:
        return int(os.environ.get(key, "")) or None
    except ValueError:
        return None


def _env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


def _env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


def _env_list(key: str) -> List[str]:
    """Get comma-separated list, dropping blanks."""
    return [item.strip() for item in os.environ.get(key, "").split(",") if item.strip()]


def _env_path(key: str) -> Optional[Path]:
    """Get optional path environment variable."""
    val = os.environ.get(key, "")
    if not val:
        return None
    path = Path(val).expanduser()
    return path if path.is_absolute() else _get_project_root() / path


def _mask(secret: str) -> str:
    if not secret:
        return "(not set)"
    return secret[:4] + "…" if len(secret) > 8 else "****"


@dataclass
class DiscordConfig:
    """Discord connection and scope configuration."""

    token: str = field(default_factory=lambda: _env("DISCORD_TOKEN"))
    guild_id: Optional[int] = field(default_factory=lambda: _env_int("GUILD_ID"))
    # The owner id doubles as the application id for command registration
    application_id: Optional[int] = field(default_factory=lambda: _env_int("OWNER_ID"))
    council_channel_id: Optional[int] = field(default_factory=lambda: _env_int("CHN_COUNCIL"))

    @property
    def is_configured(self) -> bool:
        """Check if Discord is properly configured."""
        return bool(self.token)


@dataclass
class SourcesConfig:
    """External data sources feeding the council report."""

    mcp_url: str = field(default_factory=lambda: _env("MCP_URL").rstrip("/"))
    repos: List[str] = field(default_factory=lambda: _env_list("NAV_REPOS"))
    github_token: str = field(default_factory=lambda: _env("GITHUB_TOKEN"))
    http_timeout: float = field(default_factory=lambda: _env_float("HTTP_TIMEOUT", 15.0))


@dataclass
class DeliveryConfig:
    """Report destinations."""

    webhook_url: str = field(default_factory=lambda: _env("WH_LILYBEAR"))
    relay_webhook_url: str = field(default_factory=lambda: _env("GUARDIAN_WEBHOOK"))


@dataclass
class SupervisorConfig:
    """Restart backoff for the worker process (seconds)."""

    initial_backoff: float = field(default_factory=lambda: _env_float("SUPERVISOR_INITIAL_BACKOFF", 2.0))
    max_backoff: float = field(default_factory=lambda: _env_float("SUPERVISOR_MAX_BACKOFF", 60.0))


@dataclass
class Config:
    """
    Master configuration for Serafina.

    Aggregates all sub-configurations and provides utility methods.
    """

    discord: DiscordConfig = field(default_factory=DiscordConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)

    # Runtime flags
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", False))
    log_file: Optional[Path] = field(default_factory=lambda: _env_path("SERAFINA_LOG_FILE"))

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of issues.

        Returns:
            List of validation error messages (empty if valid)
        """
        issues = []

        if not self.discord.token:
            issues.append("DISCORD_TOKEN is not set\n  The worker cannot log in without a bot token")

        if not self.delivery.webhook_url and not self.discord.council_channel_id:
            issues.append(
                "No report destination configured\n"
                "  Set WH_LILYBEAR (webhook) or CHN_COUNCIL (channel id)"
            )

        if self.supervisor.initial_backoff <= 0 or self.supervisor.max_backoff < self.supervisor.initial_backoff:
            issues.append(
                f"Invalid supervisor backoff: initial={self.supervisor.initial_backoff}s "
                f"max={self.supervisor.max_backoff}s"
            )

        return issues

    def summary(self) -> str:
        """Generate human-readable configuration summary."""
        lines = [
            "═" * 60,
            "  SERAFINA CONFIGURATION",
            "═" * 60,
            "",
            "Discord:",
            f"  Token: {_mask(self.discord.token)}",
            f"  Guild: {self.discord.guild_id or '(global commands)'}",
            f"  Application: {self.discord.application_id or '(from login)'}",
            f"  Council Channel: {self.discord.council_channel_id or '(not set)'}",
            "",
            "Sources:",
            f"  MCP: {self.sources.mcp_url or '(not set)'}",
            f"  Repos: {', '.join(self.sources.repos) or '(none)'}",
            f"  GitHub Token: {_mask(self.sources.github_token)}",
            f"  HTTP Timeout: {self.sources.http_timeout}s",
            "",
            "Delivery:",
            f"  Webhook: {'set' if self.delivery.webhook_url else '(not set)'}",
            f"  Relay Webhook: {'set' if self.delivery.relay_webhook_url else '(not set)'}",
            "",
            "Supervisor:",
            f"  Initial Backoff: {self.supervisor.initial_backoff}s",
            f"  Max Backoff: {self.supervisor.max_backoff}s",
            "",
            "Flags:",
            f"  Debug: {self.debug}",
            f"  Log File: {self.log_file or '(console only)'}",
            "",
            "═" * 60,
        ]

        return "\n".join(lines)


# Singleton config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
