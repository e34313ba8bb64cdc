from __future__ import annotations

from typing import Any, Optional

import pytest

from serafina.config import (
    Config,
    DeliveryConfig,
    DiscordConfig,
    SourcesConfig,
    SupervisorConfig,
    reset_config,
)

SERAFINA_ENV = [
    "DISCORD_TOKEN",
    "GUILD_ID",
    "OWNER_ID",
    "CHN_COUNCIL",
    "MCP_URL",
    "NAV_REPOS",
    "GITHUB_TOKEN",
    "HTTP_TIMEOUT",
    "WH_LILYBEAR",
    "GUARDIAN_WEBHOOK",
    "SUPERVISOR_INITIAL_BACKOFF",
    "SUPERVISOR_MAX_BACKOFF",
    "SERAFINA_LOG_FILE",
    "DEBUG",
]


class FakeResp:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of the tests."""
    for key in SERAFINA_ENV:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_config():
    def _make(
        mcp_url: str = "http://mcp.test",
        repos: Optional[list] = None,
        webhook_url: str = "",
        relay_webhook_url: str = "",
        council_channel_id: Optional[int] = None,
    ) -> Config:
        return Config(
            discord=DiscordConfig(
                token="test-token",
                guild_id=1234,
                application_id=None,
                council_channel_id=council_channel_id,
            ),
            sources=SourcesConfig(
                mcp_url=mcp_url,
                repos=list(repos or []),
                github_token="",
                http_timeout=1.0,
            ),
            delivery=DeliveryConfig(webhook_url=webhook_url, relay_webhook_url=relay_webhook_url),
            supervisor=SupervisorConfig(initial_backoff=2.0, max_backoff=60.0),
            debug=False,
            log_file=None,
        )

    return _make
