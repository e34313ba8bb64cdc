#!/usr/bin/env python3
# ══════════════════════════════════════════════════════════════════════════════
#  Serafina - Council Digest Aggregator
#  Copyright (c) 2025 SIRIUS Alpha
# ══════════════════════════════════════════════════════════════════════════════
"""
Builds the council report from external sources.

Sources:
- MCP health endpoint (one-sentence system health summary)
- GitHub commit history for each configured repository (last 24h)

A source failure always degrades to a placeholder line; building a report
never fails because of a source. The health summary is fetched first, then
all repositories are fetched concurrently.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .fallback import fallible
from .report import COMMITS_SECTION, HEALTH_SECTION, CouncilReport, ReportSection, truncate

logger = logging.getLogger(__name__)

MCP_PROMPT = "Summarize system health in one sentence."
NO_DATA = "(no data)"
MCP_UNREACHABLE = "(MCP unreachable)"
NO_REPOS = "—"

GITHUB_COMMITS_URL = "https://api.github.com/repos/{repo}/commits"
GITHUB_ACCEPT = "application/vnd.github+json"
COMMIT_WINDOW = timedelta(hours=24)
MAX_COMMITS = 5


# ══════════════════════════════════════════════════════════════════════════════
# HEALTH SUMMARY
# ══════════════════════════════════════════════════════════════════════════════


def fetch_mcp_status(mcp_url: str, timeout: float = 15.0) -> str:
    """
    Ask the MCP endpoint for a one-sentence health summary.

    Non-success responses and malformed bodies yield ``NO_DATA``;
    transport errors propagate to the caller.
    """
    resp = requests.post(f"{mcp_url}/ask-gemini", json={"prompt": MCP_PROMPT}, timeout=timeout)
    if not resp.ok:
        logger.warning("MCP returned HTTP %s", resp.status_code)
        return NO_DATA

    try:
        payload = resp.json()
    except ValueError:
        logger.warning("MCP returned a non-JSON body")
        return NO_DATA

    answer = payload.get("response") if isinstance(payload, dict) else None
    if isinstance(answer, str) and answer:
        return answer
    return NO_DATA


def get_mcp_status(mcp_url: str, timeout: float = 15.0) -> str:
    if not mcp_url:
        return NO_DATA
    return fallible(fetch_mcp_status, mcp_url, timeout, fallback=MCP_UNREACHABLE, label="MCP status")


# ══════════════════════════════════════════════════════════════════════════════
# REPOSITORY DIGEST
# ══════════════════════════════════════════════════════════════════════════════


def format_commit_line(repo: str, commit: Dict[str, Any]) -> str:
    """Render one commit as ``• repo@abcdef1 — first line``."""
    sha = (commit.get("sha") or "")[:7]
    message = commit["commit"]["message"].split("\n")[0]
    return f"• {repo}@{sha} — {message}"


def fetch_repo_digest(
    repo: str,
    since: datetime,
    timeout: float = 15.0,
    token: Optional[str] = None,
) -> str:
    """
    Summarize recent commits for ``repo``.

    Args:
        repo: ``owner/name`` repository identifier
        since: Start of the commit window (UTC)
        timeout: Request timeout in seconds
        token: Optional GitHub token

    Returns:
        One line per commit (source order), or a single placeholder line
    """
    headers = {"Accept": GITHUB_ACCEPT}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    resp = requests.get(
        GITHUB_COMMITS_URL.format(repo=repo),
        params={"since": since.strftime("%Y-%m-%dT%H:%M:%SZ"), "per_page": MAX_COMMITS},
        headers=headers,
        timeout=timeout,
    )
    if not resp.ok:
        logger.info("GitHub returned HTTP %s for %s", resp.status_code, repo)
        return f"• {repo}: no recent commits"

    commits = resp.json()
    if not commits:
        return f"• {repo}: 0 commits in last 24h"

    return "\n".join(format_commit_line(repo, c) for c in commits[:MAX_COMMITS])


def get_repo_digest(
    repo: str,
    since: datetime,
    timeout: float = 15.0,
    token: Optional[str] = None,
) -> str:
    return fallible(
        fetch_repo_digest,
        repo,
        since,
        timeout,
        token,
        fallback=f"• {repo}: (error fetching commits)",
        label=f"Commits for {repo}",
    )


async def gather_repo_digests(
    repos: List[str],
    since: datetime,
    timeout: float = 15.0,
    token: Optional[str] = None,
) -> str:
    """Fetch every repository concurrently and join the results in config order."""
    if not repos:
        return NO_REPOS

    results = await asyncio.gather(
        *(asyncio.to_thread(get_repo_digest, repo, since, timeout, token) for repo in repos)
    )
    return truncate("\n".join(results))


# ══════════════════════════════════════════════════════════════════════════════
# REPORT ASSEMBLY
# ══════════════════════════════════════════════════════════════════════════════


async def build_council_report(config: Config, now: Optional[datetime] = None) -> CouncilReport:
    """
    Build a fresh council report.

    Args:
        config: Configuration object
        now: Report time (defaults to current UTC time)

    Returns:
        Assembled report with "System Health" and "Recent Commits" sections
    """
    now = now or datetime.now(timezone.utc)
    sources = config.sources

    logger.info("Building council report (%d repos)", len(sources.repos))

    health = await asyncio.to_thread(get_mcp_status, sources.mcp_url, sources.http_timeout)
    commits = await gather_repo_digests(
        sources.repos,
        now - COMMIT_WINDOW,
        sources.http_timeout,
        sources.github_token or None,
    )

    return CouncilReport(
        sections=[
            ReportSection(HEALTH_SECTION, health),
            ReportSection(COMMITS_SECTION, commits),
        ],
        timestamp=now,
    )
