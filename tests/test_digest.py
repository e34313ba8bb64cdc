import threading
from datetime import datetime, timedelta, timezone

import pytest
import requests

from conftest import FakeResp
from serafina import digest
from serafina.digest import (
    MCP_PROMPT,
    MCP_UNREACHABLE,
    NO_DATA,
    build_council_report,
    fetch_repo_digest,
    format_commit_line,
    get_mcp_status,
    get_repo_digest,
)
from serafina.report import COMMITS_SECTION, HEALTH_SECTION

SINCE = datetime(2025, 1, 14, 8, 0, tzinfo=timezone.utc)


def _commit(sha, message):
    return {"sha": sha, "commit": {"message": message}}


# ══════════════════════════════════════════════════════════════════════════════
# COMMITS
# ══════════════════════════════════════════════════════════════════════════════


def test_commit_line_format():
    line = format_commit_line("myorg/repo", _commit("abcdef1234567", "Fix bug\n\nDetails"))
    assert line == "• myorg/repo@abcdef1 — Fix bug"


def test_repo_not_found(monkeypatch):
    monkeypatch.setattr("requests.get", lambda *a, **k: FakeResp(404, {"message": "Not Found"}))
    assert get_repo_digest("myorg/repo", SINCE) == "• myorg/repo: no recent commits"


def test_repo_without_commits(monkeypatch):
    monkeypatch.setattr("requests.get", lambda *a, **k: FakeResp(200, []))
    assert get_repo_digest("myorg/repo", SINCE) == "• myorg/repo: 0 commits in last 24h"


def test_repo_network_error(monkeypatch):
    def boom(*a, **k):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr("requests.get", boom)
    assert get_repo_digest("myorg/repo", SINCE) == "• myorg/repo: (error fetching commits)"


def test_repo_malformed_commit(monkeypatch):
    monkeypatch.setattr("requests.get", lambda *a, **k: FakeResp(200, [{"sha": "abc"}]))
    assert get_repo_digest("myorg/repo", SINCE) == "• myorg/repo: (error fetching commits)"


def test_repo_request_shape(monkeypatch):
    calls = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.update(url=url, params=params, headers=headers, timeout=timeout)
        return FakeResp(200, [_commit("1111111aaaa", "one"), _commit("2222222bbbb", "two")])

    monkeypatch.setattr("requests.get", fake_get)
    out = fetch_repo_digest("myorg/repo", SINCE, timeout=3.0, token="ghp_x")

    assert out == "• myorg/repo@1111111 — one\n• myorg/repo@2222222 — two"
    assert calls["url"] == "https://api.github.com/repos/myorg/repo/commits"
    assert calls["params"] == {"since": "2025-01-14T08:00:00Z", "per_page": 5}
    assert calls["headers"]["Accept"] == "application/vnd.github+json"
    assert calls["headers"]["Authorization"] == "Bearer ghp_x"
    assert calls["timeout"] == 3.0


def test_repo_caps_at_five_commits(monkeypatch):
    commits = [_commit(f"{i:07d}ffff", f"commit {i}") for i in range(8)]
    monkeypatch.setattr("requests.get", lambda *a, **k: FakeResp(200, commits))
    assert len(fetch_repo_digest("a/b", SINCE).splitlines()) == 5


# ══════════════════════════════════════════════════════════════════════════════
# MCP HEALTH
# ══════════════════════════════════════════════════════════════════════════════


def test_mcp_response(monkeypatch):
    calls = {}

    def fake_post(url, json=None, timeout=None):
        calls.update(url=url, json=json)
        return FakeResp(200, {"response": "All systems nominal."})

    monkeypatch.setattr("requests.post", fake_post)
    assert get_mcp_status("http://mcp.test") == "All systems nominal."
    assert calls["url"] == "http://mcp.test/ask-gemini"
    assert calls["json"] == {"prompt": MCP_PROMPT}


@pytest.mark.parametrize(
    "resp",
    [
        FakeResp(200, ValueError("not json")),
        FakeResp(200, {"other": 1}),
        FakeResp(200, {"response": ""}),
        FakeResp(200, ["list"]),
        FakeResp(500, {"response": "stale"}),
    ],
)
def test_mcp_no_data(monkeypatch, resp):
    monkeypatch.setattr("requests.post", lambda *a, **k: resp)
    assert get_mcp_status("http://mcp.test") == NO_DATA


def test_mcp_unreachable(monkeypatch):
    def boom(*a, **k):
        raise requests.ConnectionError("down")

    monkeypatch.setattr("requests.post", boom)
    assert get_mcp_status("http://mcp.test") == MCP_UNREACHABLE == "(MCP unreachable)"


def test_mcp_not_configured(monkeypatch):
    def fail(*a, **k):
        raise AssertionError("no request expected")

    monkeypatch.setattr("requests.post", fail)
    assert get_mcp_status("") == NO_DATA


# ══════════════════════════════════════════════════════════════════════════════
# REPORT ASSEMBLY
# ══════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_report_without_repos(monkeypatch, make_config):
    monkeypatch.setattr("requests.post", lambda *a, **k: FakeResp(200, {"response": "ok"}))

    report = await build_council_report(make_config(repos=[]))

    assert report.get_field(HEALTH_SECTION) == "ok"
    assert report.get_field(COMMITS_SECTION) == "—"


@pytest.mark.asyncio
async def test_report_keeps_repo_order_and_isolates_failures(monkeypatch, make_config):
    monkeypatch.setattr("requests.post", lambda *a, **k: FakeResp(200, {"response": "ok"}))

    def fake_get(url, params=None, headers=None, timeout=None):
        if "/alpha/" in url:
            return FakeResp(200, [_commit("aaaaaaa111", "alpha work")])
        if "/beta/" in url:
            raise requests.Timeout("slow")
        return FakeResp(404)

    monkeypatch.setattr("requests.get", fake_get)

    report = await build_council_report(make_config(repos=["alpha/one", "beta/two", "gamma/three"]))

    assert report.get_field(COMMITS_SECTION).splitlines() == [
        "• alpha/one@aaaaaaa — alpha work",
        "• beta/two: (error fetching commits)",
        "• gamma/three: no recent commits",
    ]


@pytest.mark.asyncio
async def test_health_fetched_before_concurrent_repo_fanout(monkeypatch, make_config):
    repos = ["a/b", "c/d"]
    calls = []
    barrier = threading.Barrier(len(repos), timeout=2)

    def fake_post(url, json=None, timeout=None):
        calls.append("health")
        return FakeResp(200, {"response": "ok"})

    def fake_get(url, params=None, headers=None, timeout=None):
        calls.append("repo")
        # Every repo fetch must be in flight at once to get past the barrier
        barrier.wait()
        return FakeResp(200, [])

    monkeypatch.setattr("requests.post", fake_post)
    monkeypatch.setattr("requests.get", fake_get)

    report = await build_council_report(make_config(repos=repos))

    assert calls == ["health", "repo", "repo"]
    assert report.get_field(COMMITS_SECTION).splitlines() == [
        "• a/b: 0 commits in last 24h",
        "• c/d: 0 commits in last 24h",
    ]


@pytest.mark.asyncio
async def test_report_commit_block_truncated(monkeypatch, make_config):
    monkeypatch.setattr("requests.post", lambda *a, **k: FakeResp(200, {"response": "h" * 3000}))
    long_message = "m" * 300
    monkeypatch.setattr(
        "requests.get",
        lambda *a, **k: FakeResp(200, [_commit(f"{i:07d}", long_message) for i in range(5)]),
    )

    report = await build_council_report(make_config(repos=["a/b", "c/d"]))

    assert len(report.get_field(HEALTH_SECTION)) == 1024
    assert len(report.get_field(COMMITS_SECTION)) == 1024


@pytest.mark.asyncio
async def test_report_uses_24h_window(monkeypatch, make_config):
    seen = {}
    monkeypatch.setattr("requests.post", lambda *a, **k: FakeResp(200, {"response": "ok"}))

    def fake_get(url, params=None, headers=None, timeout=None):
        seen["since"] = params["since"]
        return FakeResp(200, [])

    monkeypatch.setattr("requests.get", fake_get)
    now = datetime(2025, 3, 2, 8, 0, tzinfo=timezone.utc)

    report = await build_council_report(make_config(repos=["a/b"]), now=now)

    assert seen["since"] == (now - timedelta(hours=24)).strftime("%Y-%m-%dT%H:%M:%SZ")
    assert report.timestamp == now


@pytest.mark.asyncio
async def test_each_build_is_fresh(monkeypatch, make_config):
    monkeypatch.setattr("requests.post", lambda *a, **k: FakeResp(200, {"response": "ok"}))
    config = make_config()

    first = await build_council_report(config)
    second = await build_council_report(config)

    assert first is not second
    assert first.sections is not second.sections


def test_module_constants():
    assert digest.MAX_COMMITS == 5
    assert digest.COMMIT_WINDOW == timedelta(hours=24)
