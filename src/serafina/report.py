"""Council report model and Discord embed rendering.

A report is built fresh for every run and never persisted.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import discord

FIELD_LIMIT = 1024  # Discord embed field value limit
EMPTY_VALUE = "—"

REPORT_TITLE = "🌙 Nightly Council Report"
REPORT_DESCRIPTION = "Summary of the last 24h across our realm."
REPORT_COLOR = 0x9B59B6
REPORT_FOOTER = "Reported by Lilybear"

HEALTH_SECTION = "System Health"
COMMITS_SECTION = "Recent Commits"


def truncate(text: str, limit: int = FIELD_LIMIT) -> str:
    """Hard-cut ``text`` to ``limit`` characters; Discord rejects empty values."""
    return (text or "")[:limit] or EMPTY_VALUE


@dataclass
class ReportSection:
    title: str
    body: str

    def __post_init__(self) -> None:
        self.body = truncate(self.body)


@dataclass
class CouncilReport:
    """Embed-shaped council report."""

    sections: List[ReportSection]
    title: str = REPORT_TITLE
    description: str = REPORT_DESCRIPTION
    color: int = REPORT_COLOR
    footer: str = REPORT_FOOTER
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_field(self, title: str) -> Optional[str]:
        """Return the body of the section named ``title``."""
        for section in self.sections:
            if section.title == title:
                return section.body
        return None

    def to_embed_dict(self) -> Dict[str, Any]:
        """Return the Discord embed JSON for webhook payloads."""
        return {
            "title": self.title,
            "description": self.description,
            "color": self.color,
            "fields": [{"name": s.title, "value": s.body, "inline": False} for s in self.sections],
            "footer": {"text": self.footer},
            "timestamp": self.timestamp.isoformat(),
        }

    def to_embed(self) -> discord.Embed:
        return discord.Embed.from_dict(self.to_embed_dict())
