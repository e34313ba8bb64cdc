#!/usr/bin/env python3
# ══════════════════════════════════════════════════════════════════════════════
#  Serafina - Council Relay Bot
#  Copyright (c) 2025 SIRIUS Alpha
# ══════════════════════════════════════════════════════════════════════════════
"""
Serafina: Discord relay that serves council reports.

Aggregates MCP system health and recent GitHub commits into a council
report, posts it daily at 08:00 UTC and on ``/council report now``, and
runs under a restart-with-backoff supervisor.

Usage:
    python -m serafina supervise
    python -m serafina run
    python -m serafina report --dry-run
    python -m serafina check
"""

__version__ = "1.0.0"
__author__ = "SIRIUS Alpha"

from .config import Config, get_config
from .delivery import DeliveryRouter, DeliveryTarget, notify_relay
from .digest import build_council_report
from .report import CouncilReport, ReportSection
from .supervisor import BackoffState, Supervisor

__all__ = [
    # Version
    "__version__",
    "__author__",
    # Config
    "Config",
    "get_config",
    # Report
    "CouncilReport",
    "ReportSection",
    "build_council_report",
    # Delivery
    "DeliveryRouter",
    "DeliveryTarget",
    "notify_relay",
    # Supervisor
    "BackoffState",
    "Supervisor",
]
