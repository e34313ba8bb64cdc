#!/usr/bin/env python3
# ══════════════════════════════════════════════════════════════════════════════
#  Serafina - Discord Integration
#  Copyright (c) 2025 SIRIUS Alpha
# ══════════════════════════════════════════════════════════════════════════════
"""
Discord side of Serafina.

Features:
- ``/council report now`` slash command
- Presence heartbeat every 15 minutes
- Daily council report at 08:00 UTC
"""

from .bot import ConfigurationError, SerafinaBot, register_command_schema, run_worker

__all__ = [
    "SerafinaBot",
    "ConfigurationError",
    "register_command_schema",
    "run_worker",
]
