#!/usr/bin/env python3
# ══════════════════════════════════════════════════════════════════════════════
#  Serafina - Process Supervisor
#  Copyright (c) 2025 SIRIUS Alpha
# ══════════════════════════════════════════════════════════════════════════════
"""
Keeps the Serafina worker process alive.

The worker runs as a child process. A clean exit (code 0) stops the
supervisor; any other exit code, a signal, or a failure to spawn restarts
the worker after an exponentially growing delay (2s, 4s, 8s ... capped at
60s). Restarts are unlimited.
"""

import logging
import subprocess
import sys
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class BackoffState:
    """Restart delay owned by one supervisor run loop."""

    initial: float = 2.0
    maximum: float = 60.0
    multiplier: float = 2.0
    delay: float = field(init=False)

    def __post_init__(self) -> None:
        self.delay = self.initial

    def next_delay(self) -> float:
        """Return the delay for this restart and advance it for the next one."""
        current = self.delay
        self.delay = min(self.delay * self.multiplier, self.maximum)
        return current

    def reset(self) -> None:
        """Reset backoff to initial value after a clean exit."""
        self.delay = self.initial


def worker_command() -> List[str]:
    """Command line that launches the bot worker."""
    return [sys.executable, "-m", "serafina", "run"]


class Supervisor:
    """
    Runs the worker and restarts it on abnormal exit.

    Args:
        command: Worker command line
        backoff: Restart delay state (fresh default if None)
        sleep: Blocking sleep function
        popen: Process factory
    """

    def __init__(
        self,
        command: Optional[List[str]] = None,
        backoff: Optional[BackoffState] = None,
        sleep: Optional[Callable[[float], None]] = None,
        popen: Optional[Callable[..., subprocess.Popen]] = None,
    ):
        self.command = command or worker_command()
        self.backoff = backoff or BackoffState()
        self._sleep = sleep or time.sleep
        self._popen = popen or subprocess.Popen
        self.restarts = 0

    def _run_worker(self) -> Optional[int]:
        """Launch the worker and wait for it; None means it failed to spawn."""
        try:
            proc = self._popen(self.command)
        except OSError as e:
            logger.error("Failed to spawn worker %s: %s", self.command, e)
            return None

        logger.info("Worker started with PID %s", proc.pid)
        try:
            return proc.wait()
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping worker PID %s", proc.pid)
            proc.terminate()
            proc.wait()
            raise

    def run(self) -> int:
        """
        Supervise until the worker exits cleanly.

        Returns:
            Exit code (always 0; abnormal exits are retried forever)
        """
        while True:
            code = self._run_worker()

            if code == 0:
                logger.info("Worker exited cleanly, supervisor stopping")
                self.backoff.reset()
                return 0

            delay = self.backoff.next_delay()
            reason = "failed to start" if code is None else f"exited with code {code}"
            logger.warning("Worker %s; restarting in %.1fs", reason, delay)
            self._sleep(delay)
            self.restarts += 1
