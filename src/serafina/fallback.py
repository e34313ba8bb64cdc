"""Fallible external calls.

Every integration point (health endpoint, GitHub, webhooks) goes through
``fallible`` so a failing source degrades to a placeholder instead of
aborting the caller.
"""
import logging
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fallible(func: Callable[..., T], *args, fallback: T, label: str = "", **kwargs) -> T:
    """Call ``func`` and return ``fallback`` if it raises."""
    try:
        return func(*args, **kwargs)
    except Exception as e:
        logger.warning("%s failed: %s", label or getattr(func, "__name__", "call"), e)
        return fallback
