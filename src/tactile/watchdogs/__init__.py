"""
Tactile Watchdogs Module.

Provides session monitors that cancel interactions on context teardown.
"""

from tactile.watchdogs.base import BaseWatchdog
from tactile.watchdogs.context import ContextWatchdog

__all__ = [
    "BaseWatchdog",
    "ContextWatchdog",
]
