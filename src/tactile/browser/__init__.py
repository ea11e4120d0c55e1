"""
Tactile Browser Module.

Provides the remote channel, element handles, the stability gate and
browser session management.
"""

from tactile.browser.cancellation import CancellationToken, race_cancellation
from tactile.browser.channel import CDPChannel
from tactile.browser.handle import ElementHandle, RemoteHandle
from tactile.browser.protocol import NodeReference, RemoteChannel
from tactile.browser.session import BrowserConfig, BrowserSession
from tactile.browser.stability import StabilityGate

__all__ = [
    "BrowserConfig",
    "BrowserSession",
    "CDPChannel",
    "CancellationToken",
    "ElementHandle",
    "NodeReference",
    "RemoteChannel",
    "RemoteHandle",
    "StabilityGate",
    "race_cancellation",
]
