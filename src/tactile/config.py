"""
Tactile Configuration.

Centralizes default values and configuration settings.
"""

from typing import Literal

from pydantic import BaseModel, Field

# Timeouts (seconds)
DEFAULT_ACTION_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 30.0

# Stability gate
DEFAULT_STABILITY_TOLERANCE = 1e-6
DEFAULT_MIN_CLICKABLE_AREA = 1.0

# Wait-for-attached retries
DEFAULT_ATTACH_RETRIES = 3
DEFAULT_ATTACH_RETRY_DELAY = 0.1

# Viewport used when the browser does not report one
DEFAULT_VIEWPORT_WIDTH = 1280
DEFAULT_VIEWPORT_HEIGHT = 800

# Environment variable read by the CLI
CDP_URL_ENV = "TACTILE_CDP_URL"

MouseButton = Literal["none", "left", "right", "middle", "back", "forward"]
KeyPhase = Literal["down", "up"]


class InteractionConfig(BaseModel):
    """Tunables for geometry resolution and input dispatch."""

    model_config = {"frozen": True}

    action_timeout: float = Field(default=DEFAULT_ACTION_TIMEOUT, ge=0)
    stability_tolerance: float = Field(default=DEFAULT_STABILITY_TOLERANCE, ge=0)
    min_clickable_area: float = Field(default=DEFAULT_MIN_CLICKABLE_AREA, ge=0)
    attach_retries: int = Field(default=DEFAULT_ATTACH_RETRIES, ge=0)
    attach_retry_delay: float = Field(default=DEFAULT_ATTACH_RETRY_DELAY, ge=0)

    # Delay between mouse down and up, in seconds
    click_delay: float | None = None
