"""
Errors raised across the engine boundary.

Everything else the engine runs into is logged and absorbed; these are the
only failures a caller is expected to handle.
"""

from typing import Optional


class RateLimitExceeded(Exception):
    """
    A write was refused because the user used up their embedding budget.

    The message is suitable for showing to the user as-is.

    Attributes:
        reason: Human-readable explanation including the counts
        current: Number of operations already counted in the window
        limit: Cap for the window
        window: "hour" or "day"
    """

    def __init__(
        self,
        reason: str,
        current: Optional[int] = None,
        limit: Optional[int] = None,
        window: Optional[str] = None,
    ):
        super().__init__(reason)
        self.reason = reason
        self.current = current
        self.limit = limit
        self.window = window


class FeedbackRateLimitExceeded(RateLimitExceeded):
    """Too many feedback submissions in the last hour."""
