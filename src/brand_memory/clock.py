"""
Time normalization.

Stored timestamps and every comparison against them use naive datetimes.
Timezone-aware values, whether from a caller's clock or from input data,
are converted to UTC and stripped of their tzinfo at the boundary, so a
deployment can run with an aware clock without ever comparing naive and
aware values.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import AfterValidator
from typing_extensions import Annotated

Clock = Callable[[], datetime]


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC. Naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def normalized_clock(clock: Clock) -> Clock:
    """Wrap a clock so it always returns normalized datetimes."""

    def now() -> datetime:
        return to_naive_utc(clock())

    return now


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Normalized reference time, defaulting to the current local time."""
    return to_naive_utc(now or datetime.now())


# Datetime model field that is normalized on validation
Timestamp = Annotated[datetime, AfterValidator(to_naive_utc)]
