"""
Time source.

Services take a clock (any zero-argument callable returning a
naive UTC datetime) so tests can pin "now" for lockout and token
expiry checks. Timestamps are stored naive, in UTC.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
