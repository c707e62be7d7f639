import math
import time
from numbers import Real
from typing import SupportsInt

from key_copier.errors import InvalidTTLError

# Redis reports -1 for a key without expiry and -2 for a missing key.
TTL_NO_EXPIRY = -1
TTL_MISSING_KEY = -2


def now_as_epoch() -> float:
    """Get the current time as epoch seconds."""
    return time.time()


def seconds_until(epoch: float) -> int:
    """Get the whole number of seconds left until an epoch timestamp, rounded up."""
    return math.ceil(epoch - now_as_epoch())


def normalize_ttl(raw: SupportsInt | None) -> int | None:
    """Convert a TTL as reported by a store into seconds, or None when the key does not expire.

    Redis answers `TTL` with -1 (no expiry) or -2 (no such key); both, and any other non-positive
    answer, mean there is nothing to carry over to another store.
    """
    if raw is None:
        return None

    ttl = int(raw)

    if ttl <= 0:
        return None

    return ttl


def prepare_ttl(t: SupportsInt) -> int:
    """Prepare a TTL for use in an expire operation.

    The TTL must be a strictly positive number of seconds. A bool is refused even though it is an
    int: `ttl=True` would become one second and the key would expire almost immediately.
    """
    if not isinstance(t, Real) or isinstance(t, bool):
        raise InvalidTTLError(ttl=t, extra_info={"type": type(t).__name__})

    ttl = int(t)

    if ttl <= 0:
        raise InvalidTTLError(ttl=t)

    return ttl
