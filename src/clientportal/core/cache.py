from datetime import datetime, timedelta

from clientportal.utils import Clock, now


class TtlCache[K, V]:
    """Read-through cache whose entries expire after a fixed age.

    Owned by the service that constructs it; the clock is injected so
    expiry can be driven from tests.
    """

    def __init__(self, ttl: timedelta, clock: Clock = now) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[K, tuple[datetime, V]] = {}

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self._ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: K, value: V) -> None:
        self._entries[key] = (self._clock(), value)

    def __len__(self) -> int:
        return len(self._entries)
