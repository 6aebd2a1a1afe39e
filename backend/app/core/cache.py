import time
from typing import Any, Callable, Optional


class TTLCache:
    """In-memory key/value cache with a per-entry time to live.

    Expired entries are dropped when read, and all of them are swept on
    ``set`` at most once per ``check_period`` seconds. The clock is
    injectable so expiry can be driven by a fake in tests.
    """

    def __init__(
        self,
        default_ttl: float = 600,
        check_period: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self.check_period = check_period
        self.clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._last_sweep = clock()

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        now = self.clock()
        if now - self._last_sweep >= self.check_period:
            self.sweep(now)
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = (now + ttl, value)

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop every expired entry; returns how many were removed."""
        now = self.clock() if now is None else now
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        return len(expired)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
