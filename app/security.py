from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from threading import Lock
from typing import Protocol

from starlette.requests import Request

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class AdmissionStore(Protocol):
    """Storage for per-client admission timestamps (milliseconds)."""

    def get(self, key: str) -> list[float] | None: ...

    def set(self, key: str, timestamps: list[float]) -> None: ...

    def prune(self, cutoff: float) -> None: ...

    def evict_oldest(self) -> str | None: ...

    def __len__(self) -> int: ...


class InMemoryAdmissionStore:
    """Insertion-ordered mapping of client id -> admitted timestamps.

    Re-setting an existing key keeps its original position, so eviction
    removes the key that was first seen, not the least recently used one.
    """

    def __init__(self) -> None:
        self._records: "OrderedDict[str, list[float]]" = OrderedDict()

    def get(self, key: str) -> list[float] | None:
        return self._records.get(key)

    def set(self, key: str, timestamps: list[float]) -> None:
        self._records[key] = timestamps

    def prune(self, cutoff: float) -> None:
        for k in list(self._records.keys()):
            kept = [ts for ts in self._records[k] if ts > cutoff]
            if kept:
                self._records[k] = kept
            else:
                del self._records[k]

    def evict_oldest(self) -> str | None:
        if not self._records:
            return None
        key, _ = self._records.popitem(last=False)
        return key

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: str) -> bool:
        return key in self._records


def _now_ms() -> float:
    return time.time() * 1000.0


@dataclass(slots=True)
class AdmissionController:
    """In-memory sliding window log rate limiter.

    Keeps the admitted timestamps per client and lets at most `limit` events
    through in any trailing window of `window_ms` milliseconds. The window is
    half-open: an entry exactly `window_ms` old has expired. Denied calls are
    not recorded.
    """

    limit: int
    window_ms: float
    max_clients: int = 1000
    cleanup_every: int = 256
    store: AdmissionStore = field(default_factory=InMemoryAdmissionStore)
    _ops: int = 0
    _max_window_ms: float = 0.0
    _lock: Lock = field(default_factory=Lock)

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ValueError("limit must be >= 0")
        if self.window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        self._max_window_ms = self.window_ms

    def allow(self, client_id: str, now: float | None = None) -> bool:
        return self.check_admission(client_id, self.limit, self.window_ms, now=now)

    def check_admission(
        self,
        client_id: str,
        limit: int,
        window_ms: float,
        now: float | None = None,
    ) -> bool:
        client_id = client_id or UNKNOWN_CLIENT
        if now is None:
            now = _now_ms()

        with self._lock:
            self._ops += 1
            if window_ms > self._max_window_ms:
                self._max_window_ms = window_ms

            existing = self.store.get(client_id)
            recent = [ts for ts in existing or () if now - ts < window_ms]

            if len(recent) >= limit:
                if existing is not None:
                    self.store.set(client_id, recent)
                logger.debug(
                    "admission denied: client=%s count=%s limit=%s window_ms=%s",
                    client_id,
                    len(recent),
                    limit,
                    window_ms,
                )
                return False

            if existing is None:
                while self.max_clients > 0 and len(self.store) >= self.max_clients:
                    evicted = self.store.evict_oldest()
                    if evicted is None:
                        break
                    logger.debug("admission table full, evicted client=%s", evicted)

            recent.append(now)
            self.store.set(client_id, recent)
            if self.cleanup_every > 0 and (self._ops % self.cleanup_every) == 0:
                # Entries stay live for the widest window any caller has used.
                self.store.prune(now - self._max_window_ms)
            return True

    def tracked(self, client_id: str) -> list[float]:
        with self._lock:
            return list(self.store.get(client_id) or ())


def client_id_from_request(request: Request) -> str:
    xff = request.headers.get("x-forwarded-for") or ""
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    x_real_ip = (request.headers.get("x-real-ip") or "").strip()
    if x_real_ip:
        return x_real_ip
    return UNKNOWN_CLIENT
