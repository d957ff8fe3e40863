from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class PassStatus:
    key: str  # namespace/name
    changed: bool
    error: str | None
    finished_at: str = field(default_factory=utc_now)


class RuntimeState:
    """Per-challenge locks and the outcome of the last pass for each challenge."""

    def __init__(self) -> None:
        self.lock = Lock()
        self._locks: dict[str, Lock] = {}
        self.last_pass: dict[str, PassStatus] = {}

    def lock_for(self, key: str) -> Lock:
        with self.lock:
            lk = self._locks.get(key)
            if lk is None:
                lk = Lock()
                self._locks[key] = lk
            return lk

    def record_pass(self, st: PassStatus) -> None:
        with self.lock:
            self.last_pass[st.key] = st

    def get_pass(self, key: str) -> PassStatus | None:
        with self.lock:
            return self.last_pass.get(key)

    def list_passes(self) -> list[PassStatus]:
        with self.lock:
            return list(self.last_pass.values())
