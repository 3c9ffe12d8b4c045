"""Request pacing for provider calls.

Responsibilities:
- Enforce a minimum interval between consecutive requests to one provider/model.
- Stay separate from retry policy; pacing never repeats a failed request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from time import monotonic, sleep
from typing import Callable


def pacing_key(provider_id: str, model: str) -> str:
    """Return the limiter key for one provider/model pair."""

    return f"{provider_id.strip().lower()}:extract:{model.strip()}"


@dataclass(slots=True)
class RateLimiter:
    """Per-key minimum-interval limiter used around provider requests."""

    min_interval_seconds: float = 0.5
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _next_allowed_at: dict[str, float] = field(default_factory=dict)

    def acquire(self, key: str) -> float:
        """Block until `key` may send again and return the time waited."""

        if self.min_interval_seconds <= 0.0:
            return 0.0
        now = self.clock()
        waited = max(0.0, self._next_allowed_at.get(key, 0.0) - now)
        if waited > 0.0:
            self.sleeper(waited)
            now = self.clock()
        self._next_allowed_at[key] = now + self.min_interval_seconds
        return waited
