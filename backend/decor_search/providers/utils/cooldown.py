"""Provider availability tracking after authorization failures."""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog


logger = structlog.get_logger(__name__)


@dataclass
class ProviderCooldown:
    """Marks a provider unavailable for a fixed window after a 401/403.

    Subscription or key problems do not fix themselves between two calls,
    so every call inside the window short-circuits without touching the
    network. The first call after the window probes the provider again.
    """

    window_seconds: float = 300.0
    name: str = ""
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    available: bool = True
    unavailable_since: Optional[float] = None
    last_reason: str = ""

    def mark_unavailable(self, reason: str = "") -> None:
        """Start (or restart) the cool-down window."""
        self.available = False
        self.unavailable_since = self.clock()
        self.last_reason = reason
        logger.warning(
            "provider_cooldown_started",
            provider=self.name,
            window_seconds=self.window_seconds,
            reason=reason,
        )

    def should_skip(self) -> bool:
        """Check whether calls must be suppressed right now.

        Returns:
            True while inside the cool-down window; resets availability and
            returns False once the window has elapsed
        """
        if self.available:
            return False

        elapsed = self.clock() - (self.unavailable_since or 0.0)
        if elapsed < self.window_seconds:
            return True

        logger.info(
            "provider_cooldown_expired",
            provider=self.name,
            elapsed_seconds=round(elapsed, 1),
        )
        self.reset()
        return False

    def reset(self) -> None:
        self.available = True
        self.unavailable_since = None
        self.last_reason = ""

    @property
    def remaining_seconds(self) -> float:
        """Seconds left in the current window, 0 when available."""
        if self.available or self.unavailable_since is None:
            return 0.0
        return max(0.0, self.window_seconds - (self.clock() - self.unavailable_since))
