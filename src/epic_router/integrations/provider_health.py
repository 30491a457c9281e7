"""
Provider availability for the epic router.

The orchestration service asks a ``ProviderHealthCheck`` whether the profile
it resolved can be used; when it cannot and the profile names a fallback, the
fallback is substituted. The router never calls providers itself, so health
state is fed in by whoever does: the worker layer records successes, failures
and requests against the tracker.

Status rules:
- 1-2 consecutive failures: degraded (still available)
- 3+ consecutive failures: unhealthy (unavailable until the next success)
- requests in the last 60 seconds at or above the profile's
  requests-per-minute limit: unavailable
- disabled profiles are always unavailable
"""

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from epic_router.models.provider import ProviderProfile
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)

RATE_WINDOW_SECONDS = 60.0
UNHEALTHY_AFTER_FAILURES = 3


class ProviderStatus(str, Enum):
    """Health status of a provider."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@runtime_checkable
class ProviderHealthCheck(Protocol):
    """Anything that can say whether a provider profile is usable right now."""

    def is_available(self, profile: ProviderProfile) -> bool:
        ...


class AlwaysAvailable:
    """Health check that accepts every enabled profile."""

    def is_available(self, profile: ProviderProfile) -> bool:
        return profile.enabled


@dataclass
class ProviderHealth:
    """Tracks the health state of one provider."""
    provider: str
    status: ProviderStatus = ProviderStatus.UNKNOWN
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    consecutive_failures: int = 0
    total_calls: int = 0
    total_failures: int = 0

    def record_success(self) -> None:
        self.total_calls += 1
        self.consecutive_failures = 0
        self.last_success = datetime.now(timezone.utc)
        self.status = ProviderStatus.HEALTHY

    def record_failure(self) -> None:
        self.total_calls += 1
        self.total_failures += 1
        self.consecutive_failures += 1
        self.last_failure = datetime.now(timezone.utc)
        if self.consecutive_failures >= UNHEALTHY_AFTER_FAILURES:
            self.status = ProviderStatus.UNHEALTHY
        elif self.consecutive_failures >= 1:
            self.status = ProviderStatus.DEGRADED

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "provider": self.provider,
            "status": self.status.value,
            "last_success": self.last_success.isoformat() if self.last_success else None,
            "last_failure": self.last_failure.isoformat() if self.last_failure else None,
            "consecutive_failures": self.consecutive_failures,
            "total_calls": self.total_calls,
            "total_failures": self.total_failures,
        }


@dataclass
class RequestWindow:
    """Sliding 60-second window of request timestamps for one provider."""
    provider: str
    clock: Callable[[], float] = time.time
    _request_times: list[float] = field(default_factory=list)

    def record(self) -> None:
        self._request_times.append(self.clock())
        self._prune()

    def _prune(self) -> None:
        now = self.clock()
        self._request_times = [t for t in self._request_times if now - t < RATE_WINDOW_SECONDS]

    @property
    def current_usage(self) -> int:
        """Requests recorded within the window."""
        self._prune()
        return len(self._request_times)


class ProviderHealthTracker:
    """
    Health check backed by recorded outcomes and request counts.

    Usage:
        tracker = ProviderHealthTracker()
        tracker.record_failure("openai")
        tracker.is_available(profile)   # False after 3 consecutive failures
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._health: dict[str, ProviderHealth] = {}
        self._windows: dict[str, RequestWindow] = {}
        self._lock = threading.Lock()

    def _get_health(self, provider: str) -> ProviderHealth:
        if provider not in self._health:
            self._health[provider] = ProviderHealth(provider=provider)
        return self._health[provider]

    def _get_window(self, provider: str) -> RequestWindow:
        if provider not in self._windows:
            self._windows[provider] = RequestWindow(provider=provider, clock=self._clock)
        return self._windows[provider]

    # ==================
    # Recording
    # ==================

    def record_success(self, provider: str) -> None:
        with self._lock:
            self._get_health(provider).record_success()

    def record_failure(self, provider: str) -> None:
        with self._lock:
            health = self._get_health(provider)
            health.record_failure()
            status = health.status
            failures = health.consecutive_failures
        if status == ProviderStatus.UNHEALTHY:
            logger.warning(
                "provider_unhealthy",
                provider=provider,
                consecutive_failures=failures,
            )

    def record_request(self, provider: str) -> None:
        with self._lock:
            self._get_window(provider).record()

    # ==================
    # Queries
    # ==================

    def status(self, provider: str) -> ProviderStatus:
        with self._lock:
            health = self._health.get(provider)
            return health.status if health else ProviderStatus.UNKNOWN

    def current_usage(self, provider: str) -> int:
        with self._lock:
            window = self._windows.get(provider)
            return window.current_usage if window else 0

    def is_available(self, profile: ProviderProfile) -> bool:
        """
        Whether a profile can take work right now.

        Args:
            profile: Resolved provider profile.

        Returns:
            False when the profile is disabled, its provider is unhealthy, or
            its request window is full.
        """
        if not profile.enabled:
            return False
        if self.status(profile.provider) == ProviderStatus.UNHEALTHY:
            return False
        usage = self.current_usage(profile.provider)
        if usage >= profile.rate_limit.requests_per_minute:
            logger.info(
                "provider_rate_limited",
                provider=profile.provider,
                current_usage=usage,
                requests_per_minute=profile.rate_limit.requests_per_minute,
            )
            return False
        return True

    def get_provider_health(self, provider: Optional[str] = None) -> dict[str, Any]:
        """
        Get health status for one or all providers.

        Args:
            provider: Specific provider to check, or None for all
        """
        with self._lock:
            if provider:
                return self._get_health(provider).to_dict()
            return {name: h.to_dict() for name, h in self._health.items()}
