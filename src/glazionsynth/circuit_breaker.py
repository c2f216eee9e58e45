"""
Circuit Breaker - Per-upstream failure counter and cooldown gate
"""

import logging
import time
from typing import Callable, Dict, Any, Optional

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """Two-state breaker for one upstream.
    
    Closed: calls pass through and failures are counted. Reaching the
    threshold opens the breaker for ``cooldown_ms`` and resets the counter.
    Open: calls are skipped until the cooldown elapses. There is no
    half-open trial call: the next check after the cooldown simply lets the
    call through again.
    """
    
    def __init__(self, name: str, threshold: int = 3, cooldown_ms: int = 60_000,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.threshold = max(1, threshold)
        self.cooldown_seconds = cooldown_ms / 1000.0
        self.clock = clock
        self.consecutive_failures = 0
        self.open_until: Optional[float] = None
        self.trip_count = 0
        self.skip_count = 0
    
    def is_open(self) -> bool:
        """True while calls to this upstream must be skipped"""
        if self.open_until is None:
            return False
        if self.clock() < self.open_until:
            return True
        # Cooldown elapsed: close lazily
        self.open_until = None
        return False
    
    def record_skip(self):
        self.skip_count += 1
    
    def record_success(self):
        """Any success closes the breaker and clears the failure streak"""
        self.consecutive_failures = 0
        self.open_until = None
    
    def record_failure(self):
        """Count a failure, opening the breaker once the threshold is reached"""
        self.consecutive_failures += 1
        if self.consecutive_failures >= self.threshold:
            self.open_until = self.clock() + self.cooldown_seconds
            self.consecutive_failures = 0
            self.trip_count += 1
            logger.warning(
                f"Circuit breaker opened for {self.name} "
                f"({self.threshold} consecutive failures, cooldown {self.cooldown_seconds:.0f}s)"
            )
    
    def snapshot(self) -> Dict[str, Any]:
        """Get breaker state (safe for health output)"""
        open_now = self.is_open()
        return {
            "name": self.name,
            "state": "open" if open_now else "closed",
            "consecutive_failures": self.consecutive_failures,
            "retry_in_seconds": round(self.open_until - self.clock(), 3) if open_now else 0.0,
            "trip_count": self.trip_count,
            "skip_count": self.skip_count,
        }


class BreakerRegistry:
    """One independent breaker per upstream name"""
    
    def __init__(self, threshold: int = 3, cooldown_ms: int = 60_000,
                 clock: Callable[[], float] = time.monotonic):
        self.threshold = threshold
        self.cooldown_ms = cooldown_ms
        self.clock = clock
        self.breakers: Dict[str, CircuitBreaker] = {}
    
    def get(self, name: str) -> CircuitBreaker:
        """Get the breaker for an upstream, creating it on first use"""
        if name not in self.breakers:
            self.breakers[name] = CircuitBreaker(
                name, self.threshold, self.cooldown_ms, self.clock
            )
        return self.breakers[name]
    
    def get_status(self) -> Dict[str, Any]:
        return {name: b.snapshot() for name, b in self.breakers.items()}
