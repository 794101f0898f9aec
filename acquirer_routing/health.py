"""Live acquirer reliability tracking."""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, Dict, Iterable, Optional, Protocol, Tuple

from .models import HealthMetrics, HealthStatus, Outcome, Status, Transaction

logger = logging.getLogger(__name__)

WINDOW_SIZE = 20
CONSECUTIVE_FAILURES_DOWN = 5
CONSECUTIVE_SUCCESSES_RECOVERY = 3
DEGRADE_FAIL_RATE = 0.30
DOWN_FAIL_RATE = 0.50
RECOVER_SUCCESS_RATE = 0.80

FAILURES = frozenset({"error", "timeout"})
# Declines are business outcomes, not infrastructure failures
SUCCESSES = frozenset({"approved", "declined"})

class HealthProvider(Protocol):
    def get_health(self, acquirer: str) -> HealthStatus: ...

    def is_available(self, acquirer: str) -> bool: ...

class AlwaysHealthy:
    """Reports every acquirer as healthy, for replaying history."""

    def get_health(self, acquirer: str) -> HealthStatus:
        return HealthStatus(acquirer=acquirer)

    def is_available(self, acquirer: str) -> bool:
        return True

@dataclass
class HealthState:
    recent_outcomes: Deque[str] = field(default_factory=lambda: deque(maxlen=WINDOW_SIZE))
    consecutive_failures: int = 0
    consecutive_successes: int = 0
    status: Status = "healthy"
    last_updated: Optional[datetime] = None
    total_processed: int = 0

def _window_rates(outcomes: Iterable[str]) -> Tuple[float, float, float]:
    successes = errors = timeouts = n = 0
    for o in outcomes:
        n += 1
        if o in SUCCESSES:
            successes += 1
        elif o == "error":
            errors += 1
        elif o == "timeout":
            timeouts += 1
    if n == 0:
        return 0.0, 0.0, 0.0
    return successes / n, errors / n, timeouts / n

def next_status(state: HealthState) -> Status:
    success_rate, error_rate, timeout_rate = _window_rates(state.recent_outcomes)
    fail_rate = error_rate + timeout_rate
    current = state.status

    if current == "healthy":
        if state.consecutive_failures >= CONSECUTIVE_FAILURES_DOWN:
            return "down"
        if fail_rate > DEGRADE_FAIL_RATE:
            return "degraded"
    elif current == "degraded":
        if state.consecutive_failures >= CONSECUTIVE_FAILURES_DOWN or fail_rate > DOWN_FAIL_RATE:
            return "down"
        if success_rate > RECOVER_SUCCESS_RATE and state.consecutive_failures == 0:
            return "healthy"
    elif current == "down":
        if state.consecutive_successes >= CONSECUTIVE_SUCCESSES_RECOVERY:
            return "degraded"
    return current

class HealthMonitor:
    def __init__(self) -> None:
        self._state: Dict[str, HealthState] = {}
        # Guards windows, counters and status as one unit
        self._lock = threading.Lock()

    def record_outcome(self, acquirer: str, outcome: Outcome) -> Status:
        if outcome not in FAILURES and outcome not in SUCCESSES:
            raise ValueError(f"Unknown outcome {outcome!r}")
        with self._lock:
            s = self._state.get(acquirer)
            if s is None:
                s = self._state[acquirer] = HealthState()

            s.recent_outcomes.append(outcome)
            if outcome in FAILURES:
                s.consecutive_failures += 1
                s.consecutive_successes = 0
            else:
                s.consecutive_successes += 1
                s.consecutive_failures = 0
            s.total_processed += 1
            s.last_updated = datetime.now(timezone.utc)

            previous = s.status
            s.status = next_status(s)
            status = s.status

        if status != previous:
            level = logging.WARNING if status == "down" else logging.INFO
            logger.log(
                level,
                "Acquirer health changed",
                extra={"extra": {"acquirer": acquirer, "from": previous, "to": status}},
            )
        return status

    def _snapshot(self, acquirer: str, s: Optional[HealthState]) -> HealthStatus:
        if s is None:
            return HealthStatus(acquirer=acquirer)
        success_rate, error_rate, timeout_rate = _window_rates(s.recent_outcomes)
        return HealthStatus(
            acquirer=acquirer,
            status=s.status,
            consecutiveFailures=s.consecutive_failures,
            metrics=HealthMetrics(
                successRate=round(success_rate, 4),
                errorRate=round(error_rate, 4),
                timeoutRate=round(timeout_rate, 4),
                totalProcessed=s.total_processed,
                windowSize=len(s.recent_outcomes),
            ),
            lastUpdated=s.last_updated,
        )

    def get_health(self, acquirer: str) -> HealthStatus:
        with self._lock:
            return self._snapshot(acquirer, self._state.get(acquirer))

    def get_all_health(self) -> Dict[str, HealthStatus]:
        with self._lock:
            return {name: self._snapshot(name, s) for name, s in self._state.items()}

    def is_available(self, acquirer: str) -> bool:
        with self._lock:
            s = self._state.get(acquirer)
            return s is None or s.status != "down"

    def initialize_from_history(self, transactions: Iterable[Transaction]) -> None:
        ordered = sorted(transactions, key=lambda tx: tx.timestamp)
        for tx in ordered:
            self.record_outcome(tx.acquirer, tx.outcome)
        logger.info(
            "Replayed history into health monitor",
            extra={"extra": {"transactions": len(ordered), "acquirers": len(self._state)}},
        )

    def reset(self) -> None:
        with self._lock:
            self._state.clear()
