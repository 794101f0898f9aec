from typing import List, Tuple

from .health import HealthProvider
from .models import FallbackEntry, PaymentRequest
from .performance import PerformanceAnalyzer, SegmentFilters
from .registry import Registry
from .routing import pct

MIN_FALLBACK_APPROVAL_RATE = 0.50
MAX_FALLBACKS = 3

class FallbackSequencer:
    def __init__(self, analyzer: PerformanceAnalyzer, health: HealthProvider, registry: Registry) -> None:
        self._analyzer = analyzer
        self._health = health
        self._registry = registry

    def get_sequence(self, request: PaymentRequest, primary: str) -> List[FallbackEntry]:
        """Backup acquirers to retry, best segment approval rate first.

        Skips the primary, disabled and unavailable acquirers, and anything
        below ``MIN_FALLBACK_APPROVAL_RATE`` for the request's segment.
        """
        primary = self._registry.canonical(primary)
        filters = SegmentFilters.from_request(request)

        candidates: List[Tuple[str, float]] = []
        for a in self._registry.list():
            if not a.enabled or a.name == primary:
                continue
            if not self._health.is_available(a.name):
                continue
            rate = self._analyzer.get_approval_rate(a.name, filters).approvalRate
            if rate < MIN_FALLBACK_APPROVAL_RATE:
                continue
            candidates.append((a.name, rate))

        candidates.sort(key=lambda c: c[1], reverse=True)

        entries = []
        for i, (name, rate) in enumerate(candidates[:MAX_FALLBACKS]):
            if i == 0:
                reason = f"Secondary: next highest approval rate ({pct(rate)}) for this transaction type"
            else:
                reason = f"Tertiary: available with {pct(rate)} approval rate"
            entries.append(FallbackEntry(acquirer=name, expectedApprovalRate=rate, reason=reason))
        return entries
