"""Segment-level approval rate estimates built from historical transactions."""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .models import AcquirerPerformance, PaymentRequest, Transaction

logger = logging.getLogger(__name__)

MIN_SAMPLE_SIZE = 5

# Heuristic blend weights; not compared against inverse-variance weighting.
COMBINED_WEIGHT = 4
SINGLE_WEIGHT = 2
BASELINE_WEIGHT = 1

BLEND_SEPARATOR = " + "

SegmentKey = Tuple[str, ...]

def amount_range(amount: float) -> str:
    if amount <= 100:
        return "low"
    if amount <= 500:
        return "mid"
    return "high"

@dataclass
class SegmentStats:
    approved: int = 0
    total: int = 0

    @property
    def rate(self) -> float:
        return self.approved / self.total if self.total else 0.0

@dataclass(frozen=True)
class SegmentFilters:
    currency: Optional[str] = None
    cardType: Optional[str] = None
    country: Optional[str] = None
    amount: Optional[float] = None

    @classmethod
    def from_request(cls, request: PaymentRequest) -> "SegmentFilters":
        return cls(
            currency=request.currency,
            cardType=request.cardType,
            country=request.country,
            amount=request.amount,
        )

@dataclass(frozen=True)
class _Contribution:
    stats: SegmentStats
    weight: int
    label: Optional[str]  # None for the baseline bucket

def _segment_keys(tx: Transaction) -> List[SegmentKey]:
    acq = tx.acquirer
    return [
        (acq,),
        (acq, "currency", tx.currency),
        (acq, "cardType", tx.cardType),
        (acq, "country", tx.country),
        (acq, "amountRange", amount_range(tx.amount)),
        (acq, "currency", tx.currency, "cardType", tx.cardType),
    ]

class PerformanceAnalyzer:
    """Approval counts per acquirer and segment; read-only once built."""

    def __init__(self, transactions: Iterable[Transaction]) -> None:
        self._segments: Dict[SegmentKey, SegmentStats] = {}
        self._acquirers: List[str] = []
        count = 0
        for tx in transactions:
            approved = 1 if tx.outcome == "approved" else 0
            for key in _segment_keys(tx):
                stats = self._segments.get(key)
                if stats is None:
                    stats = self._segments[key] = SegmentStats()
                stats.approved += approved
                stats.total += 1
            if tx.acquirer not in self._acquirers:
                self._acquirers.append(tx.acquirer)
            count += 1
        self._transaction_count = count
        logger.info(
            "Built performance index",
            extra={"extra": {"transactions": count, "segments": len(self._segments), "acquirers": self._acquirers}},
        )

    @property
    def transaction_count(self) -> int:
        return self._transaction_count

    def acquirers(self) -> List[str]:
        return list(self._acquirers)

    def _qualifying(self, key: SegmentKey) -> Optional[SegmentStats]:
        stats = self._segments.get(key)
        if stats is None or stats.total < MIN_SAMPLE_SIZE:
            return None
        return stats

    def get_approval_rate(self, acquirer: str, filters: Optional[SegmentFilters] = None) -> AcquirerPerformance:
        f = filters or SegmentFilters()

        combined = None
        if f.currency and f.cardType:
            stats = self._qualifying((acquirer, "currency", f.currency, "cardType", f.cardType))
            if stats:
                combined = _Contribution(stats, COMBINED_WEIGHT, f"{f.currency}/{f.cardType}")

        singles: List[_Contribution] = []
        single_keys = [
            ("currency", f.currency, f.currency),
            ("cardType", f.cardType, f.cardType),
            ("country", f.country, f.country),
        ]
        if f.amount is not None:
            bucket = amount_range(f.amount)
            single_keys.append(("amountRange", bucket, f"amount:{bucket}"))
        for dimension, value, label in single_keys:
            if not value:
                continue
            stats = self._qualifying((acquirer, dimension, value))
            if stats:
                singles.append(_Contribution(stats, SINGLE_WEIGHT, label))

        baseline = self._qualifying((acquirer,))

        if combined is None:
            if singles:
                # Smallest qualifying segment wins; min() keeps dimension order on ties
                return self._single(acquirer, min(singles, key=lambda p: p.stats.total))
            if baseline:
                return self._single(acquirer, _Contribution(baseline, BASELINE_WEIGHT, None))
            return AcquirerPerformance(acquirer=acquirer, approvalRate=0.0, sampleSize=0, segment="none")

        parts = [combined, *singles]
        if baseline:
            parts.append(_Contribution(baseline, BASELINE_WEIGHT, None))
        if len(parts) == 1:
            return self._single(acquirer, combined)
        return self._blend(acquirer, parts)

    def _single(self, acquirer: str, part: _Contribution) -> AcquirerPerformance:
        return AcquirerPerformance(
            acquirer=acquirer,
            approvalRate=part.stats.rate,
            sampleSize=part.stats.total,
            segment=part.label or "overall",
        )

    def _blend(self, acquirer: str, parts: List[_Contribution]) -> AcquirerPerformance:
        total_weight = sum(p.weight for p in parts)
        assert total_weight > 0, "blend weights must be positive"
        rate = sum(p.weight * p.stats.rate for p in parts) / total_weight
        labels = [p.label for p in parts if p.label]
        return AcquirerPerformance(
            acquirer=acquirer,
            approvalRate=min(1.0, max(0.0, rate)),
            sampleSize=sum(p.stats.total for p in parts),
            segment=BLEND_SEPARATOR.join(labels) if labels else "overall",
        )
