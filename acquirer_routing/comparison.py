"""Counterfactual report: smart routing vs round-robin over the historical set."""

from collections import Counter, defaultdict
from typing import Dict, List

from .health import AlwaysHealthy
from .models import AcquirerShare, ComparisonResult, PaymentRequest, SegmentImprovement, Transaction
from .performance import PerformanceAnalyzer, amount_range
from .registry import Registry
from .routing import RoutingEngine

REVENUE_PER_PP = 15000

def _segments(tx: Transaction) -> List[str]:
    return [
        f"currency:{tx.currency}",
        f"cardType:{tx.cardType}",
        f"amount:{amount_range(tx.amount)}",
    ]

def run_comparison(transactions: List[Transaction], analyzer: PerformanceAnalyzer, registry: Registry) -> ComparisonResult:
    """Replay history through a health-neutral engine and compare approval rates.

    Where the engine picks the acquirer that actually processed a transaction,
    the real outcome counts; otherwise the selected acquirer's resolved
    segment rate is used as the expected outcome. Round-robin is the overall
    historical approval rate, since spreading traffic evenly reproduces it.
    """
    if not transactions:
        return ComparisonResult(smartApprovalRate=0.0, roundRobinApprovalRate=0.0, liftPp=0.0, estimatedMonthlyRevenueLift=0.0)

    engine = RoutingEngine(analyzer, AlwaysHealthy(), registry)

    round_robin_rate = sum(1 for tx in transactions if tx.outcome == "approved") / len(transactions)

    smart_approved = 0.0
    distribution: Counter = Counter()
    seg_smart: Dict[str, List[float]] = defaultdict(lambda: [0.0, 0])
    seg_rr: Dict[str, List[float]] = defaultdict(lambda: [0.0, 0])

    for tx in transactions:
        request = PaymentRequest(amount=tx.amount, currency=tx.currency, cardType=tx.cardType, country=tx.country)
        decision = engine.route(request)
        distribution[decision.selectedAcquirer] += 1

        if decision.selectedAcquirer == tx.acquirer:
            approved = 1.0 if tx.outcome == "approved" else 0.0
        else:
            chosen = next((s for s in decision.scores if s.acquirer == decision.selectedAcquirer), None)
            approved = chosen.approvalRate if chosen else 0.0
        smart_approved += approved

        for seg in _segments(tx):
            seg_smart[seg][0] += approved
            seg_smart[seg][1] += 1
            seg_rr[seg][0] += 1.0 if tx.outcome == "approved" else 0.0
            seg_rr[seg][1] += 1

    smart_rate = smart_approved / len(transactions)
    lift_pp = round((smart_rate - round_robin_rate) * 100, 2)

    improvements = []
    for seg, (approved, total) in seg_smart.items():
        rr_approved, rr_total = seg_rr[seg]
        s_rate = approved / total
        rr_rate = rr_approved / rr_total
        improvements.append(SegmentImprovement(
            segment=seg,
            smartRate=round(s_rate, 4),
            roundRobinRate=round(rr_rate, 4),
            liftPp=round((s_rate - rr_rate) * 100, 2),
        ))
    improvements.sort(key=lambda i: i.liftPp, reverse=True)

    return ComparisonResult(
        smartApprovalRate=round(smart_rate, 4),
        roundRobinApprovalRate=round(round_robin_rate, 4),
        liftPp=lift_pp,
        estimatedMonthlyRevenueLift=round(lift_pp * REVENUE_PER_PP, 2),
        perAcquirerDistribution={
            acq: AcquirerShare(count=n, percentage=round(n / len(transactions) * 100, 2))
            for acq, n in distribution.items()
        },
        perSegmentImprovements=improvements,
    )
