import logging
from dataclasses import dataclass
from typing import Dict, List

from .health import HealthProvider
from .models import (
    NO_ACQUIRER,
    AcquirerConfig,
    AcquirerScore,
    OptimizationMode,
    PaymentRequest,
    RoutingDecision,
    Status,
)
from .performance import PerformanceAnalyzer, SegmentFilters
from .registry import Registry

logger = logging.getLogger(__name__)

DEFAULT_MODE: OptimizationMode = "balanced"

# cost_conscious falls back to the best approver when the cheapest trails it by more than this
COST_CONSCIOUS_APPROVAL_THRESHOLD = 0.05

HEALTH_SCORES: Dict[Status, float] = {
    "healthy": 1.0,
    "degraded": 0.3,
    "down": 0.0,
}

@dataclass(frozen=True)
class ModeWeights:
    approval: float
    health: float
    cost: float

    def __post_init__(self) -> None:
        for name in ("approval", "health", "cost"):
            if getattr(self, name) < 0:
                raise ValueError(f"Negative {name} weight: {getattr(self, name)}")

MODE_WEIGHTS: Dict[OptimizationMode, ModeWeights] = {
    "maximize_approvals": ModeWeights(approval=0.80, health=0.15, cost=0.05),
    "balanced": ModeWeights(approval=0.60, health=0.25, cost=0.15),
    "cost_conscious": ModeWeights(approval=0.40, health=0.20, cost=0.40),
}

def cost_score(take_rate: float, max_take_rate: float) -> float:
    # Lower take rate => higher score
    if max_take_rate <= 0:
        return 0.0
    return min(1.0, max(0.0, 1 - take_rate / max_take_rate))

def pct(rate: float) -> str:
    return f"{rate * 100:.0f}%"

class RoutingEngine:
    """Scores eligible acquirers for a payment and picks one.

    Disabled and ``down`` acquirers are dropped before scoring. Ties on total
    score resolve in configured order. The fallback list is left empty here;
    it needs the chosen primary and is filled in by the fallback sequencer.
    """

    def __init__(self, analyzer: PerformanceAnalyzer, health: HealthProvider, registry: Registry) -> None:
        self._analyzer = analyzer
        self._health = health
        self._registry = registry

    def score(self, acquirer: AcquirerConfig, request: PaymentRequest, weights: ModeWeights, max_take_rate: float, status: Status) -> AcquirerScore:
        perf = self._analyzer.get_approval_rate(acquirer.name, SegmentFilters.from_request(request))
        approval = perf.approvalRate
        health = HEALTH_SCORES[status]
        cost = cost_score(acquirer.takeRate, max_take_rate)
        return AcquirerScore(
            acquirer=acquirer.name,
            totalScore=weights.approval * approval + weights.health * health + weights.cost * cost,
            approvalRateScore=approval,
            healthScore=health,
            costScore=cost,
            approvalRate=approval,
            healthStatus=status,
            takeRate=acquirer.takeRate,
        )

    def route(self, request: PaymentRequest) -> RoutingDecision:
        mode: OptimizationMode = request.optimizationMode or DEFAULT_MODE
        weights = MODE_WEIGHTS[mode]
        max_take_rate = self._registry.max_take_rate()

        eligible: List[AcquirerScore] = []
        for a in self._registry.list():
            if not a.enabled:
                continue
            status = self._health.get_health(a.name).status
            if status == "down":
                continue
            eligible.append(self.score(a, request, weights, max_take_rate, status))

        if not eligible:
            logger.warning(
                "No acquirers available",
                extra={"extra": {"currency": request.currency, "cardType": request.cardType, "mode": mode}},
            )
            return RoutingDecision(
                selectedAcquirer=NO_ACQUIRER,
                scores=[],
                justification="No acquirers available: all are currently disabled or down. Retry after acquirer recovery.",
                optimizationMode=mode,
            )

        # sorted() is stable, so equal totals keep configured order
        scores = sorted(eligible, key=lambda s: s.totalScore, reverse=True)
        selected = scores[0]

        if mode == "cost_conscious":
            selected = self._cost_conscious_override(eligible, selected)

        decision = RoutingDecision(
            selectedAcquirer=selected.acquirer,
            scores=scores,
            justification=self._justify(selected, scores, request, mode),
            optimizationMode=mode,
        )
        logger.debug(
            "Routed payment",
            extra={"extra": {"selected": selected.acquirer, "mode": mode, "totalScore": round(selected.totalScore, 4)}},
        )
        return decision

    def _cost_conscious_override(self, eligible: List[AcquirerScore], selected: AcquirerScore) -> AcquirerScore:
        # min()/max() return the first extreme, i.e. configured order on ties
        cheapest = min(eligible, key=lambda s: s.takeRate)
        healthy = [s for s in eligible if s.healthStatus == "healthy"]
        best = max(healthy or eligible, key=lambda s: s.approvalRate)
        # Rounded so an exact 5pp gap does not trip the override on float noise
        gap = round(best.approvalRate - cheapest.approvalRate, 9)
        if best.acquirer != cheapest.acquirer and gap > COST_CONSCIOUS_APPROVAL_THRESHOLD:
            logger.info(
                "cost_conscious override",
                extra={"extra": {"cheapest": cheapest.acquirer, "selected": best.acquirer}},
            )
            return best
        return selected

    def _justify(self, selected: AcquirerScore, scores: List[AcquirerScore], request: PaymentRequest, mode: OptimizationMode) -> str:
        others = " and ".join(
            f"{pct(s.approvalRate)} ({self._registry.short_name(s.acquirer)})"
            for s in scores
            if s.acquirer != selected.acquirer
        )
        text = f"Route to {selected.acquirer}: {pct(selected.approvalRate)} approval for {request.currency} {request.cardType} cards"
        if others:
            text += f" vs {others}"
        return f"{text}. Mode: {mode}"
