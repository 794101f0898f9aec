import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request

from .comparison import run_comparison
from .config import Settings, get_settings
from .fallback import FallbackSequencer
from .health import HealthMonitor
from .history import canonicalize, generate_transactions, load_transactions, sample_requests
from .logging_utils import configure_logging
from .models import HealthStatus, OutcomeReport, PaymentRequest, RoutingDecision, Transaction
from .performance import PerformanceAnalyzer
from .registry import Registry
from .routing import RoutingEngine

logger = logging.getLogger(__name__)

@dataclass
class Services:
    settings: Settings
    registry: Registry
    history: List[Transaction]  # as loaded, before canonicalization
    transactions: List[Transaction]
    analyzer: PerformanceAnalyzer
    monitor: HealthMonitor
    engine: RoutingEngine
    sequencer: FallbackSequencer

def build_services(
    settings: Settings,
    registry: Optional[Registry] = None,
    history: Optional[List[Transaction]] = None,
    monitor: Optional[HealthMonitor] = None,
) -> Services:
    registry = registry or Registry(path=str(settings.acquirers_path))
    if history is None:
        if settings.history_path:
            history = load_transactions(settings.history_path)
        else:
            history = generate_transactions(seed=settings.history_seed, count=settings.history_size)
    transactions = canonicalize(history, registry)

    analyzer = PerformanceAnalyzer(transactions)
    if monitor is None:
        monitor = HealthMonitor()
    else:
        monitor.reset()
    monitor.initialize_from_history(transactions)
    return Services(
        settings=settings,
        registry=registry,
        history=history,
        transactions=transactions,
        analyzer=analyzer,
        monitor=monitor,
        engine=RoutingEngine(analyzer, monitor, registry),
        sequencer=FallbackSequencer(analyzer, monitor, registry),
    )

def get_services(request: Request) -> Services:
    return request.app.state.services

def decide(services: Services, payment: PaymentRequest) -> RoutingDecision:
    decision = services.engine.route(payment)
    if decision.scores:
        decision.fallbackSequence = services.sequencer.get_sequence(payment, decision.selectedAcquirer)
    return decision

def create_app(settings: Optional[Settings] = None, registry: Optional[Registry] = None, transactions: Optional[List[Transaction]] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Acquirer Routing Service", version="1.0.0")
    app.state.services = build_services(settings, registry, transactions)

    @app.get("/")
    def index(services: Services = Depends(get_services)):
        return {
            "name": app.title,
            "version": app.version,
            "acquirers": services.registry.names(),
            "endpoints": ["/route", "/outcomes", "/health", "/admin/acquirers", "/demo"],
        }

    @app.post("/route", response_model=RoutingDecision)
    def route(payment: PaymentRequest, services: Services = Depends(get_services)):
        # A NONE decision is a normal answer, not an error
        return decide(services, payment)

    @app.post("/outcomes", response_model=HealthStatus)
    def record_outcome(report: OutcomeReport, services: Services = Depends(get_services)):
        acquirer = services.registry.canonical(report.acquirer)
        services.monitor.record_outcome(acquirer, report.outcome)
        return services.monitor.get_health(acquirer)

    @app.get("/health", response_model=Dict[str, HealthStatus])
    def all_health(services: Services = Depends(get_services)):
        return services.monitor.get_all_health()

    @app.get("/health/{acquirer}", response_model=HealthStatus)
    def acquirer_health(acquirer: str, services: Services = Depends(get_services)):
        return services.monitor.get_health(services.registry.canonical(acquirer))

    @app.get("/admin/acquirers")
    def list_acquirers(services: Services = Depends(get_services)):
        return {"acquirers": [a.model_dump() for a in services.registry.list()]}

    @app.post("/admin/acquirers/{name}/status/{state}")
    def set_status(name: str, state: str, services: Services = Depends(get_services)):
        if state not in ("enabled", "disabled"):
            raise HTTPException(status_code=400, detail="state must be 'enabled' or 'disabled'")
        if not services.registry.set_enabled(name, state == "enabled"):
            raise HTTPException(status_code=404, detail=f"Unknown acquirer {name!r}")
        logger.info("Acquirer status changed", extra={"extra": {"acquirer": name, "state": state}})
        return {"ok": True, "acquirer": services.registry.canonical(name), "status": state}

    @app.post("/admin/reload")
    def reload_registry(services: Services = Depends(get_services)):
        try:
            services.registry.reload()
        except (ValueError, OSError) as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        # Aliases may have changed: canonicalize history again and replay health
        app.state.services = build_services(services.settings, services.registry, services.history, services.monitor)
        return {"ok": True, "acquirers": services.registry.names()}

    @app.get("/demo")
    def demo(services: Services = Depends(get_services)):
        decisions = []
        per_acquirer: Dict[str, List[float]] = defaultdict(lambda: [0, 0.0])
        for payment in sample_requests():
            d = decide(services, payment)
            decisions.append({"request": payment, **d.model_dump()})
            chosen = next((s for s in d.scores if s.acquirer == d.selectedAcquirer), None)
            per_acquirer[d.selectedAcquirer][0] += 1
            per_acquirer[d.selectedAcquirer][1] += chosen.totalScore if chosen else 0.0

        summary = {
            acq: {"count": count, "avgScore": round(total / count, 4)}
            for acq, (count, total) in per_acquirer.items()
        }
        comparison = run_comparison(services.transactions, services.analyzer, services.registry)
        return {"decisions": decisions, "summary": {"perAcquirer": summary}, "comparison": comparison}

    return app

app = create_app()
