from datetime import datetime, timedelta, timezone
from itertools import count
from typing import List

from acquirer_routing.health import HealthMonitor
from acquirer_routing.models import AcquirerConfig, Transaction
from acquirer_routing.registry import Registry

START = datetime(2026, 2, 17, tzinfo=timezone.utc)
_ids = count()

def make_txs(acquirer: str, total: int, approved: int, currency="MXN", cardType="credit",
             country="MX", amount=200.0, failed: int = 0) -> List[Transaction]:
    """`approved` approvals, `failed` errors, and declines for the rest."""
    out = []
    for i in range(total):
        if i < approved:
            outcome = "approved"
        elif i < approved + failed:
            outcome = "error"
        else:
            outcome = "declined"
        n = next(_ids)
        out.append(Transaction(
            id=f"tx-{n}",
            timestamp=START + timedelta(seconds=n),
            acquirer=acquirer,
            amount=amount,
            currency=currency,
            cardType=cardType,
            country=country,
            outcome=outcome,
            takeRate=2.0,
            processingTimeMs=200,
        ))
    return out

def make_registry() -> Registry:
    return Registry(acquirers=[
        AcquirerConfig(name="Acquirer A", aliases=["A"], takeRate=2.8),
        AcquirerConfig(name="Acquirer B", aliases=["B"], takeRate=3.1),
        AcquirerConfig(name="Acquirer C", aliases=["C"], takeRate=2.1),
    ])

def drive_down(monitor: HealthMonitor, acquirer: str) -> None:
    for _ in range(5):
        monitor.record_outcome(acquirer, "error")
    assert monitor.get_health(acquirer).status == "down"

