import pytest

from acquirer_routing.fallback import FallbackSequencer
from acquirer_routing.health import HealthMonitor
from acquirer_routing.models import AcquirerConfig, PaymentRequest
from acquirer_routing.performance import PerformanceAnalyzer
from acquirer_routing.registry import Registry
from helpers import drive_down, make_txs

REQUEST = PaymentRequest(amount=200, currency="MXN", cardType="credit", country="MX")

RATES = {"P": 19, "Q": 12, "R": 18, "S": 14, "T": 8, "U": 16}  # approvals out of 20

@pytest.fixture
def wide_registry():
    return Registry(acquirers=[AcquirerConfig(name=n, aliases=[n.lower()], takeRate=2.0) for n in RATES])

@pytest.fixture
def analyzer():
    history = []
    for name, approved in RATES.items():
        history += make_txs(name, 20, approved)
    return PerformanceAnalyzer(history)

def names(entries):
    return [e.acquirer for e in entries]

def test_top_three_by_approval_rate(wide_registry, analyzer, monitor):
    seq = FallbackSequencer(analyzer, monitor, wide_registry).get_sequence(REQUEST, "P")
    # Q is cut by the cap, T by the 50% floor
    assert names(seq) == ["R", "U", "S"]
    assert [e.expectedApprovalRate for e in seq] == pytest.approx([0.9, 0.8, 0.7])

def test_reasons(wide_registry, analyzer, monitor):
    seq = FallbackSequencer(analyzer, monitor, wide_registry).get_sequence(REQUEST, "P")
    assert seq[0].reason == "Secondary: next highest approval rate (90%) for this transaction type"
    assert seq[1].reason == "Tertiary: available with 80% approval rate"
    assert seq[2].reason == "Tertiary: available with 70% approval rate"

def test_primary_given_by_alias_is_excluded(wide_registry, analyzer, monitor):
    seq = FallbackSequencer(analyzer, monitor, wide_registry).get_sequence(REQUEST, "r")
    assert "R" not in names(seq)
    assert names(seq) == ["P", "U", "S"]

def test_down_excluded_degraded_kept(wide_registry, analyzer, monitor):
    drive_down(monitor, "R")
    for outcome in ["approved"] * 6 + ["error"] * 3:
        monitor.record_outcome("U", outcome)
    seq = FallbackSequencer(analyzer, monitor, wide_registry).get_sequence(REQUEST, "P")
    assert names(seq) == ["U", "S", "Q"]

def test_disabled_excluded(wide_registry, analyzer, monitor):
    wide_registry.set_enabled("R", False)
    seq = FallbackSequencer(analyzer, monitor, wide_registry).get_sequence(REQUEST, "P")
    assert names(seq) == ["U", "S", "Q"]

def test_fifty_percent_is_kept():
    registry = Registry(acquirers=[AcquirerConfig(name="A", takeRate=2), AcquirerConfig(name="B", takeRate=2)])
    analyzer = PerformanceAnalyzer(make_txs("A", 20, 20) + make_txs("B", 20, 10))
    seq = FallbackSequencer(analyzer, HealthMonitor(), registry).get_sequence(REQUEST, "A")
    assert names(seq) == ["B"]
    assert seq[0].expectedApprovalRate == pytest.approx(0.5)

def test_no_candidates(wide_registry, monitor):
    seq = FallbackSequencer(PerformanceAnalyzer([]), monitor, wide_registry).get_sequence(REQUEST, "P")
    assert seq == []

def test_properties_hold_for_every_primary(wide_registry, analyzer, monitor):
    drive_down(monitor, "U")
    sequencer = FallbackSequencer(analyzer, monitor, wide_registry)
    for primary in RATES:
        seq = sequencer.get_sequence(REQUEST, primary)
        assert len(seq) <= 3
        assert primary not in names(seq)
        assert "U" not in names(seq)
        rates = [e.expectedApprovalRate for e in seq]
        assert rates == sorted(rates, reverse=True)
        assert all(r >= 0.5 for r in rates)
