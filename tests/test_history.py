import pytest

from acquirer_routing.comparison import run_comparison
from acquirer_routing.history import (
    CURRENCY_COUNTRY,
    canonicalize,
    dump_transactions,
    generate_transactions,
    load_transactions,
    sample_requests,
)
from acquirer_routing.performance import PerformanceAnalyzer
from helpers import make_registry

def test_generation_is_deterministic():
    assert generate_transactions(seed=7, count=200) == generate_transactions(seed=7, count=200)
    assert generate_transactions(seed=7, count=200) != generate_transactions(seed=8, count=200)

def test_generated_shape():
    txs = generate_transactions(count=500)
    assert len(txs) == 500
    assert [t.timestamp for t in txs] == sorted(t.timestamp for t in txs)
    assert {t.acquirer for t in txs} == {"A", "B", "C"}
    for t in txs:
        assert 10 <= t.amount <= 2000
        assert t.country == CURRENCY_COUNTRY[t.currency]
        if t.outcome == "timeout":
            assert t.processingTimeMs >= 2000

def test_acquirer_c_weaker_on_high_value():
    txs = [t for t in generate_transactions(count=3000) if t.acquirer == "C"]
    high = [t.outcome == "approved" for t in txs if t.amount > 500]
    low = [t.outcome == "approved" for t in txs if t.amount <= 500]
    assert sum(high) / len(high) < sum(low) / len(low) - 0.1

def test_load_transactions(tmp_path):
    txs = generate_transactions(count=25)
    path = tmp_path / "historical.json"
    dump_transactions(txs, path)
    assert load_transactions(path) == txs

def test_canonicalize():
    registry = make_registry()
    txs = canonicalize(generate_transactions(count=50), registry)
    assert {t.acquirer for t in txs} <= {"Acquirer A", "Acquirer B", "Acquirer C"}

def test_sample_requests():
    requests = sample_requests()
    assert len(requests) == 30
    assert all(r.optimizationMode is None for r in requests)

def test_comparison_report():
    registry = make_registry()
    txs = canonicalize(generate_transactions(count=600), registry)
    result = run_comparison(txs, PerformanceAnalyzer(txs), registry)

    assert 0 <= result.smartApprovalRate <= 1
    assert 0 <= result.roundRobinApprovalRate <= 1
    assert result.liftPp == pytest.approx((result.smartApprovalRate - result.roundRobinApprovalRate) * 100, abs=0.02)
    assert sum(d.count for d in result.perAcquirerDistribution.values()) == 600
    assert set(result.perAcquirerDistribution) <= set(registry.names())
    lifts = [s.liftPp for s in result.perSegmentImprovements]
    assert lifts == sorted(lifts, reverse=True)
    assert len(result.perSegmentImprovements) == 3 + 2 + 3

def test_comparison_of_nothing():
    result = run_comparison([], PerformanceAnalyzer([]), make_registry())
    assert result.liftPp == 0
    assert result.perSegmentImprovements == []
