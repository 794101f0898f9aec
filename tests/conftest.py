import pytest

from acquirer_routing.health import HealthMonitor
from acquirer_routing.registry import Registry
from helpers import make_registry

@pytest.fixture
def registry() -> Registry:
    return make_registry()

@pytest.fixture
def monitor() -> HealthMonitor:
    return HealthMonitor()
