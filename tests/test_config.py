import json
import logging

import pytest
from pydantic import ValidationError

from acquirer_routing.config import DEFAULT_ACQUIRERS_PATH, Settings
from acquirer_routing.logging_utils import JsonLogFormatter

def test_defaults(monkeypatch):
    monkeypatch.delenv("ROUTING_HISTORY_PATH", raising=False)
    s = Settings(_env_file=None)
    assert s.acquirers_path == DEFAULT_ACQUIRERS_PATH
    assert s.history_path is None
    assert s.history_seed == 42

def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("ROUTING_HISTORY_PATH", str(tmp_path / "h.json"))
    monkeypatch.setenv("ROUTING_HISTORY_SIZE", "250")
    monkeypatch.setenv("ROUTING_LOG_LEVEL", "debug")
    s = Settings(_env_file=None)
    assert s.history_path == tmp_path / "h.json"
    assert s.history_size == 250
    assert s.log_level == "DEBUG"

def test_bad_log_level():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_level="LOUD")

def test_json_log_formatter():
    record = logging.LogRecord("acquirer_routing.health", logging.WARNING, __file__, 1, "Acquirer health changed", None, None)
    record.extra = {"acquirer": "Acquirer A", "to": "down"}
    payload = json.loads(JsonLogFormatter().format(record))
    assert payload["level"] == "WARNING"
    assert payload["message"] == "Acquirer health changed"
    assert payload["acquirer"] == "Acquirer A"
    assert payload["to"] == "down"
