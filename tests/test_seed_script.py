"""
Tests for the HTTP seed script.
"""

import importlib.util
from pathlib import Path

import pytest
import requests

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "seed_data.py"


def _load_script():
    module_spec = importlib.util.spec_from_file_location("seed_data", SCRIPT)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture
def no_network(monkeypatch):
    calls = []

    def refuse(*args, **kwargs):
        calls.append(args)
        raise requests.exceptions.ConnectionError("network disabled")

    monkeypatch.setattr(requests, "get", refuse)
    monkeypatch.setattr(requests, "post", refuse)
    return calls


def test_import_makes_no_requests(monkeypatch, no_network):
    monkeypatch.setenv("REGISTRAR_BASE_URL", "http://registrar.test:9000/")
    seed = _load_script()
    assert seed.BASE_URL == "http://registrar.test:9000"
    assert no_network == []


def test_default_base_url(monkeypatch, no_network):
    monkeypatch.delenv("REGISTRAR_BASE_URL", raising=False)
    assert _load_script().BASE_URL == "http://127.0.0.1:8000"


def test_check_server_reports_unreachable(monkeypatch, no_network, capsys):
    monkeypatch.delenv("REGISTRAR_BASE_URL", raising=False)
    assert _load_script().check_server() is False
    assert "[FAIL] Server is not running!" in capsys.readouterr().out
    assert len(no_network) == 1
