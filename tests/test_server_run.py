"""Tests for the ``cartsense-server`` launcher."""

from cartsense.config import get_settings
from cartsense.server import run


def test_main_serves_app_on_configured_address(monkeypatch) -> None:
    calls = []
    monkeypatch.setenv("CARTSENSE_SERVER_HOST", "0.0.0.0")
    monkeypatch.setenv("CARTSENSE_SERVER_PORT", "9100")
    monkeypatch.setattr(run.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    get_settings.cache_clear()

    run.main()

    assert calls == [("cartsense.server.app:app", {"host": "0.0.0.0", "port": 9100})]


def test_main_defaults_to_loopback(monkeypatch) -> None:
    calls = []
    monkeypatch.delenv("CARTSENSE_SERVER_HOST", raising=False)
    monkeypatch.delenv("CARTSENSE_SERVER_PORT", raising=False)
    monkeypatch.setattr(run.uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))
    get_settings.cache_clear()

    run.main()

    assert calls == [{"host": "127.0.0.1", "port": 8000}]
