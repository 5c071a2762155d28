from __future__ import annotations

import socket

import pytest

from squad_sim.web import run
from squad_sim.web.run import find_available_port


class _DummyServer:
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def test_find_available_port_falls_back_when_port_in_use(monkeypatch: pytest.MonkeyPatch):
    calls: list[tuple[str, int]] = []

    def fake_create_server(addr, reuse_port=False):
        host, port = addr
        calls.append((host, port))
        if len(calls) == 1:
            raise OSError("Address already in use")
        return _DummyServer()

    monkeypatch.setattr(socket, "create_server", fake_create_server)

    chosen_port, did_fallback = find_available_port("127.0.0.1", 8000, max_tries=10)

    assert did_fallback is True
    assert chosen_port == 8001
    assert calls == [("127.0.0.1", 8000), ("127.0.0.1", 8001)]


def test_find_available_port_gives_up(monkeypatch: pytest.MonkeyPatch):
    def busy(addr, reuse_port=False):
        raise OSError("Address already in use")

    monkeypatch.setattr(socket, "create_server", busy)

    with pytest.raises(RuntimeError, match="after 3 attempts"):
        find_available_port("127.0.0.1", 9000, max_tries=3)


def test_find_available_port_rejects_invalid_max_tries():
    with pytest.raises(ValueError):
        find_available_port("127.0.0.1", 8000, max_tries=0)


def test_main_serves_app_on_chosen_port(monkeypatch: pytest.MonkeyPatch):
    import uvicorn

    served: dict = {}
    monkeypatch.setattr(run, "find_available_port", lambda host, port, max_tries: (port + 1, True))
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: served.update(app=app, **kwargs))

    code = run.main(["--port", "8100", "--tick-interval", "0.25", "--log-level", "warning"])

    assert code == 0
    assert served["port"] == 8101
    assert served["host"] == "127.0.0.1"
    assert served["log_level"] == "warning"
    assert served["app"].state.combat.tick_interval == 0.25


def test_main_reports_port_failure(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
    def no_port(host, port, max_tries):
        raise RuntimeError("nothing free")

    monkeypatch.setattr(run, "find_available_port", no_port)

    assert run.main([]) == 2
    assert "nothing free" in capsys.readouterr().err
