import pytest

from crypto_portfolio import main as runner


@pytest.fixture()
def uvicorn_calls(monkeypatch: pytest.MonkeyPatch):
    calls = []
    monkeypatch.setattr(runner, "setup_logging", lambda: None)
    monkeypatch.setattr(runner.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    return calls


def test_main_uses_environment_defaults(monkeypatch: pytest.MonkeyPatch, uvicorn_calls):
    monkeypatch.setenv("PORTFOLIO_HOST", "0.0.0.0")
    monkeypatch.setenv("PORTFOLIO_PORT", "9100")
    monkeypatch.setenv("PORTFOLIO_RELOAD", "true")

    runner.main([])

    assert uvicorn_calls == [("crypto_portfolio.api:app", {"host": "0.0.0.0", "port": 9100, "reload": True})]


def test_main_flags_override_environment(monkeypatch: pytest.MonkeyPatch, uvicorn_calls):
    monkeypatch.setenv("PORTFOLIO_PORT", "9100")
    monkeypatch.setenv("PORTFOLIO_RELOAD", "false")

    runner.main(["--host", "localhost", "--port", "8123", "--reload"])

    assert uvicorn_calls == [("crypto_portfolio.api:app", {"host": "localhost", "port": 8123, "reload": True})]
