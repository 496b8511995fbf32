import pytest

from awswaf_solver import __main__ as cli


def test_when_url_and_proxy_given_then_override_config(monkeypatch):
    # Given
    seen = {}
    monkeypatch.setenv("CAPSOLVER_API_KEY", "CAP-ENV")

    def fake_run(config):
        seen["config"] = config
        return True

    monkeypatch.setattr(cli, "run", fake_run)

    # When
    cli.main(["https://shop.example.com/", "--proxy", "host:8080"])

    # Then
    assert seen["config"].target_url == "https://shop.example.com/"
    assert seen["config"].proxy == "host:8080"
    assert seen["config"].api_key == "CAP-ENV"


def test_when_run_fails_then_exit_with_status_1(monkeypatch):
    # Given
    monkeypatch.setenv("CAPSOLVER_API_KEY", "CAP-ENV")
    monkeypatch.setattr(cli, "run", lambda config: False)

    # When / Then
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["https://shop.example.com/"])
    assert excinfo.value.code == 1


def test_when_api_key_missing_then_exit_with_message(monkeypatch):
    # Given
    monkeypatch.delenv("CAPSOLVER_API_KEY", raising=False)

    # When / Then
    with pytest.raises(SystemExit, match="CAPSOLVER_API_KEY"):
        cli.main(["https://shop.example.com/"])


def test_when_proxy_is_malformed_then_exit_with_message(monkeypatch):
    # Given
    monkeypatch.setenv("CAPSOLVER_API_KEY", "CAP-ENV")

    # When / Then
    with pytest.raises(SystemExit, match="Invalid configuration"):
        cli.main(["https://shop.example.com/", "--proxy", "not-a-proxy"])


def test_when_async_requested_then_run_async_solver(monkeypatch):
    # Given
    calls = []

    class FakeTaskClient:
        async def get_balance(self):
            calls.append("balance")
            return 3.5

    class FakeAsyncSolver:
        def __init__(self, config):
            self.task_client = FakeTaskClient()

        async def solve(self):
            calls.append("solve")
            return True

    monkeypatch.setenv("CAPSOLVER_API_KEY", "CAP-ENV")
    monkeypatch.setattr("awswaf_solver.aio.AsyncAwsWafSolver", FakeAsyncSolver)

    # When
    cli.main(["https://shop.example.com/", "--async"])

    # Then
    assert calls == ["balance", "solve"]
