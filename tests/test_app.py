from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

import app
import settings
from core.config import AppConfig, FtpsConfig, LoggingConfig, RetryConfig
from core.errors import AuthenticationFailure, ConnectionFailure, MailSendFailure
from core.models import ProbeResult
from fakes import FakeClientFactory, FakeNotifier, FakeTransferClient, RecordingSleep


def _config(**retry) -> AppConfig:
    return AppConfig(
        ftps=FtpsConfig(host="ftp.example.com", port=21, username="probe", password="secret"),
        retry=RetryConfig(**retry),
    )


def test_reachable_server_passes_on_first_attempt() -> None:
    factory = FakeClientFactory()
    notifier = FakeNotifier()
    sleep = RecordingSleep()

    result = app.run_check(_config(), factory, notifier, sleep)

    assert result.found
    assert len(factory.created) == 1
    assert notifier.causes == []
    assert sleep.calls == []


def test_unreachable_server_alerts_once_with_last_error() -> None:
    clients = [
        FakeTransferClient(connect_error=ConnectionFailure(f"unreachable #{n}")) for n in range(1, 5)
    ]
    factory = FakeClientFactory(*clients)
    notifier = FakeNotifier()
    sleep = RecordingSleep()

    with pytest.raises(ConnectionFailure) as excinfo:
        app.run_check(_config(), factory, notifier, sleep)

    assert str(excinfo.value) == "unreachable #4"
    assert len(factory.created) == 4
    assert all(client.disconnect_calls == 1 for client in clients)
    assert sleep.calls == [30, 30, 30]
    assert sum(sleep.calls) == 90
    assert notifier.causes == [excinfo.value]


def test_rejected_credentials_follow_same_retry_and_alert_path() -> None:
    clients = [FakeTransferClient(login_error=AuthenticationFailure("530 Login incorrect.")) for _ in range(4)]
    notifier = FakeNotifier()
    sleep = RecordingSleep()

    with pytest.raises(AuthenticationFailure):
        app.run_check(_config(), FakeClientFactory(*clients), notifier, sleep)

    assert [client.login_calls for client in clients] == [1, 1, 1, 1]
    assert len(sleep.calls) == 3
    assert len(notifier.causes) == 1
    assert isinstance(notifier.causes[0], AuthenticationFailure)


def test_recovery_before_exhaustion_sends_no_alert() -> None:
    factory = FakeClientFactory(
        FakeTransferClient(connect_error=ConnectionFailure("timed out")),
        FakeTransferClient(),
    )
    notifier = FakeNotifier()
    sleep = RecordingSleep()

    result = app.run_check(_config(backoff="none"), factory, notifier, sleep)

    assert result.found
    assert notifier.causes == []
    assert sleep.calls == [0]


def test_alert_failure_propagates_with_check_failure_as_context() -> None:
    factory = FakeClientFactory(FakeTransferClient(connect_error=ConnectionFailure("refused")))
    notifier = FakeNotifier(error=MailSendFailure("SMTP host is not configured"))

    with pytest.raises(MailSendFailure) as excinfo:
        app.run_check(_config(max_extra_attempts=0), factory, notifier, RecordingSleep())

    assert isinstance(excinfo.value.__context__, ConnectionFailure)


def test_terminal_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="app")
    factory = FakeClientFactory(FakeTransferClient(connect_error=ConnectionFailure("refused")))

    with pytest.raises(ConnectionFailure):
        app.run_check(_config(max_extra_attempts=0), factory, FakeNotifier(), RecordingSleep())

    assert "Stopped program because of exception" in caplog.text


def test_redacting_formatter_masks_secrets() -> None:
    formatter = app._RedactingFormatter(["hunter2", ""], fmt="%(message)s")
    record = logging.LogRecord("app", logging.INFO, __file__, 1, "login with %s", ("hunter2",), None)
    assert formatter.format(record) == "login with ***"


@pytest.fixture
def restore_root_logger():
    """Detach and close whatever handlers a test adds to the root logger."""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_log_file_masks_secrets(tmp_path: Path, restore_root_logger: logging.Logger) -> None:
    path = tmp_path / "x.log"

    added = app._configure_logging(LoggingConfig(console=False, file_enabled=True, file_path=str(path)), ["hunter2"])
    logging.getLogger("app").info("login with %s", "hunter2")
    for handler in added:
        handler.flush()

    [file_handler] = added
    assert isinstance(file_handler, RotatingFileHandler)
    assert file_handler in restore_root_logger.handlers
    text = path.read_text(encoding="utf-8")
    assert "INFO app: login with ***" in text
    assert "hunter2" not in text


def test_log_file_keeps_secrets_when_redaction_is_off(tmp_path: Path, restore_root_logger: logging.Logger) -> None:
    path = tmp_path / "x.log"

    added = app._configure_logging(
        LoggingConfig(console=False, file_enabled=True, file_path=str(path), redact=False), ["hunter2"]
    )
    logging.getLogger("app").info("login with %s", "hunter2")
    for handler in added:
        handler.flush()

    assert "login with hunter2" in path.read_text(encoding="utf-8")


def test_relative_log_path_resolves_under_project_root(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, restore_root_logger: logging.Logger
) -> None:
    monkeypatch.setattr(settings, "PROJECT_ROOT", str(tmp_path))

    [file_handler] = app._configure_logging(
        LoggingConfig(console=False, file_enabled=True, file_path="logs/check.log"), []
    )

    assert file_handler.baseFilename == str(tmp_path / "logs" / "check.log")
    assert (tmp_path / "logs").is_dir()


def test_console_only_logging(restore_root_logger: logging.Logger) -> None:
    [console_handler] = app._configure_logging(LoggingConfig(level="debug"), [])

    assert type(console_handler) is logging.StreamHandler
    assert restore_root_logger.level == logging.DEBUG


def test_no_handlers_when_console_and_file_are_off(restore_root_logger: logging.Logger) -> None:
    before = list(restore_root_logger.handlers)

    assert app._configure_logging(LoggingConfig(console=False), ["hunter2"]) == []
    assert restore_root_logger.handlers == before

@pytest.fixture
def quiet_main(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Stub logging setup and shutdown so main() leaves pytest's handlers alone."""

    calls: list[str] = []
    monkeypatch.setattr(app, "_configure_logging", lambda config, secrets: calls.append("configure") or [])
    monkeypatch.setattr(logging, "shutdown", lambda: calls.append("shutdown"))
    for name in ("FTPS_PASSWORD", "SMTP_PASSWORD", "FTPS_CHECK_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    return calls


def test_main_runs_check_and_flushes_logs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, quiet_main: list[str]
) -> None:
    seen: list[AppConfig] = []

    def fake_run_check(config: AppConfig) -> ProbeResult:
        seen.append(config)
        return ProbeResult(path="/7z2300-x64.msi", found=True, reason="file exists")

    monkeypatch.setattr(app, "run_check", fake_run_check)
    path = tmp_path / "appsettings.json"
    path.write_text(json.dumps({"FTPS": {"Host": "ftp.example.com"}}), encoding="utf-8")

    app.main(["--no-banner", "--config", str(path)])

    assert seen[0].ftps.host == "ftp.example.com"
    assert quiet_main == ["configure", "shutdown"]


def test_main_reraises_after_flushing_logs(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, quiet_main: list[str]
) -> None:
    def failing_run_check(config: AppConfig) -> ProbeResult:
        raise ConnectionFailure("refused")

    monkeypatch.setattr(app, "run_check", failing_run_check)

    with pytest.raises(ConnectionFailure):
        app.main(["--no-banner", "--config", str(tmp_path / "absent.json"), "run"])

    assert quiet_main == ["configure", "shutdown"]


def test_main_config_command_masks_passwords(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], quiet_main: list[str]
) -> None:
    path = tmp_path / "appsettings.json"
    path.write_text(json.dumps({"SMTP": {"Host": "smtp.example.com", "Password": "hunter2"}}), encoding="utf-8")

    app.main(["--no-banner", "--config", str(path), "config"])

    out = capsys.readouterr().out
    assert "  Host = smtp.example.com" in out
    assert "hunter2" not in out
    assert quiet_main == []


def test_main_test_alert_sends_without_cause(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, quiet_main: list[str]
) -> None:
    notifier = FakeNotifier()
    monkeypatch.setattr(app, "SmtpEmailNotifier", lambda config, ftps_host: notifier)

    app.main(["--no-banner", "--config", str(tmp_path / "absent.json"), "test-alert"])

    assert notifier.causes == [None]
    assert quiet_main == ["configure", "shutdown"]
