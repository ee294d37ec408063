"""Application entry point for the FTPS health check."""

from __future__ import annotations

import argparse
import logging
import os
import time
from logging.handlers import RotatingFileHandler
from typing import Callable, Optional

from art import tprint

import settings
from adapters.smtp_notifier import SmtpEmailNotifier
from client import build_client
from core.check import ConnectivityCheck
from core.config import AppConfig, FtpsConfig, LoggingConfig
from core.models import ProbeResult
from core.ports import NotifierPort, TransferClientPort
from core.retry import RetryRunner, build_backoff

NAME = "FTPS CHECK"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _configure_logging(config: LoggingConfig, secrets: list[str]) -> list[logging.Handler]:
    level = getattr(logging, config.level.upper(), logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(secrets if config.redact else [], fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if config.file_enabled:
        path = config.file_path
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return handlers

    root = logging.getLogger()
    root.setLevel(level)
    for handler in handlers:
        root.addHandler(handler)
    return handlers


def run_check(
    config: AppConfig,
    client_factory: Callable[[FtpsConfig], TransferClientPort] = build_client,
    notifier: Optional[NotifierPort] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> ProbeResult:
    """Run the connectivity check under the retry runner; alert on exhaustion."""

    logger = logging.getLogger(__name__)

    check = ConnectivityCheck(config.ftps, client_factory)
    runner = RetryRunner(
        config.retry.max_extra_attempts,
        build_backoff(config.retry.backoff, config.retry.delay_seconds, config.retry.max_delay_seconds),
        sleep=sleep,
    )
    if notifier is None:
        notifier = SmtpEmailNotifier(config.smtp, ftps_host=config.ftps.host)

    try:
        return runner.run(check.execute)
    except Exception as exc:
        logger.exception("Stopped program because of exception")
        # A failed alert propagates with the check failure as its context.
        notifier.send_alert(exc)
        raise


def _run(config: AppConfig) -> None:
    logger = logging.getLogger(__name__)
    logger.info(
        "Checking %s:%s (up to %s attempts, %s backoff)",
        config.ftps.host or "(no host)",
        config.ftps.port,
        config.retry.max_extra_attempts + 1,
        config.retry.backoff,
    )
    result = run_check(config)
    logger.info("Health check passed: %s %s", result.path, result.reason)


def _send_test_alert(config: AppConfig) -> None:
    notifier = SmtpEmailNotifier(config.smtp, ftps_host=config.ftps.host)
    notifier.send_alert(None)
    print(f"Test alert sent to {config.smtp.to_address}")


def _show_config(config: AppConfig, path: str) -> None:
    exists = os.path.exists(path)
    print(f"# {path}{'' if exists else ' (not found, using defaults)'}")
    for line in settings.describe_settings(config):
        print(line)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="ftps-check")
    parser.add_argument("--config", help="Path to appsettings.json")
    parser.add_argument("--no-banner", action="store_true", help="Do not print the banner")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Run the health check once (default)")
    subparsers.add_parser("config", help="Show the effective configuration")
    subparsers.add_parser("test-alert", help="Send a test alert email")

    args = parser.parse_args(argv)
    if not args.no_banner:
        _print_banner()

    config_path = settings.resolve_config_path(args.config)
    config = settings.load_settings(config_path)

    if args.command == "config":
        _show_config(config, config_path)
        return

    _configure_logging(config.logging, config.secrets())
    try:
        if args.command == "test-alert":
            _send_test_alert(config)
            return
        _run(config)
    finally:
        logging.shutdown()


if __name__ == "__main__":
    main()
