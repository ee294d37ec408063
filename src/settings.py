"""Configuration loading for the FTPS health check.

All settings live in a single optional ``appsettings.json`` so operators can
edit them without touching Python. Secrets may instead come from the
environment (or a ``.env`` file), which wins over the file.
"""

from __future__ import annotations

import json
import os
from typing import Any, Optional

from dotenv import load_dotenv

from core.config import AppConfig, FtpsConfig, LoggingConfig, RetryConfig, SmtpConfig
from core.errors import ConfigurationError
from core.retry import BACKOFF_KINDS

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_FILENAME = "appsettings.json"
CONFIG_ENV_VAR = "FTPS_CHECK_CONFIG"

# Environment variables that override secrets from the config file.
ENV_OVERRIDES = {
    ("FTPS", "Password"): "FTPS_PASSWORD",
    ("SMTP", "Password"): "SMTP_PASSWORD",
}


def resolve_config_path(path: Optional[str] = None) -> str:
    """Pick the config file: explicit path, then $FTPS_CHECK_CONFIG, then the project root."""

    if path:
        return path
    from_env = os.getenv(CONFIG_ENV_VAR)
    if from_env:
        return from_env
    return os.path.join(PROJECT_ROOT, CONFIG_FILENAME)


def _load_json_config(path: str) -> dict:
    """Load the JSON file; a missing file means every value uses its default."""

    if not os.path.exists(path):
        return {}

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return data


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"{name} must be an object")
    return value


def _str(section: dict, group: str, key: str, default: str = "") -> str:
    env_name = ENV_OVERRIDES.get((group, key))
    if env_name and os.getenv(env_name):
        return os.environ[env_name]
    value = section.get(key, default)
    return default if value is None else str(value)


def _int(section: dict, group: str, key: str, default: int) -> int:
    value = section.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{group}:{key} must be an integer, got {value!r}") from exc


def _float(section: dict, group: str, key: str, default: float) -> float:
    value = section.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{group}:{key} must be a number, got {value!r}") from exc


def _bool(section: dict, key: str, default: bool) -> bool:
    value: Any = section.get(key, default)
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _build_ftps(section: dict) -> FtpsConfig:
    defaults = FtpsConfig()
    return FtpsConfig(
        host=_str(section, "FTPS", "Host"),
        port=_int(section, "FTPS", "Port", defaults.port),
        username=_str(section, "FTPS", "Username"),
        password=_str(section, "FTPS", "Password"),
        probe_path=_str(section, "FTPS", "ProbePath", defaults.probe_path),
        insecure_skip_verify=_bool(section, "InsecureSkipVerify", defaults.insecure_skip_verify),
        timeout=_float(section, "FTPS", "Timeout", defaults.timeout),
    )


def _build_smtp(section: dict) -> SmtpConfig:
    defaults = SmtpConfig()
    return SmtpConfig(
        host=_str(section, "SMTP", "Host"),
        port=_int(section, "SMTP", "Port", defaults.port),
        from_address=_str(section, "SMTP", "FromAddress"),
        from_display_name=_str(section, "SMTP", "FromDisplayName"),
        to_address=_str(section, "SMTP", "ToAddress"),
        to_display_name=_str(section, "SMTP", "ToDisplayName"),
        subject=_str(section, "SMTP", "Subject"),
        use_tls=_bool(section, "UseTls", defaults.use_tls),
        username=_str(section, "SMTP", "Username"),
        password=_str(section, "SMTP", "Password"),
    )


def _build_retry(section: dict) -> RetryConfig:
    defaults = RetryConfig()
    retry = RetryConfig(
        max_extra_attempts=_int(section, "Retry", "MaxExtraAttempts", defaults.max_extra_attempts),
        backoff=_str(section, "Retry", "Backoff", defaults.backoff).lower(),
        delay_seconds=_float(section, "Retry", "DelaySeconds", defaults.delay_seconds),
        max_delay_seconds=_float(section, "Retry", "MaxDelaySeconds", defaults.max_delay_seconds),
    )
    if retry.max_extra_attempts < 0:
        raise ConfigurationError("Retry:MaxExtraAttempts must be zero or greater")
    if retry.backoff not in BACKOFF_KINDS:
        raise ConfigurationError(f"Retry:Backoff must be one of {', '.join(BACKOFF_KINDS)}")
    return retry


def _build_logging(section: dict) -> LoggingConfig:
    defaults = LoggingConfig()
    file_cfg = _section(section, "File")
    return LoggingConfig(
        level=_str(section, "Logging", "Level", defaults.level).upper(),
        console=_bool(section, "Console", defaults.console),
        file_enabled=_bool(file_cfg, "Enabled", defaults.file_enabled),
        file_path=_str(file_cfg, "Logging", "Path", defaults.file_path),
        max_bytes=_int(file_cfg, "Logging", "MaxBytes", defaults.max_bytes),
        backup_count=_int(file_cfg, "Logging", "BackupCount", defaults.backup_count),
        redact=_bool(section, "Redact", defaults.redact),
    )


def load_settings(path: Optional[str] = None) -> AppConfig:
    """Build the immutable configuration snapshot for one run."""

    load_dotenv()
    raw = _load_json_config(resolve_config_path(path))
    return AppConfig(
        ftps=_build_ftps(_section(raw, "FTPS")),
        smtp=_build_smtp(_section(raw, "SMTP")),
        retry=_build_retry(_section(raw, "Retry")),
        logging=_build_logging(_section(raw, "Logging")),
    )


def _mask(value: str) -> str:
    return "********" if value else "(empty)"


def describe_settings(config: AppConfig) -> list[str]:
    """Render the effective settings with secrets masked."""

    ftps, smtp, retry, log = config.ftps, config.smtp, config.retry, config.logging
    return [
        "[FTPS]",
        f"  Host = {ftps.host or '(empty)'}",
        f"  Port = {ftps.port}",
        f"  Username = {ftps.username or '(empty)'}",
        f"  Password = {_mask(ftps.password)}",
        f"  ProbePath = {ftps.probe_path}",
        f"  InsecureSkipVerify = {'true' if ftps.insecure_skip_verify else 'false'}",
        f"  Timeout = {ftps.timeout:g}",
        "[SMTP]",
        f"  Host = {smtp.host or '(empty)'}",
        f"  Port = {smtp.port}",
        f"  FromAddress = {smtp.from_address or '(empty)'}",
        f"  FromDisplayName = {smtp.from_display_name or '(empty)'}",
        f"  ToAddress = {smtp.to_address or '(empty)'}",
        f"  ToDisplayName = {smtp.to_display_name or '(empty)'}",
        f"  Subject = {smtp.subject or '(empty)'}",
        f"  UseTls = {'true' if smtp.use_tls else 'false'}",
        f"  Username = {smtp.username or '(empty)'}",
        f"  Password = {_mask(smtp.password)}",
        "[Retry]",
        f"  MaxExtraAttempts = {retry.max_extra_attempts}",
        f"  Backoff = {retry.backoff}",
        f"  DelaySeconds = {retry.delay_seconds:g}",
        f"  MaxDelaySeconds = {retry.max_delay_seconds:g}",
        "[Logging]",
        f"  Level = {log.level}",
        f"  Console = {'true' if log.console else 'false'}",
        f"  File = {log.file_path if log.file_enabled else '(disabled)'}",
        f"  Redact = {'true' if log.redact else 'false'}",
    ]
