"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_PROBE_PATH = "/7z2300-x64.msi"


@dataclass(frozen=True)
class FtpsConfig:
    """Transfer endpoint settings (the ``FTPS`` group)."""

    host: str = ""
    port: int = 21
    username: str = ""
    password: str = ""
    probe_path: str = DEFAULT_PROBE_PATH
    # Off by default: skipping verification removes MITM protection.
    insecure_skip_verify: bool = False
    timeout: float = 30.0


@dataclass(frozen=True)
class SmtpConfig:
    """Mail settings (the ``SMTP`` group) consumed by the notifier adapter."""

    host: str = ""
    port: int = 25
    from_address: str = ""
    from_display_name: str = ""
    to_address: str = ""
    to_display_name: str = ""
    subject: str = ""
    use_tls: bool = False
    username: str = ""
    password: str = ""


@dataclass(frozen=True)
class RetryConfig:
    """Bounded retry settings for the connectivity check."""

    max_extra_attempts: int = 3
    backoff: str = "fixed"
    delay_seconds: float = 30.0
    max_delay_seconds: float = 300.0


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    console: bool = True
    file_enabled: bool = False
    file_path: str = "logs/ftps-check.log"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    redact: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Immutable snapshot of every setting, loaded once per run."""

    ftps: FtpsConfig = field(default_factory=FtpsConfig)
    smtp: SmtpConfig = field(default_factory=SmtpConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def secrets(self) -> list[str]:
        """Return configured secret values, longest first, for log redaction."""

        values = {self.ftps.password, self.smtp.password}
        return sorted((value for value in values if value), key=len, reverse=True)
