"""SMTP email alert adapter.

Sends one high-priority HTML message describing a terminal check failure.
Send errors are raised to the caller; there is no retry and no fallback
channel.
"""

from __future__ import annotations

import logging
import smtplib
from datetime import datetime
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate
from typing import Callable, Optional

from adapters.alert_formatting import format_alert_html
from core.config import SmtpConfig
from core.errors import MailSendFailure
from core.models import AlertMessage

LOGGER = logging.getLogger(__name__)

DEFAULT_SUBJECT = "FTPS health check failed"


def _try_login(server: smtplib.SMTP, username: str, password: str) -> None:
    """Attempt SMTP login only if credentials are set and the server supports AUTH."""
    if not username or not password:
        return
    if server.has_extn("auth"):
        server.login(username, password)


class SmtpEmailNotifier:
    """Notifier adapter that delivers alerts through an SMTP relay."""

    def __init__(
        self,
        config: SmtpConfig,
        ftps_host: str = "",
        clock: Callable[[], datetime] = datetime.now,
        timeout: float = 30.0,
    ) -> None:
        self._config = config
        self._ftps_host = ftps_host
        self._clock = clock
        self._timeout = timeout

    def build_alert(self, cause: Optional[BaseException]) -> AlertMessage:
        now = self._clock()
        return AlertMessage(
            subject=self._config.subject or DEFAULT_SUBJECT,
            html_body=format_alert_html(cause, now, self._ftps_host),
            created_at=now,
        )

    def _build_mime(self, alert: AlertMessage) -> MIMEText:
        cfg = self._config
        msg = MIMEText(alert.html_body, "html", "utf-8")
        msg["From"] = formataddr((cfg.from_display_name, cfg.from_address))
        msg["To"] = formataddr((cfg.to_display_name, cfg.to_address))
        msg["Subject"] = alert.subject
        msg["Date"] = formatdate(alert.created_at.timestamp(), localtime=True)
        msg["X-Priority"] = "1"
        msg["X-MSMail-Priority"] = "High"
        msg["Importance"] = "High"
        return msg

    def send_alert(self, cause: Optional[BaseException]) -> None:
        """Send the alert email. Raises ``MailSendFailure`` on any delivery error."""

        cfg = self._config
        if not cfg.host:
            raise MailSendFailure("SMTP host is not configured")
        if not cfg.to_address:
            raise MailSendFailure("SMTP recipient is not configured")

        msg = self._build_mime(self.build_alert(cause))
        try:
            with smtplib.SMTP(cfg.host, cfg.port, timeout=self._timeout) as server:
                if cfg.use_tls:
                    server.starttls()
                server.ehlo_or_helo_if_needed()
                _try_login(server, cfg.username, cfg.password)
                server.sendmail(cfg.from_address, [cfg.to_address], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise MailSendFailure(f"Could not send alert via {cfg.host}:{cfg.port}: {exc}") from exc

        LOGGER.warning("Email alert sent.")
