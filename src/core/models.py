"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to ftplib or smtplib types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one successful connectivity check."""

    path: str
    found: bool
    reason: str


@dataclass(frozen=True)
class AlertMessage:
    """Alert email content, built right before it is sent."""

    subject: str
    html_body: str
    created_at: datetime
