"""Alert email formatting helpers.

Keeping formatting here keeps the notifier adapter focused on delivery and
lets the HTML body be tested without an SMTP server.
"""

from __future__ import annotations

import html
import traceback
from datetime import datetime
from typing import Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_BLOCK_STYLE = "font-family: Consolas;font-size: 10pt;"


def _escape(value: str) -> str:
    # Quotes stay verbatim so tracebacks read the same as in the log.
    return html.escape(value, quote=False)


def exception_origin(exc: BaseException) -> str:
    """Return the qualified exception type, e.g. ``core.errors.ConnectionFailure``."""

    exc_type = type(exc)
    if exc_type.__module__ == "builtins":
        return exc_type.__qualname__
    return f"{exc_type.__module__}.{exc_type.__qualname__}"


def format_stack_trace(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__, chain=False))


def inner_cause(exc: BaseException) -> Optional[BaseException]:
    """Return the exception ``exc`` wraps, explicit or implicit."""

    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def _format_cause(exc: BaseException) -> list[str]:
    return [
        _escape(str(exc)),
        _escape(exception_origin(exc)),
        _escape(format_stack_trace(exc)).rstrip("\n"),
    ]


def format_alert_html(cause: Optional[BaseException], now: datetime, host: str = "") -> str:
    """Create the HTML alert body for a terminal check failure."""

    target = f" {_escape(host)}" if host else ""
    parts = [f"<p>Could not connect to FTPS server{target} {now.strftime(TIMESTAMP_FORMAT)}</p>"]

    if cause is None:
        return "".join(parts)

    parts.append(f'<pre style="{_BLOCK_STYLE}">')
    parts.extend(_format_cause(cause))

    inner = inner_cause(cause)
    if inner is not None:
        parts.append("")
        parts.extend(_format_cause(inner))

    parts.append("</pre>")
    return "\n".join(parts)
