"""FTPS client factory for the health check.

Each check attempt builds a fresh client so exactly one control connection is
opened per attempt and nothing leaks between retries.
"""

from __future__ import annotations

import logging
import ssl

from adapters.ftps_client import FtpsTransferClient
from core.config import FtpsConfig


def build_ssl_context(insecure_skip_verify: bool = False) -> ssl.SSLContext:
    """Create the TLS context shared by the control and data channels."""

    context = ssl.create_default_context()
    if insecure_skip_verify:
        # Accept any server certificate. Only reachable through an explicit opt-in.
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def build_client(config: FtpsConfig) -> FtpsTransferClient:
    """Create an FTPS transfer client for ``config``."""

    logging.getLogger(__name__).info("Initializing FTPS client for %s:%s", config.host, config.port)
    return FtpsTransferClient(config, build_ssl_context(config.insecure_skip_verify))
