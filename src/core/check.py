"""Single-attempt connectivity check against the FTPS endpoint.

The check is integration-agnostic. It only relies on the transfer client
port, so tests can drive it with a fake client.
"""

from __future__ import annotations

import logging
from typing import Callable

from core.config import FtpsConfig
from core.errors import AuthenticationFailure, ConnectionFailure
from core.models import ProbeResult
from core.ports import TransferClientPort

LOGGER = logging.getLogger(__name__)


class ConnectivityCheck:
    """Connect, authenticate, probe one remote file and disconnect."""

    def __init__(
        self,
        config: FtpsConfig,
        client_factory: Callable[[FtpsConfig], TransferClientPort],
    ) -> None:
        self._config = config
        self._client_factory = client_factory

    def execute(self) -> ProbeResult:
        """Run one attempt; raise on connection or authentication failure."""

        if self._config.insecure_skip_verify:
            LOGGER.warning(
                "Certificate validation is disabled for %s (FTPS.InsecureSkipVerify)",
                self._config.host,
            )

        client = self._client_factory(self._config)
        try:
            client.connect()
            client.login()

            if not client.is_connected:
                raise ConnectionFailure("FTPS not connected.")
            if not client.is_authenticated:
                raise AuthenticationFailure("FTPS not authenticated.")

            LOGGER.info("FTPS connected.")
            return self._probe(client)
        except Exception:
            LOGGER.exception("FTPS check against %s:%s failed", self._config.host, self._config.port)
            raise
        finally:
            self._disconnect(client)

    def _probe(self, client: TransferClientPort) -> ProbeResult:
        path = self._config.probe_path
        name = path.rsplit("/", 1)[-1]
        if client.file_exists(path):
            LOGGER.info("FTPS file '%s' exists!", name)
            return ProbeResult(path=path, found=True, reason="file exists")

        # A missing file is an operational state, not a failed check.
        LOGGER.warning("FTPS file '%s' not found!", name)
        return ProbeResult(path=path, found=False, reason="file not found")

    @staticmethod
    def _disconnect(client: TransferClientPort) -> None:
        try:
            client.disconnect()
        except Exception as exc:
            LOGGER.warning("FTPS disconnect failed: %s", exc)
            return
        LOGGER.info("FTPS disconnected.")
