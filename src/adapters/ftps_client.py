"""FTPS transfer client adapter.

Wraps ``ftplib.FTP_TLS`` in explicit encryption mode and translates its
errors into the core failure types.
"""

from __future__ import annotations

import ftplib
import logging
import posixpath
import ssl

from core.config import FtpsConfig
from core.errors import AuthenticationFailure, ConnectionFailure

LOGGER = logging.getLogger(__name__)

# Replies that mean the server does not implement a command.
_UNSUPPORTED_REPLIES = ("500", "502", "504")


def _reply_code(exc: BaseException) -> str:
    return str(exc)[:3]


class FtpsTransferClient:
    """Transfer client adapter over an explicitly secured control connection."""

    def __init__(self, config: FtpsConfig, context: ssl.SSLContext) -> None:
        self._config = config
        self._ftp = ftplib.FTP_TLS(context=context, timeout=config.timeout)
        self._connected = False
        self._authenticated = False

    @property
    def is_connected(self) -> bool:
        return self._connected and self._ftp.sock is not None

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    def connect(self) -> None:
        """Open the plain control connection; TLS is negotiated by ``login``."""

        if not self._config.host:
            raise ConnectionFailure("FTPS host is not configured")
        try:
            welcome = self._ftp.connect(self._config.host, self._config.port)
        except (OSError, EOFError, ftplib.Error) as exc:
            raise ConnectionFailure(
                f"Could not connect to {self._config.host}:{self._config.port}: {exc}"
            ) from exc
        self._connected = True
        LOGGER.debug("Server welcome: %s", welcome)

    def login(self) -> None:
        """Upgrade with AUTH TLS, log in and protect the data channel."""

        try:
            self._ftp.auth()
        except (OSError, EOFError, ftplib.Error) as exc:
            raise ConnectionFailure(f"TLS negotiation failed: {exc}") from exc

        try:
            response = self._ftp.login(self._config.username, self._config.password)
        except ftplib.error_perm as exc:
            raise AuthenticationFailure(f"Login rejected for '{self._config.username}': {exc}") from exc
        except (OSError, EOFError, ftplib.Error) as exc:
            raise ConnectionFailure(f"Login failed: {exc}") from exc

        self._authenticated = response.startswith("2")
        if self._authenticated:
            try:
                self._ftp.prot_p()
            except (OSError, EOFError, ftplib.Error) as exc:
                raise ConnectionFailure(f"Could not secure the data channel: {exc}") from exc

    def file_exists(self, path: str) -> bool:
        """Return whether ``path`` exists, using SIZE with an NLST fallback."""

        try:
            self._ftp.voidcmd("TYPE I")
            return self._ftp.size(path) is not None
        except ftplib.error_perm as exc:
            if _reply_code(exc) not in _UNSUPPORTED_REPLIES:
                return False
            LOGGER.debug("SIZE unsupported (%s), falling back to NLST", exc)
        return self._listed(path)

    def _listed(self, path: str) -> bool:
        parent = posixpath.dirname(path) or "."
        name = posixpath.basename(path)
        try:
            entries = self._ftp.nlst(parent)
        except ftplib.error_perm:
            # Empty or missing directories answer 550.
            return False
        return any(posixpath.basename(entry) == name for entry in entries)

    def disconnect(self) -> None:
        """Send QUIT when connected and always release the socket."""

        try:
            if self.is_connected:
                self._ftp.quit()
        finally:
            self._ftp.close()
            self._connected = False
            self._authenticated = False
