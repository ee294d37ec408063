"""Failure types propagated out of the health check.

Expected outcomes such as a missing probe file are reported through
``core.models.ProbeResult`` and never raised.
"""

from __future__ import annotations


class HealthCheckError(Exception):
    """Base class for failures raised by the health check."""


class ConnectionFailure(HealthCheckError):
    """The control connection could not be established."""


class AuthenticationFailure(HealthCheckError):
    """The session was established but is not authenticated."""


class MailSendFailure(HealthCheckError):
    """The alert email could not be delivered."""


class ConfigurationError(HealthCheckError):
    """A configuration value is present but unusable."""
