"""Error taxonomy for the provisioning run.

Configuration and dependency problems are detected before any network call.
Remote failures always carry the raw response body, since nothing is
retried or rolled back.
"""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base class for every error the tool reports to the user."""


class ConfigurationError(ProvisioningError):
    """Bad, missing or conflicting input."""


class DependencyMissingError(ProvisioningError):
    """A required external tool (the GitHub CLI) is not installed."""


class CredentialError(ProvisioningError):
    """No ambient credential could be resolved."""


class BillingAPIError(ProvisioningError):
    """Transport failure or non-2xx answer from the billing API."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProvisioningAborted(ProvisioningError):
    """A fatal step failed; later steps were not attempted."""

    def __init__(self, step: str, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.step = step
        self.raw = raw
