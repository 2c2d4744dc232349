"""Error taxonomy for token issuance. Every failure surfaces as an IssuanceError subclass."""

from __future__ import annotations


class IssuanceError(Exception):
    """Base error. `kind` is what the CLI prints in front of the message."""

    kind = "IssuanceError"


class ConfigurationError(IssuanceError):
    """Missing or malformed credential, or an invalid parameter."""

    kind = "ConfigurationError"


class ValidationError(IssuanceError):
    """Request violates a structural constraint before submission."""

    kind = "ValidationError"


class NetworkError(IssuanceError):
    """Endpoint unreachable or returned a malformed response."""

    kind = "NetworkError"


class RejectedError(IssuanceError):
    """Transaction was refused by the network or failed on-chain."""

    kind = "RejectedError"


class ConfirmationTimeoutError(IssuanceError, TimeoutError):
    """No confirmation observed within the bounded wait. Outcome is unknown."""

    kind = "TimeoutError"
