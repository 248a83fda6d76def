"""
Connection failure classification.

Failures are classified only to pick a helpful diagnostic; the retry policy
is the same for every kind.
"""

from dataclasses import dataclass, field
from enum import Enum

from pymongo.errors import (
    ConfigurationError,
    NetworkTimeout,
    OperationFailure,
    ServerSelectionTimeoutError,
)

# MongoDB server error codes for rejected credentials
_AUTH_ERROR_CODES = {18, 8000}

_DNS_MARKERS = (
    "enotfound",
    "getaddrinfo",
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "dns query name does not exist",
    "does not contain an answer",
)
_AUTH_MARKERS = ("authentication failed", "bad auth")
_TIMEOUT_MARKERS = ("timeout", "timed out", "econnrefused", "connection refused")
_ACCESS_MARKERS = ("ip not whitelisted", "not allowed to access")


class FailureKind(Enum):
    """Diagnostic category of a failed connection attempt."""

    DNS_RESOLUTION = "dns_resolution"
    AUTHENTICATION = "authentication"
    TIMEOUT = "timeout"
    ACCESS_CONTROL = "access_control"
    UNCLASSIFIED = "unclassified"


_HINTS: dict[FailureKind, tuple[str, ...]] = {
    FailureKind.DNS_RESOLUTION: (
        "DNS Resolution Error: Cannot resolve MongoDB hostname.",
        "Check if MONGODB_URL is correct and the MongoDB cluster is running.",
        "For MongoDB Atlas free tier, ensure the cluster is not paused.",
    ),
    FailureKind.AUTHENTICATION: (
        "Authentication Error: Invalid MongoDB credentials.",
        "Check the MongoDB username and password in MONGODB_URL.",
    ),
    FailureKind.TIMEOUT: (
        "Connection Timeout: MongoDB server did not respond in time.",
        "Check the network connection and the MongoDB firewall settings.",
        "Ensure this server's IP is allowed in the MongoDB network access list.",
    ),
    FailureKind.ACCESS_CONTROL: (
        "IP Access Error: this server's IP is not allowed to reach MongoDB.",
        "Add the server IP to the MongoDB Atlas network access list.",
    ),
    FailureKind.UNCLASSIFIED: (),
}


@dataclass(frozen=True)
class ClassifiedFailure:
    """A failure together with its diagnostic category and remediation hints."""

    kind: FailureKind
    message: str
    hints: tuple[str, ...] = field(default=())


def _contains(message: str, markers: tuple[str, ...]) -> bool:
    return any(marker in message for marker in markers)


def classify_failure(error: BaseException | str) -> ClassifiedFailure:
    """
    Classify a connection failure for diagnostics.

    Args:
        error: Exception raised by the transport, or an error message

    Returns:
        ClassifiedFailure with kind, original message and hints
    """
    message = str(error)
    lowered = message.lower()

    if _contains(lowered, _DNS_MARKERS) or (
        isinstance(error, ConfigurationError) and "dns" in lowered
    ):
        kind = FailureKind.DNS_RESOLUTION
    elif _contains(lowered, _AUTH_MARKERS) or (
        isinstance(error, OperationFailure) and error.code in _AUTH_ERROR_CODES
    ):
        kind = FailureKind.AUTHENTICATION
    elif _contains(lowered, _TIMEOUT_MARKERS) or (
        isinstance(error, (NetworkTimeout, ServerSelectionTimeoutError))
        and not _contains(lowered, _ACCESS_MARKERS)
    ):
        kind = FailureKind.TIMEOUT
    elif _contains(lowered, _ACCESS_MARKERS):
        kind = FailureKind.ACCESS_CONTROL
    else:
        kind = FailureKind.UNCLASSIFIED

    return ClassifiedFailure(kind=kind, message=message, hints=_HINTS[kind])
