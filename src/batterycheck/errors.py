"""
Error taxonomy for device scanning.

Provides the exception types raised by the package, error codes attached
to failed scan results, and the classification used to decide whether an
HTTPS failure should fall back to plain HTTP.
"""

import asyncio
import errno as err_mod
import ssl
from enum import Enum
from typing import Any, Iterator, Optional, Tuple

import aiohttp


class ErrorCategory(str, Enum):
    """High-level error categories for scan failures."""

    NETWORK = "network"
    TLS = "tls"
    TIMEOUT = "timeout"
    REFUSED = "refused"
    HTTP = "http"
    PARSE = "parse"
    UNKNOWN = "unknown"


class ErrorCode(str, Enum):
    """Specific error codes for detailed failure diagnostics."""

    # Connection errors
    CONN_TIMEOUT = "CONN_TIMEOUT"
    CONN_REFUSED = "CONN_REFUSED"
    CONN_RESET = "CONN_RESET"
    CONN_ABORTED = "CONN_ABORTED"

    # Network errors
    NET_UNREACHABLE = "NET_UNREACHABLE"
    NET_HOST_UNREACHABLE = "NET_HOST_UNREACHABLE"
    NET_HOST_DOWN = "NET_HOST_DOWN"

    # TLS errors
    TLS_HANDSHAKE_FAILED = "TLS_HANDSHAKE_FAILED"
    TLS_PROTOCOL_ERROR = "TLS_PROTOCOL_ERROR"
    TLS_EOF = "TLS_EOF"
    PLAIN_HTTP_NO_TLS = "PLAIN_HTTP_NO_TLS"  # Endpoint answered TLS with plain HTTP

    # HTTP/content errors
    HTTP_PAYLOAD_ERROR = "HTTP_PAYLOAD_ERROR"
    HTTP_PROTOCOL_ERROR = "HTTP_PROTOCOL_ERROR"
    MARKUP_PARSE_FAILED = "MARKUP_PARSE_FAILED"

    # General
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    CANCELLED = "CANCELLED"


# OpenSSL reasons reported when the peer answers a ClientHello with
# something that is not a TLS record (typically an HTTP response).
PLAIN_HTTP_SSL_REASONS = frozenset(
    {
        "WRONG_VERSION_NUMBER",
        "PACKET_LENGTH_TOO_LONG",
        "RECORD_LAYER_FAILURE",
        "HTTP_REQUEST",
        "UNKNOWN_PROTOCOL",
    }
)

PLAIN_HTTP_MESSAGE_HINTS = (
    "wrong version number",
    "packet length too long",
    "record layer failure",
    "http request",
    "unknown protocol",
    "server gave http response to https client",
)


class BatteryCheckError(Exception):
    """Base class for errors raised by batterycheck."""


class MarkupParseError(BatteryCheckError):
    """Raised when a device status page cannot be parsed."""


class ReportWriteError(BatteryCheckError, IOError):
    """Raised when a report file cannot be created or written."""


class ScanAborted(BatteryCheckError):
    """
    Raised when a scan stops before every address produced a result.

    Carries the statistics collected up to the point of the abort so the
    caller can still report partial progress.
    """

    def __init__(self, message: str, statistics: Any = None):
        super().__init__(message)
        self.statistics = statistics


def iter_error_chain(e: BaseException) -> Iterator[BaseException]:
    """
    Walk an exception and the errors it wraps.

    aiohttp keeps the underlying OS/SSL error in ``os_error``; Python keeps
    it in ``__cause__`` / ``__context__``.
    """
    seen = set()
    current: Optional[BaseException] = e
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = (
            getattr(current, "os_error", None)
            or current.__cause__
            or current.__context__
        )


def is_plain_http_error(e: BaseException) -> bool:
    """
    Check whether an HTTPS failure means the endpoint only speaks HTTP.

    Args:
        e: The exception raised by the HTTPS attempt

    Returns:
        True if a single retry over plain HTTP is warranted
    """
    for error in iter_error_chain(e):
        if isinstance(error, ssl.SSLError):
            reason = getattr(error, "reason", None)
            if reason and reason in PLAIN_HTTP_SSL_REASONS:
                return True
        msg = str(error).lower()
        if any(hint in msg for hint in PLAIN_HTTP_MESSAGE_HINTS):
            return True
    return False


ErrorClass = Tuple[ErrorCode, ErrorCategory]


def classify_ssl_error(e: ssl.SSLError) -> ErrorClass:
    """
    Classify an SSL error.

    Args:
        e: The SSL error to classify

    Returns:
        Tuple of (ErrorCode, ErrorCategory)
    """
    if is_plain_http_error(e):
        return ErrorCode.PLAIN_HTTP_NO_TLS, ErrorCategory.TLS
    if isinstance(e, (ssl.SSLEOFError, ssl.SSLZeroReturnError)):
        return ErrorCode.TLS_EOF, ErrorCategory.TLS

    ssl_reason = getattr(e, "reason", None)
    msg = str(e).lower()
    if "handshake" in msg or (ssl_reason and "ALERT" in ssl_reason):
        return ErrorCode.TLS_HANDSHAKE_FAILED, ErrorCategory.TLS
    return ErrorCode.TLS_PROTOCOL_ERROR, ErrorCategory.TLS


# errno -> classification for connection failures
ERRNO_CLASSIFICATION = {
    err_mod.ECONNREFUSED: (ErrorCode.CONN_REFUSED, ErrorCategory.REFUSED),
    err_mod.ECONNRESET: (ErrorCode.CONN_RESET, ErrorCategory.NETWORK),
    err_mod.ECONNABORTED: (ErrorCode.CONN_ABORTED, ErrorCategory.NETWORK),
    err_mod.ETIMEDOUT: (ErrorCode.CONN_TIMEOUT, ErrorCategory.TIMEOUT),
    err_mod.ENETUNREACH: (ErrorCode.NET_UNREACHABLE, ErrorCategory.NETWORK),
    err_mod.EHOSTUNREACH: (ErrorCode.NET_HOST_UNREACHABLE, ErrorCategory.NETWORK),
    err_mod.EHOSTDOWN: (ErrorCode.NET_HOST_DOWN, ErrorCategory.NETWORK),
}

# Fallback when an OS error carries no usable errno
MESSAGE_CLASSIFICATION = [
    (("timeout", "timed out"), ErrorCode.CONN_TIMEOUT, ErrorCategory.TIMEOUT),
    (("refused",), ErrorCode.CONN_REFUSED, ErrorCategory.REFUSED),
    (("reset",), ErrorCode.CONN_RESET, ErrorCategory.NETWORK),
    (("unreachable", "no route"), ErrorCode.NET_UNREACHABLE, ErrorCategory.NETWORK),
]


def classify_os_error(e: OSError) -> ErrorClass:
    """
    Classify an OS/network error by type, then errno, then message.

    Args:
        e: The OS error to classify

    Returns:
        Tuple of (ErrorCode, ErrorCategory)
    """
    if isinstance(e, ConnectionRefusedError):
        return ErrorCode.CONN_REFUSED, ErrorCategory.REFUSED
    if isinstance(e, ConnectionResetError):
        return ErrorCode.CONN_RESET, ErrorCategory.NETWORK
    if isinstance(e, ConnectionAbortedError):
        return ErrorCode.CONN_ABORTED, ErrorCategory.NETWORK
    if isinstance(e, TimeoutError):
        return ErrorCode.CONN_TIMEOUT, ErrorCategory.TIMEOUT

    errno_val = getattr(e, "errno", None)
    if errno_val in ERRNO_CLASSIFICATION:
        return ERRNO_CLASSIFICATION[errno_val]

    msg = str(e).lower()
    for patterns, code, category in MESSAGE_CLASSIFICATION:
        if any(p in msg for p in patterns):
            return code, category

    return ErrorCode.UNKNOWN_ERROR, ErrorCategory.UNKNOWN


def classify_exception(e: BaseException) -> ErrorClass:
    """
    Classify any exception raised while fetching a device page.

    aiohttp wrappers are unwrapped to the OS/SSL error they carry so the
    resulting code describes the actual failure.

    Args:
        e: The exception to classify

    Returns:
        Tuple of (ErrorCode, ErrorCategory)
    """
    if isinstance(e, MarkupParseError):
        return ErrorCode.MARKUP_PARSE_FAILED, ErrorCategory.PARSE

    if isinstance(e, asyncio.CancelledError):
        return ErrorCode.CANCELLED, ErrorCategory.UNKNOWN

    # aiohttp.ServerTimeoutError is also an asyncio.TimeoutError
    if isinstance(e, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
        return ErrorCode.CONN_TIMEOUT, ErrorCategory.TIMEOUT

    # SSL errors first; ssl.SSLError is a subclass of OSError
    for error in iter_error_chain(e):
        if isinstance(error, ssl.SSLError) and not isinstance(error, aiohttp.ClientError):
            return classify_ssl_error(error)
    if isinstance(e, aiohttp.ClientSSLError) or is_plain_http_error(e):
        return classify_ssl_error(ssl.SSLError(str(e)))

    if isinstance(e, aiohttp.ClientConnectorError):
        return classify_os_error(e.os_error)

    if isinstance(e, aiohttp.ClientPayloadError):
        return ErrorCode.HTTP_PAYLOAD_ERROR, ErrorCategory.HTTP

    if isinstance(e, aiohttp.ClientResponseError):
        return ErrorCode.HTTP_PROTOCOL_ERROR, ErrorCategory.HTTP

    if isinstance(e, OSError):
        return classify_os_error(e)

    if isinstance(e, aiohttp.ClientError):
        return ErrorCode.HTTP_PROTOCOL_ERROR, ErrorCategory.HTTP

    return ErrorCode.UNKNOWN_ERROR, ErrorCategory.UNKNOWN
