"""
Device status page fetching and battery field extraction.
"""

import asyncio
import logging
import ssl
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import aiohttp

from .config import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, ScanConfig
from .errors import MarkupParseError, classify_exception, is_plain_http_error
from .extractor import extract_fields
from .input_parser import InputParser

logger = logging.getLogger(__name__)

# Health sentinels
HEALTH_GOOD = "Good"
HEALTH_UNKNOWN = "Unknown"

# Failures that end an attempt to reach a device
FETCH_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


class ScanOutcome(str, Enum):
    """How the scan of one address ended."""

    SUCCESS = "success"
    UNREACHABLE = "unreachable"
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True)
class ScanResult:
    """Result from scanning a single device."""

    address: str
    health: str
    temperature: str
    outcome: ScanOutcome = ScanOutcome.SUCCESS
    scheme: Optional[str] = None  # Scheme that answered: "https" or "http"
    error: Optional[str] = None
    error_code: Optional[str] = None  # e.g., "CONN_REFUSED", "MARKUP_PARSE_FAILED"
    error_category: Optional[str] = None  # e.g., "refused", "tls", "parse"

    @classmethod
    def unknown(
        cls,
        address: str,
        outcome: ScanOutcome = ScanOutcome.UNREACHABLE,
        error: Optional[str] = None,
        error_code: Optional[str] = None,
        error_category: Optional[str] = None,
        scheme: Optional[str] = None,
    ) -> "ScanResult":
        """Build the "Unknown" sentinel result for a device with no usable page."""
        return cls(
            address=address,
            health=HEALTH_UNKNOWN,
            temperature="",
            outcome=outcome,
            scheme=scheme,
            error=error,
            error_code=error_code,
            error_category=error_category,
        )


def build_url(scheme: str, address: str) -> str:
    """
    Build the status page URL for an address.

    Args:
        scheme: "https" or "http"
        address: Validated address, optionally with a port

    Returns:
        URL of the device root page
    """
    host, port = InputParser.split_host_port(address)
    if ":" in host:
        host = f"[{host}]"
    netloc = f"{host}:{port}" if port else host
    return f"{scheme}://{netloc}/"


class DeviceScanner:
    """
    Fetches a device status page and extracts its battery fields.

    Sessions are created per worker with create_session(); the scanner
    itself holds only immutable settings and can be shared.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        """
        Initialize device scanner.

        Args:
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header to send
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = self._create_ssl_context()

    @classmethod
    def from_config(cls, config: ScanConfig) -> "DeviceScanner":
        return cls(timeout=config.timeout, user_agent=config.user_agent)

    def _create_ssl_context(self) -> ssl.SSLContext:
        """
        Create SSL context for device requests.

        Returns:
            Configured SSL context
        """
        context = ssl.create_default_context()
        # Phones present self-signed certificates
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        # Older firmware only speaks TLS 1.0/1.1
        context.minimum_version = ssl.TLSVersion.MINIMUM_SUPPORTED
        context.maximum_version = ssl.TLSVersion.MAXIMUM_SUPPORTED
        return context

    def create_session(self) -> aiohttp.ClientSession:
        """
        Create an HTTP client session for one worker.

        Returns:
            Session with certificate validation disabled and the request
            timeout applied
        """
        connector = aiohttp.TCPConnector(ssl=self._ssl_context)
        return aiohttp.ClientSession(
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={"User-Agent": self.user_agent},
        )

    async def _get(self, session: aiohttp.ClientSession, url: str) -> bytes:
        """GET a URL and return the full body; the response is always released."""
        async with session.get(url) as response:
            logger.debug(f"{url} answered {response.status}")
            return await response.read()

    async def fetch_page(
        self, session: aiohttp.ClientSession, address: str
    ) -> Tuple[str, bytes]:
        """
        Fetch the device root page, falling back to HTTP once.

        The HTTPS attempt is retried over plain HTTP only when it failed
        because the endpoint answered with plain HTTP. Any other failure
        is raised unchanged.

        Args:
            session: Worker-owned HTTP session
            address: Validated address, optionally with a port

        Returns:
            Tuple of (scheme that answered, response body)
        """
        try:
            return "https", await self._get(session, build_url("https", address))
        except FETCH_ERRORS as e:
            if not is_plain_http_error(e):
                raise
            logger.debug(f"{address} - Fallback to HTTP")

        return "http", await self._get(session, build_url("http", address))

    async def scan_address(
        self,
        session: aiohttp.ClientSession,
        address: str,
    ) -> ScanResult:
        """
        Scan a single device.

        Never raises for per-device problems: an unreachable device or an
        unparseable page yields the "Unknown" sentinel result.

        Args:
            session: Worker-owned HTTP session
            address: Validated address, optionally with a port

        Returns:
            ScanResult for the address
        """
        try:
            scheme, body = await self.fetch_page(session, address)
        except FETCH_ERRORS as e:
            error_code, category = classify_exception(e)
            logger.debug(f"Cannot connect to {address}: {e!r}")
            return ScanResult.unknown(
                address,
                ScanOutcome.UNREACHABLE,
                error=str(e) or type(e).__name__,
                error_code=error_code.value,
                error_category=category.value,
            )

        logger.debug(f"Got response from {address} over {scheme}")

        try:
            fields = await asyncio.to_thread(extract_fields, body)
        except MarkupParseError as e:
            error_code, category = classify_exception(e)
            logger.warning(f"Unparseable status page from {address}: {e}")
            return ScanResult.unknown(
                address,
                ScanOutcome.PARSE_ERROR,
                error=str(e),
                error_code=error_code.value,
                error_category=category.value,
                scheme=scheme,
            )

        return ScanResult(
            address=address,
            health=fields.get("health", ""),
            temperature=fields.get("temperature", ""),
            scheme=scheme,
        )
