"""
Address list parsing and CIDR expansion.
"""

import ipaddress
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# Largest CIDR block expanded into the work queue (a /16)
MAX_CIDR_ADDRESSES = 65536


@dataclass
class AddressList:
    """Validated scan population plus the entries that were rejected."""

    addresses: List[str] = field(default_factory=list)
    invalid: List[str] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return len(self.addresses)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid)


class InputParser:
    """
    Produces the ordered list of addresses to scan.

    Two sources are supported:
    - A text file with one address per line (optionally with :port)
    - A CIDR block, expanded into every address it contains
    """

    @staticmethod
    def split_host_port(address: str) -> Tuple[str, Optional[int]]:
        """
        Split an address into host and optional port.

        Accepts ``1.2.3.4``, ``1.2.3.4:8443``, ``2001:db8::1`` and
        ``[2001:db8::1]:8443``.

        Args:
            address: Address string (already trimmed)

        Returns:
            Tuple of (host, port); port is None when absent

        Raises:
            ValueError: If the port suffix is not a valid port number
        """
        # Bare IPv4/IPv6 literal, no port
        try:
            ipaddress.ip_address(address)
            return address, None
        except ValueError:
            pass

        if address.startswith("["):
            host, bracket, rest = address[1:].partition("]")
            if not bracket:
                return address, None
            port_text = rest[1:] if rest.startswith(":") else rest
        else:
            host, colon, port_text = address.rpartition(":")
            if not colon:
                return address, None

        if not port_text:
            return host, None
        if not port_text.isdigit() or not 1 <= int(port_text) <= 65535:
            raise ValueError(f"Invalid port in address: {address}")
        return host, int(port_text)

    @staticmethod
    def normalize_address(entry: str) -> Optional[str]:
        """
        Validate one address entry.

        The port suffix is only stripped for validation; the returned
        address keeps it so the device is contacted on that port.

        Args:
            entry: Raw entry, possibly with surrounding whitespace

        Returns:
            The trimmed address if its host part is an IP literal, else None
        """
        address = entry.strip()
        if not address:
            return None
        try:
            host, _ = InputParser.split_host_port(address)
            ipaddress.ip_address(host)
        except ValueError:
            return None
        return address

    @staticmethod
    def parse_address_file(file_path: str) -> AddressList:
        """
        Parse file containing device addresses.

        Blank lines and lines starting with '#' are skipped and counted
        neither as valid nor as invalid. Every other line that is not a
        valid address is counted as invalid.

        Args:
            file_path: Path to file with one address per line

        Returns:
            AddressList with valid addresses in file order
        """
        result = AddressList()
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Address file not found: {file_path}")

        with open(path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()

                # Skip empty lines and comments
                if not line or line.startswith("#"):
                    continue

                address = InputParser.normalize_address(line)
                if address is None:
                    logger.warning(f"Invalid address at line {line_num}: {line}")
                    result.invalid.append(line)
                else:
                    result.addresses.append(address)

        return result

    @staticmethod
    def parse_cidr(cidr: str) -> AddressList:
        """
        Expand CIDR notation into every address of the block.

        Network and broadcast addresses are included.

        Args:
            cidr: CIDR notation (e.g., "192.168.1.0/24")

        Returns:
            AddressList of all addresses in the block

        Raises:
            ValueError: If the notation is malformed or the block holds more
                than MAX_CIDR_ADDRESSES addresses
        """
        try:
            network = ipaddress.ip_network(cidr.strip(), strict=False)
        except ValueError as e:
            raise ValueError(f"Invalid CIDR notation: {cidr}") from e

        if network.num_addresses > MAX_CIDR_ADDRESSES:
            raise ValueError(
                f"CIDR block {cidr} too large: {network.num_addresses} addresses "
                f"(limit {MAX_CIDR_ADDRESSES})"
            )

        return AddressList(addresses=[str(ip) for ip in network])
