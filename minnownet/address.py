"""Socket addresses and name resolution."""

from __future__ import annotations

import ipaddress
import socket
from dataclasses import dataclass
from typing import Any

from minnownet.errors import TaggedError

_INTERNET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _normalize(family: int, sockaddr: Any) -> Any:
    if isinstance(sockaddr, list):
        sockaddr = tuple(sockaddr)
    if family == socket.AF_INET:
        if not isinstance(sockaddr, tuple) or len(sockaddr) != 2:
            raise ValueError("invalid sockaddr for AF_INET")
        return (str(sockaddr[0]), int(sockaddr[1]))
    if family == socket.AF_INET6:
        if not isinstance(sockaddr, tuple) or not 2 <= len(sockaddr) <= 4:
            raise ValueError("invalid sockaddr for AF_INET6")
        host, port, *rest = sockaddr
        rest += [0] * (2 - len(rest))
        return (str(host), int(port), int(rest[0]), int(rest[1]))
    return sockaddr


@dataclass(frozen=True)
class Address:
    """A socket address: an address family and Python's sockaddr value for it."""

    family: int
    sockaddr: Any

    @classmethod
    def _lookup(cls, node: str, service: str, flags: int) -> Address:
        try:
            results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
        except socket.gaierror as exc:
            raise TaggedError(f"getaddrinfo({node}, {service})", exc.errno, exc.strerror) from exc
        if not results:
            raise RuntimeError("getaddrinfo returned successfully but with no results")
        family, _, _, _, sockaddr = results[0]
        return cls.from_sockaddr(family, sockaddr)

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Resolve a host name and a service name (or number) to an IPv4 address."""
        return cls._lookup(hostname, service, socket.AI_ALL)

    @classmethod
    def from_ip_port(cls, ip: str, port: int = 0) -> Address:
        """An address from a dotted-quad string and a port, without name lookups."""
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")
        return cls._lookup(ip, str(port), socket.AI_NUMERICHOST | socket.AI_NUMERICSERV)

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """An IPv4 address (port 0) from its 32-bit numeric value."""
        if not 0 <= ip_address <= 0xFFFFFFFF:
            raise ValueError(f"not a 32-bit address: {ip_address}")
        return cls(socket.AF_INET, (str(ipaddress.IPv4Address(ip_address)), 0))

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: Any) -> Address:
        """An address from a family and the sockaddr value the socket module uses."""
        return cls(family, _normalize(family, sockaddr))

    def ip_port(self) -> tuple[str, int]:
        """The numeric host and the port."""
        if self.family not in _INTERNET_FAMILIES:
            raise RuntimeError("Address.ip_port() called on non-Internet address")
        try:
            host, port = socket.getnameinfo(self.sockaddr, socket.NI_NUMERICHOST | socket.NI_NUMERICSERV)
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno, exc.strerror) from exc
        return host, int(port)

    def ip(self) -> str:
        return self.ip_port()[0]

    def port(self) -> int:
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host order."""
        if self.family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int(ipaddress.IPv4Address(self.sockaddr[0]))

    def to_string(self) -> str:
        """``ip:port`` for Internet addresses."""
        if self.family in _INTERNET_FAMILIES:
            host, port = self.ip_port()
            return f"{host}:{port}"
        return "(non-Internet address)"

    def __str__(self) -> str:
        return self.to_string()