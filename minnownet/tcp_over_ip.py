"""Conversion between TCP messages and IPv4 datagrams carrying TCP segments."""

from __future__ import annotations

import ipaddress
from typing import Optional

from minnownet.address import Address
from minnownet.helpers import parse, serialize
from minnownet.ipv4 import IPv4Datagram, IPv4Header
from minnownet.tcp_config import FdAdapterConfig
from minnownet.tcp_message import TCPMessage
from minnownet.tcp_segment import TCPSegment


class FdAdapterBase:
    """Configuration and listening state shared by datagram adapters."""

    def __init__(self, config: Optional[FdAdapterConfig] = None) -> None:
        self.config = config if config is not None else FdAdapterConfig()
        self.listening = False
        self.elapsed_ms = 0

    def set_listening(self, listening: bool) -> None:
        """Mark whether the attached TCP peer is waiting for a new connection."""
        self.listening = listening

    def tick(self, ms_since_last_tick: int) -> None:
        """Called periodically as time passes; keeps a running total of elapsed time."""
        self.elapsed_ms += ms_since_last_tick


def _dotted(numeric: int) -> str:
    return str(ipaddress.IPv4Address(numeric & 0xFFFFFFFF))


class TCPOverIPv4Adapter(FdAdapterBase):
    """Wraps TCP messages in IPv4 datagrams and unwraps the ones for this connection."""

    def unwrap_tcp_in_ip(self, datagram: IPv4Datagram) -> Optional[TCPMessage]:
        """The TCP message inside ``datagram``, or ``None`` if it is invalid or unrelated.

        While listening, a SYN (without RST) fixes the connection's addresses
        and ports and ends listening.
        """
        header = datagram.header
        config = self.config

        if not self.listening and header.dst != config.source.ipv4_numeric():
            return None
        if not self.listening and header.src != config.destination.ipv4_numeric():
            return None
        if header.proto != IPv4Header.PROTO_TCP:
            return None

        segment = TCPSegment()
        if not parse(segment, datagram.payload, header.pseudo_checksum()):
            return None

        if segment.udinfo.dst_port != config.source.port():
            return None

        if self.listening:
            sender = segment.message.sender
            if not (sender.syn and not sender.rst):
                return None
            config.source = Address.from_ip_port(_dotted(header.dst), config.source.port())
            config.destination = Address.from_ip_port(_dotted(header.src), segment.udinfo.src_port)
            self.set_listening(False)

        if segment.udinfo.src_port != config.destination.port():
            return None

        return segment.message

    def wrap_tcp_in_ip(self, message: TCPMessage) -> IPv4Datagram:
        """An IPv4 datagram carrying ``message`` with this connection's addresses and ports."""
        config = self.config
        segment = TCPSegment(message=TCPMessage(message.sender, message.receiver))
        segment.udinfo.src_port = config.source.port()
        segment.udinfo.dst_port = config.destination.port()

        datagram = IPv4Datagram()
        datagram.header.src = config.source.ipv4_numeric()
        datagram.header.dst = config.destination.ipv4_numeric()
        datagram.header.len = (
            datagram.header.hlen * 4 + TCPSegment.HEADER_LENGTH + len(message.sender.payload)
        )

        segment.compute_checksum(datagram.header.pseudo_checksum())
        datagram.header.compute_checksum()
        datagram.payload = serialize(segment)
        return datagram