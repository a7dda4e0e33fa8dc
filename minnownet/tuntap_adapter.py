"""TCP over IPv4 through a TUN device."""

from __future__ import annotations

from typing import Optional

from minnownet.file_descriptor import FileDescriptor
from minnownet.helpers import parse, serialize
from minnownet.ipv4 import IPv4Datagram, IPv4Header
from minnownet.tcp_config import FdAdapterConfig
from minnownet.tcp_message import TCPMessage
from minnownet.tcp_over_ip import TCPOverIPv4Adapter
from minnownet.tcp_segment import TCPSegment


class TCPOverIPv4OverTunFdAdapter(TCPOverIPv4Adapter):
    """Reads and writes IPv4 datagrams carrying TCP on a TUN device (or any datagram fd)."""

    def __init__(self, tun: FileDescriptor, config: Optional[FdAdapterConfig] = None) -> None:
        super().__init__(config)
        self._tun = tun

    @property
    def tun(self) -> FileDescriptor:
        return self._tun

    def read(self) -> Optional[TCPMessage]:
        """Read one datagram; the TCP message in it if it belongs to this connection."""
        buffers = self._tun.read_vectored([IPv4Header.LENGTH, TCPSegment.HEADER_LENGTH, 0])
        datagram = IPv4Datagram()
        if parse(datagram, buffers):
            return self.unwrap_tcp_in_ip(datagram)
        return None

    def write(self, message: TCPMessage) -> None:
        """Wrap ``message`` in an IPv4 datagram and write it to the device."""
        self._tun.write(serialize(self.wrap_tcp_in_ip(message)))

    def fd(self) -> FileDescriptor:
        """The underlying file descriptor."""
        return self._tun