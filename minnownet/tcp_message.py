"""The messages exchanged between TCP endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TCPSenderMessage:
    """What a TCP sender tells its receiver.

    ``seqno`` is the raw 32-bit sequence number of the SYN (if set) or of the
    first payload byte.
    """

    seqno: int = 0
    syn: bool = False
    payload: bytes = b""
    fin: bool = False
    rst: bool = False

    def sequence_length(self) -> int:
        """How many sequence numbers this message occupies."""
        return int(self.syn) + len(self.payload) + int(self.fin)


@dataclass
class TCPReceiverMessage:
    """What a TCP receiver tells its sender.

    ``ackno`` is the next raw 32-bit sequence number needed, or ``None`` before
    the initial sequence number is known.
    """

    ackno: Optional[int] = None
    window_size: int = 0
    rst: bool = False


@dataclass
class UserDatagramInfo:
    """Ports and checksum: the UDP-like part of a TCP header."""

    src_port: int = 0
    dst_port: int = 0
    cksum: int = 0


@dataclass
class TCPMessage:
    """A full message between TCP endpoints, without ports or checksum."""

    sender: TCPSenderMessage = field(default_factory=TCPSenderMessage)
    receiver: TCPReceiverMessage = field(default_factory=TCPReceiverMessage)