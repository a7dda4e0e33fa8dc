"""TCP segments: a TCPMessage plus ports and checksum, as on the wire."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from minnownet.checksum import InternetChecksum
from minnownet.helpers import pretty_print
from minnownet.parser import Parser, Serializer
from minnownet.tcp_message import TCPMessage, UserDatagramInfo

_ACK = 0b0001_0000
_RST = 0b0000_0100
_SYN = 0b0000_0010
_FIN = 0b0000_0001


@dataclass
class TCPSegment:
    """A complete TCP segment (options are skipped when parsing)."""

    HEADER_LENGTH: ClassVar[int] = 20

    message: TCPMessage = field(default_factory=TCPMessage)
    udinfo: UserDatagramInfo = field(default_factory=UserDatagramInfo)

    def parse(self, parser: Parser, pseudo_checksum: int) -> None:
        """Verify the checksum against the pseudo-header sum, then read the segment."""
        check = InternetChecksum(pseudo_checksum)
        check.add(parser.buffer())
        if check.value():
            parser.set_error()
            return

        sender = self.message.sender
        receiver = self.message.receiver

        self.udinfo.src_port = parser.integer(2)
        self.udinfo.dst_port = parser.integer(2)
        sender.seqno = parser.integer(4)
        receiver.ackno = parser.integer(4)

        data_offset = parser.integer(1) >> 4
        flags = parser.integer(1)
        if not flags & _ACK:
            receiver.ackno = None
        sender.rst = receiver.rst = bool(flags & _RST)
        sender.syn = bool(flags & _SYN)
        sender.fin = bool(flags & _FIN)

        receiver.window_size = parser.integer(2)
        self.udinfo.cksum = parser.integer(2)
        parser.integer(2)  # urgent pointer

        if data_offset < self.HEADER_LENGTH >> 2:
            parser.set_error()
            return
        parser.remove_prefix(data_offset * 4 - self.HEADER_LENGTH)
        sender.payload = parser.concatenate_all_remaining()

    def serialize(self, serializer: Serializer) -> None:
        sender = self.message.sender
        receiver = self.message.receiver
        serializer.integer(self.udinfo.src_port, 2)
        serializer.integer(self.udinfo.dst_port, 2)
        serializer.integer(sender.seqno & 0xFFFFFFFF, 4)
        ackno = receiver.ackno if receiver.ackno is not None else 0
        serializer.integer(ackno & 0xFFFFFFFF, 4)
        serializer.integer((self.HEADER_LENGTH >> 2) << 4, 1)
        flags = (
            (_ACK if receiver.ackno is not None else 0)
            | (_RST if sender.rst or receiver.rst else 0)
            | (_SYN if sender.syn else 0)
            | (_FIN if sender.fin else 0)
        )
        serializer.integer(flags, 1)
        serializer.integer(receiver.window_size, 2)
        serializer.integer(self.udinfo.cksum, 2)
        serializer.integer(0, 2)  # urgent pointer
        serializer.buffer(sender.payload)

    def compute_checksum(self, pseudo_checksum: int) -> None:
        """Set the checksum, including the datagram layer's pseudo-header sum."""
        self.udinfo.cksum = 0
        serializer = Serializer()
        self.serialize(serializer)
        check = InternetChecksum(pseudo_checksum)
        check.add(serializer.finish())
        self.udinfo.cksum = check.value()

    def __str__(self) -> str:
        sender = self.message.sender
        receiver = self.message.receiver
        parts = ["TCP", f"seqno={sender.seqno & 0xFFFFFFFF}"]
        if sender.syn:
            parts.append("+SYN")
        if sender.payload:
            parts.append(f'payload="{pretty_print(sender.payload)}"')
        if sender.fin:
            parts.append("+FIN")
        if sender.rst or receiver.rst:
            parts.append("+RST")
        if receiver.ackno is not None:
            parts.append(f"ACK<{receiver.ackno & 0xFFFFFFFF}>")
        parts.append(f"winsize={receiver.window_size}")
        parts.append(f"src={self.udinfo.src_port} dst={self.udinfo.dst_port}")
        return " ".join(parts)