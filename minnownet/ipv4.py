"""IPv4 datagram header and datagram (IP options are carried but not interpreted)."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import ClassVar

from minnownet.checksum import InternetChecksum
from minnownet.parser import Parser, Serializer


@dataclass
class IPv4Header:
    """The fixed 20-byte part of an IPv4 header."""

    LENGTH: ClassVar[int] = 20
    DEFAULT_TTL: ClassVar[int] = 128
    PROTO_TCP: ClassVar[int] = 6

    ver: int = 4
    hlen: int = 5
    tos: int = 0
    len: int = 0
    id: int = 0
    df: bool = True
    mf: bool = False
    offset: int = 0
    ttl: int = 128
    proto: int = 6
    cksum: int = 0
    src: int = 0
    dst: int = 0

    def payload_length(self) -> int:
        """Total length minus header length."""
        return (self.len - 4 * self.hlen) & 0xFFFF

    def pseudo_checksum(self) -> int:
        """The pseudo-header's contribution to an encapsulated TCP checksum."""
        total = (self.src >> 16) + (self.src & 0xFFFF)
        total += (self.dst >> 16) + (self.dst & 0xFFFF)
        total += self.proto
        total += self.payload_length()
        return total & 0xFFFFFFFF

    def compute_checksum(self) -> None:
        """Set ``cksum`` to the correct checksum over the header."""
        self.cksum = 0
        serializer = Serializer()
        self.serialize(serializer)
        check = InternetChecksum()
        check.add(serializer.finish())
        self.cksum = check.value()

    def parse(self, parser: Parser) -> None:
        """Read the header, skip any options, and verify version, length and checksum."""
        first_byte = parser.integer(1)
        self.ver = first_byte >> 4
        self.hlen = first_byte & 0x0F
        self.tos = parser.integer(1)
        self.len = parser.integer(2)
        self.id = parser.integer(2)

        fo_val = parser.integer(2)
        self.df = bool(fo_val & 0x4000)
        self.mf = bool(fo_val & 0x2000)
        self.offset = fo_val & 0x1FFF

        self.ttl = parser.integer(1)
        self.proto = parser.integer(1)
        self.cksum = parser.integer(2)
        self.src = parser.integer(4)
        self.dst = parser.integer(4)

        if self.ver != 4 or self.hlen < 5:
            parser.set_error()
        if parser.has_error():
            return

        parser.remove_prefix(self.hlen * 4 - self.LENGTH)

        given = self.cksum
        self.compute_checksum()
        if self.cksum != given:
            parser.set_error()

    def serialize(self, serializer: Serializer) -> None:
        """Write the header as it stands (the checksum is not recomputed)."""
        if self.ver != 4:
            raise ValueError("wrong IP version")
        serializer.integer(((self.ver << 4) | (self.hlen & 0x0F)) & 0xFF, 1)
        serializer.integer(self.tos & 0xFF, 1)
        serializer.integer(self.len & 0xFFFF, 2)
        serializer.integer(self.id & 0xFFFF, 2)
        fo_val = (0x4000 if self.df else 0) | (0x2000 if self.mf else 0) | (self.offset & 0x1FFF)
        serializer.integer(fo_val, 2)
        serializer.integer(self.ttl & 0xFF, 1)
        serializer.integer(self.proto & 0xFF, 1)
        serializer.integer(self.cksum & 0xFFFF, 2)
        serializer.integer(self.src & 0xFFFFFFFF, 4)
        serializer.integer(self.dst & 0xFFFFFFFF, 4)

    def __str__(self) -> str:
        src = ipaddress.IPv4Address(self.src & 0xFFFFFFFF)
        dst = ipaddress.IPv4Address(self.dst & 0xFFFFFFFF)
        return f"IPv{self.ver:x} len={self.len} proto={self.proto} ttl={self.ttl} src={src} dst={dst}"


@dataclass
class IPv4Datagram:
    """An IPv4 header followed by its payload segments."""

    header: IPv4Header = field(default_factory=IPv4Header)
    payload: list[bytes] = field(default_factory=list)

    def parse(self, parser: Parser) -> None:
        """Read the header, then take exactly the payload it announces."""
        self.header.parse(parser)
        parser.truncate(self.header.payload_length())
        self.payload = parser.all_remaining()

    def serialize(self, serializer: Serializer) -> None:
        self.header.serialize(serializer)
        serializer.buffer(self.payload)


InternetDatagram = IPv4Datagram