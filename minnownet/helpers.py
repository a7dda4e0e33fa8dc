"""Helpers for serializing, parsing and printing wire objects."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from typing import Any, Protocol, Union

from minnownet.ipv4 import IPv4Datagram
from minnownet.parser import Parser, Serializer

BytesLike = Union[bytes, bytearray, memoryview]


class _Serializable(Protocol):
    def serialize(self, serializer: Serializer) -> None: ...


class _Parsable(Protocol):
    def parse(self, parser: Parser, *args: Any) -> None: ...


def serialize(obj: _Serializable) -> list[bytes]:
    """Serialize ``obj`` into a list of byte segments."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.finish()


def parse(obj: _Parsable, buffers: BytesLike | Iterable[BytesLike], *args: Any) -> bool:
    """Parse ``buffers`` into ``obj``; return whether parsing succeeded."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()


def concat(buffers: Iterable[BytesLike]) -> bytes:
    """Join a sequence of buffers into one byte string."""
    return b"".join(bytes(b) for b in buffers)


def pretty_print(data: BytesLike | str, max_length: int = 32) -> str:
    """Escape unprintable bytes (and quotes) and cut the result near ``max_length``."""
    if isinstance(data, str):
        data = data.encode()
    pieces: list[str] = []
    length = 0
    truncated = False
    for byte in bytes(data):
        if length >= max_length:
            truncated = True
            break
        if 0x20 <= byte < 0x7F and byte != 0x22:
            piece = chr(byte)
        else:
            piece = f"\\x{byte:02x}"
        pieces.append(piece)
        length += len(piece)
    result = "".join(pieces)
    if truncated:
        result = result[:-3] + "..." if len(result) >= 3 else result + "..."
    return result


def clone(datagram: IPv4Datagram) -> IPv4Datagram:
    """An independent copy of a datagram."""
    return IPv4Datagram(dataclasses.replace(datagram.header), [bytes(p) for p in datagram.payload])