"""The Internet (ones'-complement) checksum."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

_MASK32 = 0xFFFFFFFF


class InternetChecksum:
    """Accumulates data and yields its 16-bit Internet checksum."""

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & _MASK32
        self._odd = False

    def add(self, data: BytesLike | Iterable[BytesLike]) -> None:
        """Add a bytes-like object, or each of an iterable of them, in order."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            for piece in data:
                self.add(piece)
            return

        view = bytes(data)
        if not view:
            return
        if self._odd:
            self._sum += view[0]
            view = view[1:]
            self._odd = False
        high = sum(view[0::2])
        low = sum(view[1::2])
        self._sum = (self._sum + (high << 8) + low) & _MASK32
        self._odd = len(view) % 2 == 1

    def value(self) -> int:
        """The checksum of everything added so far."""
        total = self._sum
        while total > 0xFFFF:
            total = (total >> 16) + (total & 0xFFFF)
        return ~total & 0xFFFF