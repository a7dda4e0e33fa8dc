"""Big-endian parsing from, and serialization to, lists of byte buffers."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


def _check_int_size(size: int) -> None:
    if size <= 0:
        raise ValueError(f"integer size must be positive, not {size}")


class _BufferList:
    """A queue of immutable byte segments that can be consumed from the front."""

    def __init__(self, buffers: Iterable[BytesLike]) -> None:
        self._segments: deque[memoryview] = deque()
        for buf in buffers:
            data = bytes(buf)
            if data:
                self._segments.append(memoryview(data))
        self._size = sum(len(s) for s in self._segments)

    @property
    def size(self) -> int:
        return self._size

    def peek(self) -> memoryview:
        if not self._segments:
            raise RuntimeError("peek on empty BufferList")
        return self._segments[0]

    def remove_prefix(self, n: int) -> None:
        while n > 0 and self._segments:
            front = self._segments[0]
            taken = min(n, len(front))
            if taken == len(front):
                self._segments.popleft()
            else:
                self._segments[0] = front[taken:]
            n -= taken
            self._size -= taken

    def truncate(self, length: int) -> None:
        if self._size <= length:
            return
        kept: deque[memoryview] = deque()
        remaining = length
        for segment in self._segments:
            if remaining == 0:
                break
            if len(segment) <= remaining:
                kept.append(segment)
                remaining -= len(segment)
            else:
                kept.append(segment[:remaining])
                remaining = 0
        self._segments = kept
        self._size = length

    def dump_all(self) -> list[bytes]:
        out = [bytes(s) for s in self._segments]
        self._segments.clear()
        self._size = 0
        return out

    def views(self) -> list[memoryview]:
        return list(self._segments)


class Parser:
    """Reads big-endian fields from a sequence of buffers.

    A read that runs past the end sets the error flag; once set, reads
    return zero-valued results and consume nothing.
    """

    def __init__(self, buffers: BytesLike | Iterable[BytesLike]) -> None:
        if isinstance(buffers, (bytes, bytearray, memoryview)):
            buffers = [buffers]
        self._input = _BufferList(buffers)
        self._error = False

    def has_error(self) -> bool:
        return self._error

    def set_error(self) -> None:
        self._error = True

    def remove_prefix(self, n: int) -> None:
        """Discard up to ``n`` bytes from the front."""
        self._input.remove_prefix(n)

    def truncate(self, length: int) -> None:
        """Keep only the first ``length`` unread bytes."""
        self._input.truncate(length)

    def all_remaining(self) -> list[bytes]:
        """Take every unread segment."""
        return self._input.dump_all()

    def buffer(self) -> list[memoryview]:
        """Views of the unread segments, without consuming them."""
        return self._input.views()

    def _usable(self, size: int) -> bool:
        if size > self._input.size:
            self._error = True
        return not self._error

    def _take(self, size: int) -> bytes:
        out = bytearray()
        while len(out) < size:
            chunk = self._input.peek()[: size - len(out)]
            out += chunk
            self._input.remove_prefix(len(chunk))
        return bytes(out)

    def string(self, size: int) -> bytes:
        """Read ``size`` raw bytes (zero bytes of that length on error)."""
        if not self._usable(size):
            return bytes(size)
        return self._take(size)

    def concatenate_all_remaining(self) -> bytes:
        """Take every unread byte as one string."""
        return b"".join(self.all_remaining())

    def integer(self, size: int) -> int:
        """Read an unsigned big-endian integer of ``size`` bytes (0 on error)."""
        _check_int_size(size)
        if not self._usable(size):
            return 0
        return int.from_bytes(self._take(size), "big")


class Serializer:
    """Writes big-endian fields and buffers into a list of segments."""

    def __init__(self) -> None:
        self._output: list[bytes] = []
        self._pending = bytearray()

    def _flush(self) -> None:
        if self._pending:
            self._output.append(bytes(self._pending))
            self._pending.clear()

    def integer(self, value: int, size: int) -> None:
        """Append ``value`` as an unsigned big-endian integer of ``size`` bytes."""
        _check_int_size(size)
        if not 0 <= value < 1 << (8 * size):
            raise ValueError(f"{value} does not fit in {size} unsigned bytes")
        self._pending += value.to_bytes(size, "big")

    def buffer(self, buf: BytesLike | Iterable[BytesLike]) -> None:
        """Append a buffer, or each of an iterable of buffers, as its own segment."""
        if not isinstance(buf, (bytes, bytearray, memoryview)):
            for piece in buf:
                self.buffer(piece)
            return
        data = bytes(buf)
        if data:
            self._flush()
            self._output.append(data)

    def finish(self) -> list[bytes]:
        """Return everything written and start afresh."""
        self._flush()
        output, self._output = self._output, []
        return output