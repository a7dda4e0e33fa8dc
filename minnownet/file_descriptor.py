"""Reference-counted handles to kernel file descriptors."""

from __future__ import annotations

import errno
import os
import sys
from collections.abc import Iterable
from typing import Callable, TypeVar, Union

from minnownet.errors import UnixError

BytesLike = Union[bytes, bytearray, memoryview]

T = TypeVar("T")

_RETRY_LATER = (errno.EAGAIN, errno.EINPROGRESS)


class _FDWrapper:
    """The shared state behind one kernel file descriptor; closes it when dropped."""

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise ValueError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0
        try:
            self.non_blocking = not os.get_blocking(fd)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno) from exc

    def call(self, attempt: str, func: Callable[..., T], *args: object) -> T | int:
        """Run an OS call; a would-block failure on a non-blocking fd yields 0."""
        try:
            return func(*args)
        except OSError as exc:
            if self.non_blocking and exc.errno in _RETRY_LATER:
                return 0
            raise UnixError(attempt, exc.errno) from exc

    def close(self) -> None:
        self.call("close", os.close, self.fd)
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finalizer
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor; duplicates share its state and its lifetime."""

    READ_BUFFER_SIZE = 16384

    def __init__(self, fd: int) -> None:
        self._wrapper = _FDWrapper(fd)

    # shared-state accessors

    @property
    def fd_num(self) -> int:
        return self._wrapper.fd

    @property
    def eof(self) -> bool:
        return self._wrapper.eof

    @property
    def closed(self) -> bool:
        return self._wrapper.closed

    @property
    def read_count(self) -> int:
        return self._wrapper.read_count

    @property
    def write_count(self) -> int:
        return self._wrapper.write_count

    @property
    def non_blocking(self) -> bool:
        return self._wrapper.non_blocking

    def fileno(self) -> int:
        return self._wrapper.fd

    # hooks for subclasses

    def _set_eof(self) -> None:
        self._wrapper.eof = True

    def _register_read(self) -> None:
        self._wrapper.read_count += 1

    def _register_write(self) -> None:
        self._wrapper.write_count += 1

    def _checked(self, attempt: str, func: Callable[..., T], *args: object) -> T | int:
        return self._wrapper.call(attempt, func, *args)

    def _would_block(self, exc: OSError) -> bool:
        return self._wrapper.non_blocking and exc.errno in _RETRY_LATER

    # operations

    def read(self, size: int | None = None) -> bytes:
        """Read up to ``size`` bytes (a default-sized read if ``size`` is falsy).

        Returns ``b""`` both at end of file (which sets ``eof``) and when a
        non-blocking descriptor has nothing to read.
        """
        if not size:
            size = self.READ_BUFFER_SIZE
        try:
            data = os.read(self.fd_num, size)
        except OSError as exc:
            if self._would_block(exc):
                return b""
            raise UnixError("read", exc.errno) from exc

        self._register_read()
        if not data:
            self._wrapper.eof = True
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        return data

    def read_vectored(self, sizes: Iterable[int]) -> list[bytes]:
        """Scatter-read into buffers of the given sizes; the last is always a full-size buffer.

        Every buffer is returned, cut down to what was read into it.
        """
        lengths = list(sizes)
        if not lengths:
            return []
        lengths[-1] = self.READ_BUFFER_SIZE
        buffers = [bytearray(n) for n in lengths]
        try:
            bytes_read = os.readv(self.fd_num, buffers)
        except OSError as exc:
            if self._would_block(exc):
                return []
            raise UnixError("read", exc.errno) from exc

        self._register_read()
        if bytes_read > sum(lengths):
            raise RuntimeError("read() read more than requested")

        result: list[bytes] = []
        remaining = bytes_read
        for buf in buffers:
            take = min(remaining, len(buf))
            result.append(bytes(buf[:take]))
            remaining -= take
        return result

    def write(self, data: BytesLike | Iterable[BytesLike]) -> int:
        """Gather-write a buffer or a sequence of buffers; return the bytes written."""
        if isinstance(data, (bytes, bytearray, memoryview)):
            buffers = [bytes(data)]
        else:
            buffers = [bytes(b) for b in data]
        total = sum(len(b) for b in buffers)

        written = self._checked("writev", os.writev, self.fd_num, buffers)
        self._register_write()

        if written == 0 and total != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def close(self) -> None:
        """Close the underlying descriptor (for every duplicate)."""
        self._wrapper.close()

    def duplicate(self) -> FileDescriptor:
        """Another handle on the same descriptor and state."""
        dup = FileDescriptor.__new__(FileDescriptor)
        dup._wrapper = self._wrapper
        return dup

    def set_blocking(self, blocking: bool) -> None:
        """Make the descriptor blocking (``True``) or non-blocking (``False``)."""
        try:
            os.set_blocking(self.fd_num, blocking)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno) from exc
        self._wrapper.non_blocking = not blocking

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.closed:
            self.close()