"""Network sockets (TCP, UDP, packet and Unix-domain) built on FileDescriptor."""

from __future__ import annotations

import socket
import struct
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Callable, Optional, TypeVar, Union

from minnownet.address import Address
from minnownet.errors import UnixError
from minnownet.file_descriptor import FileDescriptor

BytesLike = Union[bytes, bytearray, memoryview]

T = TypeVar("T")

AF_PACKET = getattr(socket, "AF_PACKET", 17)
SOL_PACKET = getattr(socket, "SOL_PACKET", 263)
PACKET_ADD_MEMBERSHIP = getattr(socket, "PACKET_ADD_MEMBERSHIP", 1)
PACKET_MR_PROMISC = getattr(socket, "PACKET_MR_PROMISC", 1)
SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
SO_DOMAIN = getattr(socket, "SO_DOMAIN", 39)
SO_PROTOCOL = getattr(socket, "SO_PROTOCOL", 38)


class Socket(FileDescriptor):
    """A network socket; normally used through one of its subclasses.

    With ``fd`` given, the socket takes over that descriptor and checks that
    its domain, type and protocol are the expected ones.
    """

    def __init__(
        self,
        domain: int,
        type_: int,
        protocol: int = 0,
        *,
        fd: Optional[FileDescriptor] = None,
    ) -> None:
        if fd is None:
            try:
                sock = socket.socket(domain, type_, protocol)
            except OSError as exc:
                raise UnixError("socket", exc.errno) from exc
            super().__init__(sock.detach())
            return

        self._wrapper = fd._wrapper
        checks = (
            (SO_DOMAIN, domain, "domain"),
            (socket.SO_TYPE, type_, "type"),
            (SO_PROTOCOL, protocol, "protocol"),
        )
        for option, expected, what in checks:
            if self._getsockopt(socket.SOL_SOCKET, option) != expected:
                raise RuntimeError(f"socket {what} mismatch")

    @contextmanager
    def _as_socket(self) -> Iterator[socket.socket]:
        """A temporary socket object over this descriptor that never closes it."""
        try:
            sock = socket.socket(fileno=self.fd_num)
        except OSError as exc:
            raise UnixError("getsockopt", exc.errno) from exc
        try:
            yield sock
        finally:
            sock.detach()

    def _call(self, attempt: str, op: Callable[[socket.socket], T]) -> T | int:
        with self._as_socket() as sock:
            return self._checked(attempt, op, sock)

    def _getsockopt(self, level: int, option: int) -> int:
        return self._call("getsockopt", lambda s: s.getsockopt(level, option))

    def _setsockopt(self, level: int, option: int, value: Union[int, bytes]) -> None:
        self._call("setsockopt", lambda s: s.setsockopt(level, option, value))

    def _address(self, attempt: str, getter: Callable[[socket.socket], Any]) -> Address:
        with self._as_socket() as sock:
            family = int(sock.family)
            raw = self._checked(attempt, getter, sock)
        return Address.from_sockaddr(family, raw)

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listening."""
        self._call("bind", lambda s: s.bind(address.sockaddr))

    def bind_to_device(self, device_name: str) -> None:
        """Restrict the socket to one network device."""
        self._setsockopt(socket.SOL_SOCKET, SO_BINDTODEVICE, device_name.encode())

    def connect(self, address: Address) -> None:
        """Connect to a peer address."""
        self._call("connect", lambda s: s.connect(address.sockaddr))

    def shutdown(self, how: int) -> None:
        """Shut down reading (``SHUT_RD``), writing (``SHUT_WR``) or both (``SHUT_RDWR``)."""
        self._call("shutdown", lambda s: s.shutdown(how))
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise ValueError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        """The address the socket is bound to."""
        return self._address("getsockname", socket.socket.getsockname)

    def peer_address(self) -> Address:
        """The address of the connected peer."""
        return self._address("getpeername", socket.socket.getpeername)

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner (at some cost in robustness)."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def throw_if_error(self) -> None:
        """Raise the socket's pending error, if it has one."""
        error = self._getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if error:
            raise UnixError("socket error", error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self) -> tuple[Optional[Address], bytes]:
        """Receive one datagram and the address of its sender.

        A non-blocking socket with nothing waiting gives ``(None, b"")``.
        """
        buffer = bytearray(self.READ_BUFFER_SIZE)
        with self._as_socket() as sock:
            family = int(sock.family)
            result = self._checked(
                "recvfrom",
                lambda s: s.recvfrom_into(buffer, len(buffer), socket.MSG_TRUNC),
                sock,
            )
        if not isinstance(result, tuple):
            self._register_read()
            return None, b""

        length, source = result
        if length > len(buffer):
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address.from_sockaddr(family, source), bytes(buffer[:length])

    def sendto(self, destination: Address, payload: BytesLike) -> None:
        """Send a datagram to ``destination``."""
        data = bytes(payload)
        self._call("sendto", lambda s: s.sendto(data, destination.sockaddr))
        self._register_write()

    def send(self, payload: BytesLike) -> None:
        """Send a datagram to the connected peer."""
        data = bytes(payload)
        self._call("send", lambda s: s.send(data))
        self._register_write()


class UDPSocket(DatagramSocket):
    """An unbound, unconnected UDP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    """A TCP socket; a new one is unbound and unconnected."""

    def __init__(self, fd: Optional[FileDescriptor] = None) -> None:
        if fd is None:
            super().__init__(socket.AF_INET, socket.SOCK_STREAM)
        else:
            super().__init__(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, fd=fd)

    def listen(self, backlog: int = 16) -> None:
        """Start accepting incoming connections."""
        self._call("listen", lambda s: s.listen(backlog))

    def accept(self) -> TCPSocket:
        """Wait for and return a new connection."""
        self._register_read()
        with self._as_socket() as sock:
            try:
                connection, _ = sock.accept()
            except OSError as exc:
                raise UnixError("accept", exc.errno) from exc
        return TCPSocket(FileDescriptor(connection.detach()))


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, type_: int, protocol: int) -> None:
        super().__init__(AF_PACKET, type_, protocol)

    def set_promiscuous(self) -> None:
        """Put the socket's interface into promiscuous mode."""
        address = self.local_address()
        if address.family != AF_PACKET:
            raise RuntimeError("address conversion failure")
        ifindex = socket.if_nametoindex(address.sockaddr[0])
        membership = struct.pack("iHH8s", ifindex, PACKET_MR_PROMISC, 0, b"")
        self._setsockopt(SOL_PACKET, PACKET_ADD_MEMBERSHIP, membership)


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket over an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd=fd)


class LocalDatagramSocket(DatagramSocket):
    """An unbound, unconnected Unix-domain datagram socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_DGRAM)


def local_stream_socket_pair() -> tuple[LocalStreamSocket, LocalStreamSocket]:
    """Two connected Unix-domain stream sockets."""
    try:
        first, second = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    except OSError as exc:
        raise UnixError("socketpair", exc.errno) from exc
    return (
        LocalStreamSocket(FileDescriptor(first.detach())),
        LocalStreamSocket(FileDescriptor(second.detach())),
    )