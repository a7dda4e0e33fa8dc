"""File descriptors for Linux TUN and TAP devices."""

from __future__ import annotations

import fcntl
import os
import struct

from minnownet.errors import UnixError
from minnownet.file_descriptor import FileDescriptor

CLONEDEV = "/dev/net/tun"
TUNSETIFF = 0x400454CA
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
IFNAMSIZ = 16
_IFREQ_SIZE = 40


def _ifreq(devname: str, flags: int) -> bytes:
    """An ifreq holding a NUL-terminated (possibly shortened) name and flags."""
    name = devname.encode()[: IFNAMSIZ - 1]
    return struct.pack(f"{IFNAMSIZ}sh", name, flags).ljust(_IFREQ_SIZE, b"\0")


class TunTapFD(FileDescriptor):
    """An open handle on an existing persistent TUN (IP) or TAP (Ethernet) device."""

    def __init__(self, devname: str, is_tun: bool) -> None:
        try:
            fd = os.open(CLONEDEV, os.O_RDWR | os.O_CLOEXEC)
        except OSError as exc:
            raise UnixError("open", exc.errno) from exc
        super().__init__(fd)

        flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
        try:
            fcntl.ioctl(self.fd_num, TUNSETIFF, _ifreq(devname, flags))
        except OSError as exc:
            self.close()
            raise UnixError("ioctl", exc.errno) from exc


class TunFD(TunTapFD):
    """An existing persistent TUN device (carries IP datagrams)."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """An existing persistent TAP device (carries Ethernet frames)."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)