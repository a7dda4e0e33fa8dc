"""An adapter wrapper that drops datagrams at random."""

from __future__ import annotations

import random
from typing import Any, Optional, Protocol

from minnownet.file_descriptor import FileDescriptor
from minnownet.rng import get_random_engine
from minnownet.tcp_config import FdAdapterConfig
from minnownet.tcp_message import TCPMessage


class _Adapter(Protocol):
    config: FdAdapterConfig

    def fd(self) -> FileDescriptor: ...

    def read(self) -> Optional[TCPMessage]: ...

    def write(self, message: TCPMessage) -> None: ...

    def set_listening(self, listening: bool) -> None: ...

    def tick(self, ms_since_last_tick: int) -> None: ...


class LossyFdAdapter:
    """Passes reads and writes to another adapter, dropping some per its loss rates."""

    def __init__(self, adapter: _Adapter, rng: Optional[Any] = None) -> None:
        self._adapter = adapter
        self._rand: random.Random = rng if rng is not None else get_random_engine()

    def _should_drop(self, uplink: bool) -> bool:
        config = self._adapter.config
        loss = config.loss_rate_up if uplink else config.loss_rate_dn
        return loss != 0 and self._rand.getrandbits(16) < loss

    @property
    def config(self) -> FdAdapterConfig:
        """The wrapped adapter's (mutable) configuration."""
        return self._adapter.config

    @config.setter
    def config(self, value: FdAdapterConfig) -> None:
        self._adapter.config = value

    def fd(self) -> FileDescriptor:
        """The wrapped adapter's file descriptor."""
        return self._adapter.fd()

    def read(self) -> Optional[TCPMessage]:
        """Read from the wrapped adapter; ``None`` if nothing came or it was dropped."""
        message = self._adapter.read()
        if self._should_drop(False):
            return None
        return message

    def write(self, message: TCPMessage) -> None:
        """Write through the wrapped adapter unless the message is dropped."""
        if self._should_drop(True):
            return
        self._adapter.write(message)

    def set_listening(self, listening: bool) -> None:
        self._adapter.set_listening(listening)

    def tick(self, ms_since_last_tick: int) -> None:
        self._adapter.tick(ms_since_last_tick)