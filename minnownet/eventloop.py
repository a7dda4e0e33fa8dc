"""A poll-based loop that runs callbacks when rules' conditions are met."""

from __future__ import annotations

import enum
import os
import select
import socket
import sys
import weakref
from dataclasses import dataclass
from typing import Callable, Optional, Union

from minnownet.errors import UnixError
from minnownet.file_descriptor import FileDescriptor

Callback = Callable[[], None]
Interest = Callable[[], bool]

_MAX_CATEGORIES = 64
_MAX_ITERATIONS = 128


def _always() -> bool:
    return True


class Direction(enum.Enum):
    """Whether a rule waits for its fd to be readable (IN) or writable (OUT)."""

    IN = "in"
    OUT = "out"


class Result(enum.Enum):
    """Outcome of one call to ``EventLoop.wait_next_event``."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    EXIT = "exit"


@dataclass(eq=False)
class _BasicRule:
    category_id: int
    interest: Interest
    callback: Callback
    cancel_requested: bool = False


@dataclass(eq=False)
class _FDRule(_BasicRule):
    fd: FileDescriptor = None  # type: ignore[assignment]
    direction: Direction = Direction.IN
    cancel: Optional[Callback] = None
    error: Optional[Callback] = None

    def service_count(self) -> int:
        return self.fd.read_count if self.direction is Direction.IN else self.fd.write_count

    def poll_events(self) -> int:
        return select.POLLIN if self.direction is Direction.IN else select.POLLOUT

    def on_cancel(self) -> None:
        if self.cancel is not None:
            self.cancel()

    def on_error(self) -> None:
        if self.error is not None:
            self.error()


class RuleHandle:
    """A weak handle that can cancel a rule while the loop still holds it."""

    def __init__(self, rule: _BasicRule) -> None:
        self._rule = weakref.ref(rule)

    def cancel(self) -> None:
        rule = self._rule()
        if rule is not None:
            rule.cancel_requested = True


def _socket_error(fd: int) -> tuple[bool, int]:
    """(is a socket, pending SO_ERROR value) for a raw descriptor."""
    try:
        sock = socket.socket(fileno=fd)
    except OSError as exc:
        if exc.errno == 88:  # ENOTSOCK
            return False, 0
        raise UnixError("getsockopt", exc.errno) from exc
    try:
        return True, sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
    except OSError as exc:
        raise UnixError("getsockopt", exc.errno) from exc
    finally:
        sock.detach()


class EventLoop:
    """Waits for events on file descriptors and runs the matching callbacks."""

    def __init__(self) -> None:
        self._categories: list[str] = []
        self._fd_rules: list[_FDRule] = []
        self._non_fd_rules: list[_BasicRule] = []

    def add_category(self, name: str) -> int:
        """Register a category name and return its id."""
        if len(self._categories) >= _MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category: Union[int, str]) -> int:
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def add_rule(
        self,
        category: Union[int, str],
        callback: Callback,
        interest: Interest = _always,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` while ``interest()`` holds.

        ``category`` is an id from ``add_category``, or a name to register.
        """
        rule = _BasicRule(self._category_id(category), interest, callback)
        self._non_fd_rules.append(rule)
        return RuleHandle(rule)

    def add_fd_rule(
        self,
        category: Union[int, str],
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest = _always,
        cancel: Optional[Callback] = None,
        error: Optional[Callback] = None,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` when ``fd`` is ready in ``direction``."""
        rule = _FDRule(
            self._category_id(category),
            interest,
            callback,
            fd=fd.duplicate(),
            direction=direction,
            cancel=cancel,
            error=error,
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def _name(self, rule: _BasicRule) -> str:
        return self._categories[rule.category_id]

    def _run_non_fd_rules(self) -> bool:
        for rule in list(self._non_fd_rules):
            if rule.cancel_requested:
                self._non_fd_rules.remove(rule)
                continue
            fired = False
            iterations = 0
            while rule.interest():
                iterations += 1
                if iterations > _MAX_ITERATIONS:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        f"is still interested after {iterations} iterations"
                    )
                fired = True
                rule.callback()
            if fired:
                return True
        return False

    def _drop(self, rule: _FDRule) -> None:
        if rule in self._fd_rules:
            self._fd_rules.remove(rule)

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Serve at most one rule, waiting up to ``timeout_ms`` (negative: forever)."""
        if self._run_non_fd_rules():
            return Result.SUCCESS

        polled: list[tuple[_FDRule, int]] = []
        masks: dict[int, int] = {}
        something_to_poll = False
        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                self._drop(rule)
                continue
            if (rule.direction is Direction.IN and rule.fd.eof) or rule.fd.closed:
                rule.on_cancel()
                self._drop(rule)
                continue
            events = 0
            if rule.interest():
                events = rule.poll_events()
                something_to_poll = True
            polled.append((rule, events))
            masks[rule.fd.fd_num] = masks.get(rule.fd.fd_num, 0) | events

        if not something_to_poll:
            return Result.EXIT

        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)
        try:
            ready = poller.poll(timeout_ms)
        except OSError as exc:
            raise UnixError("poll", exc.errno) from exc
        if not ready:
            return Result.TIMEOUT
        revents_by_fd = dict(ready)

        for rule, events in polled:
            revents = revents_by_fd.get(rule.fd.fd_num, 0)

            if revents & (select.POLLERR | select.POLLNVAL):
                self._report_error(rule)
                rule.on_error()
                rule.on_cancel()
                self._drop(rule)
                continue

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and ((events and not poll_ready) or rule.direction is Direction.OUT):
                rule.on_cancel()
                self._drop(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if count_before == rule.service_count() and not rule.fd.closed and rule.interest():
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        "did not read/write fd and is still interested"
                    )
                return Result.SUCCESS

        return Result.SUCCESS

    def _report_error(self, rule: _FDRule) -> None:
        is_socket, err = _socket_error(rule.fd.fd_num)
        if not is_socket:
            print(f'error on polled file descriptor for rule "{self._name(rule)}"', file=sys.stderr)
        elif err:
            print(
                f'error on polled socket for rule "{self._name(rule)}": {os.strerror(err)}',
                file=sys.stderr,
            )