import errno
import os

import pytest

from minnownet.errors import TaggedError, UnixError, check_system_call, notnull


def test_check_system_call_passes_non_negative_values():
    assert check_system_call("read", 5) == 5
    assert check_system_call("read", 0) == 0


def test_check_system_call_raises_unix_error():
    with pytest.raises(UnixError) as info:
        check_system_call("open", -errno.ENOENT)
    err = info.value
    assert err.error_code == errno.ENOENT
    assert err.errno == errno.ENOENT
    assert err.attempt == "open"
    assert str(err) == "open: " + os.strerror(errno.ENOENT)


def test_unix_error_is_tagged_and_os_error():
    err = UnixError("socket error", errno.ECONNREFUSED)
    assert isinstance(err, TaggedError)
    assert isinstance(err, OSError)
    assert str(err).startswith("socket error: ")


def test_tagged_error_message_format():
    err = TaggedError("getaddrinfo(host, http)", 8, "Name or service not known")
    assert str(err) == "getaddrinfo(host, http): Name or service not known"
    assert err.error_code == 8


def test_notnull_returns_value():
    marker = object()
    assert notnull("lookup", marker) is marker
    assert notnull("lookup", 0) == 0


def test_notnull_raises_on_none():
    with pytest.raises(RuntimeError, match="^lookup: returned null pointer$"):
        notnull("lookup", None)