import pytest

from minnownet.address import Address
from minnownet.helpers import parse, serialize
from minnownet.ipv4 import IPv4Datagram, IPv4Header
from minnownet.tcp_config import FdAdapterConfig
from minnownet.tcp_message import TCPMessage, TCPReceiverMessage, TCPSenderMessage
from minnownet.tcp_over_ip import FdAdapterBase, TCPOverIPv4Adapter
from minnownet.tcp_segment import TCPSegment

A = ("10.0.0.1", 1000)
B = ("10.0.0.2", 2000)


def _adapter(local, remote):
    cfg = FdAdapterConfig(
        source=Address.from_ip_port(*local),
        destination=Address.from_ip_port(*remote),
    )
    return TCPOverIPv4Adapter(cfg)


def _message(**sender_fields):
    return TCPMessage(
        TCPSenderMessage(**sender_fields),
        TCPReceiverMessage(ackno=77, window_size=500),
    )


def test_set_listening():
    base = FdAdapterBase()
    assert base.listening is False
    base.set_listening(True)
    assert base.listening is True


def test_round_trip_between_peers():
    message = _message(seqno=12345, payload=b"hello", fin=True)
    datagram = _adapter(A, B).wrap_tcp_in_ip(message)
    assert _adapter(B, A).unwrap_tcp_in_ip(datagram) == message


def test_wrapped_datagram_header():
    message = _message(payload=b"abc")
    datagram = _adapter(A, B).wrap_tcp_in_ip(message)
    header = datagram.header
    assert header.src == Address.from_ip_port(*A).ipv4_numeric()
    assert header.dst == Address.from_ip_port(*B).ipv4_numeric()
    assert header.len == IPv4Header.LENGTH + TCPSegment.HEADER_LENGTH + 3
    assert header.proto == IPv4Header.PROTO_TCP


def test_wrapped_datagram_reparses():
    datagram = _adapter(A, B).wrap_tcp_in_ip(_message(payload=b"data"))
    reparsed = IPv4Datagram()
    assert parse(reparsed, serialize(datagram))
    assert reparsed.header == datagram.header


def test_wrong_destination_rejected():
    datagram = _adapter(A, B).wrap_tcp_in_ip(_message(payload=b"x"))
    assert _adapter(("10.0.0.3", 2000), A).unwrap_tcp_in_ip(datagram) is None


def test_wrong_source_rejected():
    datagram = _adapter(A, B).wrap_tcp_in_ip(_message(payload=b"x"))
    assert _adapter(B, ("10.0.0.9", 1000)).unwrap_tcp_in_ip(datagram) is None


def test_wrong_ports_rejected():
    datagram = _adapter(A, B).wrap_tcp_in_ip(_message(payload=b"x"))
    assert _adapter(("10.0.0.2", 2001), A).unwrap_tcp_in_ip(datagram) is None
    datagram = _adapter(A, B).wrap_tcp_in_ip(_message(payload=b"x"))
    assert _adapter(B, ("10.0.0.1", 1001)).unwrap_tcp_in_ip(datagram) is None


def test_non_tcp_protocol_rejected():
    datagram = _adapter(A, B).wrap_tcp_in_ip(_message(payload=b"x"))
    datagram.header.proto = 17
    assert _adapter(B, A).unwrap_tcp_in_ip(datagram) is None


def test_corrupted_segment_rejected():
    datagram = _adapter(A, B).wrap_tcp_in_ip(_message(payload=b"payload"))
    data = bytearray(b"".join(datagram.payload))
    data[-1] ^= 0xFF
    datagram.payload = [bytes(data)]
    assert _adapter(B, A).unwrap_tcp_in_ip(datagram) is None


def test_listening_accepts_syn_and_learns_peer():
    syn = _message(seqno=9, syn=True)
    datagram = _adapter(A, B).wrap_tcp_in_ip(syn)

    listener = _adapter(("0", 2000), ("0", 0))
    listener.set_listening(True)
    assert listener.unwrap_tcp_in_ip(datagram) == syn
    assert listener.listening is False
    assert listener.config.source.ip_port() == B
    assert listener.config.destination.ip_port() == A


def test_listening_ignores_non_syn():
    datagram = _adapter(A, B).wrap_tcp_in_ip(_message(payload=b"x"))
    listener = _adapter(("0", 2000), ("0", 0))
    listener.set_listening(True)
    assert listener.unwrap_tcp_in_ip(datagram) is None
    assert listener.listening is True


def test_listening_ignores_syn_with_rst():
    datagram = _adapter(A, B).wrap_tcp_in_ip(_message(syn=True, rst=True))
    listener = _adapter(("0", 2000), ("0", 0))
    listener.set_listening(True)
    assert listener.unwrap_tcp_in_ip(datagram) is None
    assert listener.listening is True


def test_wrap_on_non_ipv4_config_fails():
    adapter = TCPOverIPv4Adapter()
    adapter.config.source = Address.from_sockaddr(1, "/tmp/sock")
    with pytest.raises(RuntimeError):
        adapter.wrap_tcp_in_ip(_message())