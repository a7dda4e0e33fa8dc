import pytest

from minnownet.checksum import InternetChecksum
from minnownet.ipv4 import IPv4Datagram, IPv4Header
from minnownet.parser import Parser, Serializer


def serialized(obj):
    s = Serializer()
    obj.serialize(s)
    return b"".join(s.finish())


def parse_header(data):
    header = IPv4Header()
    parser = Parser([data])
    header.parse(parser)
    return header, parser


def sample_header():
    header = IPv4Header(len=0x73, id=0, ttl=0x40, proto=0x11, src=0xC0A80001, dst=0xC0A800C7)
    header.compute_checksum()
    return header


def test_known_header_checksum_and_bytes():
    header = sample_header()
    assert header.cksum == 0xB861
    assert serialized(header) == bytes.fromhex("450000730000400040 11b861c0a80001c0a800c7".replace(" ", ""))


def test_default_header_wire_fields():
    data = serialized(IPv4Header())
    assert len(data) == IPv4Header.LENGTH
    assert data[0] >> 4 == 4
    assert data[0] & 0x0F == IPv4Header.LENGTH // 4
    assert data[8] == IPv4Header.DEFAULT_TTL
    assert data[9] == IPv4Header.PROTO_TCP


def test_header_round_trip():
    header = IPv4Header(tos=3, len=60, id=999, df=False, mf=True, offset=17, src=1, dst=2)
    header.compute_checksum()
    parsed, parser = parse_header(serialized(header))
    assert not parser.has_error()
    assert parsed == header


def test_bad_checksum_is_rejected():
    data = bytearray(serialized(sample_header()))
    data[8] ^= 0x01
    _, parser = parse_header(bytes(data))
    assert parser.has_error()


@pytest.mark.parametrize("first_byte", [0x65, 0x44])
def test_bad_version_or_length_is_rejected(first_byte):
    data = bytearray(serialized(sample_header()))
    data[0] = first_byte
    _, parser = parse_header(bytes(data))
    assert parser.has_error()


def test_short_header_is_rejected():
    _, parser = parse_header(serialized(sample_header())[:10])
    assert parser.has_error()


def test_serialize_wrong_version_raises():
    with pytest.raises(ValueError, match="wrong IP version"):
        serialized(IPv4Header(ver=6))


def test_payload_length():
    assert IPv4Header(len=60, hlen=5).payload_length() == 40
    assert IPv4Header(len=60, hlen=6).payload_length() == 36


def test_pseudo_checksum_matches_explicit_pseudo_header():
    header = IPv4Header(src=0xC0A80001, dst=0x0A0000FE, proto=6, len=20 + 33)
    explicit = InternetChecksum()
    explicit.add(
        header.src.to_bytes(4, "big")
        + header.dst.to_bytes(4, "big")
        + b"\x00"
        + bytes([header.proto])
        + header.payload_length().to_bytes(2, "big")
    )
    assert InternetChecksum(header.pseudo_checksum()).value() == explicit.value()


def test_datagram_round_trip_drops_trailing_bytes():
    payload = [b"hello", b" world"]
    dgram = IPv4Datagram(IPv4Header(len=20 + 11, src=5, dst=6), payload)
    dgram.header.compute_checksum()
    s = Serializer()
    dgram.serialize(s)
    parser = Parser(s.finish() + [b"junk"])
    parsed = IPv4Datagram()
    parsed.parse(parser)
    assert not parser.has_error()
    assert parsed.header == dgram.header
    assert b"".join(parsed.payload) == b"hello world"


def test_datagram_with_options_skips_them():
    header = IPv4Header(hlen=6, len=24 + 3, src=7, dst=8)
    header.compute_checksum()
    s = Serializer()
    header.serialize(s)
    s.buffer(b"\x01\x01\x01\x01")
    s.buffer(b"abc")
    parser = Parser(s.finish())
    parsed = IPv4Datagram()
    parsed.parse(parser)
    assert not parser.has_error()
    assert parsed.payload == [b"abc"]


def test_header_string():
    header = IPv4Header(src=0x0A000001, dst=0x0A000002, len=40)
    assert str(header) == "IPv4 len=40 proto=6 ttl=128 src=10.0.0.1 dst=10.0.0.2"