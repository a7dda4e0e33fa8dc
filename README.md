# minnownet

Building blocks for running a user-space TCP implementation over real
network interfaces on Linux. The package has no third-party dependencies.

## What is in it

- `minnownet.parser`: `Parser` reads unsigned big-endian integers
  (`integer(size)`) and raw bytes (`string(size)`) from a list of byte buffers.
  A read past the end sets an error flag (`has_error()`) and does not raise.
  `Serializer` writes integers (`integer(value, size)`) and buffers, and
  `finish()` returns the list of segments.
- `minnownet.checksum`: `InternetChecksum` is the ones'-complement Internet
  checksum. It accepts one buffer or an iterable of buffers and handles odd
  lengths across buffers.
- `minnownet.ipv4`: `IPv4Header` and `IPv4Datagram`. `parse` checks the version,
  the header length and the checksum, and skips any options. `compute_checksum`
  sets `cksum`. `pseudo_checksum` gives the pseudo-header sum for TCP.
- `minnownet.tcp_message`: the dataclasses `TCPSenderMessage`,
  `TCPReceiverMessage`, `UserDatagramInfo` and `TCPMessage`. Sequence numbers
  and acknowledgment numbers are raw 32-bit integers.
- `minnownet.tcp_segment`: `TCPSegment` parses and serializes a TCP segment and
  verifies or sets its checksum against an IPv4 pseudo-header sum.
- `minnownet.helpers`: `serialize(obj)`, `parse(obj, buffers, *args)` (returns
  `True` on success), `concat`, `clone` and `pretty_print`.
- `minnownet.address`: `Address`, built with `Address.resolve`,
  `Address.from_ip_port`, `Address.from_ipv4_numeric` or
  `Address.from_sockaddr`. It provides `ip_port()`, `ip()`, `port()`,
  `ipv4_numeric()` and `to_string()`.
- `minnownet.file_descriptor`: `FileDescriptor` is a handle whose duplicates
  share one descriptor, its EOF and closed flags, and its read and write
  counts. It offers `read`, `read_vectored`, gather `write`, `set_blocking` and
  `close`, and works as a context manager.
- `minnownet.sockets`: `Socket`, `DatagramSocket`, `UDPSocket`, `TCPSocket`,
  `PacketSocket`, `LocalStreamSocket`, `LocalDatagramSocket` and
  `local_stream_socket_pair()`.
- `minnownet.tun`: `TunFD` and `TapFD` open existing persistent TUN and TAP
  devices through `/dev/net/tun`.
- `minnownet.eventloop`: `EventLoop` takes plain rules (`add_rule`) and
  file-descriptor rules (`add_fd_rule`, with `Direction.IN` or `Direction.OUT`).
  Each call to `wait_next_event(timeout_ms)` serves at most one rule and returns
  `Result.SUCCESS`, `Result.TIMEOUT` or `Result.EXIT`. It raises `RuntimeError`
  when a rule busy-waits. `RuleHandle.cancel()` removes a rule.
- `minnownet.tcp_config`: `TCPConfig` and `FdAdapterConfig`. Loss rates in
  `FdAdapterConfig` are out of 65536.
- `minnownet.tcp_over_ip`: `TCPOverIPv4Adapter` wraps a `TCPMessage` in an IPv4
  datagram (`wrap_tcp_in_ip`). `unwrap_tcp_in_ip` takes one back out and returns
  `None` when the datagram is invalid or belongs to another connection. While
  listening, the first SYN fixes the addresses and ports.
- `minnownet.tuntap_adapter`: `TCPOverIPv4OverTunFdAdapter` reads and writes
  those datagrams on a TUN device.
- `minnownet.lossy_adapter`: `LossyFdAdapter` wraps another adapter and drops
  reads and writes at random according to the loss rates.
- `minnownet.errors`: `TaggedError`, `UnixError`, `check_system_call` and
  `notnull`.
- `minnownet.debug`: `debug` and `debug_str` send messages to a replaceable
  handler, which writes to stderr by default.
- `minnownet.rng`: `get_random_engine()` returns a `random.Random` seeded from
  the operating system.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install .[test]
```

## Example: round-trip an IPv4 datagram

```python
from minnownet.address import Address
from minnownet.helpers import parse, serialize
from minnownet.ipv4 import IPv4Datagram

dgram = IPv4Datagram()
dgram.header.src = Address.from_ip_port("10.0.0.1", 0).ipv4_numeric()
dgram.header.dst = Address.from_ip_port("10.0.0.2", 0).ipv4_numeric()
dgram.payload = [b"hello"]
dgram.header.len = dgram.header.hlen * 4 + 5
dgram.header.compute_checksum()

wire = serialize(dgram)

parsed = IPv4Datagram()
assert parse(parsed, wire)
assert b"".join(parsed.payload) == b"hello"
```

## Example: TCP in IPv4 between two adapters

```python
from minnownet.address import Address
from minnownet.tcp_config import FdAdapterConfig
from minnownet.tcp_message import TCPMessage, TCPReceiverMessage, TCPSenderMessage
from minnownet.tcp_over_ip import TCPOverIPv4Adapter

a_addr = Address.from_ip_port("10.0.0.1", 4000)
b_addr = Address.from_ip_port("10.0.0.2", 5000)
a = TCPOverIPv4Adapter(FdAdapterConfig(source=a_addr, destination=b_addr))
b = TCPOverIPv4Adapter(FdAdapterConfig(source=b_addr, destination=a_addr))

message = TCPMessage(TCPSenderMessage(seqno=137, syn=True), TCPReceiverMessage(window_size=1000))
received = b.unwrap_tcp_in_ip(a.wrap_tcp_in_ip(message))
assert received is not None and received.sender.syn
```

## Example: the event loop

```python
from minnownet.eventloop import EventLoop, Result

loop = EventLoop()
remaining = [3]

def step():
    remaining[0] -= 1

loop.add_rule("countdown", step, lambda: remaining[0] > 0)

while loop.wait_next_event(10) is not Result.EXIT:
    pass
```

## TUN devices

To open a `TunFD`, a persistent TUN device must already exist and the current
user must be allowed to access it. Create the device beforehand with your
system's administration tools.

## What it does not do

The package does not contain a TCP sender, receiver or connection state
machine. It has no byte streams or reassembly, and no socket-like object that
runs a TCP connection in the background. The adapters carry `TCPMessage`
values, but some other code has to produce and consume them. The package has no
command-line program.

## Tests

```
pytest
```