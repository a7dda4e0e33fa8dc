"""User-space TCP/IP plumbing: IPv4 and TCP wire formats, checksums, sockets, TUN devices, adapters and an event loop."""

__version__ = "0.1.0"

__all__ = [
    "address",
    "checksum",
    "debug",
    "errors",
    "eventloop",
    "file_descriptor",
    "helpers",
    "ipv4",
    "lossy_adapter",
    "parser",
    "rng",
    "sockets",
    "tcp_config",
    "tcp_message",
    "tcp_over_ip",
    "tcp_segment",
    "tun",
    "tuntap_adapter",
]