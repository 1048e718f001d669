"""Address normalisation and identifiers for captured socket events."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

AF_UNSPEC = 0
AF_INET = 2
AF_INET6 = 10
EVENT_TYPE_WRITE = 1

_IPV6_RUNS = (":0:0:0:0:0:0:0:", ":0:0:0:0:0:0:", ":0:0:0:0:0:")


@dataclass
class AddressInfo:
    """Raw address data as reported by a probe, ports in network byte order."""

    family: int = AF_UNSPEC
    saddr4: int = 0
    daddr4: int = 0
    sport: int = 0
    dport: int = 0
    saddr6: bytes = b""
    daddr6: bytes = b""


@dataclass
class NormalizedAddrInfo:
    """Printable source and destination endpoints."""

    src_ip: str = "-"
    dst_ip: str = "-"
    src_port: int = 0
    dst_port: int = 0


def reverse_endian(n: int) -> int:
    """Swap the byte order of a 16-bit or 32-bit unsigned value."""
    if n < 0:
        raise ValueError("Only 16-bit and 32-bit integers are supported.")
    if n <= 0xFFFF:
        return ((n & 0xFF) << 8) | ((n >> 8) & 0xFF)
    if n <= 0xFFFFFFFF:
        return int.from_bytes(n.to_bytes(4, "big"), "little")
    raise ValueError("Only 16-bit and 32-bit integers are supported.")


def is_ipv4_mapped_ipv6(data: bytes) -> bool:
    """Tell whether a 16-byte address is an IPv4-mapped IPv6 address."""
    return not any(data[:10]) and data[10] == 0xFF and data[11] == 0xFF


def compress_ipv6(parts: list[str]) -> str:
    """Join IPv6 groups and collapse the first long run of zero groups."""
    result = ":".join(parts)
    for run in _IPV6_RUNS:
        result = result.replace(run, "::", 1)
    return result


def decode_ipv6(data: bytes) -> str:
    """Render a 16-byte address as text, dotted for IPv4-mapped addresses."""
    if len(data) != 16:
        raise ValueError("Invalid IPv6 address length")
    if is_ipv4_mapped_ipv6(data):
        return ".".join(str(b) for b in data[12:16])
    parts = [f"{int.from_bytes(data[i:i + 2], 'big'):x}" for i in range(0, 16, 2)]
    return compress_ipv6(parts)


def uint32_to_ipv4(ip: int) -> str:
    """Render a 32-bit address held in network byte order as dotted text."""
    return ".".join(str(b) for b in (ip & 0xFFFFFFFF).to_bytes(4, "little"))


def _port(raw: int) -> int:
    value = reverse_endian(raw)
    return value - (1 << 32) if value >= (1 << 31) else value


def get_normalized_address_info(addr: AddressInfo | None, event_type: int) -> NormalizedAddrInfo:
    """Orient an address pair so that the source is the sending side."""
    info = NormalizedAddrInfo()
    if addr is None:
        return info

    is_write = event_type == EVENT_TYPE_WRITE

    if addr.family == AF_INET:
        local, remote = uint32_to_ipv4(addr.saddr4), uint32_to_ipv4(addr.daddr4)
        local_port, remote_port = _port(addr.sport), _port(addr.dport)
    elif addr.family == AF_INET6:
        first, second = (addr.saddr6, addr.daddr6) if is_write else (addr.daddr6, addr.saddr6)
        try:
            first_ip = decode_ipv6(first)
        except ValueError:
            first_ip = ""
        try:
            second_ip = decode_ipv6(second)
        except ValueError:
            first_ip = second_ip = "?"
        local, remote = (first_ip, second_ip) if is_write else (second_ip, first_ip)
        local_port, remote_port = _port(addr.sport), _port(addr.dport)
    else:
        return info

    if is_write:
        info.src_ip, info.dst_ip = local, remote
        info.src_port, info.dst_port = local_port, remote_port
    else:
        info.src_ip, info.dst_ip = remote, local
        info.src_port, info.dst_port = remote_port, local_port
    return info


def generate_event_id(ts: int, tid: int, data: bytes) -> str:
    """Derive a short event identifier from timestamp, thread id and data prefix."""
    digest = hashlib.sha1()
    digest.update(f"{ts & 0xFFFFFFFFFFFFFFFF:016x}{tid & 0xFFFFFFFFFFFFFFFF:016x}".encode())
    digest.update(bytes(data[:16]))
    return digest.hexdigest()[:16]


def get_connection_id(src_ip: str, dst_ip: str, src_port: int, dst_port: int) -> str:
    """Return a direction-independent identifier for a pair of endpoints."""
    first, second = sorted((f"{src_ip}:{src_port}", f"{dst_ip}:{dst_port}"))
    return hashlib.sha1(f"{first}--{second}".encode()).hexdigest()