import hashlib
import ipaddress

import pytest

from traffichub.addressing import (
    AF_INET,
    AF_INET6,
    AddressInfo,
    NormalizedAddrInfo,
    compress_ipv6,
    decode_ipv6,
    generate_event_id,
    get_connection_id,
    get_normalized_address_info,
    is_ipv4_mapped_ipv6,
    reverse_endian,
    uint32_to_ipv4,
)


def _net_u32(text: str) -> int:
    return int.from_bytes(ipaddress.IPv4Address(text).packed, "little")


def _net_port(port: int) -> int:
    return int.from_bytes(port.to_bytes(2, "big"), "little")


def test_reverse_endian_16bit():
    assert reverse_endian(0x1234) == 0x3412


@pytest.mark.parametrize("value", [0x12345678, 0xAABBCCDD, 0x01020304])
def test_reverse_endian_32bit_round_trip(value):
    assert reverse_endian(reverse_endian(value)) == value


def test_reverse_endian_16bit_round_trip():
    for value in (0x0102, 0xFF00, 0x00FF, 0xABCD):
        assert reverse_endian(reverse_endian(value)) == value


def test_reverse_endian_too_large():
    with pytest.raises(ValueError):
        reverse_endian(1 << 32)


def test_ipv4_mapped_detection():
    mapped = bytes(10) + b"\xff\xff" + bytes([192, 0, 2, 1])
    assert is_ipv4_mapped_ipv6(mapped) is True
    assert is_ipv4_mapped_ipv6(ipaddress.IPv6Address("2001:db8::1").packed) is False


def test_decode_ipv6_mapped_gives_dotted():
    mapped = bytes(10) + b"\xff\xff" + bytes([192, 0, 2, 1])
    assert decode_ipv6(mapped) == "192.0.2.1"


def test_decode_ipv6_regular():
    packed = ipaddress.IPv6Address("2001:db8::1").packed
    assert decode_ipv6(packed) == "2001:db8::1"


def test_decode_ipv6_bad_length():
    with pytest.raises(ValueError, match="Invalid IPv6 address length"):
        decode_ipv6(b"\x00" * 4)


def test_compress_ipv6_matches_standard_form():
    parts = ["2001", "db8", "0", "0", "0", "0", "0", "1"]
    assert compress_ipv6(parts) == ipaddress.IPv6Address("2001:db8::1").compressed


def test_compress_ipv6_without_zero_run():
    parts = ["fe80", "1", "2", "3", "4", "5", "6", "7"]
    assert compress_ipv6(parts) == ":".join(parts)


def test_uint32_to_ipv4():
    assert uint32_to_ipv4(_net_u32("192.168.1.1")) == "192.168.1.1"


@pytest.mark.parametrize("text", ["10.0.0.1", "127.0.0.1", "255.255.255.0"])
def test_uint32_to_ipv4_round_trip(text):
    assert uint32_to_ipv4(_net_u32(text)) == text


def test_normalized_none():
    assert get_normalized_address_info(None, 1) == NormalizedAddrInfo("-", "-", 0, 0)


def test_normalized_ipv4_write_and_read():
    addr = AddressInfo(
        family=AF_INET,
        saddr4=_net_u32("10.0.0.1"),
        daddr4=_net_u32("10.0.0.2"),
        sport=_net_port(43210),
        dport=_net_port(80),
    )
    written = get_normalized_address_info(addr, 1)
    assert written == NormalizedAddrInfo("10.0.0.1", "10.0.0.2", 43210, 80)
    read = get_normalized_address_info(addr, 0)
    assert read == NormalizedAddrInfo("10.0.0.2", "10.0.0.1", 80, 43210)


def test_normalized_ipv6_write_and_read():
    addr = AddressInfo(
        family=AF_INET6,
        saddr6=ipaddress.IPv6Address("2001:db8::1").packed,
        daddr6=bytes(10) + b"\xff\xff" + bytes([192, 0, 2, 7]),
        sport=_net_port(5000),
        dport=_net_port(443),
    )
    written = get_normalized_address_info(addr, 1)
    assert written == NormalizedAddrInfo("2001:db8::1", "192.0.2.7", 5000, 443)
    read = get_normalized_address_info(addr, 2)
    assert read == NormalizedAddrInfo("192.0.2.7", "2001:db8::1", 443, 5000)


def test_normalized_ipv6_bad_address():
    addr = AddressInfo(
        family=AF_INET6,
        saddr6=ipaddress.IPv6Address("2001:db8::1").packed,
        daddr6=b"\x01\x02",
        sport=_net_port(1),
        dport=_net_port(2),
    )
    result = get_normalized_address_info(addr, 1)
    assert (result.src_ip, result.dst_ip) == ("?", "?")
    assert (result.src_port, result.dst_port) == (1, 2)


def test_normalized_unknown_family():
    addr = AddressInfo(family=99, saddr4=5, daddr4=6, sport=7, dport=8)
    assert get_normalized_address_info(addr, 1) == NormalizedAddrInfo("-", "-", 0, 0)


def test_event_id_shape_and_determinism():
    first = generate_event_id(1, 2, b"hello")
    assert len(first) == 16
    assert all(c in "0123456789abcdef" for c in first)
    assert generate_event_id(1, 2, b"hello") == first


def test_event_id_uses_only_first_16_bytes():
    prefix = b"a" * 16
    assert generate_event_id(5, 6, prefix + b"x") == generate_event_id(5, 6, prefix + b"y")


def test_event_id_depends_on_inputs():
    base = generate_event_id(5, 6, b"data")
    assert generate_event_id(7, 6, b"data") != base
    assert generate_event_id(5, 8, b"data") != base
    assert generate_event_id(5, 6, b"other") != base


def test_connection_id_is_symmetric():
    forward = get_connection_id("10.0.0.1", "10.0.0.2", 80, 1234)
    backward = get_connection_id("10.0.0.2", "10.0.0.1", 1234, 80)
    assert forward == backward
    assert len(forward) == 40


def test_connection_id_format():
    expected = hashlib.sha1(b"10.0.0.1:80--10.0.0.2:1234").hexdigest()
    assert get_connection_id("10.0.0.2", "10.0.0.1", 1234, 80) == expected


def test_connection_id_differs_by_port():
    assert get_connection_id("10.0.0.1", "10.0.0.2", 80, 1234) != get_connection_id(
        "10.0.0.1", "10.0.0.2", 80, 1235
    )