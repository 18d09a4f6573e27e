import ipaddress

import pytest

from liveshark.udp import (
    Linktype,
    MissingNetworkLayerError,
    UdpError,
    UdpReader,
    UdpSliceError,
    UdpTooShortError,
    parse_udp_packet,
)

SRC_MAC = bytes([1, 2, 3, 4, 5, 6])
DST_MAC = bytes([7, 8, 9, 10, 11, 12])


def ethernet(ether_type, body):
    return DST_MAC + SRC_MAC + ether_type.to_bytes(2, "big") + body


def ipv4(src, dst, protocol, body, flags_fragment=0):
    total = 20 + len(body)
    header = (
        bytes([0x45, 0])
        + total.to_bytes(2, "big")
        + b"\x00\x00"
        + flags_fragment.to_bytes(2, "big")
        + bytes([64, protocol])
        + b"\x00\x00"
        + bytes(src)
        + bytes(dst)
    )
    return header + body


def ipv6(src, dst, next_header, body):
    return (
        bytes([0x60, 0, 0, 0])
        + len(body).to_bytes(2, "big")
        + bytes([next_header, 64])
        + ipaddress.IPv6Address(src).packed
        + ipaddress.IPv6Address(dst).packed
        + body
    )


def udp(src_port, dst_port, payload):
    return (
        src_port.to_bytes(2, "big")
        + dst_port.to_bytes(2, "big")
        + (8 + len(payload)).to_bytes(2, "big")
        + b"\x00\x00"
        + bytes(payload)
    )


def tcp(src_port, dst_port, payload):
    return (
        src_port.to_bytes(2, "big")
        + dst_port.to_bytes(2, "big")
        + bytes(8)
        + bytes([0x50, 0])
        + bytes(6)
        + bytes(payload)
    )


def test_parse_udp_ok():
    payload = bytes([1, 2, 3, 4])
    frame = ethernet(0x0800, ipv4([192, 168, 0, 1], [192, 168, 0, 2], 17, udp(6454, 6454, payload)))
    parsed = parse_udp_packet(Linktype.ETHERNET, frame)
    assert parsed is not None
    assert parsed.src_port == 6454
    assert parsed.dst_port == 6454
    assert parsed.payload == payload
    assert parsed.src_ip == ipaddress.IPv4Address("192.168.0.1")
    assert parsed.dst_ip == ipaddress.IPv4Address("192.168.0.2")


def test_parse_non_udp():
    frame = ethernet(0x0800, ipv4([10, 0, 0, 1], [10, 0, 0, 2], 6, tcp(1000, 1001, bytes(4))))
    assert parse_udp_packet(Linktype.ETHERNET, frame) is None


def test_parse_slice_error():
    with pytest.raises(UdpSliceError):
        parse_udp_packet(Linktype.ETHERNET, b"")


def test_raw_ipv6_udp():
    packet = ipv6("fe80::1", "fe80::2", 17, udp(5568, 5568, b"abc"))
    parsed = parse_udp_packet(Linktype.RAW, packet)
    assert parsed.src_ip == ipaddress.IPv6Address("fe80::1")
    assert parsed.dst_ip == ipaddress.IPv6Address("fe80::2")
    assert parsed.src_port == 5568
    assert parsed.payload == b"abc"


def test_raw_ipv4_udp_accepts_plain_int_linktype():
    packet = ipv4([10, 0, 0, 1], [10, 0, 0, 2], 17, udp(1000, 2000, b"xy"))
    parsed = parse_udp_packet(101, packet)
    assert (parsed.src_port, parsed.dst_port, parsed.payload) == (1000, 2000, b"xy")


def test_vlan_tagged_frame_is_decoded():
    inner = ipv4([10, 0, 0, 1], [10, 0, 0, 2], 17, udp(6454, 6454, b"\x09"))
    tag = (5).to_bytes(2, "big") + (0x0800).to_bytes(2, "big")
    parsed = parse_udp_packet(Linktype.ETHERNET, ethernet(0x8100, tag + inner))
    assert parsed.payload == b"\x09"


def test_unsupported_linktype_returns_none():
    packet = ipv4([10, 0, 0, 1], [10, 0, 0, 2], 17, udp(1, 2, b""))
    assert parse_udp_packet(Linktype.LINUX_SLL, packet) is None


def test_non_ip_ethertype_is_missing_network_layer():
    frame = ethernet(0x0806, bytes(28))
    with pytest.raises(MissingNetworkLayerError) as excinfo:
        parse_udp_packet(Linktype.ETHERNET, frame)
    assert str(excinfo.value) == "missing network layer in packet"


def test_fragmented_ipv4_is_ignored():
    packet = ipv4([10, 0, 0, 1], [10, 0, 0, 2], 17, udp(1, 2, b"abcd"), flags_fragment=0x2000)
    assert parse_udp_packet(Linktype.RAW, packet) is None


def test_truncated_ipv4_is_slice_error():
    packet = ipv4([10, 0, 0, 1], [10, 0, 0, 2], 17, udp(1, 2, b"abcd"))
    with pytest.raises(UdpSliceError):
        parse_udp_packet(Linktype.RAW, packet[:-2])


def test_short_udp_header_is_slice_error():
    packet = ipv4([10, 0, 0, 1], [10, 0, 0, 2], 17, bytes(7))
    with pytest.raises(UdpError):
        parse_udp_packet(Linktype.RAW, packet)


def test_unknown_ip_version_is_slice_error():
    with pytest.raises(UdpSliceError) as excinfo:
        parse_udp_packet(Linktype.RAW, bytes([0x50]) + bytes(30))
    assert str(excinfo.value).startswith("packet slice error: ")


def test_payload_without_header_ok():
    reader = UdpReader(bytes(12))
    assert len(reader.payload_without_header()) == 4


def test_payload_without_header_too_short():
    reader = UdpReader(bytes(7))
    with pytest.raises(UdpTooShortError) as excinfo:
        reader.payload_without_header()
    assert excinfo.value.needed == 8
    assert excinfo.value.actual == 7
    assert str(excinfo.value) == "payload too short: need 8 bytes, got 7"


def test_require_len_accepts_exact_length():
    reader = UdpReader(bytes(8))
    reader.require_len(8)
    assert reader.payload_without_header() == b""