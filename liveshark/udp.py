"""UDP extraction from link-layer frames (Ethernet II and raw IP)."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple, Union

UDP_HEADER_LEN = 8

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_ETHERNET_HEADER_LEN = 14
_VLAN_TAG_LEN = 4
_VLAN_ETHER_TYPES = frozenset({0x8100, 0x88A8, 0x9100})
_ETHER_TYPE_IPV4 = 0x0800
_ETHER_TYPE_IPV6 = 0x86DD

_IPV4_MIN_HEADER_LEN = 20
_IPV6_HEADER_LEN = 40

_PROTO_ICMP = 1
_PROTO_TCP = 6
_PROTO_UDP = 17
_PROTO_ICMPV6 = 58

_IPV6_HOP_BY_HOP = 0
_IPV6_ROUTING = 43
_IPV6_FRAGMENT = 44
_IP_AUTH_HEADER = 51
_IPV6_DEST_OPTIONS = 60
_IPV6_GENERIC_EXTENSIONS = frozenset({_IPV6_HOP_BY_HOP, _IPV6_ROUTING, _IPV6_DEST_OPTIONS})


class UdpError(Exception):
    """Base class for UDP decoding errors."""


class UdpSliceError(UdpError):
    """The frame could not be sliced into its protocol layers."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"packet slice error: {message}")


class MissingNetworkLayerError(UdpError):
    """The frame carries no IP layer."""

    def __init__(self) -> None:
        super().__init__("missing network layer in packet")


class MissingIpPayloadError(UdpError):
    """The IP layer carries no payload."""

    def __init__(self) -> None:
        super().__init__("missing IP payload in packet")


class UdpTooShortError(UdpError):
    """The UDP data is shorter than required."""

    def __init__(self, needed: int, actual: int) -> None:
        self.needed = needed
        self.actual = actual
        super().__init__(f"payload too short: need {needed} bytes, got {actual}")


class Linktype(IntEnum):
    """Capture link-layer types."""

    NULL = 0
    ETHERNET = 1
    RAW = 101
    LINUX_SLL = 113
    IPV4 = 228
    IPV6 = 229


@dataclass(frozen=True)
class UdpPacket:
    """A UDP datagram with its endpoints and application payload."""

    src_ip: IpAddress
    src_port: int
    dst_ip: IpAddress
    dst_port: int
    payload: bytes


class UdpReader:
    """Bounds-checked access to the bytes of a UDP datagram."""

    def __init__(self, payload: bytes) -> None:
        self.payload = bytes(payload)

    def require_len(self, needed: int) -> None:
        """Raise UdpTooShortError unless at least ``needed`` bytes are present."""
        if len(self.payload) < needed:
            raise UdpTooShortError(needed, len(self.payload))

    def payload_without_header(self) -> bytes:
        """The datagram contents after the 8-byte UDP header."""
        self.require_len(UDP_HEADER_LEN)
        return self.payload[UDP_HEADER_LEN:]


@dataclass(frozen=True)
class _NetSlice:
    src_ip: IpAddress
    dst_ip: IpAddress
    protocol: int
    payload: bytes
    fragmented: bool


def _u16(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset : offset + 2], "big")


def _require(data: bytes, needed: int, layer: str) -> None:
    if len(data) < needed:
        raise UdpSliceError(f"{layer} needs {needed} bytes, got {len(data)}")


def _skip_extensions(
    protocol: int, payload: bytes, fragmented: bool, ipv6: bool
) -> Tuple[int, bytes, bool]:
    while True:
        if ipv6 and protocol in _IPV6_GENERIC_EXTENSIONS:
            _require(payload, 2, "IPv6 extension header")
            length = (payload[1] + 1) * 8
            _require(payload, length, "IPv6 extension header")
            protocol, payload = payload[0], payload[length:]
        elif ipv6 and protocol == _IPV6_FRAGMENT:
            _require(payload, 8, "IPv6 fragment header")
            offset = _u16(payload, 2) >> 3
            more = bool(payload[3] & 0x01)
            fragmented = fragmented or more or offset != 0
            protocol, payload = payload[0], payload[8:]
        elif protocol == _IP_AUTH_HEADER:
            _require(payload, 2, "IP authentication header")
            length = (payload[1] + 2) * 4
            _require(payload, length, "IP authentication header")
            protocol, payload = payload[0], payload[length:]
        else:
            return protocol, payload, fragmented


def _slice_ipv4(data: bytes) -> _NetSlice:
    _require(data, _IPV4_MIN_HEADER_LEN, "IPv4 header")
    version = data[0] >> 4
    if version != 4:
        raise UdpSliceError(f"unexpected IP version {version} in IPv4 header")
    header_len = (data[0] & 0x0F) * 4
    if header_len < _IPV4_MIN_HEADER_LEN:
        raise UdpSliceError(f"IPv4 header length {header_len} is below the minimum")
    _require(data, header_len, "IPv4 header")
    total_length = _u16(data, 2)
    if total_length < header_len:
        raise UdpSliceError(
            f"IPv4 total length {total_length} is smaller than header length {header_len}"
        )
    _require(data, total_length, "IPv4 packet")
    flags_fragment = _u16(data, 6)
    fragmented = bool(flags_fragment & 0x2000) or (flags_fragment & 0x1FFF) != 0
    protocol, payload, fragmented = _skip_extensions(
        data[9], data[header_len:total_length], fragmented, ipv6=False
    )
    return _NetSlice(
        src_ip=ipaddress.IPv4Address(data[12:16]),
        dst_ip=ipaddress.IPv4Address(data[16:20]),
        protocol=protocol,
        payload=payload,
        fragmented=fragmented,
    )


def _slice_ipv6(data: bytes) -> _NetSlice:
    _require(data, _IPV6_HEADER_LEN, "IPv6 header")
    version = data[0] >> 4
    if version != 6:
        raise UdpSliceError(f"unexpected IP version {version} in IPv6 header")
    end = _IPV6_HEADER_LEN + _u16(data, 4)
    _require(data, end, "IPv6 packet")
    protocol, payload, fragmented = _skip_extensions(
        data[6], data[_IPV6_HEADER_LEN:end], False, ipv6=True
    )
    return _NetSlice(
        src_ip=ipaddress.IPv6Address(data[8:24]),
        dst_ip=ipaddress.IPv6Address(data[24:40]),
        protocol=protocol,
        payload=payload,
        fragmented=fragmented,
    )


def _slice_ip(data: bytes) -> _NetSlice:
    _require(data, 1, "IP header")
    version = data[0] >> 4
    if version == 4:
        return _slice_ipv4(data)
    if version == 6:
        return _slice_ipv6(data)
    raise UdpSliceError(f"unsupported IP version {version}")


def _slice_ethernet(data: bytes) -> Optional[_NetSlice]:
    _require(data, _ETHERNET_HEADER_LEN, "Ethernet II header")
    ether_type = _u16(data, 12)
    offset = _ETHERNET_HEADER_LEN
    while ether_type in _VLAN_ETHER_TYPES:
        _require(data, offset + _VLAN_TAG_LEN, "VLAN tag")
        ether_type = _u16(data, offset + 2)
        offset += _VLAN_TAG_LEN
    if ether_type == _ETHER_TYPE_IPV4:
        return _slice_ipv4(data[offset:])
    if ether_type == _ETHER_TYPE_IPV6:
        return _slice_ipv6(data[offset:])
    return None


def _check_transport(protocol: int, payload: bytes) -> None:
    if protocol == _PROTO_UDP:
        _require(payload, UDP_HEADER_LEN, "UDP header")
        length = _u16(payload, 4)
        if length < UDP_HEADER_LEN:
            raise UdpSliceError(f"UDP length field {length} is below the header length")
        _require(payload, length, "UDP datagram")
    elif protocol == _PROTO_TCP:
        _require(payload, 20, "TCP header")
        header_len = (payload[12] >> 4) * 4
        if header_len < 20:
            raise UdpSliceError(f"TCP data offset {header_len} is below the minimum")
        _require(payload, header_len, "TCP header")
    elif protocol in (_PROTO_ICMP, _PROTO_ICMPV6):
        _require(payload, 8, "ICMP header")


def parse_udp_packet(linktype: int, data: bytes) -> Optional[UdpPacket]:
    """Extract the UDP datagram from a link-layer frame.

    Returns None for unsupported link types and for frames that do not carry
    an unfragmented UDP datagram. Raises a UdpError subclass when the frame
    cannot be decoded.
    """
    data = bytes(data)
    if linktype == Linktype.ETHERNET:
        net = _slice_ethernet(data)
    elif linktype == Linktype.RAW:
        net = _slice_ip(data)
    else:
        return None

    if net is None:
        raise MissingNetworkLayerError()
    if net.fragmented:
        return None
    _check_transport(net.protocol, net.payload)
    if net.protocol != _PROTO_UDP:
        return None

    datagram = net.payload
    return UdpPacket(
        src_ip=net.src_ip,
        src_port=_u16(datagram, 0),
        dst_ip=net.dst_ip,
        dst_port=_u16(datagram, 2),
        payload=UdpReader(datagram).payload_without_header(),
    )