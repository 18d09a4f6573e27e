"""Per-flow UDP statistics and their summaries."""

from __future__ import annotations

import ipaddress
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple, Union

from liveshark.udp import IpAddress, UdpPacket

PPS_BPS_WINDOW_S = 1.0
JITTER_WINDOW_S = 10.0


@dataclass(frozen=True)
class FlowKey:
    """Directional UDP flow identity."""

    src_ip: IpAddress
    src_port: int
    dst_ip: IpAddress
    dst_port: int


@dataclass
class FlowStats:
    """Running counters and sliding windows for one flow."""

    packets: int = 0
    bytes: int = 0
    first_ts: Optional[float] = None
    last_ts: Optional[float] = None
    prev_iat: Optional[float] = None
    iat_count: int = 0
    max_iat_ms: Optional[int] = None
    jitter_sum: float = 0.0
    jitter_samples: Deque[Tuple[float, float]] = field(default_factory=deque)
    jitter_peak: Optional[float] = None
    window_packets: int = 0
    window_bytes: int = 0
    window_samples: Deque[Tuple[float, int]] = field(default_factory=deque)
    peak_pps: Optional[float] = None
    peak_bps: Optional[float] = None
    peak_window_packets: int = 0
    peak_window_bytes: int = 0


@dataclass
class FlowSummary:
    """Reported metrics for one flow."""

    app_proto: str
    src: str
    dst: str
    pps: Optional[float] = None
    bps: Optional[float] = None
    iat_jitter_ms: Optional[float] = None
    max_iat_ms: Optional[int] = None
    pps_peak_1s: Optional[int] = None
    bps_peak_1s: Optional[int] = None


def _round_half_away(value: float) -> int:
    floor = math.floor(value)
    return floor + 1 if value - floor >= 0.5 else floor


def format_endpoint(ip: Union[IpAddress, str], port: int) -> str:
    """``addr:port`` for IPv4 and ``[addr]:port`` for IPv6."""
    address = ipaddress.ip_address(ip)
    if address.version == 6:
        return f"[{address}]:{port}"
    return f"{address}:{port}"


def _update_jitter(stats: FlowStats, ts: Optional[float]) -> None:
    if ts is None:
        return
    if stats.first_ts is None:
        stats.first_ts = ts
    if stats.last_ts is not None:
        iat = ts - stats.last_ts
        if math.isfinite(iat) and iat >= 0.0:
            stats.iat_count += 1
            ms = iat * 1000.0
            if math.isfinite(ms):
                rounded = _round_half_away(ms)
                stats.max_iat_ms = (
                    rounded if stats.max_iat_ms is None else max(stats.max_iat_ms, rounded)
                )
        if stats.prev_iat is not None:
            diff = abs(iat - stats.prev_iat)
            stats.jitter_sum += diff
            stats.jitter_samples.append((ts, diff))
            while stats.jitter_samples:
                sample_ts, sample = stats.jitter_samples[0]
                if ts - sample_ts <= JITTER_WINDOW_S:
                    break
                stats.jitter_sum -= sample
                stats.jitter_samples.popleft()
            window_avg = stats.jitter_sum / len(stats.jitter_samples)
            stats.jitter_peak = (
                window_avg if stats.jitter_peak is None else max(stats.jitter_peak, window_avg)
            )
        stats.prev_iat = iat
    stats.last_ts = ts


def _update_rates(stats: FlowStats, ts: Optional[float], size: int) -> None:
    if ts is None:
        return
    stats.window_packets += 1
    stats.window_bytes += size
    stats.window_samples.append((ts, size))
    while stats.window_samples:
        sample_ts, sample_bytes = stats.window_samples[0]
        if ts - sample_ts <= PPS_BPS_WINDOW_S:
            break
        stats.window_packets = max(0, stats.window_packets - 1)
        stats.window_bytes = max(0, stats.window_bytes - sample_bytes)
        stats.window_samples.popleft()
    pps = stats.window_packets / PPS_BPS_WINDOW_S
    bps = stats.window_bytes / PPS_BPS_WINDOW_S
    stats.peak_pps = pps if stats.peak_pps is None else max(stats.peak_pps, pps)
    stats.peak_bps = bps if stats.peak_bps is None else max(stats.peak_bps, bps)
    stats.peak_window_packets = max(stats.peak_window_packets, stats.window_packets)
    stats.peak_window_bytes = max(stats.peak_window_bytes, stats.window_bytes)


def add_flow_stats(
    stats: Dict[FlowKey, FlowStats], packet: UdpPacket, ts: Optional[float]
) -> None:
    """Account one UDP packet to its flow."""
    key = FlowKey(packet.src_ip, packet.src_port, packet.dst_ip, packet.dst_port)
    entry = stats.setdefault(key, FlowStats())
    size = len(packet.payload)
    entry.packets += 1
    entry.bytes += size
    _update_jitter(entry, ts)
    _update_rates(entry, ts, size)


def _summarize(key: FlowKey, stats: FlowStats) -> FlowSummary:
    start, end = stats.first_ts, stats.last_ts
    has_span = start is not None and end is not None

    pps_peak = bps_peak = None
    if has_span and end - start >= PPS_BPS_WINDOW_S:
        pps_peak, bps_peak = stats.peak_window_packets, stats.peak_window_bytes

    pps = bps = None
    if has_span and end > start and stats.iat_count > 0:
        duration = end - start
        pps = stats.packets / duration
        bps = stats.bytes / duration

    return FlowSummary(
        app_proto="udp",
        src=format_endpoint(key.src_ip, key.src_port),
        dst=format_endpoint(key.dst_ip, key.dst_port),
        pps=pps,
        bps=bps,
        iat_jitter_ms=None if stats.jitter_peak is None else stats.jitter_peak * 1000.0,
        max_iat_ms=stats.max_iat_ms if stats.iat_count > 0 else None,
        pps_peak_1s=pps_peak,
        bps_peak_1s=bps_peak,
    )


def build_flow_summaries(
    stats: Dict[FlowKey, FlowStats], duration_s: Optional[float]
) -> List[FlowSummary]:
    """Summaries for every flow, sorted by source then destination.

    ``duration_s`` is accepted for interface symmetry; rates use each
    flow's own active interval.
    """
    flows = [_summarize(key, entry) for key, entry in stats.items()]
    flows.sort(key=lambda flow: (flow.src, flow.dst))
    return flows