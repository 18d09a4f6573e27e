import ipaddress

import pytest

from liveshark.flows import (
    FlowKey,
    FlowStats,
    add_flow_stats,
    build_flow_summaries,
    format_endpoint,
)
from liveshark.udp import UdpPacket


def ip(text):
    return ipaddress.ip_address(text)


def make_packet(size):
    return UdpPacket(
        src_ip=ip("10.0.0.1"),
        src_port=1000,
        dst_ip=ip("10.0.0.2"),
        dst_port=2000,
        payload=bytes(size),
    )


def feed(timestamps, size=10):
    stats = {}
    packet = make_packet(size)
    for ts in timestamps:
        add_flow_stats(stats, packet, ts)
    return stats


def test_summaries_are_sorted_and_no_duration_means_none_rates():
    stats = {
        FlowKey(ip("10.0.0.2"), 1000, ip("10.0.0.3"), 2000): FlowStats(packets=10, bytes=100),
        FlowKey(ip("10.0.0.1"), 1000, ip("10.0.0.3"), 2000): FlowStats(packets=5, bytes=50),
    }
    summaries = build_flow_summaries(stats, None)
    assert len(summaries) == 2
    assert summaries[0].src < summaries[1].src
    assert summaries[0].src == "10.0.0.1:1000"
    for summary in summaries:
        assert summary.pps is None
        assert summary.bps is None


def test_summaries_compute_average_rates_from_active_interval():
    summary = build_flow_summaries(feed([0.0, 0.2, 0.4, 2.0]), 2.0)[0]
    assert summary.pps == 2.0
    assert summary.bps == 20.0


def test_flow_jitter_is_average_of_iat_diffs():
    summary = build_flow_summaries(feed([0.0, 1.0, 3.0], size=4), 3.0)[0]
    assert summary.iat_jitter_ms == pytest.approx(1000.0, abs=0.1)


def test_flow_jitter_missing_timestamps_is_none():
    summary = build_flow_summaries(feed([None, None], size=4), None)[0]
    assert summary.iat_jitter_ms is None
    assert summary.max_iat_ms is None


def test_flow_max_iat_ms_is_reported():
    summary = build_flow_summaries(feed([0.0, 0.5, 2.0]), 2.0)[0]
    assert summary.max_iat_ms == 1500


def test_flow_peak_1s_metrics_are_reported():
    summary = build_flow_summaries(feed([0.0, 0.2, 0.4, 2.0]), 2.0)[0]
    assert summary.pps_peak_1s == 3
    assert summary.bps_peak_1s == 30


def test_peak_metrics_absent_for_short_flows():
    summary = build_flow_summaries(feed([0.0, 0.5]), 0.5)[0]
    assert summary.pps_peak_1s is None
    assert summary.bps_peak_1s is None
    assert summary.pps == pytest.approx(4.0)


def test_packets_and_bytes_counted_without_timestamps():
    stats = feed([None, None, None], size=7)
    entry = next(iter(stats.values()))
    assert (entry.packets, entry.bytes) == (3, 21)


def test_summary_endpoints_and_protocol():
    summary = build_flow_summaries(feed([0.0]), None)[0]
    assert summary.app_proto == "udp"
    assert summary.src == "10.0.0.1:1000"
    assert summary.dst == "10.0.0.2:2000"


def test_format_endpoint_ipv4_and_ipv6():
    assert format_endpoint(ip("192.168.1.5"), 6454) == "192.168.1.5:6454"
    assert format_endpoint(ip("::1"), 53) == "[::1]:53"
    assert format_endpoint("fe80::2", 5568) == "[fe80::2]:5568"