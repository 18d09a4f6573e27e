"""Universe-level metrics aggregated over per-source statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from liveshark.source_stats import UniverseSourceStats


@dataclass(frozen=True)
class UniverseMetrics:
    """Loss, burst, jitter and sequence anomalies for one universe."""

    loss_packets: Optional[int] = None
    loss_rate: Optional[float] = None
    burst_count: Optional[int] = None
    max_burst_len: Optional[int] = None
    jitter_ms: Optional[float] = None
    dup_packets: Optional[int] = None
    reordered_packets: Optional[int] = None


def compute_metrics(per_source: Mapping[str, UniverseSourceStats]) -> UniverseMetrics:
    """Combine the statistics of every source in a universe.

    Loss and burst figures only come from sources that carried sequence
    numbers, and need more than one such frame in the window.
    """
    jitter_peak: Optional[float] = None
    any_seq = False
    seq_frames = seq_loss = seq_bursts = seq_max_burst = 0
    dup_packets = reordered_packets = 0

    for stats in per_source.values():
        if stats.last_seq is not None:
            any_seq = True
            seq_frames += stats.frames_in_window()
            seq_loss += stats.loss_in_window()
            seq_bursts += stats.burst_count_in_window()
            seq_max_burst = max(seq_max_burst, stats.max_burst_len_in_window())
            dup_packets += stats.dup_packets
            reordered_packets += stats.reordered_packets
        if stats.jitter_peak is not None:
            jitter_peak = (
                stats.jitter_peak if jitter_peak is None else max(jitter_peak, stats.jitter_peak)
            )

    enough = any_seq and seq_frames > 1
    loss_packets = seq_loss if enough else None
    loss_rate = None
    if loss_packets is not None:
        denom = seq_frames + loss_packets
        if denom > 0:
            loss_rate = loss_packets / denom

    return UniverseMetrics(
        loss_packets=loss_packets,
        loss_rate=loss_rate,
        burst_count=seq_bursts if enough else None,
        max_burst_len=seq_max_burst if enough else None,
        jitter_ms=None if jitter_peak is None else jitter_peak * 1000.0,
        dup_packets=dup_packets if any_seq else None,
        reordered_packets=reordered_packets if any_seq else None,
    )