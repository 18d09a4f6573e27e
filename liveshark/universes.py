"""Per-universe DMX statistics, summaries and source conflicts."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Optional, Union

from liveshark.dmx import DmxFrame, DmxProtocol, DmxStore
from liveshark.metrics import compute_metrics
from liveshark.source_stats import UniverseSourceStats
from liveshark.timestamps import TimeBounds
from liveshark.udp import IpAddress

FPS_WINDOW_S = 5.0
CONFLICT_MIN_OVERLAP_S = 1.0

IpLike = Union[IpAddress, str]


@dataclass
class SourceSummary:
    """A source seen sending into a universe."""

    source_ip: str
    cid: Optional[str] = None
    source_name: Optional[str] = None


@dataclass
class UniverseSummary:
    """Reported metrics for one universe over one protocol."""

    universe: int
    proto: str
    sources: List[SourceSummary]
    fps: Optional[float]
    frames_count: int
    loss_packets: Optional[int] = None
    loss_rate: Optional[float] = None
    burst_count: Optional[int] = None
    max_burst_len: Optional[int] = None
    jitter_ms: Optional[float] = None
    dup_packets: Optional[int] = None
    reordered_packets: Optional[int] = None


@dataclass
class ConflictSummary:
    """Two sources sending into the same universe at overlapping times."""

    universe: int
    sources: List[str]
    overlap_duration_s: float
    affected_channels: List[int]
    severity: str
    conflict_score: float


@dataclass
class UniverseStats:
    """Running statistics for one universe."""

    frames: int = 0
    sources: Dict[str, SourceSummary] = field(default_factory=dict)
    bounds: TimeBounds = field(default_factory=TimeBounds)
    per_source: Dict[str, UniverseSourceStats] = field(default_factory=dict)


def _artnet_source_id(source_ip: IpLike, source_port: int) -> str:
    return f"artnet:{source_ip}:{source_port}"


def _sacn_source_id(cid: str, source_ip: IpLike, source_port: int) -> str:
    if not cid:
        return f"sacn:{source_ip}:{source_port}"
    return f"sacn:cid:{cid}"


def _add_frame(
    stats: Dict[int, UniverseStats],
    universe: int,
    source_id: str,
    summary: SourceSummary,
    seq_reliable: bool,
    sequence: Optional[int],
    ts: Optional[float],
) -> str:
    entry = stats.setdefault(universe, UniverseStats())
    entry.frames += 1
    entry.sources.setdefault(source_id, summary)
    entry.per_source.setdefault(source_id, UniverseSourceStats()).update(
        seq_reliable, sequence, ts
    )
    entry.bounds.update(ts)
    return source_id


def add_artnet_frame(
    stats: Dict[int, UniverseStats],
    universe: int,
    source_ip: IpLike,
    source_port: int,
    sequence: Optional[int],
    ts: Optional[float],
) -> str:
    """Account one Art-Net frame and return its source id.

    Art-Net sequence numbers are not trusted for loss tracking.
    """
    source_id = _artnet_source_id(source_ip, source_port)
    summary = SourceSummary(source_ip=str(source_ip))
    return _add_frame(stats, universe, source_id, summary, False, sequence, ts)


def add_sacn_frame(
    stats: Dict[int, UniverseStats],
    universe: int,
    source_ip: IpLike,
    source_port: int,
    cid: str,
    source_name: Optional[str],
    sequence: Optional[int],
    ts: Optional[float],
) -> str:
    """Account one sACN frame and return its source id."""
    source_id = _sacn_source_id(cid, source_ip, source_port)
    summary = SourceSummary(source_ip=str(source_ip), cid=cid, source_name=source_name)
    return _add_frame(stats, universe, source_id, summary, True, sequence, ts)


def _fps_from_dmx(
    dmx_store: DmxStore, universe: int, protocol: DmxProtocol, fallback_frames: int
) -> Optional[float]:
    stamps = [
        frame.timestamp
        for frame in dmx_store.frames_for_universe(universe, protocol)
        if frame.timestamp is not None
    ]
    frame_count = len(stamps) or fallback_frames
    if not stamps:
        return None
    earliest, last = min(stamps), max(stamps)
    if last <= earliest or frame_count == 0:
        return None
    window_start = last - FPS_WINDOW_S
    window_count = sum(1 for ts in stamps if ts >= window_start)
    window_duration = min(last - earliest, FPS_WINDOW_S)
    if window_duration > 0.0 and window_count > 0:
        return window_count / window_duration
    return None


def _build_universe_summaries(
    stats: Dict[int, UniverseStats],
    dmx_store: DmxStore,
    protocol: DmxProtocol,
    proto: str,
) -> List[UniverseSummary]:
    universes = []
    for universe, entry in stats.items():
        metrics = compute_metrics(entry.per_source)
        universes.append(
            UniverseSummary(
                universe=universe,
                proto=proto,
                sources=[summary for _, summary in sorted(entry.sources.items())],
                fps=_fps_from_dmx(dmx_store, universe, protocol, entry.frames),
                frames_count=entry.frames,
                loss_packets=metrics.loss_packets,
                loss_rate=metrics.loss_rate,
                burst_count=metrics.burst_count,
                max_burst_len=metrics.max_burst_len,
                jitter_ms=metrics.jitter_ms,
                dup_packets=metrics.dup_packets,
                reordered_packets=metrics.reordered_packets,
            )
        )
    universes.sort(key=lambda summary: summary.universe)
    return universes


def build_artnet_universe_summaries(
    stats: Dict[int, UniverseStats], dmx_store: DmxStore
) -> List[UniverseSummary]:
    """Art-Net universe summaries sorted by universe."""
    return _build_universe_summaries(stats, dmx_store, DmxProtocol.ARTNET, "artnet")


def build_sacn_universe_summaries(
    stats: Dict[int, UniverseStats], dmx_store: DmxStore
) -> List[UniverseSummary]:
    """sACN universe summaries sorted by universe."""
    return _build_universe_summaries(stats, dmx_store, DmxProtocol.SACN, "sacn")


def _last_frame_in_window(
    frames: List[DmxFrame], start: float, end: float
) -> Optional[DmxFrame]:
    best: Optional[DmxFrame] = None
    for frame in frames:
        ts = frame.timestamp
        if ts is None or not start <= ts <= end:
            continue
        if best is None or ts >= best.timestamp:
            best = frame
    return best


def _affected_channels(
    dmx_store: DmxStore,
    universe: int,
    src_a: str,
    src_b: str,
    overlap_start: float,
    overlap_end: float,
) -> List[int]:
    frames_a = dmx_store.frames_for(universe, src_a)
    frames_b = dmx_store.frames_for(universe, src_b)
    if frames_a is None or frames_b is None:
        return []
    frame_a = _last_frame_in_window(frames_a, overlap_start, overlap_end)
    frame_b = _last_frame_in_window(frames_b, overlap_start, overlap_end)
    if frame_a is None or frame_b is None:
        return []
    return [
        channel
        for channel, (a, b) in enumerate(zip(frame_a.slots, frame_b.slots), start=1)
        if a != b and (a != 0 or b != 0)
    ]


def build_conflicts(
    stats: Dict[int, UniverseStats], dmx_store: DmxStore
) -> List[ConflictSummary]:
    """Pairs of sources whose activity in a universe overlaps by over a second."""
    conflicts = []
    for universe, entry in stats.items():
        for key_a, key_b in combinations(sorted(entry.per_source), 2):
            stats_a = entry.per_source[key_a]
            stats_b = entry.per_source[key_b]
            if None in (stats_a.first_ts, stats_a.last_ts, stats_b.first_ts, stats_b.last_ts):
                continue
            overlap_start = max(stats_a.first_ts, stats_b.first_ts)
            overlap_end = min(stats_a.last_ts, stats_b.last_ts)
            overlap = max(overlap_end - overlap_start, 0.0)
            if overlap <= CONFLICT_MIN_OVERLAP_S:
                continue
            conflicts.append(
                ConflictSummary(
                    universe=universe,
                    sources=[key_a, key_b],
                    overlap_duration_s=overlap,
                    affected_channels=_affected_channels(
                        dmx_store, universe, key_a, key_b, overlap_start, overlap_end
                    ),
                    severity="medium",
                    conflict_score=overlap,
                )
            )
    conflicts.sort(key=lambda conflict: (conflict.universe, ",".join(conflict.sources)))
    return conflicts