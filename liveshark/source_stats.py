"""Per-source sequence, loss, burst and jitter tracking within a universe."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Tuple

METRICS_WINDOW_S = 10.0

_SEQ_MODULUS = 256
_SEQ_HALF = 128


def _prune_front(samples: Deque, now: float, timestamp_of) -> None:
    """Drop samples older than the metrics window, oldest first."""
    while samples and now - timestamp_of(samples[0]) > METRICS_WINDOW_S:
        samples.popleft()


@dataclass
class UniverseSourceStats:
    """Running statistics for one source sending into one universe."""

    frames: int = 0
    loss: int = 0
    burst_count: int = 0
    max_burst_len: int = 0
    current_burst: int = 0
    dup_packets: int = 0
    reordered_packets: int = 0
    last_seq: Optional[int] = None
    first_ts: Optional[float] = None
    last_ts: Optional[float] = None
    prev_iat: Optional[float] = None
    jitter_sum: float = 0.0
    jitter_samples: Deque[Tuple[float, float]] = field(default_factory=deque)
    jitter_peak: Optional[float] = None
    frame_samples: Deque[float] = field(default_factory=deque)
    loss_sum: int = 0
    loss_samples: Deque[Tuple[float, int]] = field(default_factory=deque)
    burst_start_samples: Deque[float] = field(default_factory=deque)
    burst_length_samples: Deque[Tuple[float, int]] = field(default_factory=deque)

    def update(
        self, seq_reliable: bool, sequence: Optional[int], ts: Optional[float]
    ) -> None:
        """Account one frame; sequence numbers only count when ``seq_reliable``."""
        self.frames += 1

        if self.first_ts is None:
            self.first_ts = ts
        if ts is not None:
            self.frame_samples.append(ts)
            _prune_front(self.frame_samples, ts, lambda sample: sample)

        if ts is not None and self.last_ts is not None:
            self._update_jitter(ts, ts - self.last_ts)
        self.last_ts = ts

        if not seq_reliable or sequence is None:
            return
        if self.last_seq is not None:
            self._update_sequence(sequence % _SEQ_MODULUS, ts)
        self.last_seq = sequence % _SEQ_MODULUS

    def _update_jitter(self, ts: float, iat: float) -> None:
        if self.prev_iat is not None:
            diff = abs(iat - self.prev_iat)
            self.jitter_sum += diff
            self.jitter_samples.append((ts, diff))
            while self.jitter_samples:
                sample_ts, sample = self.jitter_samples[0]
                if ts - sample_ts <= METRICS_WINDOW_S:
                    break
                self.jitter_sum -= sample
                self.jitter_samples.popleft()
            window_avg = self.jitter_sum / len(self.jitter_samples)
            self.jitter_peak = (
                window_avg if self.jitter_peak is None else max(self.jitter_peak, window_avg)
            )
        self.prev_iat = iat

    def _update_sequence(self, seq: int, ts: Optional[float]) -> None:
        last = self.last_seq
        delta = (seq - last) % _SEQ_MODULUS
        if delta == 0:
            self.dup_packets += 1
        elif delta >= _SEQ_HALF:
            self.reordered_packets += 1

        expected = (last + 1) % _SEQ_MODULUS
        gap = (seq - expected) % _SEQ_MODULUS
        if 0 < gap < _SEQ_HALF:
            self.loss += gap
            if ts is not None:
                self.loss_sum += gap
                self.loss_samples.append((ts, gap))
                while self.loss_samples:
                    sample_ts, lost = self.loss_samples[0]
                    if ts - sample_ts <= METRICS_WINDOW_S:
                        break
                    self.loss_sum = max(0, self.loss_sum - lost)
                    self.loss_samples.popleft()
            if self.current_burst == 0:
                self.burst_count += 1
                if ts is not None:
                    self.burst_start_samples.append(ts)
                    _prune_front(self.burst_start_samples, ts, lambda sample: sample)
            self.current_burst += gap
            self.max_burst_len = max(self.max_burst_len, self.current_burst)
        else:
            if self.current_burst > 0 and ts is not None:
                self.burst_length_samples.append((ts, self.current_burst))
                _prune_front(self.burst_length_samples, ts, lambda sample: sample[0])
            self.current_burst = 0

    def frames_in_window(self) -> int:
        """Frames inside the metrics window, or all frames without timestamps."""
        return len(self.frame_samples) if self.frame_samples else self.frames

    def loss_in_window(self) -> int:
        """Lost packets inside the metrics window, or all losses without samples."""
        return self.loss_sum if self.loss_samples else self.loss

    def burst_count_in_window(self) -> int:
        """Bursts started inside the metrics window, or all bursts without samples."""
        return len(self.burst_start_samples) if self.burst_start_samples else self.burst_count

    def max_burst_len_in_window(self) -> int:
        """Longest burst inside the metrics window, including one still running."""
        if not self.burst_length_samples and self.current_burst == 0:
            return self.max_burst_len
        return max(
            (length for _, length in self.burst_length_samples),
            default=self.current_burst,
        ) if max(
            (length for _, length in self.burst_length_samples), default=0
        ) > self.current_burst else self.current_burst