"""DMX frame storage and stateful slot reconstruction."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

DMX_SLOTS = 512


class DmxProtocol(Enum):
    """Protocol a DMX frame arrived over."""

    ARTNET = "artnet"
    SACN = "sacn"


@dataclass
class DmxFrame:
    """A full 512-slot DMX frame from one source."""

    universe: int
    timestamp: Optional[float]
    source_id: str
    protocol: DmxProtocol
    slots: bytes

    def __post_init__(self) -> None:
        self.slots = bytes(self.slots)
        if len(self.slots) != DMX_SLOTS:
            raise ValueError(f"DMX frame needs {DMX_SLOTS} slots, got {len(self.slots)}")


class DmxStore:
    """Frames grouped by universe and then by source id."""

    def __init__(self) -> None:
        self._frames: Dict[int, Dict[str, List[DmxFrame]]] = defaultdict(
            lambda: defaultdict(list)
        )

    def push(self, frame: DmxFrame) -> None:
        self._frames[frame.universe][frame.source_id].append(frame)

    def frames_for_universe(self, universe: int, protocol: DmxProtocol) -> List[DmxFrame]:
        """All frames of ``universe`` carried by ``protocol``, across sources."""
        per_source = self._frames.get(universe)
        if per_source is None:
            return []
        return [
            frame
            for frames in per_source.values()
            for frame in frames
            if frame.protocol == protocol
        ]

    def frames_for(self, universe: int, source_id: str) -> Optional[List[DmxFrame]]:
        """Frames from one source in one universe, or None if none were stored."""
        per_source = self._frames.get(universe)
        if per_source is None or source_id not in per_source:
            return None
        return list(per_source[source_id])


class DmxStateStore:
    """Last known slot values per (universe, source, protocol)."""

    def __init__(self) -> None:
        self._states: Dict[Tuple[int, str, DmxProtocol], bytearray] = {}

    def apply_partial(
        self,
        universe: int,
        source_id: str,
        protocol: DmxProtocol,
        partial_slots: bytes,
    ) -> bytes:
        """Overlay the leading slots of a partial frame and return the full state."""
        state = self._states.setdefault(
            (universe, source_id, protocol), bytearray(DMX_SLOTS)
        )
        head = bytes(partial_slots[:DMX_SLOTS])
        state[: len(head)] = head
        return bytes(state)