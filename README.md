# liveshark

Building blocks for analysing show-control network captures that carry
Art-Net and sACN (E1.31) traffic. The package decodes UDP datagrams from
link-layer frames, keeps per-flow and per-universe statistics, reconstructs
full DMX frames from partial updates, and finds sources that drive the same
universe at the same time. Every list it produces is sorted, so results are
the same run after run.

It uses only the standard library.

## Modules

| Module | What it holds |
| --- | --- |
| `liveshark.udp` | `parse_udp_packet`, `UdpPacket`, `UdpReader`, `Linktype` and the `UdpError` family |
| `liveshark.flows` | `add_flow_stats`, `build_flow_summaries`, `FlowKey`, `FlowStats`, `FlowSummary`, `format_endpoint` |
| `liveshark.dmx` | `DmxProtocol`, `DmxFrame`, `DmxStore`, `DmxStateStore` |
| `liveshark.source_stats` | `UniverseSourceStats`: sequence, loss, burst and jitter tracking for one source |
| `liveshark.metrics` | `compute_metrics` and `UniverseMetrics` |
| `liveshark.universes` | `add_artnet_frame`, `add_sacn_frame`, universe summaries and `build_conflicts` |
| `liveshark.timestamps` | `ts_to_rfc3339` and `TimeBounds` |
| `liveshark.inputs` | `resolve_input_path`, `validate_input_file`, `check_report_differs`, `CliError` |
| `liveshark.follow` | `follow_should_analyze`, `FollowSeen`, `is_transient_error`, `WarningThrottle` |
| `liveshark.buildinfo` | `build_metadata`, `run_git`, `shorten_commit` |

## Decoding UDP

```python
from liveshark.udp import Linktype, UdpError, parse_udp_packet

try:
    packet = parse_udp_packet(Linktype.ETHERNET, frame_bytes)
except UdpError as exc:
    print("malformed frame:", exc)
else:
    if packet is not None:
        print(packet.src_ip, packet.src_port, "->", packet.dst_ip, packet.dst_port)
        print(len(packet.payload), "payload bytes")
```

`Linktype.ETHERNET` (with VLAN tags) and `Linktype.RAW` are decoded; any other
link type gives `None`. Frames carrying TCP, ICMP or a fragmented datagram
also give `None`. A frame that cannot be sliced raises `UdpSliceError`, an
Ethernet frame without IPv4 or IPv6 raises `MissingNetworkLayerError`, and
`UdpReader.payload_without_header` raises `UdpTooShortError` when fewer than
the 8 header bytes are present.

## Flow statistics

```python
import ipaddress

from liveshark.flows import add_flow_stats, build_flow_summaries
from liveshark.udp import UdpPacket

packet = UdpPacket(
    src_ip=ipaddress.ip_address("10.0.0.1"),
    src_port=1000,
    dst_ip=ipaddress.ip_address("10.0.0.2"),
    dst_port=2000,
    payload=bytes(10),
)

stats = {}
for ts in (0.0, 0.2, 0.4, 2.0):
    add_flow_stats(stats, packet, ts)

flow = build_flow_summaries(stats, None)[0]
print(flow.src, flow.dst, flow.pps, flow.bps)        # 10.0.0.1:1000 10.0.0.2:2000 2.0 20.0
print(flow.max_iat_ms, flow.pps_peak_1s, flow.bps_peak_1s)   # 1600 3 30
```

`pps` and `bps` are averaged over each flow's own active interval and are
`None` when that interval is empty. The 1-second peaks appear only once a flow
spans at least one second. `iat_jitter_ms` is the highest 10-second average of
inter-arrival differences. Summaries are sorted by source, then destination;
IPv6 endpoints are written `[addr]:port`.

## DMX reconstruction

Senders may transmit fewer than 512 slots. `DmxStateStore` keeps the last known
value of every slot per universe, source and protocol:

```python
from liveshark.dmx import DmxProtocol, DmxStateStore

state = DmxStateStore()
state.apply_partial(1, "artnet:10.0.0.1:6454", DmxProtocol.ARTNET, bytes([10, 11, 12]))
slots = state.apply_partial(1, "artnet:10.0.0.1:6454", DmxProtocol.ARTNET, bytes([42]))
assert list(slots[:3]) == [42, 11, 12]
```

`DmxStore` keeps the resulting `DmxFrame` objects by universe and source.

## Universes and conflicts

```python
from liveshark.dmx import DmxStore
from liveshark.universes import (
    add_artnet_frame,
    build_artnet_universe_summaries,
    build_conflicts,
)

stats = {}
dmx_store = DmxStore()
add_artnet_frame(stats, 1, "10.0.0.1", 6454, None, 0.0)
add_artnet_frame(stats, 1, "10.0.0.1", 6454, None, 2.5)
add_artnet_frame(stats, 1, "10.0.0.2", 6454, None, 1.0)
add_artnet_frame(stats, 1, "10.0.0.2", 6454, None, 3.0)

conflicts = build_conflicts(stats, dmx_store)
print(conflicts[0].sources, conflicts[0].overlap_duration_s)
# ['artnet:10.0.0.1:6454', 'artnet:10.0.0.2:6454'] 1.5

summaries = build_artnet_universe_summaries(stats, dmx_store)
```

`add_sacn_frame` does the same for sACN and, unlike Art-Net, counts sequence
numbers: losses, loss bursts, duplicates and reordering over a 10-second
window, with wrap-around at 256. Universe summaries report frames per second
over the last five seconds of frames held in the `DmxStore`. A conflict is a
pair of sources whose activity overlaps by more than one second; its
`affected_channels` are the channels on which their last frames in the overlap
differ.

## Input paths

`resolve_input_path` expands a glob pattern to exactly one file and raises
`CliError` (with `message` and `hint`) when nothing or more than one file
matches. `validate_input_file` accepts only existing `.pcap` and `.pcapng`
paths, and `check_report_differs` refuses a report path that would overwrite
the input.

## Following a growing file

`follow_should_analyze(current, last)` compares two `FollowSeen` looks at a file
and returns `(changed, rotated)`: a shrinking file is rotated, a growing one
changed, and an equal size is a change only if its modification time moved
forward. `is_transient_error` recognises messages such as "unexpected end" or
"too short" that come from a partly written file, and `WarningThrottle` lets a
warning through at most once every five seconds.

## Build metadata

`build_metadata()` returns `commit`, `commit_full` and `build_date`, taken from
the `GITHUB_SHA` and `SOURCE_DATE_EPOCH` environment variables or, failing
those, from `git`; anything it cannot find is `"unknown"`.

## What the package does not do

- It has no command-line program; it is a library.
- It does not read `.pcap` or `.pcapng` files. Frames and their timestamps
  must come from elsewhere.
- It does not decode Art-Net or sACN payloads; universes, sequence numbers,
  CIDs and slots are passed in already decoded.
- It does not build or write JSON reports, and it does not collect or rank
  protocol compliance violations.

## Tests

The tests live in `tests/` and use pytest, installed through the `test` extra.