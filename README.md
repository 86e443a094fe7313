# rtpkit

Pure-Python building blocks for applications that speak RTP (RFC 3550). The
package has no dependencies outside the standard library.

## Modules

- `rtpkit.payloadtype`: `PayloadType`, the description of a payload format (kind,
  clock rate, channels, bitrate, zero pattern, fmtp strings, AVPF parameters and
  flags), with `rtpmap()`, `clone()`, `set_recv_fmtp()`, `set_send_fmtp()`,
  `append_recv_fmtp()`, `append_send_fmtp()` and `set_avpf_params()`. Also
  `PayloadKind`, `PayloadFlags`, `AvpfFeatures`, `AvpfParams`,
  `ReadOnlyPayloadError` and `fmtp_get_value()`.
- `rtpkit.avprofile`: `RtpProfile`, a table from payload numbers (0-127) to payload
  types, the predefined `PAYLOAD_TYPE_*` definitions (PCMU, PCMA, GSM, G722, H264,
  VP8, Opus, Speex, SILK and others), `av_profile_init()` and `make_av_profile()`.
- `rtpkit.jitterctl`: `JitterControl`, which estimates clock slide and jitter of
  arriving packets, tracks the mean buffered duration and gives compensated
  timestamps; `JitterBufferParams` holds a jitter buffer configuration.
- `rtpkit.telephony`: `TelephoneEvent` records (RFC 2833) with `pack()` and
  `unpack()`, the `TEV_*` event codes, `dtmf_to_event()` and `event_to_dtmf()`.
- `rtpkit.events`: `EventType`, `EventData`, `Event`, the thread-safe `EventQueue`
  and `EventDispatcher`, which routes queued events to callbacks by event type and,
  for RTCP events, by RTCP packet type of each part of a compound packet
  (`rtcp_packet_type()`, `iter_rtcp_packets()`).
- `rtpkit.netsim`: `NetworkSimulator`, which applies latency, a bandwidth limit with
  bursts of jitter, and packet loss to `SimulatedPacket` objects as configured by
  `SimulatorParams` and `SimulatorMode`; also `mode_to_string()`,
  `mode_from_string()` and `timespec_compare()`.
- `rtpkit.b64`: base-64 `encode()` with optional CRLF line wrapping, tolerant or
  strict `decode()` (raising `B64Error`), `encoded_length()`, `Flags`,
  `ResultCode` and `error_string()`.
- `rtpkit.extremum`: `Extremum`, a minimum or maximum tracker over a time period.
- `rtpkit.log`: `Logger`, with per-domain level masks and optional deferred output
  through one thread; the module functions `log()`, `debug()`, `message()`,
  `warning()`, `error()` and `fatal()` use the process-wide logger from
  `get_logger()`. A FATAL message raises `FatalLogError` after it is logged.
- `rtpkit.core`: `init()` and `shutdown()` (counted), `is_initialized()`, the shared
  `AV_PROFILE`, the global `RtpStats` (`global_stats()`, `reset_global_stats()`,
  `display_global_stats()`) and `min_version_required()`.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Examples

Reading a parameter from an fmtp line:

```python
from rtpkit.payloadtype import fmtp_get_value

fmtp_get_value("profile-level-id=42801F;packetization-mode=1", "packetization-mode")
# -> "1"
```

Looking up a payload in the audio/video profile:

```python
from rtpkit.avprofile import make_av_profile

profile = make_av_profile()
pcmu = profile.get_payload(0)
pcmu.rtpmap()  # "PCMU/8000/1"
```

The predefined payload types are shared and read-only: changing their fmtp or AVPF
parameters raises `ReadOnlyPayloadError`. Work on a clone instead:

```python
own = pcmu.clone()
own.append_recv_fmtp("ptime=20")
```

Packing a DTMF telephone event:

```python
from rtpkit.telephony import TelephoneEvent, dtmf_to_event

TelephoneEvent(event=dtmf_to_event("5"), end=True, volume=10, duration=800).pack()
# -> b"\x05\x8a\x03\x20"
```

Holding packets back with simulated latency:

```python
from rtpkit.netsim import NetworkSimulator, SimulatedPacket, SimulatorParams

with NetworkSimulator(SimulatorParams(latency=50)) as sim:
    sim.simulate(SimulatedPacket(b"payload"))  # None: held for 50 ms
```

Base-64 with 76-character lines:

```python
from rtpkit import b64

text = b64.encode(b"hello world", b64.Flags.LINE_LEN_76, -1)
b64.decode(text, b64.Flags.STOP_ON_NOTHING)  # b"hello world"
```

Logging at a chosen level for one domain:

```python
from rtpkit.log import LogLevel, get_logger

get_logger().set_level("mydomain", LogLevel.MESSAGE)
```

## What it does not do

rtpkit has no RTP session: it opens no sockets, builds, sends or receives no RTP or
RTCP packets, and runs no scheduler thread. `NetworkSimulator.schedule_outbound()`
hands packets to a `send` callback you supply and returns when to call it again;
`EventDispatcher` only delivers events that you put on its `EventQueue`. There is no
command-line program.