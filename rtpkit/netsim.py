"""Network impairment simulation: latency, bandwidth limit, jitter and packet loss."""

from __future__ import annotations

import dataclasses
import enum
import random
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Optional

from rtpkit import log as _log

IP_UDP_OVERHEAD = 20 + 8
IP6_UDP_OVERHEAD = 40 + 8

DEFAULT_JITTER_BANDWIDTH = 1024000

_U32 = 1 << 32


class SimulatorMode(enum.IntEnum):
    """Where the simulator sits: on received packets, or on sent packets."""

    INBOUND = 0
    OUTBOUND = 1
    OUTBOUND_CONTROLLED = 2
    INVALID = 3


_MODE_NAMES = {
    SimulatorMode.INBOUND: "Inbound",
    SimulatorMode.OUTBOUND: "Outbound",
    SimulatorMode.OUTBOUND_CONTROLLED: "OutboundControlled",
    SimulatorMode.INVALID: "Invalid",
}


def mode_to_string(mode: int) -> str:
    """Return the name of a simulator mode ("invalid" for unknown values)."""
    try:
        return _MODE_NAMES[SimulatorMode(mode)]
    except ValueError:
        return "invalid"


def mode_from_string(text: str) -> SimulatorMode:
    """Parse a mode name case-insensitively; unknown names give INVALID."""
    lowered = text.lower()
    for mode in (SimulatorMode.INBOUND, SimulatorMode.OUTBOUND, SimulatorMode.OUTBOUND_CONTROLLED):
        if _MODE_NAMES[mode].lower() == lowered:
            return mode
    return SimulatorMode.INVALID


def timespec_compare(a: tuple[int, int], b: tuple[int, int]) -> int:
    """Compare two (seconds, nanoseconds) pairs: -1 if a is earlier, 0 if equal, 1 if later."""
    secdiff = a[0] - b[0]
    if secdiff == 0:
        nsecdiff = a[1] - b[1]
        if nsecdiff < 0:
            return -1
        return 1 if nsecdiff > 0 else 0
    return -1 if secdiff < 0 else 1


@dataclass
class SimulatorParams:
    """Impairments to apply.

    latency is in milliseconds, loss_rate in percent, consecutive_loss_probability
    between 0 and 1, max_bandwidth in bits per second and max_buffer_size in bits.
    """

    enabled: bool = True
    latency: int = 0
    loss_rate: float = 0.0
    consecutive_loss_probability: float = 0.0
    max_bandwidth: float = 0.0
    max_buffer_size: int = 0
    jitter_burst_density: float = 0.0
    jitter_strength: float = 0.0
    rtp_only: bool = False
    mode: SimulatorMode = SimulatorMode.INBOUND


@dataclass(eq=False)
class SimulatedPacket:
    """A packet travelling through the simulator.

    send_time is used in OUTBOUND_CONTROLLED mode: the wall-clock time in seconds
    at which to send it, or 0 to drop it.
    """

    data: bytes
    is_rtp: bool = True
    address: Any = None
    send_time: float = 0.0
    _expiry: int = field(default=0, repr=False)


def _time_is_newer(a: int, b: int) -> bool:
    diff = (a - b) % _U32
    return 0 < diff < (1 << 31)


def _default_rng() -> Callable[[], int]:
    generator = random.Random()
    return lambda: generator.getrandbits(32)


class NetworkSimulator:
    """Applies latency, bandwidth limitation with jitter, and loss to a packet flow."""

    def __init__(
        self,
        params: SimulatorParams,
        ipv6: bool = False,
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[Callable[[], int]] = None,
    ) -> None:
        self.params = dataclasses.replace(params)
        self._overhead = IP6_UDP_OVERHEAD if ipv6 else IP_UDP_OVERHEAD
        self._clock = clock if clock is not None else time.time
        self._rng = rng if rng is not None else _default_rng()

        self._latency_q: Deque[SimulatedPacket] = deque()
        self._q: Deque[SimulatedPacket] = deque()
        self._send_q: Deque[SimulatedPacket] = deque()
        self._lock = threading.Lock()

        self._qsize = 0
        self._bit_budget = 0
        self._last_check: Optional[int] = None
        self._last_jitter_event = 0
        self._in_jitter_event = False
        self._consecutive_drops = 0
        self._drops_to_ignore = 0

        self._total_count = 0
        self._drop_by_loss = 0
        self._drop_by_congestion = 0

        p = self.params
        if p.jitter_burst_density > 0 and p.jitter_strength > 0 and p.max_bandwidth == 0:
            p.max_bandwidth = DEFAULT_JITTER_BANDWIDTH
            _log.message(
                "Network simulation: jitter requested but max_bandwidth is not set. "
                "Using default value of %f bits/s.", p.max_bandwidth,
            )
        if p.max_bandwidth and p.max_buffer_size == 0:
            p.max_buffer_size = int(p.max_bandwidth)
            _log.message(
                "Network simulation: max buffer size not set, using [%i]", p.max_buffer_size
            )
        _log.message(
            "Network simulation: enabled with the following parameters:\n"
            "\tlatency=%d\n\tloss_rate=%.1f\n\tconsecutive_loss_probability=%.1f\n"
            "\tmax_bandwidth=%.1f\n\tmax_buffer_size=%d\n\tjitter_density=%.1f\n"
            "\tjitter_strength=%.1f\n\tmode=%s\n",
            p.latency, p.loss_rate, p.consecutive_loss_probability, p.max_bandwidth,
            p.max_buffer_size, p.jitter_burst_density, p.jitter_strength,
            mode_to_string(p.mode),
        )

    def __enter__(self) -> "NetworkSimulator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _bits(self, packet: SimulatedPacket) -> int:
        return (len(packet.data) + self._overhead) * 8

    def _simulate_latency(self, packet: Optional[SimulatedPacket]) -> Optional[SimulatedPacket]:
        current = self._now_ms() % _U32
        if packet is not None:
            packet._expiry = (current + self.params.latency) % _U32
            self._latency_q.append(packet)
        if self._latency_q and _time_is_newer(current, self._latency_q[0]._expiry):
            output = self._latency_q.popleft()
            output._expiry = 0
            return output
        return None

    def _jitter_budget_adjust(self, budget_increase: int) -> int:
        r = self._rng() % 1000
        now = self._now_ms()
        if self._last_jitter_event == 0:
            self._last_jitter_event = now
        if self._in_jitter_event:
            threshold = 100.0
            score = float(r)
        else:
            score = (1000.0 * r * (now - self._last_jitter_event)
                     * self.params.jitter_burst_density * 1e-6)
            threshold = 500.0
        if score > threshold:
            strength_rand = int(self.params.jitter_strength * float(self._rng() % 1000))
            self._in_jitter_event = True
            return -(budget_increase * strength_rand // 1000)
        if self._in_jitter_event:
            self._in_jitter_event = False
            self._last_jitter_event = self._now_ms()
        return 0

    def _simulate_bandwidth(self, packet: Optional[SimulatedPacket]) -> Optional[SimulatedPacket]:
        current = int(self._clock() * 1_000_000)
        if self._last_check is None:
            self._last_check = current
            self._bit_budget = 0
        elapsed = current - self._last_check
        budget_increase = int(elapsed * int(self.params.max_bandwidth) / 1_000_000)
        self._bit_budget += budget_increase
        self._bit_budget += self._jitter_budget_adjust(budget_increase)
        self._last_check = current

        if packet is not None:
            self._q.append(packet)
            self._qsize += self._bits(packet)

        while self._q and self._qsize >= self.params.max_buffer_size:
            dropped = self._q.popleft()
            self._qsize -= self._bits(dropped)
            self._drop_by_congestion += 1

        output = None
        if self._bit_budget >= 0 and self._q:
            output = self._q.popleft()
            bits = self._bits(output)
            self._bit_budget -= bits
            self._qsize -= bits
        if output is None and packet is None and self._bit_budget >= 0:
            # Unused budget is lost.
            self._last_check = None
        return output

    def _simulate_loss(self, packet: SimulatedPacket) -> Optional[SimulatedPacket]:
        p = self.params
        loss_rate = p.loss_rate * 10.0
        # After a loss, use a different probability to produce bursts.
        if self._consecutive_drops > 0:
            loss_rate = p.consecutive_loss_probability * 1000.0
        rrate = self._rng() % 1000
        if rrate >= loss_rate:
            if self._consecutive_drops:
                self._drops_to_ignore = int(
                    self._consecutive_drops - (self._consecutive_drops * p.loss_rate) / 100
                )
                self._consecutive_drops = 0
            return packet
        if self._drops_to_ignore > 0:
            self._drops_to_ignore -= 1
            return packet
        if p.consecutive_loss_probability > 0:
            self._consecutive_drops += 1
        self._drop_by_loss += 1
        return None

    def simulate(self, packet: Optional[SimulatedPacket]) -> Optional[SimulatedPacket]:
        """Feed a packet (or None to let time pass) and return a packet ready to go, if any."""
        if packet is not None:
            self._total_count += 1
        output = packet
        if self.params.latency > 0:
            output = self._simulate_latency(output)
        if self.params.max_bandwidth > 0:
            output = self._simulate_bandwidth(output)
        if self.params.loss_rate > 0 and output is not None:
            if not self.params.rtp_only or output.is_rtp:
                output = self._simulate_loss(output)
        return output

    def enqueue(self, packet: SimulatedPacket) -> None:
        """Queue a packet for sending in one of the outbound modes."""
        with self._lock:
            self._send_q.append(packet)

    def _next_controlled(self) -> Optional[SimulatedPacket]:
        best: Optional[SimulatedPacket] = None
        for packet in self._send_q:
            if packet.send_time == 0:
                return packet
            if best is None or packet.send_time < best.send_time:
                best = packet
        return best

    def schedule_outbound(self, send: Callable[[SimulatedPacket], Any]) -> Optional[float]:
        """Run one scheduling round, calling ``send`` for each packet leaving the simulator.

        Returns the wall-clock time in seconds at which to call again, or None when
        the caller should simply call again shortly.
        """
        p = self.params
        if not p.enabled:
            return None
        if p.mode == SimulatorMode.OUTBOUND:
            count = 0
            while True:
                with self._lock:
                    if not self._send_q:
                        break
                    packet = self._send_q.popleft()
                count += 1
                output = self.simulate(packet)
                if output is not None:
                    send(output)
            if count == 0:
                # Even with nothing queued, the simulator must advance.
                output = self.simulate(None)
                if output is not None:
                    send(output)
            return None
        if p.mode == SimulatorMode.OUTBOUND_CONTROLLED:
            sleep_until: Optional[float] = None
            while True:
                with self._lock:
                    packet = self._next_controlled()
                    if packet is None:
                        break
                    now = self._clock()
                    if packet.send_time == 0:
                        self._send_q.remove(packet)
                        continue
                    if packet.send_time > now:
                        sleep_until = packet.send_time
                        break
                    self._send_q.remove(packet)
                send(packet)
            if sleep_until is None:
                sleep_until = self._clock() + 0.001
            return sleep_until
        return None

    def statistics(self) -> dict[str, int]:
        """Counts of packets seen, lost, dropped by congestion and still held."""
        return {
            "total": self._total_count,
            "dropped_by_loss": self._drop_by_loss,
            "dropped_by_congestion": self._drop_by_congestion,
            "flushed": len(self._latency_q) + len(self._q),
        }

    def close(self) -> None:
        """Log the statistics and discard every held packet."""
        stats = self.statistics()
        total = stats["total"]
        if total > 0:
            _log.message(
                "Network simulation: destroyed. Statistics are:"
                "%d/%d(%.1f%%, param=%.1f) packets dropped by loss, "
                "%d/%d(%.1f%%) packets dropped by congestion, "
                "%d/%d(%.1f%%) packets flushed.",
                stats["dropped_by_loss"], total, stats["dropped_by_loss"] * 100.0 / total,
                self.params.loss_rate,
                stats["dropped_by_congestion"], total,
                stats["dropped_by_congestion"] * 100.0 / total,
                stats["flushed"], total, stats["flushed"] * 100.0 / total,
            )
        self._latency_q.clear()
        self._q.clear()
        self._qsize = 0
        with self._lock:
            self._send_q.clear()