import pytest

from rtpkit.netsim import (
    DEFAULT_JITTER_BANDWIDTH,
    NetworkSimulator,
    SimulatedPacket,
    SimulatorMode,
    SimulatorParams,
    mode_from_string,
    mode_to_string,
    timespec_compare,
)


class FakeClock:
    def __init__(self, now=10.0):
        self.now = now

    def __call__(self):
        return self.now


def fixed_rng(*values):
    items = list(values)

    def rng():
        return items.pop(0) if len(items) > 1 else items[0]

    return rng


def make(params, clock=None, rng=None, ipv6=False):
    return NetworkSimulator(params, ipv6=ipv6, clock=clock or FakeClock(), rng=rng or fixed_rng(0))


def test_mode_strings_round_trip():
    for mode in (SimulatorMode.INBOUND, SimulatorMode.OUTBOUND, SimulatorMode.OUTBOUND_CONTROLLED):
        assert mode_from_string(mode_to_string(mode)) is mode


def test_mode_names():
    assert mode_to_string(SimulatorMode.OUTBOUND_CONTROLLED) == "OutboundControlled"
    assert mode_to_string(SimulatorMode.INVALID) == "Invalid"
    assert mode_to_string(42) == "invalid"


def test_mode_from_string_case_insensitive_and_unknown():
    assert mode_from_string("outBOUND") is SimulatorMode.OUTBOUND
    assert mode_from_string("sideways") is SimulatorMode.INVALID


@pytest.mark.parametrize(
    "a,b,expected",
    [((1, 0), (2, 0), -1), ((2, 0), (1, 999), 1), ((3, 5), (3, 5), 0), ((3, 4), (3, 5), -1), ((3, 6), (3, 5), 1)],
)
def test_timespec_compare(a, b, expected):
    assert timespec_compare(a, b) == expected


def test_no_impairment_passes_through():
    sim = make(SimulatorParams())
    packet = SimulatedPacket(b"abc")
    assert sim.simulate(packet) is packet
    assert sim.statistics()["total"] == 1


def test_latency_holds_packet_until_expired():
    clock = FakeClock(10.0)
    sim = make(SimulatorParams(latency=100), clock=clock)
    packet = SimulatedPacket(b"x")
    assert sim.simulate(packet) is None
    clock.now = 10.05
    assert sim.simulate(None) is None
    clock.now = 10.2
    assert sim.simulate(None) is packet


def test_full_loss_drops_everything():
    sim = make(SimulatorParams(loss_rate=100), rng=fixed_rng(0))
    results = [sim.simulate(SimulatedPacket(b"p")) for _ in range(5)]
    assert results == [None] * 5
    assert sim.statistics()["dropped_by_loss"] == 5


def test_loss_threshold_uses_random_value():
    sim = make(SimulatorParams(loss_rate=50), rng=fixed_rng(600, 100))
    kept = SimulatedPacket(b"a")
    assert sim.simulate(kept) is kept
    assert sim.simulate(SimulatedPacket(b"b")) is None


def test_rtp_only_spares_rtcp():
    sim = make(SimulatorParams(loss_rate=100, rtp_only=True))
    rtcp = SimulatedPacket(b"c", is_rtp=False)
    assert sim.simulate(rtcp) is rtcp
    assert sim.simulate(SimulatedPacket(b"r", is_rtp=True)) is None


def test_burst_loss_then_ignored_drops():
    sim = make(
        SimulatorParams(loss_rate=10, consecutive_loss_probability=0.5),
        rng=fixed_rng(0, 0, 999, 0),
    )
    packets = [SimulatedPacket(bytes([i])) for i in range(4)]
    results = [sim.simulate(p) for p in packets]
    assert results[0] is None
    assert results[1] is None
    assert results[2] is packets[2]
    assert results[3] is packets[3]
    assert sim.statistics()["dropped_by_loss"] == 2


def test_bandwidth_limit_delays_second_packet():
    clock = FakeClock(10.0)
    sim = make(SimulatorParams(max_bandwidth=8000, max_buffer_size=100000), clock=clock)
    first = SimulatedPacket(bytes(72))
    second = SimulatedPacket(bytes(72))
    assert sim.simulate(first) is first
    assert sim.simulate(second) is None
    clock.now = 10.1
    assert sim.simulate(None) is second


def test_congestion_drops_oldest_queued():
    clock = FakeClock(10.0)
    sim = make(SimulatorParams(max_bandwidth=8000, max_buffer_size=1000), clock=clock)
    packets = [SimulatedPacket(bytes(72)) for _ in range(3)]
    assert sim.simulate(packets[0]) is packets[0]
    assert sim.simulate(packets[1]) is None
    assert sim.simulate(packets[2]) is None
    assert sim.statistics()["dropped_by_congestion"] == 1
    clock.now = 10.2
    assert sim.simulate(None) is packets[2]


def test_jitter_defaults_bandwidth_and_buffer():
    params = SimulatorParams(jitter_burst_density=1.0, jitter_strength=0.5)
    sim = make(params)
    assert sim.params.max_bandwidth == DEFAULT_JITTER_BANDWIDTH
    assert sim.params.max_buffer_size == DEFAULT_JITTER_BANDWIDTH
    assert params.max_bandwidth == 0


def test_outbound_mode_sends_queued_packets():
    sim = make(SimulatorParams(mode=SimulatorMode.OUTBOUND))
    packets = [SimulatedPacket(b"1"), SimulatedPacket(b"2")]
    for p in packets:
        sim.enqueue(p)
    sent = []
    assert sim.schedule_outbound(sent.append) is None
    assert sent == packets
    assert sim.statistics()["total"] == 2


def test_outbound_controlled_respects_send_times():
    clock = FakeClock(4.0)
    sim = make(SimulatorParams(mode=SimulatorMode.OUTBOUND_CONTROLLED), clock=clock)
    late = SimulatedPacket(b"late", send_time=5.0)
    due = SimulatedPacket(b"due", send_time=3.0)
    dropped = SimulatedPacket(b"drop", send_time=0)
    for p in (late, due, dropped):
        sim.enqueue(p)
    sent = []
    assert sim.schedule_outbound(sent.append) == 5.0
    assert sent == [due]
    clock.now = 6.0
    wake = sim.schedule_outbound(sent.append)
    assert sent == [due, late]
    assert wake > clock.now


def test_disabled_simulator_does_not_schedule():
    sim = make(SimulatorParams(enabled=False, mode=SimulatorMode.OUTBOUND))
    sim.enqueue(SimulatedPacket(b"x"))
    sent = []
    assert sim.schedule_outbound(sent.append) is None
    assert sent == []


def test_close_flushes_held_packets():
    sim = make(SimulatorParams(latency=1000))
    with sim:
        sim.simulate(SimulatedPacket(b"held"))
        assert sim.statistics()["flushed"] == 1
    assert sim.statistics()["flushed"] == 0