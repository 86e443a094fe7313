import pytest

from rtpkit.events import (
    Event,
    EventData,
    EventDispatcher,
    EventQueue,
    EventType,
    iter_rtcp_packets,
    rtcp_packet_type,
)

SR = bytes([0x80, 200, 0x00, 0x01, 1, 2, 3, 4])
RR = bytes([0x80, 201, 0x00, 0x00])


def test_event_type_values():
    assert Event(EventType.RTCP_PACKET_RECEIVED).type == 4
    assert Event(EventType.TMMBR_RECEIVED).type == 14


def test_queue_is_fifo():
    q = EventQueue()
    a = Event(EventType.TELEPHONE_EVENT)
    b = Event(EventType.PAYLOAD_TYPE_CHANGED)
    q.put(a)
    q.put(b)
    assert len(q) == 2
    assert q.get() is a
    assert q.get() is b
    assert q.get() is None


def test_queue_flush():
    q = EventQueue()
    for _ in range(3):
        q.put(Event(EventType.TELEPHONE_EVENT))
    q.flush()
    assert len(q) == 0
    assert q.get() is None


def test_event_records_time():
    ev = Event(EventType.TELEPHONE_EVENT)
    assert ev.data.ts > 0


def test_dup_is_independent():
    ev = Event(EventType.TELEPHONE_EVENT, EventData(packet=RR, info=5))
    copy = ev.dup()
    assert copy.type == ev.type
    assert copy.data == ev.data
    copy.data.info = 9
    assert ev.data.info == 5


def test_rtcp_packet_type():
    assert rtcp_packet_type(SR) == 200
    assert rtcp_packet_type(bytes([0x40, 200, 0, 0])) is None
    assert rtcp_packet_type(b"\x80") is None
    assert rtcp_packet_type(None) is None


def test_iter_rtcp_packets_splits_compound():
    assert list(iter_rtcp_packets(SR + RR)) == [SR, RR]


def test_iter_rtcp_packets_stops_on_truncation():
    assert list(iter_rtcp_packets(RR + SR[:6])) == [RR]


def test_dispatch_non_rtcp_event():
    q = EventQueue()
    d = EventDispatcher(q)
    seen = []
    d.connect(EventType.TELEPHONE_EVENT, 0, lambda data, ud: seen.append((data.info, ud)), "ud")
    q.put(Event(EventType.TELEPHONE_EVENT, EventData(info=3)))
    q.put(Event(EventType.PAYLOAD_TYPE_CHANGED, EventData(info=7)))
    d.iterate()
    assert seen == [(3, "ud")]
    assert len(q) == 0


def test_dispatch_rtcp_subtype_per_part():
    q = EventQueue()
    d = EventDispatcher(q)
    rr_parts = []
    sr_parts = []
    d.connect(EventType.RTCP_PACKET_RECEIVED, 201, lambda data, ud: rr_parts.append(data.packet))
    d.connect(EventType.RTCP_PACKET_RECEIVED, 200, lambda data, ud: sr_parts.append(data.packet))
    q.put(Event(EventType.RTCP_PACKET_RECEIVED, EventData(packet=SR + RR)))
    d.iterate()
    assert rr_parts == [RR]
    assert sr_parts == [SR]


def test_disconnect_removes_callback():
    q = EventQueue()
    d = EventDispatcher(q)
    seen = []

    def cb(data, ud):
        seen.append(("removed", data.info))

    def keep(data, ud):
        seen.append(("kept", data.info))

    d.connect(EventType.TELEPHONE_EVENT, 0, cb)
    d.connect(EventType.TELEPHONE_EVENT, 0, keep)
    d.disconnect(EventType.TELEPHONE_EVENT, 0, cb)
    q.put(Event(EventType.TELEPHONE_EVENT, EventData(info=1)))
    d.iterate()
    assert len(q) == 0
    assert seen == [("kept", 1)]


def test_disconnect_other_subtype_keeps_callback():
    q = EventQueue()
    d = EventDispatcher(q)
    seen = []

    def cb(data, ud):
        seen.append(data.packet)

    d.connect(EventType.RTCP_PACKET_EMITTED, 200, cb)
    d.disconnect(EventType.RTCP_PACKET_EMITTED, 201, cb)
    q.put(Event(EventType.RTCP_PACKET_EMITTED, EventData(packet=SR)))
    d.iterate()
    assert seen == [SR]


def test_callback_error_propagates():
    q = EventQueue()
    d = EventDispatcher(q)

    def cb(data, ud):
        raise KeyError("boom")

    d.connect(EventType.TELEPHONE_EVENT, 0, cb)
    q.put(Event(EventType.TELEPHONE_EVENT))
    with pytest.raises(KeyError):
        d.iterate()