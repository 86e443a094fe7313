"""Events raised by an RTP session, a thread-safe event queue and a dispatcher."""

from __future__ import annotations

import dataclasses
import enum
import struct
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

_RTCP_VERSION = 2
_HEADER = struct.Struct("!BBH")


class EventType(enum.IntEnum):
    """Kinds of events a session reports."""

    STUN_PACKET_RECEIVED = 1
    PAYLOAD_TYPE_CHANGED = 2
    TELEPHONE_EVENT = 3
    RTCP_PACKET_RECEIVED = 4
    RTCP_PACKET_EMITTED = 5
    ZRTP_ENCRYPTION_CHANGED = 6
    ZRTP_SAS_READY = 7
    ICE_CHECK_LIST_PROCESSING_FINISHED = 8
    ICE_SESSION_PROCESSING_FINISHED = 9
    ICE_GATHERING_FINISHED = 10
    ICE_LOSING_PAIRS_COMPLETED = 11
    ICE_RESTART_NEEDED = 12
    DTLS_ENCRYPTION_CHANGED = 13
    TMMBR_RECEIVED = 14


@dataclass
class EventData:
    """Payload of an event: the packet it concerns, its source and event-specific info."""

    packet: Optional[bytes] = None
    source_addr: Optional[tuple] = None
    ts: float = 0.0
    info: Any = None


def _is_rtcp_event(event_type: int) -> bool:
    return event_type in (EventType.RTCP_PACKET_RECEIVED, EventType.RTCP_PACKET_EMITTED)


@dataclass
class Event:
    """An event of a given type with its data; the creation time is recorded in data.ts."""

    type: int
    data: EventData = field(default_factory=EventData)

    def __post_init__(self) -> None:
        if not self.data.ts:
            self.data.ts = time.monotonic()

    def dup(self) -> "Event":
        """Return an independent copy with the same type and data."""
        return Event(self.type, dataclasses.replace(self.data))


class EventQueue:
    """A FIFO of events that may be filled and drained from different threads."""

    def __init__(self) -> None:
        self._items: deque[Event] = deque()
        self._lock = threading.Lock()

    def put(self, event: Event) -> None:
        with self._lock:
            self._items.append(event)

    def get(self) -> Optional[Event]:
        """Remove and return the oldest event, or None when the queue is empty."""
        with self._lock:
            return self._items.popleft() if self._items else None

    def flush(self) -> None:
        """Discard every queued event."""
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def _header(packet: bytes, offset: int = 0) -> Optional[tuple[int, int]]:
    if len(packet) - offset < _HEADER.size:
        return None
    first, packet_type, length = _HEADER.unpack_from(packet, offset)
    if first >> 6 != _RTCP_VERSION:
        return None
    return packet_type, (length + 1) * 4


def rtcp_packet_type(packet: Optional[bytes]) -> Optional[int]:
    """Return the packet type of the first RTCP header in ``packet``, or None if invalid."""
    if not packet:
        return None
    header = _header(bytes(packet))
    return header[0] if header else None


def iter_rtcp_packets(packet: bytes) -> Iterator[bytes]:
    """Yield each RTCP packet of a compound packet; stop at the first malformed one."""
    data = bytes(packet)
    offset = 0
    while offset < len(data):
        header = _header(data, offset)
        if header is None:
            return
        size = header[1]
        if offset + size > len(data):
            return
        yield data[offset:offset + size]
        offset += size


Callback = Callable[[EventData, Any], None]


@dataclass
class _Connection:
    event_type: int
    subtype: int
    callback: Callback
    user_data: Any


class EventDispatcher:
    """Delivers queued events to callbacks connected by event type and RTCP subtype."""

    def __init__(self, queue: EventQueue) -> None:
        self.queue = queue
        self._connections: list[_Connection] = []

    def connect(self, event_type: int, subtype: int, callback: Callback, user_data: Any = None) -> None:
        """Call ``callback(data, user_data)`` for events of a type (and RTCP subtype)."""
        self._connections.append(_Connection(event_type, subtype, callback, user_data))

    def disconnect(self, event_type: int, subtype: int, callback: Callback) -> None:
        """Remove every connection matching the type, subtype and callback."""
        self._connections = [
            c for c in self._connections
            if not (c.event_type == event_type and c.subtype == subtype and c.callback == callback)
        ]

    def _dispatch(self, event: Event) -> None:
        packet = event.data.packet
        parts: list[Optional[bytes]] = []
        if packet is not None and _is_rtcp_event(event.type):
            parts = list(iter_rtcp_packets(packet))
        if not parts:
            parts = [packet]
        for part in parts:
            data = dataclasses.replace(event.data, packet=part)
            for conn in list(self._connections):
                if conn.event_type != event.type:
                    continue
                if not _is_rtcp_event(conn.event_type) or rtcp_packet_type(part) == conn.subtype:
                    conn.callback(data, conn.user_data)

    def iterate(self) -> None:
        """Drain the queue, invoking matching callbacks in the current thread."""
        while (event := self.queue.get()) is not None:
            self._dispatch(event)