"""Telephone events (DTMF and flash) carried in RTP payloads."""

from __future__ import annotations

import struct
from dataclasses import dataclass

TEV_DTMF_0 = 0
TEV_DTMF_1 = 1
TEV_DTMF_2 = 2
TEV_DTMF_3 = 3
TEV_DTMF_4 = 4
TEV_DTMF_5 = 5
TEV_DTMF_6 = 6
TEV_DTMF_7 = 7
TEV_DTMF_8 = 8
TEV_DTMF_9 = 9
TEV_DTMF_STAR = 10
TEV_DTMF_POUND = 11
TEV_DTMF_A = 12
TEV_DTMF_B = 13
TEV_DTMF_C = 14
TEV_DTMF_D = 15
TEV_FLASH = 16

EVENT_SIZE = 4
TELEPHONY_EVENTS_ALLOCATED_SIZE = 4 * EVENT_SIZE

_DTMF_CHARS = "0123456789*#ABCD"
_STRUCT = struct.Struct("!BBH")


@dataclass
class TelephoneEvent:
    """One 4-byte telephone event record."""

    event: int
    end: bool = False
    reserved: bool = False
    volume: int = 0
    duration: int = 0

    def pack(self) -> bytes:
        """Encode to the 4-byte wire form."""
        if not 0 <= self.event <= 0xFF:
            raise ValueError("event must fit in 8 bits")
        if not 0 <= self.volume <= 0x3F:
            raise ValueError("volume must fit in 6 bits")
        if not 0 <= self.duration <= 0xFFFF:
            raise ValueError("duration must fit in 16 bits")
        second = (0x80 if self.end else 0) | (0x40 if self.reserved else 0) | self.volume
        return _STRUCT.pack(self.event, second, self.duration)

    @classmethod
    def unpack(cls, data: bytes) -> "TelephoneEvent":
        """Decode a 4-byte wire record."""
        if len(data) != EVENT_SIZE:
            raise ValueError(f"a telephone event is {EVENT_SIZE} bytes, got {len(data)}")
        event, second, duration = _STRUCT.unpack(bytes(data))
        return cls(
            event=event,
            end=bool(second & 0x80),
            reserved=bool(second & 0x40),
            volume=second & 0x3F,
            duration=duration,
        )


def dtmf_to_event(char: str) -> int:
    """Return the event code of a DTMF character."""
    if len(char) != 1 or char not in _DTMF_CHARS:
        raise ValueError(f"not a DTMF character: {char!r}")
    return _DTMF_CHARS.index(char)


def event_to_dtmf(code: int) -> str:
    """Return the DTMF character of an event code below 16."""
    if not 0 <= code < len(_DTMF_CHARS):
        raise ValueError(f"event {code} is not a DTMF digit")
    return _DTMF_CHARS[code]