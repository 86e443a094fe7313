"""Jitter estimation and clock-slide compensation for received RTP streams."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

_BETA = 0.01
_GAMMA = _BETA
_U32 = 1 << 32


class _HasClockRate(Protocol):
    clock_rate: int


@dataclass
class JitterBufferParams:
    """Jitter buffer configuration; sizes in milliseconds."""

    min_size: int = 0
    nom_size: int = 0
    max_size: int = -1
    adaptive: bool = False
    max_packets: int = 0


class JitterControl:
    """Estimates slide and jitter of incoming packets and the resulting buffering delay."""

    def __init__(self, base_jitt_time: int = -1, payload: Optional[_HasClockRate] = None) -> None:
        self.jitt_comp = 0
        self.jitt_comp_ts = 0
        self.corrective_step = 0
        self.adaptive = False
        self.enabled = False
        self.olddiff = 0
        self.reset(base_jitt_time, payload)

    def reset(self, base_jitt_time: int = -1, payload: Optional[_HasClockRate] = None) -> None:
        """Restart estimation; a base time of -1 keeps the current compensation."""
        self.count = 0
        self.slide = 0
        self.prev_slide = 0
        self.jitter = 0.0
        self.inter_jitter = 0.0
        self.cum_jitter_buffer_count = 0
        self.cum_jitter_buffer_size = 0
        if base_jitt_time != -1:
            self.jitt_comp = base_jitt_time
        self.clock_rate = 8000
        if payload is not None:
            self.set_payload(payload)
        self.adapt_jitt_comp_ts = self.jitt_comp_ts
        self.corrective_slide = 0

    def enable_adaptive(self, enabled: bool) -> None:
        self.adaptive = bool(enabled)

    def set_payload(self, payload: _HasClockRate) -> None:
        """Convert the compensation to timestamp units of the payload's clock."""
        self.jitt_comp_ts = int((self.jitt_comp / 1000.0) * payload.clock_rate)
        # Corrections are made in steps of no less than 10 ms.
        self.corrective_step = int(0.01 * payload.clock_rate)
        self.adapt_jitt_comp_ts = self.jitt_comp_ts
        self.clock_rate = payload.clock_rate

    def update_corrective_slide(self) -> None:
        """Move the corrective slide one step towards the current slide when it drifted."""
        tmp = int(self.slide) - self.prev_slide
        if tmp > self.corrective_step:
            self.corrective_slide += self.corrective_step
            self.prev_slide = self.slide + self.corrective_step
        elif tmp < -self.corrective_step:
            self.corrective_slide -= self.corrective_step
            self.prev_slide = self.slide - self.corrective_step

    def update_size(self, timestamps: Iterable[int]) -> None:
        """Record the span of the queued packets' timestamps, oldest first."""
        items = list(timestamps)
        if not items:
            return
        self.cum_jitter_buffer_count += 1
        self.cum_jitter_buffer_size += (items[-1] - items[0]) % _U32

    def new_packet(self, packet_ts: int, cur_str_ts: int) -> None:
        """Account for a packet with timestamp packet_ts received at stream time cur_str_ts."""
        diff = (packet_ts % _U32) - (cur_str_ts % _U32)
        if self.count == 0:
            slide = float(diff)
            self.slide = self.prev_slide = diff
            self.olddiff = diff
            self.jitter = 0.0
        else:
            slide = self.slide * (1 - _BETA) + diff * _BETA
        gap = diff - slide
        gap = -gap if gap < 0 else 0.0  # only late packets count
        self.jitter = self.jitter * (1 - _GAMMA) + gap * _GAMMA
        d = diff - self.olddiff
        self.inter_jitter = self.inter_jitter + (abs(d) - self.inter_jitter) * (1 / 16.0)
        self.olddiff = diff
        self.count += 1
        if self.adaptive:
            if self.count % 50 == 0:
                self.adapt_jitt_comp_ts = int(max(self.jitt_comp_ts, 2 * self.jitter))
            self.slide = int(slide)

    def compute_mean_size(self) -> float:
        """Mean buffered duration in milliseconds since the last call."""
        if self.cum_jitter_buffer_count:
            mean = self.cum_jitter_buffer_size / self.cum_jitter_buffer_count
            self.cum_jitter_buffer_size = 0
            self.cum_jitter_buffer_count = 0
            return 1000.0 * mean / self.clock_rate
        return 0.0

    def compensated_timestamp(self, user_ts: int) -> int:
        """Translate a user timestamp to the stream timestamp to deliver."""
        return (user_ts + self.slide - self.adapt_jitt_comp_ts) % _U32