"""Library initialisation, global statistics and version checks."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass

from rtpkit import log as _log
from rtpkit.avprofile import RtpProfile, av_profile_init
from rtpkit.log import LogLevel

VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_MICRO = 0
VERSION = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_MICRO}"

_RULE = "==========================================================="
_THIN_RULE = "-----------------------------------------------------------"


@dataclass
class RtpStats:
    """Packet and byte counters of RTP sessions."""

    packet_sent: int = 0
    packet_dup_sent: int = 0
    sent: int = 0
    packet_recv: int = 0
    packet_dup_recv: int = 0
    hw_recv: int = 0
    recv: int = 0
    cum_packet_loss: int = 0
    outoftime: int = 0
    bad: int = 0
    discarded: int = 0
    sent_rtcp_packets: int = 0
    recv_rtcp_packets: int = 0

    def reset(self) -> None:
        """Set every counter to zero."""
        for f in dataclasses.fields(self):
            setattr(self, f.name, 0)

    def display(self, header: str) -> None:
        """Log the counters at MESSAGE level."""
        rows = (
            ("sent                                 ", self.packet_sent, "packets"),
            ("                                     ", self.packet_dup_sent, "duplicated packets"),
            ("                                     ", self.sent, "bytes  "),
            ("received                             ", self.packet_recv, "packets"),
            ("                                     ", self.packet_dup_recv, "duplicated packets"),
            ("                                     ", self.hw_recv, "bytes  "),
            ("incoming delivered to the app        ", self.recv, "bytes  "),
            ("incoming cumulative lost             ", self.cum_packet_loss, "packets"),
            ("incoming received too late           ", self.outoftime, "packets"),
            ("incoming bad formatted               ", self.bad, "packets"),
            ("incoming discarded (queue overflow)  ", self.discarded, "packets"),
            ("sent rtcp                            ", self.sent_rtcp_packets, "packets"),
            ("received rtcp                        ", self.recv_rtcp_packets, "packets"),
        )
        _log.log(LogLevel.MESSAGE, _RULE)
        _log.log(LogLevel.MESSAGE, "%s", header)
        _log.log(LogLevel.MESSAGE, _THIN_RULE)
        for label, value, unit in rows:
            _log.log(LogLevel.MESSAGE, "%s%10d %s", label, value, unit)
        _log.log(LogLevel.MESSAGE, _RULE)


AV_PROFILE = RtpProfile()
_global_stats = RtpStats()
_init_count = 0
_init_lock = threading.Lock()


def init() -> None:
    """Initialise the library; calls are counted and must be matched by shutdown()."""
    global _init_count
    with _init_lock:
        _init_count += 1
        if _init_count > 1:
            return
        av_profile_init(AV_PROFILE)
        _global_stats.reset()
    _log.message("rtpkit-%s initialized.", VERSION)


def shutdown() -> None:
    """Undo one init(); the last one releases per-domain logging state."""
    global _init_count
    with _init_lock:
        if _init_count == 0:
            warn = True
        else:
            warn = False
            _init_count -= 1
            if _init_count == 0:
                _log.get_logger().reset_domains()
    if warn:
        _log.warning("shutdown() called without prior call to init(), ignored.")


def is_initialized() -> bool:
    return _init_count > 0


def global_stats() -> RtpStats:
    """Statistics cumulated over all sessions."""
    return _global_stats


def reset_global_stats() -> None:
    _global_stats.reset()


def display_global_stats() -> None:
    _global_stats.display("Global statistics")


def min_version_required(major: int, minor: int, micro: int) -> bool:
    """True when this library's version is at least major.minor.micro."""
    return (major * 1000000 + minor * 1000 + micro) <= (
        VERSION_MAJOR * 1000000 + VERSION_MINOR * 1000 + VERSION_MICRO
    )