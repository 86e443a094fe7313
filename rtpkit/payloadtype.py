"""Payload type descriptions (codec parameters) and fmtp parsing helpers."""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Optional


class PayloadKind(enum.IntEnum):
    """The media category of a payload type."""

    AUDIO_CONTINUOUS = 0
    AUDIO_PACKETIZED = 1
    VIDEO = 2
    OTHER = 3
    TEXT = 4


class PayloadFlags(enum.IntFlag):
    """Properties attached to a payload type."""

    NONE = 0
    ALLOCATED = 1
    CAN_RECV = 1 << 1
    CAN_SEND = 1 << 2
    RTCP_FEEDBACK_ENABLED = 1 << 3
    IS_VBR = 1 << 4


class AvpfFeatures(enum.IntFlag):
    """RTCP feedback (AVPF) features supported by a payload type."""

    NONE = 0
    FIR = 1
    PLI = 1 << 1
    SLI = 1 << 2
    RPSI = 1 << 3


@dataclass
class AvpfParams:
    """AVPF parameters: supported features and regular RTCP interval in milliseconds."""

    features: AvpfFeatures = AvpfFeatures.NONE
    rpsi_compatibility: bool = False
    trr_interval: int = 0


class ReadOnlyPayloadError(RuntimeError):
    """Raised when modifying a statically defined payload type."""

    def __init__(self) -> None:
        super().__init__(
            "Cannot change parameters of statically defined payload types: "
            "make your own copy using clone() first."
        )


@dataclass(kw_only=True)
class PayloadType:
    """Description of an RTP payload format."""

    kind: PayloadKind = PayloadKind.AUDIO_PACKETIZED
    clock_rate: int = 0
    bits_per_sample: int = 0
    zero_pattern: bytes = b""
    pattern_length: int = 0
    normal_bitrate: int = 0
    mime_type: str = ""
    channels: int = 0
    recv_fmtp: Optional[str] = None
    send_fmtp: Optional[str] = None
    avpf: AvpfParams = field(default_factory=AvpfParams)
    flags: PayloadFlags = PayloadFlags.ALLOCATED

    def rtpmap(self) -> str:
        """The SDP rtpmap value: mime/clock_rate[/channels]."""
        if self.channels > 0:
            return f"{self.mime_type}/{self.clock_rate}/{self.channels}"
        return f"{self.mime_type}/{self.clock_rate}"

    def clone(self) -> "PayloadType":
        """Return a modifiable copy."""
        return dataclasses.replace(
            self,
            avpf=dataclasses.replace(self.avpf),
            flags=PayloadFlags(self.flags | PayloadFlags.ALLOCATED),
        )

    def _check_writable(self) -> None:
        if not self.flags & PayloadFlags.ALLOCATED:
            raise ReadOnlyPayloadError()

    def set_recv_fmtp(self, fmtp: Optional[str]) -> None:
        self._check_writable()
        self.recv_fmtp = fmtp

    def set_send_fmtp(self, fmtp: Optional[str]) -> None:
        self._check_writable()
        self.send_fmtp = fmtp

    def append_recv_fmtp(self, fmtp: str) -> None:
        """Append a parameter to the receive fmtp, separated by ';'."""
        self._check_writable()
        self.recv_fmtp = fmtp if self.recv_fmtp is None else f"{self.recv_fmtp};{fmtp}"

    def append_send_fmtp(self, fmtp: str) -> None:
        """Append a parameter to the send fmtp, separated by ';'."""
        self._check_writable()
        self.send_fmtp = fmtp if self.send_fmtp is None else f"{self.send_fmtp};{fmtp}"

    def set_avpf_params(self, params: AvpfParams) -> None:
        self._check_writable()
        self.avpf = dataclasses.replace(params)


def _find_param(fmtp: str, param: str, start: int) -> int:
    pos = start
    while True:
        pos = fmtp.find(param, pos)
        if pos < 0:
            return -1
        # An occurrence must not be the tail of another parameter name.
        if pos == start or fmtp[pos - 1] in ("; "):
            return pos
        pos += len(param)


def _find_last_param(fmtp: str, param: str) -> int:
    last = -1
    pos = 0
    while True:
        pos = _find_param(fmtp, param, pos)
        if pos < 0:
            return last
        last = pos
        pos += len(param)


def fmtp_get_value(fmtp: str, param_name: str) -> Optional[str]:
    """Return the value of the last occurrence of ``param_name`` in an fmtp string.

    Returns None when the parameter is absent or has no value.
    """
    if not param_name:
        raise ValueError("param_name must not be empty")
    pos = _find_last_param(fmtp, param_name)
    if pos < 0:
        return None
    equal = fmtp.find("=", pos)
    if equal < 0:
        return None
    end = fmtp.find(";", equal + 1)
    if end < 0:
        end = len(fmtp)
    return fmtp[equal + 1:end]