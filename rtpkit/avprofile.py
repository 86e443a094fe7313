"""RTP profiles and the standard audio/video payload type definitions."""

from __future__ import annotations

from typing import Optional

from rtpkit.payloadtype import (
    AvpfFeatures,
    AvpfParams,
    PayloadFlags,
    PayloadKind,
    PayloadType,
)

MAX_PAYLOADS = 128
RTCP_DEFAULT_REPORT_INTERVAL = 5000  # milliseconds


def _static(**fields) -> PayloadType:
    """Build a statically defined (read-only) payload type."""
    fields.setdefault("flags", PayloadFlags.NONE)
    return PayloadType(**fields)


def _audio(mime: str, clock_rate: int, bitrate: int, channels: int = 1,
           flags: PayloadFlags = PayloadFlags.NONE) -> PayloadType:
    return _static(
        kind=PayloadKind.AUDIO_PACKETIZED,
        clock_rate=clock_rate,
        normal_bitrate=bitrate,
        mime_type=mime,
        channels=channels,
        flags=flags,
    )


def _video(mime: str, bitrate: int, avpf: Optional[AvpfParams] = None,
           flags: PayloadFlags = PayloadFlags.NONE) -> PayloadType:
    return _static(
        kind=PayloadKind.VIDEO,
        clock_rate=90000,
        normal_bitrate=bitrate,
        mime_type=mime,
        channels=0,
        avpf=avpf if avpf is not None else AvpfParams(),
        flags=flags,
    )


def _feedback(features: AvpfFeatures) -> AvpfParams:
    return AvpfParams(features=features, trr_interval=RTCP_DEFAULT_REPORT_INTERVAL)


_VBR = PayloadFlags.IS_VBR

PAYLOAD_TYPE_PCMU8000 = _static(
    kind=PayloadKind.AUDIO_CONTINUOUS, clock_rate=8000, bits_per_sample=8,
    zero_pattern=b"\x7f", pattern_length=1, normal_bitrate=64000,
    mime_type="PCMU", channels=1,
)
PAYLOAD_TYPE_PCMA8000 = _static(
    kind=PayloadKind.AUDIO_CONTINUOUS, clock_rate=8000, bits_per_sample=8,
    zero_pattern=b"\xd5", pattern_length=1, normal_bitrate=64000,
    mime_type="PCMA", channels=1,
)
PAYLOAD_TYPE_PCM8000 = _static(
    kind=PayloadKind.AUDIO_CONTINUOUS, clock_rate=8000, bits_per_sample=16,
    zero_pattern=bytes(1), pattern_length=1, normal_bitrate=128000,
    mime_type="PCM", channels=1,
)
PAYLOAD_TYPE_L16_MONO = _static(
    kind=PayloadKind.AUDIO_CONTINUOUS, clock_rate=44100, bits_per_sample=16,
    zero_pattern=bytes(2), pattern_length=2, normal_bitrate=705600,
    mime_type="L16", channels=1,
)
PAYLOAD_TYPE_L16_STEREO = _static(
    kind=PayloadKind.AUDIO_CONTINUOUS, clock_rate=44100, bits_per_sample=32,
    zero_pattern=bytes(4), pattern_length=4, normal_bitrate=1411200,
    mime_type="L16", channels=2,
)

PAYLOAD_TYPE_LPC1016 = _audio("1016", 8000, 2400)
PAYLOAD_TYPE_GSM = _audio("GSM", 8000, 13500)
PAYLOAD_TYPE_LPC = _audio("LPC", 8000, 5600)
PAYLOAD_TYPE_G7231 = _audio("G723", 8000, 6300)
PAYLOAD_TYPE_CN = _audio("CN", 8000, 8000)
PAYLOAD_TYPE_G729 = _audio("G729", 8000, 8000)
PAYLOAD_TYPE_G7221 = _audio("G7221", 16000, 24000)
PAYLOAD_TYPE_G726_40 = _audio("G726-40", 8000, 40000)
PAYLOAD_TYPE_G726_32 = _audio("G726-32", 8000, 32000)
PAYLOAD_TYPE_G726_24 = _audio("G726-24", 8000, 24000)
PAYLOAD_TYPE_G726_16 = _audio("G726-16", 8000, 16000)
PAYLOAD_TYPE_AAL2_G726_40 = _audio("AAL2-G726-40", 8000, 40000)
PAYLOAD_TYPE_AAL2_G726_32 = _audio("AAL2-G726-32", 8000, 32000)
PAYLOAD_TYPE_AAL2_G726_24 = _audio("AAL2-G726-24", 8000, 24000)
PAYLOAD_TYPE_AAL2_G726_16 = _audio("AAL2-G726-16", 8000, 16000)

PAYLOAD_TYPE_MPV = _video("MPV", 256000)
PAYLOAD_TYPE_H261 = _video("H261", 0)
PAYLOAD_TYPE_H263 = _video("H263", 256000)

PAYLOAD_TYPE_TRUESPEECH = _audio("TSP0", 8000, 8536, channels=0)

# Extra payload types meant for dynamic assignment.
PAYLOAD_TYPE_LPC1015 = _audio("1015", 8000, 2400)
PAYLOAD_TYPE_SPEEX_NB = _audio("speex", 8000, 8000, flags=_VBR)
PAYLOAD_TYPE_SPEEX_WB = _audio("speex", 16000, 28000, flags=_VBR)
PAYLOAD_TYPE_SPEEX_UWB = _audio("speex", 32000, 28000, flags=_VBR)
PAYLOAD_TYPE_ILBC = _audio("iLBC", 8000, 13300)
PAYLOAD_TYPE_AMR = _audio("AMR", 8000, 12200, flags=_VBR)
PAYLOAD_TYPE_AMRWB = _audio("AMR-WB", 16000, 23850, flags=_VBR)
PAYLOAD_TYPE_GSM_EFR = _audio("GSM-EFR", 8000, 12200)

PAYLOAD_TYPE_MP4V = _video(
    "MP4V-ES", 0, avpf=_feedback(AvpfFeatures.FIR | AvpfFeatures.PLI)
)
PAYLOAD_TYPE_EVRC0 = _audio("EVRC0", 8000, 0)
PAYLOAD_TYPE_EVRCB0 = _audio("EVRCB0", 8000, 0)
PAYLOAD_TYPE_H263_1998 = _video("H263-1998", 256000)
PAYLOAD_TYPE_H263_2000 = _video("H263-2000", 0)
PAYLOAD_TYPE_THEORA = _video("theora", 256000)
PAYLOAD_TYPE_H264 = _video(
    "H264", 256000,
    avpf=_feedback(AvpfFeatures.FIR | AvpfFeatures.PLI),
    flags=PayloadFlags.RTCP_FEEDBACK_ENABLED,
)
PAYLOAD_TYPE_X_SNOW = _video("x-snow", 256000)
PAYLOAD_TYPE_JPEG = _video("JPEG", 256000)
PAYLOAD_TYPE_VP8 = _video(
    "VP8", 256000,
    avpf=_feedback(AvpfFeatures.FIR | AvpfFeatures.PLI | AvpfFeatures.SLI | AvpfFeatures.RPSI),
    flags=PayloadFlags.RTCP_FEEDBACK_ENABLED,
)

PAYLOAD_TYPE_T140 = _static(kind=PayloadKind.TEXT, clock_rate=1000, mime_type="t140")
PAYLOAD_TYPE_T140_RED = _static(kind=PayloadKind.TEXT, clock_rate=1000, mime_type="red")
PAYLOAD_TYPE_X_UDPFTP = _audio("x-udpftp", 1000, 0, channels=0)

PAYLOAD_TYPE_G722 = _audio("G722", 8000, 64000)
PAYLOAD_TYPE_SILK_NB = _audio("SILK", 8000, 13000, flags=_VBR)
PAYLOAD_TYPE_SILK_MB = _audio("SILK", 12000, 15000, flags=_VBR)
PAYLOAD_TYPE_SILK_WB = _audio("SILK", 16000, 20000, flags=_VBR)
PAYLOAD_TYPE_SILK_SWB = _audio("SILK", 24000, 30000, flags=_VBR)
PAYLOAD_TYPE_AACELD_16K = _audio("mpeg4-generic", 16000, 24000, flags=_VBR)
PAYLOAD_TYPE_AACELD_22K = _audio("mpeg4-generic", 22050, 32000, flags=_VBR)
PAYLOAD_TYPE_AACELD_32K = _audio("mpeg4-generic", 32000, 48000, flags=_VBR)
PAYLOAD_TYPE_AACELD_44K = _audio("mpeg4-generic", 44100, 64000, flags=_VBR)
PAYLOAD_TYPE_AACELD_48K = _audio("mpeg4-generic", 48000, 64000, flags=_VBR)
PAYLOAD_TYPE_OPUS = _audio("opus", 48000, 20000, channels=2, flags=_VBR)
PAYLOAD_TYPE_ISAC = _audio("iSAC", 16000, 32000, flags=_VBR)
PAYLOAD_TYPE_CODEC2 = _audio("CODEC2", 8000, 3200)


def _check_number(number: int) -> None:
    if not 0 <= number < MAX_PAYLOADS:
        raise ValueError(f"payload number {number} is outside 0..{MAX_PAYLOADS - 1}")


class RtpProfile:
    """A mapping of RTP payload numbers (0-127) to payload types."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._payloads: list[Optional[PayloadType]] = [None] * MAX_PAYLOADS

    def set_payload(self, number: int, payload: PayloadType) -> None:
        """Assign a payload type to a payload number."""
        _check_number(number)
        self._payloads[number] = payload

    def get_payload(self, number: int) -> Optional[PayloadType]:
        """Return the payload type at a number, or None when unset or out of range."""
        if not 0 <= number < MAX_PAYLOADS:
            return None
        return self._payloads[number]

    def clear_payload(self, number: int) -> None:
        """Remove the payload type assigned to a number."""
        _check_number(number)
        self._payloads[number] = None

    def clear_all(self) -> None:
        """Remove every assignment."""
        self._payloads = [None] * MAX_PAYLOADS


def av_profile_init(profile: RtpProfile) -> None:
    """Fill a profile with the static assignments of the audio/video profile."""
    profile.clear_all()
    profile.name = "AV profile"
    for number, payload in (
        (0, PAYLOAD_TYPE_PCMU8000),
        (1, PAYLOAD_TYPE_LPC1016),
        (3, PAYLOAD_TYPE_GSM),
        (7, PAYLOAD_TYPE_LPC),
        (4, PAYLOAD_TYPE_G7231),
        (8, PAYLOAD_TYPE_PCMA8000),
        (9, PAYLOAD_TYPE_G722),
        (10, PAYLOAD_TYPE_L16_STEREO),
        (11, PAYLOAD_TYPE_L16_MONO),
        (13, PAYLOAD_TYPE_CN),
        (18, PAYLOAD_TYPE_G729),
        (31, PAYLOAD_TYPE_H261),
        (32, PAYLOAD_TYPE_MPV),
        (34, PAYLOAD_TYPE_H263),
        (96, PAYLOAD_TYPE_T140),
        (97, PAYLOAD_TYPE_T140_RED),
    ):
        profile.set_payload(number, payload)


def make_av_profile() -> RtpProfile:
    """Return a new profile initialised with the audio/video assignments."""
    profile = RtpProfile()
    av_profile_init(profile)
    return profile