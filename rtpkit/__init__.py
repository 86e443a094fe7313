"""Building blocks for RTP stacks: payload types, profiles, jitter control, telephone events, event dispatch, logging and network simulation."""

__version__ = "0.1.0"

__all__ = [
    "avprofile",
    "b64",
    "core",
    "events",
    "extremum",
    "jitterctl",
    "log",
    "netsim",
    "payloadtype",
    "telephony",
]