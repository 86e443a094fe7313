"""Base-64 encoding with optional CRLF line wrapping and tolerant decoding."""

from __future__ import annotations

import base64
import enum
from typing import Optional, Union

_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_INDEXES = {ch: i for i, ch in enumerate(_ALPHABET)}

_PLAIN_CHUNK = 3
_ENCODED_CHUNK = 4

_SKIPPABLE_WS = frozenset(" \t\b\v")
_LINE_BREAKS = frozenset("\r\n")


class ResultCode(enum.IntEnum):
    """Outcome codes of encoding and decoding operations."""

    OK = 0
    INSUFFICIENT_BUFFER = 1
    TRUNCATED_INPUT = 2
    DATA_ERROR = 3


class Flags(enum.IntFlag):
    """Line-length selection for encoding and strictness options for decoding."""

    LINE_LEN_USE_PARAM = 0x0000
    LINE_LEN_INFINITE = 0x0001
    LINE_LEN_64 = 0x0002
    LINE_LEN_76 = 0x0003
    LINE_LEN_MASK = 0x000F
    STOP_ON_NOTHING = 0x0000
    STOP_ON_UNKNOWN_CHAR = 0x0100
    STOP_ON_UNEXPECTED_WS = 0x0200
    STOP_ON_BAD_CHAR = 0x0300


_ERROR_STRINGS = {
    ResultCode.OK: "Operation was successful",
    ResultCode.INSUFFICIENT_BUFFER: "The given translation buffer was not of sufficient size",
    ResultCode.TRUNCATED_INPUT: "The input did not represent a fully formed stream of octet couplings",
    ResultCode.DATA_ERROR: "Invalid data",
}


def error_string(code: int) -> str:
    """Return the description of a result code, or an empty string for unknown codes."""
    try:
        return _ERROR_STRINGS[ResultCode(code)]
    except ValueError:
        return ""


class B64Error(ValueError):
    """Raised when decoding meets a character it was told to stop on."""

    def __init__(self, code: ResultCode, position: Optional[int] = None, char: Optional[str] = None) -> None:
        detail = error_string(code)
        if position is not None:
            detail = f"{detail} at position {position} ({char!r})"
        super().__init__(detail)
        self.code = code
        self.position = position
        self.char = char


def encoded_length(size: int, line_length: int = 0) -> int:
    """Number of characters produced by encoding ``size`` bytes with the given line length."""
    if size < 0:
        raise ValueError("size must not be negative")
    if line_length < 0:
        raise ValueError("line_length must not be negative")
    total = -(-size // _PLAIN_CHUNK) * _ENCODED_CHUNK
    if line_length > 0 and total > 0:
        lines = -(-total // line_length)
        total += 2 * (lines - 1)
    return total


def _resolve_line_length(flags: int, line_length: int) -> int:
    selector = int(flags) & Flags.LINE_LEN_MASK
    if selector == Flags.LINE_LEN_USE_PARAM:
        return line_length if line_length >= 0 else 64
    if selector == Flags.LINE_LEN_64:
        return 64
    if selector == Flags.LINE_LEN_76:
        return 76
    return 0


def encode(
    data: Union[bytes, bytearray, memoryview],
    flags: int = Flags.LINE_LEN_INFINITE,
    line_length: int = -1,
) -> str:
    """Encode bytes, inserting CRLF between lines of ``line_length`` characters.

    The line length comes from ``flags``; with ``Flags.LINE_LEN_USE_PARAM`` the
    ``line_length`` argument is used (64 when it is negative, no wrapping when 0).
    """
    length = _resolve_line_length(flags, line_length)
    if length % _ENCODED_CHUNK:
        raise ValueError("line length must be a multiple of 4")
    text = base64.b64encode(bytes(data)).decode("ascii")
    if length == 0:
        return text
    return "\r\n".join(text[start:start + length] for start in range(0, len(text), length))


def decode(text: Union[str, bytes, bytearray], flags: int = Flags.STOP_ON_NOTHING) -> bytes:
    """Decode base-64 text.

    CR and LF are always skipped. Other whitespace and unknown characters are
    skipped unless ``flags`` asks to stop on them, in which case ``B64Error`` is
    raised. Decoding ends after the first group holding padding; an incomplete
    trailing group is ignored.
    """
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("latin-1")
    flags = int(flags)
    out = bytearray()
    indexes: list[int] = []
    pads = 0
    for position, ch in enumerate(text):
        if ch == "=":
            indexes.append(0)
            pads += 1
        else:
            ix = _INDEXES.get(ch)
            if ix is None:
                if ch in _SKIPPABLE_WS:
                    if flags & Flags.STOP_ON_UNEXPECTED_WS:
                        raise B64Error(ResultCode.DATA_ERROR, position, ch)
                    continue
                if ch in _LINE_BREAKS:
                    continue
                if flags & Flags.STOP_ON_UNKNOWN_CHAR:
                    raise B64Error(ResultCode.DATA_ERROR, position, ch)
                continue
            pads = 0
            indexes.append(ix)

        if len(indexes) == _ENCODED_CHUNK:
            i0, i1, i2, i3 = indexes
            indexes = []
            out.append(((i0 << 2) + ((i1 & 0x30) >> 4)) & 0xFF)
            if pads != 2:
                out.append((((i1 & 0x0F) << 4) + ((i2 & 0x3C) >> 2)) & 0xFF)
                if pads != 1:
                    out.append((((i2 & 0x03) << 6) + i3) & 0xFF)
            if pads:
                break
    return bytes(out)