"""Time conversion and payload helpers."""

from __future__ import annotations

from collections.abc import Iterable

from .errors import CodecNotFound
from .mediaengine import CodecParameters

NTP_EPOCH = 2208988800

_UINT64 = (1 << 64) - 1


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def time_to_ntp(ns: int) -> int:
    """Convert Unix nanoseconds to a 64-bit NTP timestamp."""
    seconds = (_trunc_div(ns, 1_000_000_000) + NTP_EPOCH) & _UINT64
    remainder = ns - _trunc_div(ns, 1_000_000_000) * 1_000_000_000
    fraction = _trunc_div(remainder << 32, 1_000_000_000) & _UINT64
    return ((seconds << 32) | fraction) & _UINT64


def ntp_to_millis_since_epoch(ntp: int) -> int:
    """Convert a 64-bit NTP timestamp to milliseconds since the NTP epoch."""
    return (((ntp & 0xFFFFFFFF) * 1000) >> 32) + ((ntp >> 32) * 1000)


def modify_vp8_temporal_payload(
    payload: bytearray,
    pic_id_idx: int,
    tlz0_idx: int,
    pic_id: int,
    tlz0_id: int,
    m_bit: bool,
) -> None:
    """Rewrite the picture id and TL0PICIDX of a VP8 payload in place."""
    high, low = (pic_id & 0xFFFF).to_bytes(2, "big")
    payload[pic_id_idx] = high
    if m_bit:
        payload[pic_id_idx] |= 0x80
        payload[pic_id_idx + 1] = low
    payload[tlz0_idx] = tlz0_id & 0xFF


def codec_parameters_fuzzy_search(
    needle: CodecParameters, haystack: Iterable[CodecParameters]
) -> CodecParameters:
    """Find a codec matching on MIME type and fmtp line, else on MIME type alone."""
    candidates = list(haystack)
    mime = needle.capability.mime_type.casefold()
    for codec in candidates:
        if (
            codec.capability.mime_type.casefold() == mime
            and codec.capability.sdp_fmtp_line == needle.capability.sdp_fmtp_line
        ):
            return codec
    for codec in candidates:
        if codec.capability.mime_type.casefold() == mime:
            return codec
    raise CodecNotFound()