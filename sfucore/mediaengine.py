"""Codecs and RTP header extensions offered to publishers."""

from __future__ import annotations

from dataclasses import dataclass

MIME_TYPE_H264 = "video/h264"
MIME_TYPE_OPUS = "audio/opus"
MIME_TYPE_VP8 = "video/vp8"
MIME_TYPE_VP9 = "video/vp9"

SDES_MID_URI = "urn:ietf:params:rtp-hdrext:sdes:mid"
SDES_RTP_STREAM_ID_URI = "urn:ietf:params:rtp-hdrext:sdes:rtp-stream-id"
TRANSPORT_CC_URI = "http://www.ietf.org/id/draft-holmer-rmcat-transport-wide-cc-extensions-01"
AUDIO_LEVEL_URI = "urn:ietf:params:rtp-hdrext:ssrc-audio-level"
FRAME_MARKING_URI = "urn:ietf:params:rtp-hdrext:framemarking"


@dataclass(frozen=True)
class RTCPFeedback:
    """An RTCP feedback mechanism a codec supports."""

    type: str
    parameter: str = ""


@dataclass(frozen=True)
class CodecCapability:
    """What a codec is and how it is configured."""

    mime_type: str
    clock_rate: int
    channels: int = 0
    sdp_fmtp_line: str = ""
    rtcp_feedback: tuple[RTCPFeedback, ...] = ()

    @property
    def kind(self) -> str:
        """'audio', 'video' or '' depending on the MIME type."""
        mime = self.mime_type.lower()
        if mime.startswith("audio/"):
            return "audio"
        if mime.startswith("video/"):
            return "video"
        return ""


@dataclass(frozen=True)
class CodecParameters:
    """A codec capability bound to a payload type."""

    capability: CodecCapability
    payload_type: int = 0


_VIDEO_RTCP_FEEDBACK = (
    RTCPFeedback("goog-remb"),
    RTCPFeedback("ccm", "fir"),
    RTCPFeedback("nack"),
    RTCPFeedback("nack", "pli"),
)


def _video(mime: str, payload_type: int, fmtp: str = "") -> CodecParameters:
    return CodecParameters(
        CodecCapability(
            mime_type=mime,
            clock_rate=90000,
            sdp_fmtp_line=fmtp,
            rtcp_feedback=_VIDEO_RTCP_FEEDBACK,
        ),
        payload_type,
    )


def publisher_codecs() -> list[CodecParameters]:
    """Return the codecs registered for publishing peers, audio first."""
    return [
        CodecParameters(
            CodecCapability(
                mime_type=MIME_TYPE_OPUS,
                clock_rate=48000,
                channels=2,
                sdp_fmtp_line="minptime=10;useinbandfec=1",
            ),
            111,
        ),
        _video(MIME_TYPE_VP8, 96),
        _video(MIME_TYPE_VP9, 98, "profile-id=0"),
        _video(MIME_TYPE_VP9, 100, "profile-id=1"),
        _video(
            MIME_TYPE_H264,
            102,
            "level-asymmetry-allowed=1;packetization-mode=1;profile-level-id=42001f",
        ),
        _video(
            MIME_TYPE_H264,
            127,
            "level-asymmetry-allowed=1;packetization-mode=0;profile-level-id=42001f",
        ),
        _video(
            MIME_TYPE_H264,
            125,
            "level-asymmetry-allowed=1;packetization-mode=1;profile-level-id=42e01f",
        ),
        _video(
            MIME_TYPE_H264,
            108,
            "level-asymmetry-allowed=1;packetization-mode=0;profile-level-id=42e01f",
        ),
        _video(
            MIME_TYPE_H264,
            123,
            "level-asymmetry-allowed=1;packetization-mode=1;profile-level-id=640032",
        ),
    ]


def publisher_header_extensions(kind: str) -> list[str]:
    """Return the header extension URIs registered for the given media kind."""
    if kind == "video":
        return [SDES_MID_URI, SDES_RTP_STREAM_ID_URI, TRANSPORT_CC_URI, FRAME_MARKING_URI]
    if kind == "audio":
        return [SDES_MID_URI, SDES_RTP_STREAM_ID_URI, AUDIO_LEVEL_URI]
    raise ValueError(f"unknown media kind: {kind!r}")