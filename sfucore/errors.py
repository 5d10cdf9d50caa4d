"""Exceptions raised by the SFU core."""


class SFUError(Exception):
    """Base class for all SFU errors."""

    default_message = "sfu error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class PeerConnectionInitFailed(SFUError):
    """A peer connection could not be initialised."""

    default_message = "pc init failed"


class DataChannelCreationError(SFUError):
    """A data channel could not be created."""

    default_message = "failed to create data channel"


class NoReceiverFound(SFUError):
    """No receiver exists for the requested layer."""

    default_message = "no receiver found"


class ShortPacketError(SFUError):
    """A packet is too short to be parsed."""

    default_message = "packet is not large enough"


class NilPacketError(SFUError):
    """A packet is missing."""

    default_message = "invalid nil packet"


class SpatialNotSupported(SFUError):
    """The track does not support simulcast or SVC."""

    default_message = "current track does not support simulcast/SVC"


class SpatialLayerBusy(SFUError):
    """A spatial layer change is already in progress."""

    default_message = "a spatial layer change is in progress, try latter"


class CodecNotFound(SFUError):
    """No matching codec was found."""

    default_message = "codec not found"