"""Building blocks of a selective forwarding unit."""

__version__ = "0.1.0"

__all__ = [
    "audioobserver",
    "config",
    "datachannel",
    "errors",
    "helpers",
    "mediaengine",
    "sequencer",
    "session",
    "twcc",
]