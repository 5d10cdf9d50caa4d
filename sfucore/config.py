"""Router, simulcast and TURN configuration."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

QUARTER_RESOLUTION = "q"
HALF_RESOLUTION = "h"
FULL_RESOLUTION = "f"

TURN_MIN_PORT = 32768
TURN_MAX_PORT = 46883
SFU_MIN_PORT = 46884
SFU_MAX_PORT = 60999

_CREDENTIAL_PAIR = re.compile(r"(\w+)=(\w+)")


def _keys_lowered(data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Keys are matched without regard to case, as configuration files do."""
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a mapping, got {type(data).__name__}")
    return {str(key).lower(): value for key, value in data.items()}


def _bounded_int(value: Any, name: str, low: int, high: int) -> int:
    number = int(value)
    if not low <= number <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {number}")
    return number


def _port_list(value: Any, name: str) -> tuple[int, ...]:
    if value is None:
        return ()
    return tuple(_bounded_int(port, name, 0, 0xFFFF) for port in value)


@dataclass
class SimulcastConfig:
    """How simulcast layers are chosen for subscribers."""

    best_quality_first: bool = False
    enable_temporal_layer: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> SimulcastConfig:
        """Build from a mapping using the configuration file's keys."""
        values = _keys_lowered(data)
        return cls(
            best_quality_first=bool(values.get("bestqualityfirst", False)),
            enable_temporal_layer=bool(values.get("enabletemporallayer", False)),
        )


@dataclass
class RouterConfig:
    """Settings of the per-peer packet router."""

    with_stats: bool = False
    max_bandwidth: int = 0
    max_packet_track: int = 0
    audio_level_interval: int = 0
    audio_level_threshold: int = 0
    audio_level_filter: int = 0
    simulcast: SimulcastConfig = field(default_factory=SimulcastConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> RouterConfig:
        """Build from a mapping using the configuration file's keys."""
        values = _keys_lowered(data)
        return cls(
            with_stats=bool(values.get("withstats", False)),
            max_bandwidth=_bounded_int(
                values.get("maxbandwidth", 0), "maxbandwidth", 0, (1 << 64) - 1
            ),
            max_packet_track=int(values.get("maxpackettrack", 0)),
            audio_level_interval=int(values.get("audiolevelinterval", 0)),
            audio_level_threshold=_bounded_int(
                values.get("audiolevelthreshold", 0), "audiolevelthreshold", 0, 0xFF
            ),
            audio_level_filter=int(values.get("audiolevelfilter", 0)),
            simulcast=SimulcastConfig.from_dict(values.get("simulcast")),
        )


@dataclass
class TurnAuth:
    """Static credentials or a shared secret for the TURN server."""

    credentials: str = ""
    secret: str = ""


@dataclass
class TurnConfig:
    """Settings of the embedded TURN server."""

    enabled: bool = False
    realm: str = ""
    address: str = ""
    cert: str = ""
    key: str = ""
    auth: TurnAuth = field(default_factory=TurnAuth)
    port_range: tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> TurnConfig:
        """Build from a mapping using the configuration file's keys."""
        values = _keys_lowered(data)
        auth = _keys_lowered(values.get("auth"))
        return cls(
            enabled=bool(values.get("enabled", False)),
            realm=str(values.get("realm", "")),
            address=str(values.get("address", "")),
            cert=str(values.get("cert", "")),
            key=str(values.get("key", "")),
            auth=TurnAuth(
                credentials=str(auth.get("credentials", "")),
                secret=str(auth.get("secret", "")),
            ),
            port_range=_port_list(values.get("portrange"), "portrange"),
        )

    @property
    def uses_tls(self) -> bool:
        """True when both a certificate and a key are configured."""
        return bool(self.cert) and bool(self.key)


def parse_turn_credentials(credentials: str) -> dict[str, str]:
    """Parse ``user=pass`` pairs into a mapping of user name to password.

    Pairs may be separated by anything that is not a word character; a user
    given twice keeps the last value.
    """
    return {user: secret for user, secret in _CREDENTIAL_PAIR.findall(credentials)}


def turn_port_range(turn: TurnConfig) -> tuple[int, int]:
    """Return the relay port range of the TURN server.

    A configured range is used only when it holds exactly two ports.
    """
    if len(turn.port_range) == 2:
        low, high = turn.port_range
        return low, high
    return TURN_MIN_PORT, TURN_MAX_PORT