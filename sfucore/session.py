"""A set of peers that are subscribed to each other's media and data channels."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from .audioobserver import AudioObserver
from .config import RouterConfig
from .datachannel import Datachannel

API_CHANNEL_LABEL = "ion-sfu"
AUDIO_LEVELS_METHOD = "audioLevels"
DATA_CHANNEL_OPEN = "open"

_log = logging.getLogger(__name__)


def audio_levels_message(levels: Iterable[str] | None) -> str:
    """Encode the audio levels notification sent on the API data channel."""
    message: dict[str, Any] = {"method": AUDIO_LEVELS_METHOD}
    if levels is not None:
        message["params"] = list(levels)
    return json.dumps(message, separators=(",", ":"))


def _as_text(data: Any) -> str:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data).decode("utf-8", errors="replace")
    return str(data)


class SessionLocal:
    """Peers in one session; each is subscribed to every other peer.

    Peers expose ``id``, ``subscriber`` and ``publisher``. A subscriber has a
    ``channels`` mapping, ``add_data_channel(label)`` and ``negotiate()``; a
    publisher has ``get_router()``; a router has ``id`` and
    ``add_down_tracks(subscriber, receiver)``. Data channels have ``label``,
    ``ready_state``, ``on_message(fn)``, ``send_text(text)`` and ``send(data)``;
    messages carry ``data`` and ``is_string``.
    """

    def __init__(
        self,
        session_id: str,
        datachannels: Iterable[Datachannel] = (),
        router_config: RouterConfig | None = None,
    ) -> None:
        config = router_config if router_config is not None else RouterConfig()
        self.id = session_id
        self.datachannels: list[Datachannel] = list(datachannels)
        self.audio_observer = AudioObserver(
            config.audio_level_threshold,
            config.audio_level_interval,
            config.audio_level_filter,
        )
        self._peers: dict[str, Any] = {}
        self._fan_out_dcs: list[str] = []
        self._lock = threading.RLock()
        self._closed = threading.Event()
        self._on_close: Callable[[], None] | None = None
        self._observer = threading.Thread(
            target=self._observe_audio_levels,
            args=(config.audio_level_interval,),
            name=f"audio-levels-{session_id}",
            daemon=True,
        )
        self._observer.start()

    @property
    def closed(self) -> bool:
        """True once the session has been closed."""
        return self._closed.is_set()

    def add_peer(self, peer: Any) -> None:
        """Add a peer, replacing any peer with the same id."""
        with self._lock:
            self._peers[peer.id] = peer

    def remove_peer(self, peer: Any) -> None:
        """Remove a peer; the session closes when its last peer leaves."""
        with self._lock:
            _log.info("RemovePeer from SessionLocal peer_id=%s session_id=%s", peer.id, self.id)
            self._peers.pop(peer.id, None)
            empty = not self._peers
            handler = self._on_close
        if empty and handler is not None and not self._closed.is_set():
            self._closed.set()
            handler()

    def peers(self) -> list[Any]:
        """Return the peers currently in the session."""
        with self._lock:
            return list(self._peers.values())

    def on_close(self, fn: Callable[[], None]) -> None:
        """Set the handler called when the last peer leaves."""
        self._on_close = fn

    def get_data_channel_labels(self) -> list[str]:
        """Return the labels of the session's configured data channels."""
        with self._lock:
            return [dc.label for dc in self.datachannels]

    def get_data_channels(self, origin: str, label: str) -> list[Any]:
        """Return the open channels with ``label`` of every peer except ``origin``."""
        found = []
        with self._lock:
            for peer_id, peer in self._peers.items():
                if peer_id == origin:
                    continue
                subscriber = peer.subscriber
                if subscriber is None:
                    continue
                channel = subscriber.channels.get(label)
                if channel is not None and channel.ready_state == DATA_CHANNEL_OPEN:
                    found.append(channel)
        return found

    def add_datachannel(self, owner: str, dc: Any) -> None:
        """Fan a data channel opened by ``owner`` out to every other peer."""
        label = dc.label
        with self._lock:
            self._fan_out_dcs.append(label)
            self._peers[owner].subscriber.channels[label] = dc
            others = [
                p for p in self._peers.values() if p.id != owner and p.subscriber is not None
            ]

        dc.on_message(self._forwarder(owner, label))

        for peer in others:
            try:
                channel = peer.subscriber.add_data_channel(label)
            except Exception:
                _log.exception("error adding datachannel")
                continue
            channel.on_message(self._forwarder(peer.id, label))
            peer.subscriber.negotiate()

    def subscribe(self, peer: Any) -> None:
        """Give ``peer`` the fan-out channels and the tracks of every publisher."""
        with self._lock:
            labels = list(self._fan_out_dcs)
            publishers = [
                p for p in self._peers.values() if p is not peer and p.publisher is not None
            ]

        for label in labels:
            try:
                channel = peer.subscriber.add_data_channel(label)
            except Exception:
                _log.exception("error adding datachannel")
                continue
            channel.on_message(self._forwarder(peer.id, label))

        for other in publishers:
            try:
                other.publisher.get_router().add_down_tracks(peer.subscriber, None)
            except Exception:
                _log.exception("Subscribing to Router err")

        peer.subscriber.negotiate()

    def publish(self, router: Any, receiver: Any) -> None:
        """Forward a receiver's track to every peer except the publisher."""
        for peer in self.peers():
            if router.id == peer.id or peer.subscriber is None:
                continue
            _log.info("Publishing track to peer peer_id=%s", peer.id)
            try:
                router.add_down_tracks(peer.subscriber, receiver)
            except Exception:
                _log.exception("Error subscribing transport to Router")

    def broadcast_audio_levels(self) -> str | None:
        """Send the current speakers on the API channels; None if unchanged."""
        levels = self.audio_observer.calc()
        if levels is None:
            return None
        message = audio_levels_message(levels)
        for channel in self.get_data_channels("", API_CHANNEL_LABEL):
            try:
                channel.send_text(message)
            except Exception:
                _log.exception("Sending audio levels err")
        return message

    def close(self) -> None:
        """Stop the session's audio level reports without calling the close handler."""
        self._closed.set()

    def _forwarder(self, origin: str, label: str) -> Callable[[Any], None]:
        def forward(message: Any) -> None:
            self._on_message(origin, label, message)

        return forward

    def _on_message(self, origin: str, label: str, message: Any) -> None:
        for channel in self.get_data_channels(origin, label):
            try:
                if message.is_string:
                    channel.send_text(_as_text(message.data))
                else:
                    channel.send(message.data)
            except Exception:
                _log.exception("Sending dc message err")

    def _observe_audio_levels(self, interval_ms: int) -> None:
        if interval_ms <= 50:
            _log.info("Values near/under 20ms may return unexpected values")
        if interval_ms <= 0:
            interval_ms = 1000
        while not self._closed.wait(interval_ms / 1000):
            self.broadcast_audio_levels()