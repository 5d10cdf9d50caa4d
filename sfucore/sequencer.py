"""Maps forwarded sequence numbers back to the source packets for NACKs."""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass

IGNORE_RETRANSMISSION_MS = 100

_log = logging.getLogger(__name__)


@dataclass
class PacketMeta:
    """What is known about one forwarded packet."""

    source_seq_no: int = 0
    target_seq_no: int = 0
    timestamp: int = 0
    last_nack: int = 0
    layer: int = 0
    misc: int = 0

    def set_vp8_payload_meta(self, tlz0_idx: int, pic_id: int) -> None:
        """Store the VP8 TL0PICIDX and picture id."""
        self.misc = ((tlz0_idx & 0xFF) << 16) | (pic_id & 0xFFFF)

    def get_vp8_payload_meta(self) -> tuple[int, int]:
        """Return the stored (TL0PICIDX, picture id)."""
        return (self.misc >> 16) & 0xFF, self.misc & 0xFFFF


def _now_ms() -> int:
    return time.monotonic_ns() // 1_000_000


class Sequencer:
    """Ring buffer of packet metadata for one down track."""

    def __init__(self, max_track: int) -> None:
        self._lock = threading.Lock()
        self._init = False
        self._max = max_track
        self._seq = [PacketMeta() for _ in range(max_track)]
        self._step = 0
        self._head_sn = 0
        self._start_time = _now_ms()

    def _advance(self) -> None:
        self._step += 1
        if self._step >= self._max:
            self._step = 0

    def push(
        self, sn: int, off_sn: int, timestamp: int, layer: int, head: bool
    ) -> PacketMeta | None:
        """Record a forwarded packet; None if it is too old to sequence."""
        with self._lock:
            if not self._init:
                self._head_sn = off_sn
                self._init = True

            if head:
                inc = (off_sn - self._head_sn) & 0xFFFF
                if inc > 1:
                    self._step = (self._step + inc - 1) % self._max
                self._head_sn = off_sn
            else:
                step = self._step - ((self._head_sn - off_sn) & 0xFFFF)
                if step < 0 and -step >= self._max:
                    _log.info("Old packet received, can not be sequenced: head=%d received=%d", sn, off_sn)
                    return None

            meta = PacketMeta(
                source_seq_no=sn,
                target_seq_no=off_sn,
                timestamp=timestamp,
                layer=layer,
            )
            self._seq[self._step] = meta
            self._advance()
            return meta

    def get_seq_no_pairs(self, seq_nos: list[int]) -> list[PacketMeta]:
        """Return copies of the metadata for NACKed sequence numbers.

        A packet requested again within the retransmission window is skipped.
        """
        with self._lock:
            ref_time = (_now_ms() - self._start_time) & 0xFFFFFFFF
            found = []
            for sn in seq_nos:
                step = self._step - ((self._head_sn - sn) & 0xFFFF) - 1
                if step < 0:
                    if -step >= self._max:
                        continue
                    step += self._max
                meta = self._seq[step]
                if meta.target_seq_no != sn:
                    continue
                if meta.last_nack == 0 or (ref_time - meta.last_nack) & 0xFFFFFFFF > IGNORE_RETRANSMISSION_MS:
                    meta.last_nack = ref_time
                    found.append(dataclasses.replace(meta))
            return found