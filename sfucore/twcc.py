"""Transport-wide congestion control feedback built from received sequence numbers."""

from __future__ import annotations

import random
import struct
import threading
from collections import deque
from collections.abc import Callable
from typing import NamedTuple

BASE_SEQUENCE_NUMBER_OFFSET = 8
PACKET_STATUS_COUNT_OFFSET = 10
REFERENCE_TIME_OFFSET = 12

TCC_REPORT_DELTA_NS = 100_000_000
TCC_REPORT_DELTA_AFTER_MARK_NS = 50_000_000

PACKET_NOT_RECEIVED = 0
PACKET_RECEIVED_SMALL_DELTA = 1
PACKET_RECEIVED_LARGE_DELTA = 2
PACKET_RECEIVED_WITHOUT_DELTA = 3

SYMBOL_SIZE_ONE_BIT = 0
SYMBOL_SIZE_TWO_BIT = 1

FORMAT_TCC = 15
TYPE_TRANSPORT_SPECIFIC_FEEDBACK = 205
RTCP_VERSION = 2

_INT16_MAX = 32767
_INT16_MIN = -32768


class _ExtInfo(NamedTuple):
    ext_tsn: int
    timestamp: int


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def set_n_bits_of_uint16(src: int, size: int, start_index: int, val: int) -> int:
    """Truncate ``val`` to ``size`` bits and set it at ``start_index`` from the MSB."""
    if start_index + size > 16:
        return 0
    val &= (1 << size) - 1
    return (src | (val << (16 - size - start_index))) & 0xFFFF


class Responder:
    """Collects transport-wide sequence numbers and emits TWCC feedback packets."""

    def __init__(self, ssrc: int, sender_ssrc: int | None = None) -> None:
        self.media_ssrc = ssrc & 0xFFFFFFFF
        self.sender_ssrc = (
            random.getrandbits(32) if sender_ssrc is None else sender_ssrc & 0xFFFFFFFF
        )
        self.pkt_ctn = 0
        self.length = 0
        self.delta_len = 0
        self.payload = bytearray(100)
        self.deltas = bytearray(200)
        self.chunk = 0
        self._ext_info: list[_ExtInfo] = []
        self._last_report = 0
        self._cycles = 0
        self._last_ext_sn = 0
        self._last_sn = 0
        self._on_feedback: Callable[[bytes], None] | None = None
        self._lock = threading.Lock()

    def push(self, sn: int, time_ns: int, marker: bool) -> None:
        """Record a sequence number read from an RTP header extension."""
        with self._lock:
            if sn < 0x0FFF and (self._last_sn & 0xFFFF) > 0xF000:
                self._cycles = (self._cycles + (1 << 16)) & 0xFFFFFFFF
            self._ext_info.append(
                _ExtInfo(self._cycles | (sn & 0xFFFF), _trunc_div(time_ns, 1000))
            )
            if self._last_report == 0:
                self._last_report = time_ns
            self._last_sn = sn
            delta = time_ns - self._last_report
            count = len(self._ext_info)
            if (
                count > 20
                and self.media_ssrc != 0
                and (
                    delta >= TCC_REPORT_DELTA_NS
                    or count > 100
                    or (marker and delta >= TCC_REPORT_DELTA_AFTER_MARK_NS)
                )
            ):
                pkt = self.build_transport_cc_packet()
                if pkt is not None and self._on_feedback is not None:
                    self._on_feedback(pkt)
                self._last_report = time_ns

    def on_feedback(self, fn: Callable[[bytes], None]) -> None:
        """Set the callback receiving each raw feedback packet."""
        self._on_feedback = fn

    def build_transport_cc_packet(self) -> bytes | None:
        """Build a raw RTCP TWCC packet from the pending sequence numbers."""
        if not self._ext_info:
            return None
        self._ext_info.sort(key=lambda info: info.ext_tsn)
        tcc_pkts: list[_ExtInfo] = []
        for info in self._ext_info:
            if info.ext_tsn < self._last_ext_sn:
                continue
            if self._last_ext_sn != 0:
                tcc_pkts.extend(
                    _ExtInfo(j, 0) for j in range(self._last_ext_sn + 1, info.ext_tsn)
                )
            self._last_ext_sn = info.ext_tsn
            tcc_pkts.append(info)
        self._ext_info.clear()

        first_recv = False
        same = True
        timestamp = 0
        last_status = PACKET_RECEIVED_WITHOUT_DELTA
        max_status = PACKET_NOT_RECEIVED
        status_list: deque[int] = deque()

        for stat in tcc_pkts:
            status = PACKET_NOT_RECEIVED
            if stat.timestamp != 0:
                if not first_recv:
                    first_recv = True
                    ref_time = _trunc_div(stat.timestamp, 64_000)
                    timestamp = ref_time * 64_000
                    self.write_header(
                        tcc_pkts[0].ext_tsn & 0xFFFF,
                        len(tcc_pkts) & 0xFFFF,
                        ref_time & 0xFFFFFFFF,
                    )
                    self.pkt_ctn = (self.pkt_ctn + 1) & 0xFF

                delta = _trunc_div(stat.timestamp - timestamp, 250)
                if delta < 0 or delta > 255:
                    status = PACKET_RECEIVED_LARGE_DELTA
                    r_delta = ((delta + 0x8000) & 0xFFFF) - 0x8000
                    if r_delta != delta:
                        r_delta = _INT16_MAX if r_delta > 0 else _INT16_MIN
                    self.write_delta(status, r_delta & 0xFFFF)
                else:
                    status = PACKET_RECEIVED_SMALL_DELTA
                    self.write_delta(status, delta)
                timestamp = stat.timestamp

            if same and status != last_status and last_status != PACKET_RECEIVED_WITHOUT_DELTA:
                if len(status_list) > 7:
                    self.write_run_length_chunk(last_status, len(status_list))
                    status_list.clear()
                    last_status = PACKET_RECEIVED_WITHOUT_DELTA
                    max_status = PACKET_NOT_RECEIVED
                    same = True
                else:
                    same = False
            status_list.append(status)
            max_status = max(max_status, status)
            last_status = status

            if not same and max_status == PACKET_RECEIVED_LARGE_DELTA and len(status_list) > 6:
                for i in range(7):
                    self.create_status_symbol_chunk(SYMBOL_SIZE_TWO_BIT, status_list.popleft(), i)
                self.write_status_symbol_chunk(SYMBOL_SIZE_TWO_BIT)
                last_status = PACKET_RECEIVED_WITHOUT_DELTA
                max_status = PACKET_NOT_RECEIVED
                same = True
                for pending in status_list:
                    max_status = max(max_status, pending)
                    if (
                        same
                        and last_status != PACKET_RECEIVED_WITHOUT_DELTA
                        and pending != last_status
                    ):
                        same = False
                    last_status = pending
            elif not same and len(status_list) > 13:
                for i in range(14):
                    self.create_status_symbol_chunk(SYMBOL_SIZE_ONE_BIT, status_list.popleft(), i)
                self.write_status_symbol_chunk(SYMBOL_SIZE_ONE_BIT)
                last_status = PACKET_RECEIVED_WITHOUT_DELTA
                max_status = PACKET_NOT_RECEIVED
                same = True

        if status_list:
            if same:
                self.write_run_length_chunk(last_status, len(status_list))
            else:
                size = (
                    SYMBOL_SIZE_TWO_BIT
                    if max_status == PACKET_RECEIVED_LARGE_DELTA
                    else SYMBOL_SIZE_ONE_BIT
                )
                i = 0
                while i < len(status_list):
                    self.create_status_symbol_chunk(size, status_list.popleft(), i)
                    i += 1
                self.write_status_symbol_chunk(size)

        p_len = self.length + self.delta_len + 4
        pad_size = (-p_len) % 4
        p_len += pad_size
        first_byte = (RTCP_VERSION << 6) | (0x20 if pad_size else 0) | FORMAT_TCC
        pkt = bytearray(p_len)
        struct.pack_into(
            ">BBH", pkt, 0, first_byte, TYPE_TRANSPORT_SPECIFIC_FEEDBACK, p_len // 4 - 1
        )
        pkt[4 : 4 + self.length] = self.payload[: self.length]
        start = 4 + self.length
        pkt[start : start + self.delta_len] = self.deltas[: self.delta_len]
        if pad_size:
            pkt[-1] = pad_size
        self.delta_len = 0
        return bytes(pkt)

    def write_header(self, base_sn: int, packet_count: int, ref_time: int) -> None:
        """Write the feedback header: SSRCs, base sequence, count and reference time."""
        struct.pack_into(
            ">IIHHI",
            self.payload,
            0,
            self.sender_ssrc,
            self.media_ssrc,
            base_sn & 0xFFFF,
            packet_count & 0xFFFF,
            ((ref_time << 8) | self.pkt_ctn) & 0xFFFFFFFF,
        )
        self.length = 16

    def write_run_length_chunk(self, symbol: int, run_length: int) -> None:
        """Append a run-length status chunk."""
        struct.pack_into(">H", self.payload, self.length, ((symbol << 13) | run_length) & 0xFFFF)
        self.length += 2

    def create_status_symbol_chunk(self, symbol_size: int, symbol: int, i: int) -> None:
        """Place symbol number ``i`` into the chunk being built."""
        num_bits = symbol_size + 1
        self.chunk = set_n_bits_of_uint16(self.chunk, num_bits, num_bits * i + 2, symbol)

    def write_status_symbol_chunk(self, symbol_size: int) -> None:
        """Finish the chunk being built and append it."""
        self.chunk = set_n_bits_of_uint16(self.chunk, 1, 0, 1)
        self.chunk = set_n_bits_of_uint16(self.chunk, 1, 1, symbol_size)
        struct.pack_into(">H", self.payload, self.length, self.chunk)
        self.chunk = 0
        self.length += 2

    def write_delta(self, delta_type: int, delta: int) -> None:
        """Append a receive delta: one byte if small, two bytes otherwise."""
        if delta_type == PACKET_RECEIVED_SMALL_DELTA:
            self.deltas[self.delta_len] = delta & 0xFF
            self.delta_len += 1
            return
        struct.pack_into(">H", self.deltas, self.delta_len, delta & 0xFFFF)
        self.delta_len += 2