import pytest

from sfucore.twcc import (
    PACKET_NOT_RECEIVED,
    PACKET_RECEIVED_LARGE_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_RECEIVED_WITHOUT_DELTA,
    SYMBOL_SIZE_ONE_BIT,
    SYMBOL_SIZE_TWO_BIT,
    TYPE_TRANSPORT_SPECIFIC_FEEDBACK,
    Responder,
    set_n_bits_of_uint16,
)

SENDER = 4195875351
MEDIA = 1124282272

SYMBOLS_ONE_BIT = [
    PACKET_NOT_RECEIVED,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_NOT_RECEIVED,
    PACKET_NOT_RECEIVED,
    PACKET_NOT_RECEIVED,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_NOT_RECEIVED,
    PACKET_NOT_RECEIVED,
]

SYMBOLS_TWO_BIT = [
    PACKET_NOT_RECEIVED,
    PACKET_RECEIVED_WITHOUT_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_RECEIVED_SMALL_DELTA,
    PACKET_NOT_RECEIVED,
    PACKET_NOT_RECEIVED,
]


@pytest.mark.parametrize(
    "length, symbol, run_length, want",
    [
        (0, PACKET_NOT_RECEIVED, 221, bytes([0, 0xDD])),
        (1, PACKET_RECEIVED_WITHOUT_DELTA, 24, bytes([0, 0x60, 0x18])),
    ],
)
def test_write_run_length_chunk(length, symbol, run_length, want):
    r = Responder(0, 0)
    r.length = length
    r.write_run_length_chunk(symbol, run_length)
    assert bytes(r.payload[: r.length]) == want


@pytest.mark.parametrize(
    "length, symbol_size, symbols, want",
    [
        (0, SYMBOL_SIZE_ONE_BIT, SYMBOLS_ONE_BIT, bytes([0x9F, 0x1C])),
        (1, SYMBOL_SIZE_TWO_BIT, SYMBOLS_TWO_BIT, bytes([0x0, 0xCD, 0x50])),
    ],
)
def test_write_status_symbol_chunk(length, symbol_size, symbols, want):
    r = Responder(0, 0)
    r.length = length
    for i, v in enumerate(symbols):
        r.create_status_symbol_chunk(symbol_size, v, i)
    r.write_status_symbol_chunk(symbol_size)
    assert bytes(r.payload[: r.length]) == want
    assert r.chunk == 0


@pytest.mark.parametrize(
    "delta_len, delta_type, delta, want",
    [
        (0, PACKET_RECEIVED_SMALL_DELTA, 255, bytes([0xFF])),
        (1, PACKET_RECEIVED_SMALL_DELTA, 255, bytes([0, 0xFF])),
        (0, PACKET_RECEIVED_LARGE_DELTA, 32767, bytes([0x7F, 0xFF])),
        (1, PACKET_RECEIVED_LARGE_DELTA, (-32768) & 0xFFFF, bytes([0, 0x80, 0x00])),
    ],
)
def test_write_delta(delta_len, delta_type, delta, want):
    r = Responder(0, 0)
    r.delta_len = delta_len
    r.write_delta(delta_type, delta)
    assert bytes(r.deltas[: r.delta_len]) == want
    assert r.delta_len == delta_len + delta_type


def test_write_header():
    r = Responder(MEDIA, SENDER)
    r.pkt_ctn = 23
    r.write_header(153, 1, 4057090)
    assert bytes(r.payload[0:16]) == bytes(
        [0xFA, 0x17, 0xFA, 0x17, 0x43, 0x3, 0x2F, 0xA0, 0x0, 0x99, 0x0, 0x1, 0x3D, 0xE8, 0x2, 0x17]
    )
    assert r.length == 16


def test_tcc_packet_payload():
    want = bytes(
        [
            0xFA, 0x17, 0xFA, 0x17,
            0x43, 0x3, 0x2F, 0xA0,
            0x0, 0x99, 0x0, 0x1,
            0x3D, 0xE8, 0x2, 0x17,
            0x60, 0x18, 0x0, 0xDD,
            0x9F, 0x1C, 0xCD, 0x50,
        ]
    )
    r = Responder(MEDIA, SENDER)
    r.pkt_ctn = 23
    r.write_header(153, 1, 4057090)
    r.write_run_length_chunk(PACKET_RECEIVED_WITHOUT_DELTA, 24)
    r.write_run_length_chunk(PACKET_NOT_RECEIVED, 221)
    for i, v in enumerate(SYMBOLS_ONE_BIT):
        r.create_status_symbol_chunk(SYMBOL_SIZE_ONE_BIT, v, i)
    r.write_status_symbol_chunk(SYMBOL_SIZE_ONE_BIT)
    for i, v in enumerate(SYMBOLS_TWO_BIT):
        r.create_status_symbol_chunk(SYMBOL_SIZE_TWO_BIT, v, i)
    r.write_status_symbol_chunk(SYMBOL_SIZE_TWO_BIT)
    assert bytes(r.payload[:24]) == want
    assert r.length == 24


def test_set_n_bits_out_of_range_returns_zero():
    assert set_n_bits_of_uint16(0xFFFF, 2, 15, 1) == 0


def test_set_n_bits_truncates_value():
    assert set_n_bits_of_uint16(0, 1, 0, 3) == 0x8000


def test_build_without_packets_returns_none():
    assert Responder(MEDIA, SENDER).build_transport_cc_packet() is None


def test_build_packet_small_deltas():
    r = Responder(MEDIA, SENDER)
    for i in range(10):
        r.push(i + 1, 1_000_000_000 + i * 1_000_000, False)
    pkt = r.build_transport_cc_packet()
    assert len(pkt) == 32
    assert pkt[0] == 0x8F
    assert pkt[1] == TYPE_TRANSPORT_SPECIFIC_FEEDBACK
    assert int.from_bytes(pkt[2:4], "big") * 4 + 4 == len(pkt)
    assert int.from_bytes(pkt[4:8], "big") == SENDER
    assert int.from_bytes(pkt[8:12], "big") == MEDIA
    assert int.from_bytes(pkt[12:14], "big") == 1
    assert int.from_bytes(pkt[14:16], "big") == 10
    assert int.from_bytes(pkt[16:19], "big") == 15
    assert pkt[19] == 0
    assert pkt[20:22] == bytes([0x20, 0x0A])
    assert pkt[22:32] == bytes([160] + [4] * 9)
    assert r.pkt_ctn == 1
    assert r.delta_len == 0


def test_build_packet_large_delta_is_padded():
    r = Responder(MEDIA, SENDER)
    r.push(1, 64_000_000_000, False)
    r.push(2, 64_100_000_000, False)
    pkt = r.build_transport_cc_packet()
    assert len(pkt) == 28
    assert pkt[0] == 0xAF
    assert int.from_bytes(pkt[2:4], "big") == 6
    assert pkt[22:25] == bytes([0x00, 0x01, 0x90])
    assert pkt[-1] == 3


def test_build_packet_after_sequence_wrap():
    r = Responder(MEDIA, SENDER)
    r.push(0xF001, 1_000_000_000, False)
    r.push(5, 1_001_000_000, False)
    pkt = r.build_transport_cc_packet()
    assert int.from_bytes(pkt[12:14], "big") == 0xF001
    assert int.from_bytes(pkt[14:16], "big") == 0x1005
    assert len(pkt) % 4 == 0


def test_push_emits_feedback():
    r = Responder(1234, 1)
    packets = []
    r.on_feedback(packets.append)
    for i in range(25):
        r.push(i + 1, 1_000_000_000 + i * 10_000_000, False)
    assert len(packets) == 1
    assert packets[0][1] == TYPE_TRANSPORT_SPECIFIC_FEEDBACK
    assert int.from_bytes(packets[0][14:16], "big") == 21


def test_push_without_media_ssrc_never_reports():
    r = Responder(0, 1)
    packets = []
    r.on_feedback(packets.append)
    for i in range(150):
        r.push(i + 1, 1_000_000_000 + i * 10_000_000, False)
    assert packets == []