import time

from sfucore.sequencer import PacketMeta, Sequencer


def _check(res, req, off, layer):
    assert len(res) == len(req)
    for val, sn in zip(res, req):
        assert val.target_seq_no == sn
        assert val.source_seq_no == sn - off
        assert val.layer == layer


def test_sequencer():
    seq = Sequencer(500)
    off = 15
    for i in range(1, 520):
        seq.push(i, i + off, 123, 2, True)

    time.sleep(0.06)
    req = [57, 58, 62, 63, 513, 514, 515, 516, 517]
    _check(seq.get_seq_no_pairs(req), req, off, 2)

    assert seq.get_seq_no_pairs(req) == []

    time.sleep(0.15)
    _check(seq.get_seq_no_pairs(req), req, off, 2)


def test_get_nack_seq_no():
    seq = Sequencer(500)
    for i in [2, 3, 4, 7, 8]:
        seq.push(i, i + 5, 123, 3, True)
    got = [m.source_seq_no for m in seq.get_seq_no_pairs([4 + 5, 5 + 5, 8 + 5])]
    assert got == [4, 8]


def test_push_returns_recorded_meta():
    seq = Sequencer(10)
    meta = seq.push(100, 200, 555, 1, True)
    assert (meta.source_seq_no, meta.target_seq_no, meta.timestamp, meta.layer) == (100, 200, 555, 1)


def test_push_too_old_returns_none():
    seq = Sequencer(5)
    seq.push(1, 100, 0, 0, True)
    assert seq.push(0, 90, 0, 0, False) is None


def test_unknown_seq_no_ignored():
    seq = Sequencer(50)
    seq.push(1, 10, 0, 0, True)
    time.sleep(0.01)
    assert seq.get_seq_no_pairs([9999]) == []


def test_vp8_payload_meta_roundtrip():
    meta = PacketMeta()
    meta.set_vp8_payload_meta(0x12, 0xABCD)
    assert meta.get_vp8_payload_meta() == (0x12, 0xABCD)