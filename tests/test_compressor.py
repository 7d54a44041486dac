import numpy as np
import pytest

from arithmetic_coder import RangeCollapseError
from compressor import BitCompressor, DEFAULT_NUM_ORDERS
from context_model import ContextModel
from utils import bytes_to_bits

TEXT = (
    b"It is a truth universally acknowledged, that a single man in "
    b"possession of a good fortune, must be in want of a wife.\n"
) * 6


def _flip(stream: bytes, index: int) -> bytes:
    data = bytearray(stream)
    data[index // 8] ^= 0x80 >> (index % 8)
    return bytes(data)


@pytest.mark.parametrize("data", [
    b"a",
    b"\xff\x00\xff\x00",
    TEXT,
    np.random.default_rng(1234).integers(0, 256, 300, dtype=np.uint8).tobytes(),
])
def test_round_trip(data):
    pc = BitCompressor()
    result = pc.compress_bytes(data)
    check = pc.verify_bytes(data, result.stream)
    assert check.ok
    assert check.bits_checked == 8 * len(data)
    assert check.mismatch_index is None


def _sweep_inputs():
    rng = np.random.default_rng(2024)
    cases = []
    for extra in range(1, 8):
        n = 8 * int(rng.integers(0, 8)) + extra
        cases.append(rng.integers(0, 256, n, dtype=np.uint8).tobytes())
        # Skewed: mostly zero bytes with the odd set bit.
        hits = (rng.random(n) < 0.05).astype(np.int64)
        skewed = hits << rng.integers(0, 8, n)
        cases.append(skewed.astype(np.uint8).tobytes())
    cases.append(bytes([0xFF]) * 37)
    cases.append(rng.choice(np.frombuffer(b"ab", dtype=np.uint8), 61).tobytes())
    return cases


@pytest.mark.parametrize("data", _sweep_inputs())
def test_round_trip_sweep(data):
    pc = BitCompressor()
    result = pc.compress_bytes(data)
    check = pc.verify_bytes(data, result.stream)
    assert check.ok
    assert check.bits_checked == 8 * len(data)
    assert len(result.stream) == (result.bit_count + 7) // 8


def test_text_compresses():
    result = BitCompressor().compress_bytes(TEXT)
    assert result.input_bits == 8 * len(TEXT)
    assert result.bit_count < result.input_bits // 2
    assert len(result.stream) == (result.bit_count + 7) // 8


def test_three_zero_bytes():
    pc = BitCompressor()
    result = pc.compress_bytes(b"\x00\x00\x00")
    assert result.bit_count < 24
    check = pc.verify_bytes(b"\x00\x00\x00", result.stream)
    assert check
    assert check.bits_checked == 24


def test_empty_input():
    pc = BitCompressor()
    result = pc.compress_bytes(b"")
    assert result.stream == b""
    assert result.bit_count == 0
    assert result.ratio == 0.0
    check = pc.verify_bytes(b"", result.stream)
    assert check.ok
    assert check.bits_checked == 0


def test_repeating_pattern_converges():
    data = b"\x80" * 50
    pc = BitCompressor()
    result = pc.compress_bytes(data)
    assert result.bit_count < 8 * len(data) // 4
    assert pc.verify_bytes(data, result.stream)


def test_flipped_first_bit_fails_at_index_zero():
    data = b"hello world"
    pc = BitCompressor()
    stream = _flip(pc.compress_bytes(data).stream, 0)
    check = pc.verify_bytes(data, stream)
    assert not check
    assert check.mismatch_index == 0
    assert (check.expected, check.actual) == (0, 1)
    assert check.bits_checked == 1


def test_flipped_bit_mismatch_is_deterministic():
    stream = BitCompressor().compress_bytes(TEXT).stream
    corrupted = _flip(stream, 40)

    first = BitCompressor().verify_bytes(TEXT, corrupted)
    second = BitCompressor().verify_bytes(TEXT, corrupted)
    assert not first.ok
    assert first == second
    assert first.expected != first.actual
    assert first.mismatch_index < 8 * len(TEXT)


def test_mismatch_reported_on_stderr(capsys):
    pc = BitCompressor(verbose=True)
    stream = _flip(pc.compress_bytes(b"hello").stream, 0)
    pc.verify_bytes(b"hello", stream)
    err = capsys.readouterr().err
    assert "decompression error at bit 0: expected 0, got 1" in err


def test_determinism():
    data = TEXT[:200]
    a = BitCompressor().compress_bytes(data)
    b = BitCompressor().compress_bytes(data)
    assert a.stream == b.stream
    assert a.table_sizes == b.table_sizes
    assert len(a.table_sizes) == DEFAULT_NUM_ORDERS


def test_each_pass_starts_from_empty_tables():
    pc = BitCompressor(num_orders=4)
    first = pc.compress_bytes(TEXT[:100])
    assert all(size > 0 for size in first.table_sizes)
    assert pc.compress_bytes(TEXT[:100]).stream == first.stream

    # Verification replays the exact same trajectory.
    assert pc.verify_bytes(TEXT[:100], first.stream)
    assert pc.table_sizes() == first.table_sizes

    assert pc.compress_bytes(b"").table_sizes == [0, 0, 0, 0]


def test_higher_orders_see_more_contexts():
    sizes = BitCompressor().compress_bytes(TEXT).table_sizes
    assert sizes == sorted(sizes)


def test_counters_stay_bounded():
    pc = BitCompressor(num_orders=3)
    pc.compress_bytes(b"\xff" * 400 + b"\x00" * 10)
    peak = max(
        max(n0, n1) for m in pc.models for n0, n1 in m.counters()
    )
    assert peak == ContextModel.COUNTER_LIMIT


def test_accepts_bit_lists():
    bits = bytes_to_bits(b"xyz").tolist()
    pc = BitCompressor()
    result = pc.compress(bits)
    assert result == pc.compress(np.array(bits, dtype=np.uint8))
    assert pc.verify(bits, result.stream)


def test_range_collapse_propagates(monkeypatch):
    pc = BitCompressor()
    monkeypatch.setattr(pc.mixer, "mix", lambda: (5, 0))
    with pytest.raises(RangeCollapseError):
        pc.compress_bytes(b"\x01")


def test_invalid_order_count():
    with pytest.raises(ValueError):
        BitCompressor(num_orders=0)
