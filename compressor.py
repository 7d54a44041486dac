"""Context-mixing bit compressor.

Lossless compression of a bit stream with an ensemble of order-k
context models:

  1. Context models – adaptive (n0, n1) counters, one model per order
     0..N-1 (order k sees the k previous bytes plus the partial byte)
  2. Context mixer  – quadratic weighting of all orders
  3. Arithmetic coder – codes each bit with the mixed counts

For every bit the loop is mix → code → update. The coder always sees the
pre-update prediction. The verification pass replays the same trajectory
with a decoder, so compressor and verifier must visit exactly the same
sequence of model states; nothing else keeps them in sync.
"""

import gc
import sys
from dataclasses import dataclass, field

import numpy as np

from arithmetic_coder import ArithmeticEncoder, ArithmeticDecoder
from context_model import ContextModel
from context_mixer import ContextMixer
from utils import bytes_to_bits

# ---- Default hyperparameters ----

DEFAULT_NUM_ORDERS = 8

# Bits between progress line refreshes (verbose mode).
PROGRESS_INTERVAL = 8192


@dataclass
class CompressionResult:
    """Output of one compression pass."""

    stream: bytes
    bit_count: int
    input_bits: int
    table_sizes: list[int] = field(default_factory=list)

    @property
    def ratio(self) -> float:
        """Compressed bits / input bits (0 for empty input)."""
        return self.bit_count / self.input_bits if self.input_bits else 0.0

    @property
    def bits_per_byte(self) -> float:
        return 8 * self.ratio


@dataclass
class VerificationResult:
    """Outcome of a round-trip verification pass.

    On failure, mismatch_index is the first bit position whose decoded
    value differed; expected/actual hold the original and decoded bits.
    """

    ok: bool
    bits_checked: int
    mismatch_index: int = None
    expected: int = None
    actual: int = None

    def __bool__(self) -> bool:
        return self.ok


class BitCompressor:
    """Lossless bit compressor with multi-order context mixing."""

    def __init__(self, num_orders: int = DEFAULT_NUM_ORDERS,
                 verbose: bool = False):
        if num_orders < 1:
            raise ValueError(f"num_orders must be >= 1, got {num_orders}")
        self.num_orders = num_orders
        self.verbose = verbose

        self.models = [ContextModel(order) for order in range(num_orders)]
        self.mixer = ContextMixer(self.models)

    def _reset_models(self):
        """Return every model to its empty state for a new pass."""
        self.mixer.reset()

    def table_sizes(self) -> list[int]:
        """Number of distinct contexts stored per order."""
        return [len(m) for m in self.models]

    def _progress(self, label: str, i: int, total: int):
        if self.verbose and (i % PROGRESS_INTERVAL == 0 or i == total - 1):
            print(
                f"\r{label}: {i+1}/{total} ({100*(i+1)/total:.1f}%)",
                end="", file=sys.stderr,
            )

    def _report_tables(self):
        if self.verbose:
            sizes = ", ".join(
                f"o{m.order}={len(m)}" for m in self.models
            )
            print(f"Contexts: {sizes}", file=sys.stderr)

    # ------------------------------------------------------------------
    # Compression
    # ------------------------------------------------------------------

    def compress(self, bits) -> CompressionResult:
        """Arithmetic-code a bit sequence (0/1 values, MSB-first bytes).

        Raises:
            RangeCollapseError: the coder could not split its interval.
        """
        if isinstance(bits, np.ndarray):
            bits = bits.tolist()
        num_bits = len(bits)

        self._reset_models()
        encoder = ArithmeticEncoder()
        mixer = self.mixer

        # The context tables are int -> list and never cyclic; keep the
        # cyclic GC from rescanning them as they grow.
        gc.disable()
        try:
            for i, bit in enumerate(bits):
                self._progress("Encoding", i, num_bits)
                n0, n1 = mixer.mix()
                encoder.encode(bit, n0, n1)
                mixer.update(bit)
        finally:
            gc.enable()

        out = encoder.flush()

        if self.verbose:
            if num_bits:
                print(file=sys.stderr)
            self._report_tables()

        return CompressionResult(
            stream=out.to_bytes(),
            bit_count=len(out),
            input_bits=num_bits,
            table_sizes=self.table_sizes(),
        )

    def compress_bytes(self, data: bytes) -> CompressionResult:
        """Compress raw bytes (expanded MSB-first into bits)."""
        return self.compress(bytes_to_bits(data))

    # ------------------------------------------------------------------
    # Round-trip verification
    # ------------------------------------------------------------------

    def verify(self, original_bits, stream) -> VerificationResult:
        """Decode len(original_bits) bits from *stream* and compare.

        Models are rebuilt from scratch so the decoder replays the
        encoder's trajectory. Stops at the first mismatching bit.

        Raises:
            RangeCollapseError: the coder could not split its interval.
        """
        if isinstance(original_bits, np.ndarray):
            original_bits = original_bits.tolist()
        num_bits = len(original_bits)

        self._reset_models()
        decoder = ArithmeticDecoder(stream)
        mixer = self.mixer
        result = VerificationResult(ok=True, bits_checked=num_bits)

        gc.disable()
        try:
            for i, expected in enumerate(original_bits):
                self._progress("Verifying", i, num_bits)
                n0, n1 = mixer.mix()
                bit = decoder.decode(n0, n1)
                if bit != expected:
                    result = VerificationResult(
                        ok=False, bits_checked=i + 1,
                        mismatch_index=i, expected=expected, actual=bit,
                    )
                    break
                mixer.update(bit)
        finally:
            gc.enable()

        if self.verbose:
            if num_bits:
                print(file=sys.stderr)
            if not result.ok:
                print(
                    f"decompression error at bit {result.mismatch_index}: "
                    f"expected {result.expected}, got {result.actual}",
                    file=sys.stderr,
                )

        return result

    def verify_bytes(self, data: bytes, stream) -> VerificationResult:
        """Verify that *stream* decodes back to *data*."""
        return self.verify(bytes_to_bits(data), stream)
