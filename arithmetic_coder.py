"""
Binary arithmetic coder for context-mixing compression.

Uses 32-bit integer bounds with carry-free renormalization: whenever the
top bits of lo and hi agree, that bit is settled and shifted out. The
encoder and decoder are perfectly symmetric: given the same sequence of
(n0, n1) counts, the decoder recovers the exact bit sequence the encoder
consumed.
"""

from bit_buffer import BitBuffer


class RangeCollapseError(RuntimeError):
    """The requested split does not fit strictly inside [lo, hi].

    Continuing would code bits that can no longer be told apart, so this
    is fatal for the whole run.
    """

    def __init__(self, lo: int, med: int, hi: int, n0: int, n1: int):
        super().__init__(
            f"range collapse: lo={lo:#010x} med={med:#010x} hi={hi:#010x} "
            f"(n0={n0}, n1={n1})"
        )
        self.lo = lo
        self.med = med
        self.hi = hi
        self.n0 = n0
        self.n1 = n1


class _Coder:

    PRECISION = 32
    MSB = 1 << (PRECISION - 1)     # 0x80000000
    MASK = MSB - 1                 # 0x7FFFFFFF
    MAX_RANGE = (1 << PRECISION) - 1

    def __init__(self):
        self.lo = 0
        self.hi = self.MAX_RANGE

    def _split(self, n0: int, n1: int) -> int:
        """Return the first value of the 1-subinterval.

        Equivalent to floor(lo + p * (hi - lo)) + 1 with p = n0 / (n0 + n1),
        computed exactly in integers.
        """
        total = n0 + n1
        lo, hi = self.lo, self.hi
        if n0 < 0 or n1 < 0 or total <= 0:
            raise RangeCollapseError(lo, lo, hi, n0, n1)
        med = lo + (n0 * (hi - lo)) // total + 1
        if not lo < med <= hi:
            raise RangeCollapseError(lo, med, hi, n0, n1)
        return med


class ArithmeticEncoder(_Coder):
    """Encodes bits into a BitBuffer given per-bit (n0, n1) counts."""

    def __init__(self):
        super().__init__()
        self._out = BitBuffer()

    def encode(self, bit: int, n0: int, n1: int):
        """Encode one bit. n0/n1 are the evidence for 0 and 1."""
        if bit not in (0, 1):
            raise ValueError(f"Expected bit 0 or 1, got {bit!r}")
        med = self._split(n0, n1)

        # 0 -> [lo, med-1], 1 -> [med, hi]
        if bit:
            self.lo = med
        else:
            self.hi = med - 1

        # Renormalize
        msb, mask = self.MSB, self.MASK
        while (self.lo & msb) == (self.hi & msb):
            self._out.write(1 if self.lo & msb else 0)
            self.lo = (self.lo & mask) << 1
            self.hi = ((self.hi & mask) << 1) | 1

    def flush(self) -> BitBuffer:
        """Drain lo so the decoder register lands inside the final interval.

        No terminator is written: the decoder must know how many bits to
        decode.
        """
        msb, mask = self.MSB, self.MASK
        while self.lo > 0:
            self._out.write(1 if self.lo & msb else 0)
            self.lo = (self.lo & mask) << 1
        return self._out

    def get_bit_count(self) -> int:
        """Return number of bits emitted so far."""
        return len(self._out)


class ArithmeticDecoder(_Coder):
    """Decodes bits from a compressed bit stream.

    Accepts either a BitBuffer or raw bytes. A BitBuffer is copied, so
    the caller's read cursor is left alone. Missing bits past the end of
    the stream read as zero.
    """

    def __init__(self, data):
        super().__init__()
        if isinstance(data, BitBuffer):
            self._in = BitBuffer.from_bits(data.tolist())
        else:
            self._in = BitBuffer.from_bytes(data)

        # Read initial register, MSB first
        self.y = 0
        for _ in range(self.PRECISION):
            self.y = (self.y << 1) | self._in.read()

    def decode(self, n0: int, n1: int) -> int:
        """Decode one bit using the same counts the encoder saw."""
        med = self._split(n0, n1)

        if self.y < med:
            bit = 0
            self.hi = med - 1
        else:
            bit = 1
            self.lo = med

        # Renormalize (must match encoder exactly)
        msb, mask = self.MSB, self.MASK
        while (self.lo & msb) == (self.hi & msb):
            self.lo = (self.lo & mask) << 1
            self.hi = ((self.hi & mask) << 1) | 1
            self.y = ((self.y & mask) << 1) | self._in.read()

        return bit
