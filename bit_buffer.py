"""Indexed, growable bit buffer shared by the arithmetic encoder and decoder.

Bits live one per slot in a flat numpy uint8 array that doubles its
capacity when full. The encoder appends at the write cursor; the decoder
consumes from the read cursor and sees implicit zeros past the end.
"""

import numpy as np

from utils import bits_to_bytes, bytes_to_bits


class BitBuffer:
    """Append/consume buffer of single bits (0 or 1)."""

    INITIAL_CAPACITY = 1024

    __slots__ = ('_bits', '_size', '_pos')

    def __init__(self, capacity: int = INITIAL_CAPACITY):
        self._bits = np.zeros(max(capacity, 1), dtype=np.uint8)
        self._size = 0
        self._pos = 0

    @classmethod
    def from_bits(cls, bits) -> "BitBuffer":
        """Wrap an existing sequence of 0/1 values (list or numpy array)."""
        arr = np.asarray(bits, dtype=np.uint8)
        buf = cls(len(arr))
        buf._bits[:len(arr)] = arr
        buf._size = len(arr)
        return buf

    @classmethod
    def from_bytes(cls, data: bytes) -> "BitBuffer":
        """Unpack bytes MSB-first into a buffer ready for reading."""
        return cls.from_bits(bytes_to_bits(data))

    def __len__(self) -> int:
        return self._size

    def write(self, bit: int):
        if self._size == len(self._bits):
            grown = np.zeros(len(self._bits) * 2, dtype=np.uint8)
            grown[:self._size] = self._bits
            self._bits = grown
        self._bits[self._size] = bit
        self._size += 1

    def read(self) -> int:
        """Return the next unread bit, or 0 once the buffer is exhausted."""
        if self._pos >= self._size:
            return 0
        bit = int(self._bits[self._pos])
        self._pos += 1
        return bit

    def rewind(self):
        self._pos = 0

    def tolist(self) -> list[int]:
        return self._bits[:self._size].tolist()

    def to_bytes(self) -> bytes:
        """Pack bits MSB-first; the last byte is zero-padded."""
        return bits_to_bytes(self._bits[:self._size])
