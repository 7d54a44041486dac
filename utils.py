"""Utility functions for the bit compressor."""

import numpy as np


def bytes_to_bits(data: bytes) -> np.ndarray:
    """Expand bytes into a uint8 array of bits, MSB first per byte.

    Bit order matters: MSB-first keeps the high bits of a byte, which
    carry most of its structure, early in each partial context.
    """
    return np.unpackbits(np.frombuffer(bytes(data), dtype=np.uint8))


def bits_to_bytes(bits) -> bytes:
    """Pack a sequence of bits MSB first, zero-padding the last byte."""
    return np.packbits(np.asarray(bits, dtype=np.uint8)).tobytes()


def format_int(n: int) -> str:
    """Format an integer with space-separated thousands (1 234 567)."""
    return f"{n:,}".replace(",", " ")


def format_size(num_bytes: int) -> str:
    """Format byte count as human-readable string."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    elif num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    else:
        return f"{num_bytes / (1024 * 1024):.2f} MB"
