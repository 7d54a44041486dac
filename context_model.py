"""Order-k bit context model for context mixing.

Each model keys its statistics on the last k complete bytes plus the
partial byte being assembled. The whole window is packed into a single
int, so table keys are plain immutable values:

    key = (history << 8) | partial

``history`` holds the k previous bytes (oldest most significant) and
``partial`` holds the bits seen so far in the current byte behind a
leading sentinel 1. The sentinel keeps "0" (0b10) and "00" (0b100)
apart; without it both would be stored as 0.

All operations are deterministic for lossless codec symmetry.
"""


class ContextModel:
    """Adaptive (n0, n1) counters per context of a fixed byte order.

    Counters are non-stationary: the observed bit's counter is
    incremented (saturating at COUNTER_LIMIT) while the opposite one is
    roughly halved, so recent evidence dominates.

    The table is never evicted; it grows with the number of distinct
    contexts seen in the current pass.
    """

    COUNTER_LIMIT = 255

    # Partial byte holding only the sentinel bit.
    EMPTY_PARTIAL = 1

    def __init__(self, order: int):
        if order < 0:
            raise ValueError(f"order must be >= 0, got {order}")
        self.order = order
        self._history_mask = (1 << (8 * order)) - 1
        self.reset()

    def reset(self):
        """Clear all counters and restore the initial window."""
        self._table: dict[int, list[int]] = {}
        self._history = 0
        self._partial = self.EMPTY_PARTIAL

    def __len__(self) -> int:
        return len(self._table)

    @property
    def context(self) -> int:
        """Packed key of the current context."""
        return (self._history << 8) | self._partial

    def counters(self):
        """Iterate over every stored (n0, n1) pair."""
        for n in self._table.values():
            yield n[0], n[1]

    def predict(self) -> tuple[int, int]:
        """Return (n0, n1) for the current context, creating it if unseen."""
        n = self._table.setdefault(self.context, [0, 0])
        return n[0], n[1]

    def update(self, bit: int):
        """Record the observed bit, then advance the context window.

        Must be called identically during compression and verification.
        """
        n = self._table.setdefault(self.context, [0, 0])
        other = 1 - bit
        if n[bit] < self.COUNTER_LIMIT:
            n[bit] += 1
        if n[other] > 0:
            n[other] = n[other] // 2 + 1

        partial = (self._partial << 1) | bit
        if partial > 0xFF:
            # Byte complete: shift it into history, dropping the oldest.
            self._history = (
                (self._history << 8) | (partial & 0xFF)
            ) & self._history_mask
            partial = self.EMPTY_PARTIAL
        self._partial = partial
