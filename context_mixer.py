"""Context mixer for model blending.

Combines the (n0, n1) counters of several context models into a single
pair of effective counts for the arithmetic coder. Higher orders are
longer, sparser, more specific contexts; once populated they are usually
the most reliable, so they get quadratically larger weights.

All operations are deterministic for lossless codec symmetry.
"""

from context_model import ContextModel


class ContextMixer:
    """Static weighted count mixer.

    For models of order index i = 0..N-1 with counters (n0_i, n1_i):

        n0 = 1 + sum((i + 1)**2 * n0_i)
        n1 = 1 + sum((i + 1)**2 * n1_i)

    The (1, 1) prior keeps both counts positive, so the coder never
    receives a zero-probability split.
    """

    PRIOR = (1, 1)

    def __init__(self, models: list[ContextModel]):
        if not models:
            raise ValueError("ContextMixer needs at least one model")
        self.models = list(models)
        self.weights = [(i + 1) ** 2 for i in range(len(self.models))]

    def reset(self):
        """Reset every model. Call when starting a new pass."""
        for model in self.models:
            model.reset()

    def mix(self) -> tuple[int, int]:
        """Blend all model predictions into one (n0, n1) pair."""
        n0, n1 = self.PRIOR
        for w, model in zip(self.weights, self.models):
            c0, c1 = model.predict()
            n0 += w * c0
            n1 += w * c1
        return n0, n1

    def update(self, bit: int):
        """Update all models after observing a bit."""
        for model in self.models:
            model.update(bit)

    def get_weights(self) -> list[int]:
        """Return mixer weights (for diagnostics)."""
        return list(self.weights)
