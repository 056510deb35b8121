"""
Quantum channel simulator: random basis / value draws and the collapse rule.

The channel keeps no protocol state; its only state is the random source,
which is injectable so tests can script every draw.
"""
import random
from typing import Optional, Sequence, TypeVar

import config
from .qubit import ALL_VALUES, Basis, QubitValue

T = TypeVar("T")

_BASES = (Basis.RECTILINEAR, Basis.DIAGONAL)


class RandomSourceError(RuntimeError):
    """The random source is missing or failed to produce a valid draw."""


class QuantumChannel:
    """Models the (simulated) quantum channel between Alice, Eve and Bob."""

    def __init__(self, rng=None):
        """
        Args:
            rng: Object with a ``choice(seq)`` method, e.g. ``random.Random``.
                 Defaults to a ``random.Random`` seeded from config.RANDOM_SEED.
        """
        if rng is None:
            rng = random.Random(config.RANDOM_SEED)
        if not callable(getattr(rng, "choice", None)):
            raise RandomSourceError(f"Random source {rng!r} has no choice() method")
        self._rng = rng

    # ------------------------------------------------------------------ #
    #  Draws                                                               #
    # ------------------------------------------------------------------ #
    def draw_basis(self) -> Basis:
        return self._draw(_BASES)

    def draw_value(self, basis: Basis) -> QubitValue:
        """Uniform choice between the two symbols valid in *basis*."""
        return self._draw(basis.values)

    # ------------------------------------------------------------------ #
    #  Quantum mechanics                                                   #
    # ------------------------------------------------------------------ #
    def measure(
        self,
        value: QubitValue,
        prepared_basis: Basis,
        measuring_basis: Basis,
    ) -> QubitValue:
        """
        Returns the value observed when a qubit prepared as *value* in
        *prepared_basis* is measured in *measuring_basis*.

        Matching bases give the prepared value back unchanged. Otherwise the
        original information is destroyed and the outcome is drawn uniformly
        over all four symbols (a simplification: a real measurement would
        only yield the two symbols of the measuring basis).
        """
        if prepared_basis == measuring_basis:
            return value
        return self._draw(ALL_VALUES)

    # ------------------------------------------------------------------ #
    #  Helpers                                                             #
    # ------------------------------------------------------------------ #
    def _draw(self, options: Sequence[T]) -> T:
        try:
            picked = self._rng.choice(options)
        except (LookupError, TypeError, ValueError, AttributeError) as exc:
            raise RandomSourceError(f"Random source failed: {exc}") from exc
        if picked not in options:
            raise RandomSourceError(f"Random source returned {picked!r}, not one of {options!r}")
        return picked
