"""
Bases and qubit values used by the BB84 simulation.

Polarization map:
  Rectilinear (+) basis:  0° = ZERO,  90° = ONE
  Diagonal    (×) basis: 45° = PLUS, 135° = MINUS
"""
from enum import Enum
from typing import Tuple


class Basis(Enum):
    RECTILINEAR = "+"
    DIAGONAL    = "x"

    @property
    def symbol(self) -> str:
        return "+" if self is Basis.RECTILINEAR else "×"

    @property
    def values(self) -> Tuple["QubitValue", "QubitValue"]:
        """The two symbols that are meaningful in this basis."""
        return BASIS_VALUES[self]


class QubitValue(Enum):
    ZERO  = "0"
    ONE   = "1"
    PLUS  = "+"
    MINUS = "-"

    @property
    def polarization(self) -> float:
        return POLARIZATION_ANGLES[self]

    @property
    def symbol(self) -> str:
        return POLARIZATION_SYMBOLS[self]

    @property
    def key_bit(self) -> int:
        return to_key_bit(self)


ALL_VALUES: Tuple[QubitValue, ...] = tuple(QubitValue)

BASIS_VALUES = {
    Basis.RECTILINEAR: (QubitValue.ZERO, QubitValue.ONE),
    Basis.DIAGONAL:    (QubitValue.PLUS, QubitValue.MINUS),
}

POLARIZATION_ANGLES = {
    QubitValue.ZERO:  0.0,
    QubitValue.ONE:   90.0,
    QubitValue.PLUS:  45.0,
    QubitValue.MINUS: 135.0,
}

POLARIZATION_SYMBOLS = {
    QubitValue.ZERO:  "→",
    QubitValue.ONE:   "↑",
    QubitValue.PLUS:  "↗",
    QubitValue.MINUS: "↖",
}


def to_key_bit(value: QubitValue) -> int:
    """
    Canonical key bit for a symbol, independent of basis.
    ZERO and PLUS carry a logical 0, ONE and MINUS a logical 1.
    """
    return 0 if value in (QubitValue.ZERO, QubitValue.PLUS) else 1
