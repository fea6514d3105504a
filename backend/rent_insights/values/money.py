"""
Fixed-point monetary value.

Amounts are stored as integer subunits at 10,000 per euro, keeping four
fractional digits so that MAX/MIN/AVG over many rent rows never accumulates
floating point drift. Decimal inputs are truncated toward zero after scaling.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from numbers import Number
from typing import Any, Dict, Union

from rent_insights.core.exceptions import InvalidInput

SCALE = 10000
EUR = "EUR"

Amount = Union[int, float, Decimal, str]


def _to_decimal(amount: Any) -> Decimal:
    # bool is an int subclass; True must not silently become one euro
    if isinstance(amount, bool) or not isinstance(amount, (Number, str)):
        raise InvalidInput(f"Invalid money amount: {amount!r}")

    try:
        # str() keeps the shortest float repr, so 0.29 stays 0.29 and not 0.28999...
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"Invalid money amount: {amount!r}")

    if not value.is_finite():
        raise InvalidInput(f"Invalid money amount: {amount!r}")
    return value


@dataclass(frozen=True, order=True)
class Money:
    """Immutable amount of money in subunits (1 EUR = 10,000 subunits)."""

    subunits: int
    currency: str = EUR

    def __post_init__(self):
        if isinstance(self.subunits, bool) or not isinstance(self.subunits, int):
            raise InvalidInput(f"Money subunits must be an integer, got {self.subunits!r}")
        if self.currency != EUR:
            raise InvalidInput(f"Unsupported currency: {self.currency!r}")

    @classmethod
    def make(cls, amount: Amount, is_scaled_integer: bool) -> "Money":
        """
        Build a Money value, the caller stating how `amount` is expressed.

        Args:
            amount: Either euros (decimal) or already-scaled subunits
            is_scaled_integer: True when `amount` is already in subunits

        Raises:
            InvalidInput: amount is not numeric, or not whole when scaled
        """
        if is_scaled_integer:
            return cls.from_subunits(amount)
        return cls.from_decimal(amount)

    @classmethod
    def from_decimal(cls, amount: Amount) -> "Money":
        """Scale a euro amount by 10,000 and truncate toward zero."""
        scaled = (_to_decimal(amount) * SCALE).to_integral_value(rounding=ROUND_DOWN)
        return cls(int(scaled))

    @classmethod
    def from_subunits(cls, amount: Amount) -> "Money":
        """Wrap an amount that is already expressed in subunits."""
        value = _to_decimal(amount)
        if value != value.to_integral_value():
            raise InvalidInput(f"Scaled money amount must be a whole number, got {amount!r}")
        return cls(int(value))

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    def euro(self) -> float:
        return self.subunits / SCALE

    def amount(self) -> int:
        return self.subunits

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subunits": self.subunits,
            "euro": self.euro(),
            "currency": self.currency,
        }

    def __str__(self) -> str:
        return f"{self.euro():.2f} {self.currency}"
