"""Fixed-point fractions and saturating integer helpers used by the chain logic."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1

PERBILL_ACCURACY = 1_000_000_000
PERQUINTILL_ACCURACY = 1_000_000_000_000_000_000


def _div_nearest_prefer_down(numerator: int, denominator: int) -> int:
    """Divide and round to nearest, rounding exact halves down."""
    quotient, remainder = divmod(numerator, denominator)
    return quotient + 1 if 2 * remainder > denominator else quotient


def _check_unsigned(name: str, value: int) -> None:
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")


class _PerThing:
    """Shared behaviour of fixed-point fractions between 0 and 1."""

    ACCURACY: ClassVar[int]
    parts: int

    def __post_init__(self) -> None:
        if not 0 <= self.parts <= self.ACCURACY:
            raise ValueError(f"parts must be within 0..={self.ACCURACY}, got {self.parts}")

    def __mul__(self, value: object) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            return NotImplemented
        _check_unsigned("value", value)
        return _div_nearest_prefer_down(value * self.parts, self.ACCURACY)

    __rmul__ = __mul__


@dataclass(frozen=True, order=True)
class Perbill(_PerThing):
    """A fraction expressed in parts per billion."""

    parts: int = 0
    ACCURACY: ClassVar[int] = PERBILL_ACCURACY

    @classmethod
    def from_percent(cls, percent: int) -> Perbill:
        """Build from a percentage, clamped to 100%."""
        _check_unsigned("percent", percent)
        return cls(min(percent, 100) * (PERBILL_ACCURACY // 100))

    @classmethod
    def from_perthousand(cls, perthousand: int) -> Perbill:
        """Build from parts per thousand, clamped to 1000."""
        _check_unsigned("perthousand", perthousand)
        return cls(min(perthousand, 1000) * (PERBILL_ACCURACY // 1000))

    @classmethod
    def from_rational(cls, p: int, q: int) -> Perbill:
        """Approximate ``p / q``; a zero denominator or ``p > q`` gives 100%."""
        _check_unsigned("p", p)
        _check_unsigned("q", q)
        if q == 0 or p > q:
            return cls(PERBILL_ACCURACY)
        return cls(_div_nearest_prefer_down(p * PERBILL_ACCURACY, q))

    def deconstruct(self) -> int:
        """Return the raw number of parts."""
        return self.parts

    def mul_floor(self, value: int) -> int:
        """Multiply an unsigned integer by this fraction, rounding down."""
        _check_unsigned("value", value)
        return value * self.parts // PERBILL_ACCURACY


@dataclass(frozen=True, order=True)
class Perquintill(_PerThing):
    """A fraction expressed in parts per quintillion."""

    parts: int = 0
    ACCURACY: ClassVar[int] = PERQUINTILL_ACCURACY

    @classmethod
    def from_percent(cls, percent: int) -> Perquintill:
        """Build from a percentage, clamped to 100%."""
        _check_unsigned("percent", percent)
        return cls(min(percent, 100) * (PERQUINTILL_ACCURACY // 100))

    def deconstruct(self) -> int:
        """Return the raw number of parts."""
        return self.parts


def saturating_sub(a: int, b: int) -> int:
    """Unsigned subtraction that stops at zero."""
    return max(a - b, 0)


def saturating_add(a: int, b: int, max_value: int) -> int:
    """Unsigned addition that stops at ``max_value``."""
    return min(a + b, max_value)


def saturating_mul(a: int, b: int, max_value: int) -> int:
    """Unsigned multiplication that stops at ``max_value``."""
    return min(a * b, max_value)