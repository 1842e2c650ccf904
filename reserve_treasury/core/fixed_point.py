#!/usr/bin/env python3
"""
Fixed-Point Integer Arithmetic

Exact integer math used by every accounting path in the treasury:
- mul_div with truncation toward zero (never rounds in the payer's disfavour)
- FixedPoint values carrying an explicit unit scale (1e18 by default)

Floating point is never used for balances, supplies or shares.
"""

from dataclasses import dataclass
from typing import Optional

from ..config import SCALE
from .exceptions import DivideByZero, InvalidAmount


def require_amount(value, name: str = "amount") -> int:
    """Validate that value is a non-negative integer amount"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer", {name: repr(value)})
    if value < 0:
        raise InvalidAmount(f"{name} must be non-negative", {name: value})
    return value


def div_trunc(numerator: int, denominator: int) -> int:
    """Integer division truncating toward zero"""
    if denominator == 0:
        raise DivideByZero("Division by zero", {"numerator": numerator})
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def mul_div(a: int, b: int, denominator: int) -> int:
    """Compute a * b / denominator exactly, truncating toward zero"""
    return div_trunc(a * b, denominator)


@dataclass(frozen=True)
class FixedPoint:
    """
    Integer fixed-point number: value = raw / scale

    Every operation producing a FixedPoint or applying one to an amount
    truncates toward zero.
    """
    raw: int
    scale: int = SCALE

    @classmethod
    def from_ratio(cls, numerator: int, denominator: int, scale: int = SCALE) -> "FixedPoint":
        """Build numerator / denominator at the given scale"""
        return cls(mul_div(scale, numerator, denominator), scale)

    @classmethod
    def one(cls, scale: int = SCALE) -> "FixedPoint":
        return cls(scale, scale)

    def apply(self, amount: int) -> int:
        """Return amount * self, truncated"""
        return mul_div(amount, self.raw, self.scale)

    def is_zero(self) -> bool:
        return self.raw == 0

    def to_float(self) -> float:
        """Lossy conversion for reporting only"""
        return self.raw / self.scale

    def __str__(self) -> str:
        whole, frac = divmod(abs(self.raw), self.scale)
        width = len(str(self.scale)) - 1
        sign = "-" if self.raw < 0 else ""
        return f"{sign}{whole}.{frac:0{width}d}"


def ratio_or_none(numerator: int, denominator: int, scale: int = SCALE) -> Optional[FixedPoint]:
    """FixedPoint ratio, or None when the denominator is zero"""
    if denominator == 0:
        return None
    return FixedPoint.from_ratio(numerator, denominator, scale)
