"""Checked integer wrapper for lamport and asset-unit arithmetic.

This module provides SafeInt, a lightweight wrapper that makes arithmetic
operations fail closed:
- Division by zero raises DivisionByZero
- Subtraction underflow raises Underflow
- u64 / i64 overflow is caught on conversion

Intermediate values are unbounded Python ints (the wide intermediate the
curve and fee formulas need); bounds are enforced when a value leaves the
calculation through to_u64() / to_i64(). All failures are NumericOverflow,
so a caller never sees a silently wrapped or saturated amount.

Usage pattern:
    from nftamm.safe_int import S

    def lp_fee(total_price: int, lp_fee_bp: int) -> int:
        return (S(total_price) * lp_fee_bp // 10_000).to_u64()
"""

from __future__ import annotations

from nftamm.errors import NumericOverflow

U16_MAX = 2**16 - 1
U64_MAX = 2**64 - 1
I16_MIN = -(2**15)
I16_MAX = 2**15 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1


class DivisionByZero(NumericOverflow):
    """Division or modulo by zero."""


class Underflow(NumericOverflow):
    """Subtraction would produce a negative result."""


class U64Overflow(NumericOverflow):
    """Value does not fit in u64."""


class I64Overflow(NumericOverflow):
    """Value does not fit in i64."""


class SafeInt:
    """Integer with checked arithmetic.

    Subtraction is unsigned: a negative result raises Underflow. Use
    signed_sub() or negation plus addition for signed quantities such as
    a maker rebate.

    Attributes:
        value: The underlying integer value (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            self._value = value._value
        elif isinstance(value, bool):
            raise TypeError("SafeInt requires int, got bool")
        elif isinstance(value, int):
            self._value = value
        else:
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")

    @property
    def value(self) -> int:
        """The underlying integer value."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __hash__(self) -> int:
        return hash(self._value)

    # --- Arithmetic operations ---

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _extract_value(other))

    def __radd__(self, other: int) -> SafeInt:
        return SafeInt(other + self._value)

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        """Unsigned subtraction.

        Raises:
            Underflow: If result would be negative
        """
        other_val = _extract_value(other)
        result = self._value - other_val
        if result < 0:
            raise Underflow(f"{self._value} - {other_val}")
        return SafeInt(result)

    def __rsub__(self, other: int) -> SafeInt:
        result = other - self._value
        if result < 0:
            raise Underflow(f"{other} - {self._value}")
        return SafeInt(result)

    def signed_sub(self, other: SafeInt | int) -> SafeInt:
        """Subtract allowing a negative result (validated on conversion)."""
        return SafeInt(self._value - _extract_value(other))

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _extract_value(other))

    def __rmul__(self, other: int) -> SafeInt:
        return SafeInt(other * self._value)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Floor division.

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"{self._value} // 0")
        return SafeInt(self._value // other_val)

    def trunc_div(self, other: SafeInt | int) -> SafeInt:
        """Division rounding toward zero (matters only for negative values).

        A -2_500.5 rebate truncates to -2_500, not -2_501.

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"{self._value} / 0")
        quotient = abs(self._value) // abs(other_val)
        if (self._value < 0) != (other_val < 0):
            quotient = -quotient
        return SafeInt(quotient)

    def __neg__(self) -> SafeInt:
        return SafeInt(-self._value)

    # --- Comparison operations ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return NotImplemented
        return not result

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _extract_value(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _extract_value(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _extract_value(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _extract_value(other)

    # --- Conversion ---

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __index__(self) -> int:
        return self._value

    def min(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(min(self._value, _extract_value(other)))

    def max(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(max(self._value, _extract_value(other)))

    def checked_sub(self, other: SafeInt | int) -> SafeInt | None:
        """Subtract, returning None on underflow instead of raising."""
        result = self._value - _extract_value(other)
        if result < 0:
            return None
        return SafeInt(result)

    def to_u64(self) -> int:
        """Convert to int, validating u64 bounds.

        Raises:
            U64Overflow: If value is negative or exceeds 2^64-1
        """
        if self._value < 0:
            raise U64Overflow(f"negative value cannot be u64: {self._value}")
        if self._value > U64_MAX:
            raise U64Overflow(f"value exceeds u64 max: {self._value}")
        return self._value

    def to_i64(self) -> int:
        """Convert to int, validating i64 bounds.

        Raises:
            I64Overflow: If value is outside [-2^63, 2^63-1]
        """
        if not I64_MIN <= self._value <= I64_MAX:
            raise I64Overflow(f"value outside i64 range: {self._value}")
        return self._value

    def is_u64(self) -> bool:
        """Check if value fits in u64 without raising."""
        return 0 <= self._value <= U64_MAX

    @classmethod
    def zero(cls) -> SafeInt:
        return cls(0)


def _extract_value(x: SafeInt | int) -> int:
    if isinstance(x, SafeInt):
        return x._value
    return x


def checked_add_u64(a: int, b: int) -> int:
    """u64 addition that raises instead of wrapping."""
    return (S(a) + b).to_u64()


def checked_sub_u64(a: int, b: int) -> int:
    """u64 subtraction that raises instead of wrapping."""
    return (S(a) - b).to_u64()


# Convenience alias for concise code
S = SafeInt
