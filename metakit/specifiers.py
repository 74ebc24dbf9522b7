"""Bit-width specifiers used to describe the fields of a bitfield."""

from __future__ import annotations

from dataclasses import dataclass

MIN_BITS = 1
MAX_BITS = 64


@dataclass(frozen=True, repr=False)
class Specifier:
    """Width of a bitfield member, from 1 to 64 bits."""

    bits: int

    def __post_init__(self) -> None:
        if isinstance(self.bits, bool) or not isinstance(self.bits, int):
            raise TypeError(f"bit width must be an int, got {self.bits!r}")
        if not MIN_BITS <= self.bits <= MAX_BITS:
            raise ValueError(
                f"bit width must lie between {MIN_BITS} and {MAX_BITS}, got {self.bits}"
            )

    @property
    def bytes(self) -> int:
        """Size in bytes of the narrowest unsigned integer holding the field."""
        for width in (1, 2, 4, 8):
            if self.bits <= width * 8:
                return width
        raise AssertionError("unreachable: bit width is validated")

    @property
    def uint_bits(self) -> int:
        """Bit width of the narrowest unsigned integer holding the field."""
        return self.bytes * 8

    @property
    def max_value(self) -> int:
        """Largest value the field can store."""
        return (1 << self.bits) - 1

    def __repr__(self) -> str:
        return f"B{self.bits}"


def specifier(bits: int) -> Specifier:
    """Return the specifier for a field of ``bits`` bits."""
    return Specifier(bits)


B1 = specifier(1)
B2 = specifier(2)
B3 = specifier(3)
B4 = specifier(4)
B5 = specifier(5)
B6 = specifier(6)
B7 = specifier(7)
B8 = specifier(8)
B9 = specifier(9)
B10 = specifier(10)
B11 = specifier(11)
B12 = specifier(12)
B13 = specifier(13)
B14 = specifier(14)
B15 = specifier(15)
B16 = specifier(16)
B17 = specifier(17)
B18 = specifier(18)
B19 = specifier(19)
B20 = specifier(20)
B21 = specifier(21)
B22 = specifier(22)
B23 = specifier(23)
B24 = specifier(24)
B25 = specifier(25)
B26 = specifier(26)
B27 = specifier(27)
B28 = specifier(28)
B29 = specifier(29)
B30 = specifier(30)
B31 = specifier(31)
B32 = specifier(32)
B33 = specifier(33)
B34 = specifier(34)
B35 = specifier(35)
B36 = specifier(36)
B37 = specifier(37)
B38 = specifier(38)
B39 = specifier(39)
B40 = specifier(40)
B41 = specifier(41)
B42 = specifier(42)
B43 = specifier(43)
B44 = specifier(44)
B45 = specifier(45)
B46 = specifier(46)
B47 = specifier(47)
B48 = specifier(48)
B49 = specifier(49)
B50 = specifier(50)
B51 = specifier(51)
B52 = specifier(52)
B53 = specifier(53)
B54 = specifier(54)
B55 = specifier(55)
B56 = specifier(56)
B57 = specifier(57)
B58 = specifier(58)
B59 = specifier(59)
B60 = specifier(60)
B61 = specifier(61)
B62 = specifier(62)
B63 = specifier(63)
B64 = specifier(64)