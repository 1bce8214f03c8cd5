"""Parsing and serialising of configuration values given as strings."""

from __future__ import annotations

import enum
import itertools
import string
from typing import Union

_WHITESPACE = " \t\n\v\f\r"
_DIGITS = string.digits + string.ascii_lowercase

_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1
_UINT32_MAX = (1 << 32) - 1


class ValueKind(enum.Enum):
    """The value types that can be parsed from a string."""

    INT32 = "int32"
    UINT32 = "uint32"
    INT8 = "int8"
    UINT8 = "uint8"
    BOOL = "bool"


def _parse_integer(s: str, base: int) -> int:
    """Parse a leading integer the way the C library number parsers do.

    Leading whitespace and a sign are accepted, a ``0x`` prefix is accepted in
    base 16 (and selects base 16 in base 0), and parsing stops at the first
    character that is not a digit of the base.
    """
    if base != 0 and not 2 <= base <= 36:
        raise ValueError(f"invalid base {base}")

    text = s.lstrip(_WHITESPACE)
    negative = False
    if text.startswith(("+", "-")):
        negative = text[0] == "-"
        text = text[1:]

    lowered = text.lower()
    if base in (0, 16) and lowered.startswith("0x") and lowered[2:3] and lowered[2] in string.hexdigits.lower():
        lowered = lowered[2:]
        base = 16
    elif base == 0:
        base = 8 if lowered.startswith("0") else 10

    valid = _DIGITS[:base]
    digits = "".join(itertools.takewhile(lambda ch: ch in valid, lowered))
    if not digits:
        raise ValueError(f"no digits to parse in {s!r}")

    value = int(digits, base)
    return -value if negative else value


def parse_int32(s: str, base: int = 10) -> int:
    """Parse a signed 32-bit integer."""
    value = _parse_integer(s, base)
    if not _INT32_MIN <= value <= _INT32_MAX:
        raise OverflowError(f"{s!r} is out of the int32 range")
    return value


def parse_uint32(s: str, base: int = 10) -> int:
    """Parse an unsigned 32-bit integer; a negative value wraps around."""
    value = _parse_integer(s, base)
    if abs(value) > _UINT32_MAX:
        raise OverflowError(f"{s!r} is out of the uint32 range")
    return value & _UINT32_MAX


def parse_int8(s: str, base: int = 10) -> int:
    """Parse a 32-bit integer and keep its low byte as a signed value."""
    value = parse_int32(s, base) & 0xFF
    return value - 0x100 if value >= 0x80 else value


def parse_uint8(s: str, base: int = 10) -> int:
    """Parse an unsigned integer and keep its low byte."""
    return parse_uint32(s, base) & 0xFF


def parse_bool(s: str) -> bool:
    """Only ``"true"`` and ``"1"`` are true."""
    return s in ("true", "1")


_PARSERS = {
    ValueKind.INT32: parse_int32,
    ValueKind.UINT32: parse_uint32,
    ValueKind.INT8: parse_int8,
    ValueKind.UINT8: parse_uint8,
    ValueKind.BOOL: parse_bool,
}


def parse(s: str, kind: ValueKind) -> Union[int, bool]:
    """Parse ``s`` as a value of the given kind."""
    return _PARSERS[kind](s)


def serialize(value: Union[int, bool]) -> str:
    """Turn a bool or integer value into its string form."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    raise TypeError(f"unable to serialize value of type {type(value).__name__}")


def parse_like(current: Union[int, bool], s: str) -> Union[int, bool]:
    """Parse ``s`` into a value of the same type as ``current``."""
    if isinstance(current, bool):
        return parse_bool(s)
    if isinstance(current, int):
        return parse_int32(s)
    raise TypeError(f"parse_to_any: Unable to parse '{s}' -> unsupported type")