# Positions are counted in UTF-16 code units, the way the visualizer's host
# strings count them: a character above U+FFFF takes two units, everything
# else takes one. Python strings index by code point, so the engine works on
# this unit view instead of on the str itself.

from typing import List, Optional


def code_units(text: str) -> List[int]:
    data = text.encode("utf-16-le", "surrogatepass")
    return [data[i] | (data[i + 1] << 8) for i in range(0, len(data), 2)]


def _is_high(unit):
    return 0xD800 <= unit <= 0xDBFF


def _is_low(unit):
    return 0xDC00 <= unit <= 0xDFFF


def code_point_at(units: List[int], pos: int) -> Optional[int]:
    """
    Code point starting at unit `pos`, or None past the end.
    A lone surrogate is returned as itself.
    """
    if pos >= len(units) or pos < 0:
        return None
    unit = units[pos]
    if _is_high(unit) and pos + 1 < len(units) and _is_low(units[pos + 1]):
        return 0x10000 + ((unit - 0xD800) << 10) + (units[pos + 1] - 0xDC00)
    return unit


def code_point_before(units: List[int], pos: int) -> Optional[int]:
    # Code point that ends at unit `pos`, or None at the start.
    if pos <= 0 or pos > len(units):
        return None
    unit = units[pos - 1]
    if _is_low(unit) and pos >= 2 and _is_high(units[pos - 2]):
        return code_point_at(units, pos - 2)
    return unit


def code_point_width(cp: int) -> int:
    return 1 if cp <= 0xFFFF else 2


def unit_offset(text: str, index: int) -> int:
    """
    Convert a Python string index into a code unit offset.
    """
    return index + sum(1 for ch in text[:index] if ord(ch) > 0xFFFF)


def unit_length(text: str) -> int:
    return unit_offset(text, len(text))
