"""ColorAssigner: deterministic string → HSL color mapping."""

from __future__ import annotations

from collections.abc import Iterable, Mapping


# Fill for values that have no entry in a color map
NEUTRAL_COLOR = "#cccccc"

SATURATION = 100  # percent
LIGHTNESS = 75    # percent


def _to_int32(value: int) -> int:
    """Wrap an integer to the signed 32-bit range."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def string_hash(value: str) -> int:
    """Rolling polynomial hash (hash * 31 + code) over UTF-16 code units.

    Code units rather than code points so that strings outside the BMP
    hash the same way the browser renderer's character codes do.
    """
    h = 0
    data = value.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code = data[i] | (data[i + 1] << 8)
        h = _to_int32(code + (_to_int32(h << 5) - h))
    return h


def hue_for(value: str) -> int:
    """Hue in [0, 360) for a categorical value."""
    # Python's modulo is non-negative for a positive divisor, so negative
    # hashes land on the equivalent wrapped hue.
    return string_hash(value) % 360


def color_for(value: str) -> str:
    """Return the CSS color for a categorical value.

    Pure function of the string: equal inputs always give equal colors.
    """
    return f"hsl({hue_for(str(value))}, {SATURATION}%, {LIGHTNESS}%)"


def build_color_map(records: Iterable[Mapping], field: str) -> dict[str, str]:
    """Map every distinct non-empty value of ``field`` to its color.

    Iteration order is the order in which values are first seen.
    """
    color_map: dict[str, str] = {}
    for rec in records:
        value = rec.get(field)
        if value is None or value == "":
            continue
        value = str(value)
        if value not in color_map:
            color_map[value] = color_for(value)
    return color_map
