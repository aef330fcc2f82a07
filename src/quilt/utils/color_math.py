from __future__ import annotations

import colorsys
import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence, Tuple

from quilt.constants import SIMILARITY_THRESHOLD
from quilt.errors import InvalidColor

HEX_DIGITS = frozenset("0123456789abcdef")

# Upper hue bound (exclusive, whole degrees) -> family label.
HUE_FAMILIES: Tuple[Tuple[int, str], ...] = (
    (30, "red"),
    (60, "orange"),
    (90, "yellow"),
    (150, "green"),
    (210, "cyan"),
    (270, "blue"),
    (330, "purple"),
)
FAMILY_LABELS: Tuple[str, ...] = tuple(name for _, name in HUE_FAMILIES) + ("pink", "gray")


@dataclass(frozen=True, slots=True)
class Color:
    """Validated RGB triple; construct through ``Color.parse`` for loose input."""

    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if isinstance(channel, bool) or not isinstance(channel, int):
                raise InvalidColor(f"Color channels must be integers, got {channel!r}")
            if not 0 <= channel <= 255:
                raise InvalidColor(f"Color channel out of range: {channel}")

    @classmethod
    def parse(cls, value: Any) -> "Color":
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            return cls._from_hex(value)
        if isinstance(value, (tuple, list)) and len(value) == 3:
            return cls(*value)
        raise InvalidColor(f"Cannot parse color: {value!r}")

    @classmethod
    def _from_hex(cls, text: str) -> "Color":
        digits = text.strip().lower()
        if digits.startswith("#"):
            digits = digits[1:]
        if len(digits) != 6 or not set(digits) <= HEX_DIGITS:
            raise InvalidColor(f"Invalid hex color: {text!r}")
        return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    @property
    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def __str__(self) -> str:
        return self.hex


def color_distance(color_a: Any, color_b: Any) -> float:
    """Euclidean distance between two colors in RGB space (0 to ~441.7)."""

    a = Color.parse(color_a)
    b = Color.parse(color_b)
    dr = a.r - b.r
    dg = a.g - b.g
    db = a.b - b.b
    return math.sqrt(dr * dr + dg * dg + db * db)


def is_similar(color_a: Any, color_b: Any, threshold: float = SIMILARITY_THRESHOLD) -> bool:
    return color_distance(color_a, color_b) <= threshold


def is_similar_to_any(color: Any, references: Iterable[Any], threshold: float = SIMILARITY_THRESHOLD) -> bool:
    return any(is_similar(color, reference, threshold) for reference in references)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def hue_degrees(color: Any) -> int | None:
    """Return the hue in whole degrees [0, 360), or None for achromatic colors."""

    c = Color.parse(color)
    high = max(c.r, c.g, c.b)
    low = min(c.r, c.g, c.b)
    delta = high - low
    if delta == 0:
        return None
    if high == c.r:
        hue = math.fmod((c.g - c.b) / delta, 6)
    elif high == c.g:
        hue = (c.b - c.r) / delta + 2
    else:
        hue = (c.r - c.g) / delta + 4
    degrees = _round_half_up(hue * 60)
    if degrees < 0:
        degrees += 360
    return degrees


def family_label(color: Any) -> str:
    """Bucket a color into one of the fixed hue families, or ``gray``."""

    degrees = hue_degrees(color)
    if degrees is None:
        return "gray"
    for upper, name in HUE_FAMILIES:
        if degrees < upper:
            return name
    return "pink"


def group_similar_colors(colors: Sequence[Color], threshold: float = SIMILARITY_THRESHOLD) -> List[Tuple[str, List[Color]]]:
    """Greedy first-seed-wins grouping of colors into labelled families.

    Each unprocessed color seeds a group that absorbs every other unprocessed
    color within ``threshold``; the group is labelled with the seed's family.
    The result depends on input order.
    """

    groups: List[Tuple[str, List[Color]]] = []
    processed: set[Color] = set()
    for color in colors:
        if color in processed:
            continue
        members = [color]
        for other in colors:
            if other != color and other not in processed and is_similar(color, other, threshold):
                members.append(other)
                processed.add(other)
        processed.add(color)
        groups.append((family_label(color), members))
    return groups


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    """Convert HSL (degrees, percent, percent) to a ``#rrggbb`` string."""

    if not (0 <= hue <= 360 and 0 <= saturation <= 100 and 0 <= lightness <= 100):
        raise InvalidColor(f"Invalid HSL values: {(hue, saturation, lightness)!r}")
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, lightness / 100.0, saturation / 100.0)
    return Color(_round_half_up(r * 255), _round_half_up(g * 255), _round_half_up(b * 255)).hex
