"""Color and numeric token helpers shared by the validators.

Hue families bound palette diversity: every non-gray color is mapped to an
HSL hue, bucketed into 30-degree families, and the validator counts the
distinct buckets.
"""

from __future__ import annotations

import math
import re
from typing import Iterable, Optional, Tuple

HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

HUE_BUCKET_DEGREES = 30.0
GRAY_THRESHOLD = 12


def is_hex_color(value: Optional[str]) -> bool:
    return value is not None and HEX_COLOR_RE.match(value) is not None


def parse_rgb(value: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """Parse ``#RRGGBB`` into an (r, g, b) tuple, or None."""
    if not value or not value.startswith("#"):
        return None
    hex_part = value.lstrip("#")
    if len(hex_part) != 6:
        return None
    try:
        return int(hex_part[0:2], 16), int(hex_part[2:4], 16), int(hex_part[4:6], 16)
    except ValueError:
        return None


def is_gray(r: int, g: int, b: int) -> bool:
    return (max(r, g, b) - min(r, g, b)) < GRAY_THRESHOLD


def rgb_to_hue(r: int, g: int, b: int) -> float:
    """HSL hue in degrees, [0, 360). Achromatic colors return 0."""
    rf, gf, bf = r / 255.0, g / 255.0, b / 255.0
    high = max(rf, gf, bf)
    low = min(rf, gf, bf)
    delta = high - low
    if delta == 0:
        return 0.0

    if high == rf:
        hue = math.fmod((gf - bf) / delta, 6)
    elif high == gf:
        hue = (bf - rf) / delta + 2
    else:
        hue = (rf - gf) / delta + 4

    hue *= 60
    if hue < 0:
        hue += 360
    return hue


def hue_bucket(hue: float) -> int:
    # round-half-to-even, so 15 deg -> 0 and 45 deg -> 2
    return int(round(hue / HUE_BUCKET_DEGREES))


def hue_families(colors: Iterable[Optional[str]]) -> int:
    """Count distinct hue buckets among the non-gray, parseable colors."""
    buckets: set[int] = set()
    for color in colors:
        rgb = parse_rgb(color)
        if rgb is None:
            continue
        if is_gray(*rgb):
            continue
        buckets.add(hue_bucket(rgb_to_hue(*rgb)))
    return len(buckets)


def clamp(value, low, high):
    return max(low, min(value, high))
