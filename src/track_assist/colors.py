"""Deterministic display colors for application names."""

from __future__ import annotations


SATURATION = 0.50
LIGHTNESS = 0.60

_INT64_MASK = (1 << 64) - 1
_INT64_SIGN = 1 << 63


def name_hash(app_name: str) -> int:
    """Sum of the UTF-8 bytes of ``app_name``, wrapping like a signed 64-bit int."""
    total = 0
    for byte in app_name.encode("utf-8"):
        total = (total + byte) & _INT64_MASK
    if total & _INT64_SIGN:
        total -= 1 << 64
    return total


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> tuple[int, int, int]:
    """Sector based HSL to RGB conversion. ``hue`` in degrees, the rest in [0, 1]."""
    chroma = (1 - abs(2 * lightness - 1)) * saturation
    x = chroma * (1 - abs((hue / 60) % 2 - 1))
    m = lightness - chroma / 2

    if hue < 60:
        r, g, b = chroma, x, 0.0
    elif hue < 120:
        r, g, b = x, chroma, 0.0
    elif hue < 180:
        r, g, b = 0.0, chroma, x
    elif hue < 240:
        r, g, b = 0.0, x, chroma
    elif hue < 300:
        r, g, b = x, 0.0, chroma
    else:
        r, g, b = chroma, 0.0, x

    return int((r + m) * 255), int((g + m) * 255), int((b + m) * 255)


def color_for_app(app_name: str) -> str:
    """Return a ``#RRGGBB`` color for ``app_name``. Collisions are allowed."""
    hue = abs(name_hash(app_name)) % 360
    red, green, blue = hsl_to_rgb(float(hue), SATURATION, LIGHTNESS)
    return f"#{red:02X}{green:02X}{blue:02X}"
