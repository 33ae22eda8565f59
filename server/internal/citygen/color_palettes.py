"""
Color Palettes Module
RGBA color helpers and facade palette presets loaded from JSON.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# (r, g, b, a) floats, nominally 0..1
Color = Tuple[float, float, float, float]

BLACK: Color = (0.0, 0.0, 0.0, 1.0)
TRANSPARENT: Color = (0.0, 0.0, 0.0, 0.0)

# Cache for loaded presets
_palettes_cache: Optional[Dict[str, Any]] = None


def rgba(r: float, g: float, b: float, a: float = 1.0) -> Color:
    return (float(r), float(g), float(b), float(a))


def from_hex(value: str) -> Color:
    """
    Parse "#RRGGBB" or "#RRGGBBAA" into a Color.

    Raises:
        ValueError: If the string is not a 6 or 8 digit hex color
    """
    digits = value.lstrip("#")
    if len(digits) not in (6, 8):
        raise ValueError(f"Expected #RRGGBB or #RRGGBBAA, got {value!r}")
    channels = [int(digits[i:i + 2], 16) / 255.0 for i in range(0, len(digits), 2)]
    if len(channels) == 3:
        channels.append(1.0)
    return tuple(channels)


def to_hex(color: Color) -> str:
    r, g, b, a = to_bytes(color)
    return f"#{r:02X}{g:02X}{b:02X}{a:02X}"


def clamp01(value: float) -> float:
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def to_bytes(color: Color) -> Tuple[int, int, int, int]:
    """Quantize a float color to RGBA32 (HDR values saturate at 255)."""
    return tuple(int(round(clamp01(c) * 255.0)) for c in color)


def lerp(a: Color, b: Color, t: float) -> Color:
    return tuple(a[i] + (b[i] - a[i]) * t for i in range(4))


def scale_rgb(color: Color, factor: float) -> Color:
    """Multiply the color channels by factor; alpha is kept."""
    return (color[0] * factor, color[1] * factor, color[2] * factor, color[3])


def _get_config_path() -> Path:
    """Get the path to the facade-palettes.json file."""
    # __file__ = server/internal/citygen/color_palettes.py
    return Path(__file__).resolve().parents[2] / "config" / "facade-palettes.json"


def load_color_palettes() -> Dict[str, Any]:
    """
    Load facade palette presets from JSON file.

    Returns:
        Dictionary mapping preset names to their raw (hex) definitions

    Raises:
        FileNotFoundError: If the JSON file doesn't exist
        json.JSONDecodeError: If the JSON file is invalid
    """
    global _palettes_cache

    if _palettes_cache is not None:
        return _palettes_cache

    config_path = _get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"Facade palettes file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        _palettes_cache = json.load(f)

    return _palettes_cache


def list_presets() -> List[str]:
    return sorted(load_color_palettes().get("presets", {}).keys())


def get_preset(name: str) -> Optional[Dict[str, Any]]:
    """
    Get a facade palette preset with its colors parsed.

    Args:
        name: Preset name (e.g., "night_warm")

    Returns:
        Dictionary with facade, window_off, windows (list of Colors) and
        emission_intensity. Returns None if the preset is unknown.
    """
    presets = load_color_palettes().get("presets", {})
    raw = presets.get(name)
    if raw is None:
        logger.warning("Unknown facade palette preset: %s", name)
        return None

    return {
        "facade": from_hex(raw["facade"]["hex"]),
        "window_off": from_hex(raw["window_off"]["hex"]),
        "windows": [from_hex(entry["hex"]) for entry in raw["windows"]],
        "emission_intensity": float(raw.get("emission_intensity", 2.0)),
    }


def clear_cache() -> None:
    """Clear the palette cache (useful for testing or reloading)."""
    global _palettes_cache
    _palettes_cache = None
