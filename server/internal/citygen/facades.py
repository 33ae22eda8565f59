"""
Facade texture synthesis.
Paints a building facade with a grid of lit and unlit windows into an albedo
buffer and a matching emission buffer.

Draw order from the seeded stream, per cell in row-major order:
    jitter x, jitter y, on/off, palette index, brightness,
    then one brightness variation per interior pixel of an unlit window.
The window texture noise is a fixed OpenSimplex field sampled at normalized
pixel coordinates and never touches the stream.
"""

import logging
import math
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from opensimplex import OpenSimplex

from . import color_palettes as colors
from . import seeds
from .errors import InvalidParameter
from .pixels import PixelBuffer

logger = logging.getLogger(__name__)

# Window rendering constants
BORDER_FRACTION = 0.08  # Frame thickness relative to the smaller window side
BORDER_BLEND = 0.6  # Frame color: facade blended 60% towards the unlit color
BRIGHTNESS_MIN = 0.85
BRIGHTNESS_SPAN = 0.3  # Lit brightness in [0.85, 1.15)
OFF_BRIGHTNESS_MIN = 0.6
OFF_BRIGHTNESS_SPAN = 0.2
NOISE_FREQUENCY = 10.0
NOISE_SEED = 0  # Fixed: the window texture must not depend on the generation seed
EMISSION_SCALE = 0.6

MAX_PADDING = 0.4
MAX_ROOF_FRACTION = 0.5


@dataclass(frozen=True)
class WindowGridSpec:
    """Texture size and window grid layout."""

    texture_width: int = 512
    texture_height: int = 1024
    cols: int = 8
    rows: int = 20
    window_on_probability: float = 0.33
    padding_normalized: float = 0.08

    @property
    def cell_width(self) -> int:
        return self.texture_width // self.cols

    @property
    def cell_height(self) -> int:
        return self.texture_height // self.rows

    def validate(self) -> None:
        if self.texture_width <= 0:
            raise InvalidParameter("texture_width", self.texture_width, "must be positive")
        if self.texture_height <= 0:
            raise InvalidParameter("texture_height", self.texture_height, "must be positive")
        if self.cols <= 0:
            raise InvalidParameter("cols", self.cols, "must be at least 1")
        if self.rows <= 0:
            raise InvalidParameter("rows", self.rows, "must be at least 1")
        if not 0.0 <= self.window_on_probability <= 1.0:
            raise InvalidParameter(
                "window_on_probability", self.window_on_probability, "must be within [0, 1]"
            )
        if not 0.0 <= self.padding_normalized <= MAX_PADDING:
            raise InvalidParameter(
                "padding_normalized", self.padding_normalized, f"must be within [0, {MAX_PADDING}]"
            )


def _as_color(value: Sequence[float]) -> colors.Color:
    if len(value) in (3, 4):
        return colors.rgba(*value)
    raise InvalidParameter("color", value, "expected 3 or 4 channels")


@dataclass(frozen=True)
class FacadeStyle:
    """Colors and emission settings applied to a window grid."""

    palette: Tuple[colors.Color, ...]
    facade_color: colors.Color = (0.03, 0.05, 0.08, 1.0)
    off_color: colors.Color = (0.02, 0.02, 0.025, 1.0)
    emission_intensity: float = 2.0
    clear_roof: bool = True
    roof_clear_fraction: float = 0.12

    def __post_init__(self):
        # Normalize to immutable RGBA tuples so equal styles compare equal
        object.__setattr__(self, "palette", tuple(_as_color(c) for c in self.palette))
        object.__setattr__(self, "facade_color", _as_color(self.facade_color))
        object.__setattr__(self, "off_color", _as_color(self.off_color))

    @classmethod
    def from_preset(cls, name: str, **overrides) -> "FacadeStyle":
        """Build a style from a named preset in facade-palettes.json."""
        preset = colors.get_preset(name)
        if preset is None:
            raise InvalidParameter("palette", name, "unknown palette preset")
        values = {
            "palette": tuple(preset["windows"]),
            "facade_color": preset["facade"],
            "off_color": preset["window_off"],
            "emission_intensity": preset["emission_intensity"],
        }
        values.update(overrides)
        return cls(**values)

    def validate(self) -> None:
        if not self.palette:
            raise InvalidParameter("palette", list(self.palette), "must contain at least one color")
        if self.emission_intensity < 0.0:
            raise InvalidParameter("emission_intensity", self.emission_intensity, "must not be negative")
        if not 0.0 <= self.roof_clear_fraction <= MAX_ROOF_FRACTION:
            raise InvalidParameter(
                "roof_clear_fraction", self.roof_clear_fraction, f"must be within [0, {MAX_ROOF_FRACTION}]"
            )


@dataclass
class WindowCell:
    """One window of the grid; bounds are inclusive and already clamped."""

    grid_x: int
    grid_y: int
    x0: int
    y0: int
    x1: int
    y1: int
    is_on: bool
    palette_color: colors.Color
    brightness: float

    @property
    def is_empty(self) -> bool:
        return self.x1 < self.x0 or self.y1 < self.y0

    @property
    def center(self) -> Tuple[int, int]:
        return ((self.x0 + self.x1) // 2, (self.y0 + self.y1) // 2)


@dataclass
class FacadeTextures:
    color: PixelBuffer
    emission: PixelBuffer
    roof_color: colors.Color
    cells: List[WindowCell] = field(default_factory=list)
    roof_rows: int = 0

    @property
    def lit_count(self) -> int:
        return sum(1 for cell in self.cells if cell.is_on)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _draw_cell(
    rng: random.Random,
    spec: WindowGridSpec,
    palette: Sequence[colors.Color],
    cx: int,
    cy: int,
    pad_x: int,
    pad_y: int,
) -> WindowCell:
    """Draw bounds and state for one grid cell (five stream draws)."""
    cell_w = spec.cell_width
    cell_h = spec.cell_height

    x0 = cx * cell_w + pad_x
    x1 = (cx + 1) * cell_w - pad_x
    y0 = cy * cell_h + pad_y
    y1 = (cy + 1) * cell_h - pad_y

    # Slight randomness in window shape
    jitter_x = rng.randrange(-(pad_x // 3), max(1, pad_x // 3))
    jitter_y = rng.randrange(-(pad_y // 3), max(1, pad_y // 3))
    x0 = _clamp(x0 + jitter_x, 0, spec.texture_width - 1)
    x1 = _clamp(x1 + jitter_x, 0, spec.texture_width - 1)
    y0 = _clamp(y0 + jitter_y, 0, spec.texture_height - 1)
    y1 = _clamp(y1 + jitter_y, 0, spec.texture_height - 1)

    is_on = rng.random() <= spec.window_on_probability
    palette_color = palette[rng.randrange(len(palette))]
    brightness = BRIGHTNESS_MIN + rng.random() * BRIGHTNESS_SPAN

    return WindowCell(cx, cy, x0, y0, x1, y1, is_on, palette_color, brightness)


def _rasterize_cell(
    cell: WindowCell,
    rng: random.Random,
    noise: OpenSimplex,
    spec: WindowGridSpec,
    style: FacadeStyle,
    color: PixelBuffer,
    emission: PixelBuffer,
    border_color: colors.Color,
) -> None:
    if cell.is_empty:
        return

    x0, y0, x1, y1 = cell.x0, cell.y0, cell.x1, cell.y1
    border = max(1, round(min(x1 - x0, y1 - y0) * BORDER_FRACTION))
    # Windows too small to keep an interior after framing are drawn unframed
    framed = 2 * border <= min(x1 - x0, y1 - y0)

    center_x = (x0 + x1) * 0.5
    center_y = (y0 + y1) * 0.5
    span_x = max(1, x1 - x0)
    span_y = max(1, y1 - y0)
    glow = cell.brightness * style.emission_intensity * EMISSION_SCALE
    lit = (cell.palette_color[0], cell.palette_color[1], cell.palette_color[2], 1.0)

    for y in range(y0, y1 + 1):
        for x in range(x0, x1 + 1):
            if framed and (x < x0 + border or x > x1 - border or y < y0 + border or y > y1 - border):
                color.set_pixel(x, y, border_color)
                continue

            if cell.is_on:
                n = noise.noise2(NOISE_FREQUENCY * x / spec.texture_width, NOISE_FREQUENCY * y / spec.texture_height)
                n = (n + 1.0) * 0.5
                color.set_pixel(x, y, colors.scale_rgb(lit, cell.brightness * (0.9 + 0.2 * n)))

                dx = (x - center_x) / span_x
                dy = (y - center_y) / span_y
                falloff = colors.clamp01(1.0 - math.sqrt(dx * dx + dy * dy))
                emission.set_pixel(x, y, colors.scale_rgb(lit, falloff * glow))
            else:
                variation = OFF_BRIGHTNESS_MIN + rng.random() * OFF_BRIGHTNESS_SPAN
                color.set_pixel(x, y, colors.scale_rgb(style.off_color, variation))
                # emission remains black


def clear_roof_rows(
    color: PixelBuffer, emission: PixelBuffer, facade_color: colors.Color, fraction: float
) -> int:
    """
    Erase the top strip of both buffers (facade color, no emission).

    Applying it twice yields the same buffers.

    Returns:
        Number of rows cleared
    """
    height = color.height
    rows = _clamp(round(height * fraction), 1, height)
    color.fill_rows(height - rows, height, facade_color)
    emission.fill_rows(height - rows, height, colors.TRANSPARENT)
    return rows


def synthesize(spec: WindowGridSpec, style: FacadeStyle, seed: int) -> FacadeTextures:
    """
    Generate albedo and emission textures for a facade.

    Args:
        spec: Texture size and window grid
        style: Palette, facade/off colors, emission and roof settings
        seed: Seed for the window stream

    Returns:
        FacadeTextures with both buffers and the traversed window cells

    Raises:
        InvalidParameter: If spec or style is out of range
    """
    spec.validate()
    style.validate()

    rng = seeds.seeded_random(seed)
    noise = OpenSimplex(seed=NOISE_SEED)

    color = PixelBuffer(spec.texture_width, spec.texture_height, style.facade_color)
    emission = PixelBuffer(spec.texture_width, spec.texture_height, colors.TRANSPARENT)

    pad_x = max(1, round(spec.cell_width * spec.padding_normalized))
    pad_y = max(1, round(spec.cell_height * spec.padding_normalized))
    border_color = colors.lerp(style.facade_color, style.off_color, BORDER_BLEND)

    cells = []
    for cy in range(spec.rows):
        for cx in range(spec.cols):
            cell = _draw_cell(rng, spec, style.palette, cx, cy, pad_x, pad_y)
            _rasterize_cell(cell, rng, noise, spec, style, color, emission, border_color)
            cells.append(cell)

    roof_rows = 0
    if style.clear_roof:
        roof_rows = clear_roof_rows(color, emission, style.facade_color, style.roof_clear_fraction)

    textures = FacadeTextures(
        color=color,
        emission=emission,
        roof_color=style.facade_color,
        cells=cells,
        roof_rows=roof_rows,
    )
    logger.debug(
        "Synthesized %dx%d facade (seed=%d): %d/%d windows lit, %d roof rows cleared",
        spec.texture_width,
        spec.texture_height,
        seed,
        textures.lit_count,
        len(cells),
        roof_rows,
    )
    return textures


def synthesize_buffers(
    spec: WindowGridSpec,
    palette: Sequence[colors.Color],
    facade_color: colors.Color,
    off_color: colors.Color,
    emission_intensity: float,
    roof_clear_fraction: Optional[float],
    seed: int,
) -> Tuple[PixelBuffer, PixelBuffer]:
    """
    Buffer-only form of synthesize().

    A roof_clear_fraction of None disables roof clearing.
    """
    style = FacadeStyle(
        palette=tuple(palette),
        facade_color=facade_color,
        off_color=off_color,
        emission_intensity=emission_intensity,
        clear_roof=roof_clear_fraction is not None,
        roof_clear_fraction=roof_clear_fraction if roof_clear_fraction is not None else 0.0,
    )
    textures = synthesize(spec, style, seed)
    return textures.color, textures.emission
