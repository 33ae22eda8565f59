"""
Tests for facade texture synthesis.
"""

import sys
from pathlib import Path

# Add server directory to path
server_dir = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(server_dir))

import pytest
from internal.citygen import color_palettes as colors
from internal.citygen import facades
from internal.citygen.errors import InvalidParameter

RED = (1.0, 0.0, 0.0, 1.0)
GREY = (0.5, 0.5, 0.5, 1.0)


def test_synthesize_deterministic(small_grid):
    """Test identical inputs produce byte-identical buffers"""
    style = facades.FacadeStyle.from_preset("night_warm")

    first = facades.synthesize(small_grid, style, 4242)
    second = facades.synthesize(small_grid, style, 4242)

    assert first.color.to_bytes() == second.color.to_bytes()
    assert first.emission.to_bytes() == second.emission.to_bytes()
    assert [c.is_on for c in first.cells] == [c.is_on for c in second.cells]


def test_synthesize_seed_changes_output(small_grid):
    """Test different seeds produce different textures"""
    style = facades.FacadeStyle.from_preset("night_warm")

    first = facades.synthesize(small_grid, style, 1)
    second = facades.synthesize(small_grid, style, 2)

    assert first.color != second.color


def test_buffers_share_dimensions(small_grid, red_style):
    """Test color and emission buffers are the requested size"""
    textures = facades.synthesize(small_grid, red_style, 0)

    assert (textures.color.width, textures.color.height) == (64, 128)
    assert (textures.emission.width, textures.emission.height) == (64, 128)
    assert len(textures.color.to_bytes()) == 64 * 128 * 4


def test_tiny_grid_all_windows_on():
    """Test 4x4 texture, 2x2 grid, every window lit"""
    spec = facades.WindowGridSpec(
        texture_width=4, texture_height=4, cols=2, rows=2, window_on_probability=1.0
    )
    style = facades.FacadeStyle(palette=(RED,), clear_roof=False)

    textures = facades.synthesize(spec, style, 31337)

    assert len(textures.cells) == 4
    assert all(cell.is_on for cell in textures.cells)

    # Window centers glow
    for x, y in [(1, 1), (3, 1), (1, 3), (3, 3)]:
        r, g, b, a = textures.emission.get_pixel(x, y)
        assert r > 0
        assert g == 0 and b == 0

    # Cell corners lie in the padding, outside any window
    for x, y in [(0, 0), (2, 0), (0, 2), (2, 2)]:
        assert textures.emission.get_pixel(x, y) == (0, 0, 0, 0)
        assert textures.color.get_pixel(x, y) == colors.to_bytes(style.facade_color)


def test_cells_traversed_row_major(small_grid, red_style):
    """Test cells are visited row by row, column by column"""
    textures = facades.synthesize(small_grid, red_style, 5)

    order = [(c.grid_x, c.grid_y) for c in textures.cells]
    expected = [(x, y) for y in range(small_grid.rows) for x in range(small_grid.cols)]
    assert order == expected

    for cell in textures.cells:
        assert 0 <= cell.x0 <= cell.x1 < small_grid.texture_width
        assert 0 <= cell.y0 <= cell.y1 < small_grid.texture_height
        assert 0.85 <= cell.brightness < 1.15


def test_no_emission_when_all_windows_off(small_grid, red_style):
    """Test unlit windows never emit"""
    spec = facades.WindowGridSpec(
        texture_width=small_grid.texture_width,
        texture_height=small_grid.texture_height,
        cols=small_grid.cols,
        rows=small_grid.rows,
        window_on_probability=0.0,
    )

    textures = facades.synthesize(spec, red_style, 77)

    assert textures.lit_count == 0
    assert textures.emission.is_zero()


def test_window_border_and_noise():
    """Test frame pixels use the blended border color and lit interiors vary"""
    spec = facades.WindowGridSpec(
        texture_width=40, texture_height=40, cols=1, rows=1,
        window_on_probability=1.0, padding_normalized=0.1,
    )
    style = facades.FacadeStyle(palette=(GREY,), clear_roof=False)

    textures = facades.synthesize(spec, style, 9)
    cell = textures.cells[0]
    border_bytes = colors.to_bytes(colors.lerp(style.facade_color, style.off_color, facades.BORDER_BLEND))

    assert textures.color.get_pixel(cell.x0, cell.y0) == border_bytes
    assert textures.color.get_pixel(cell.x1, cell.y1) == border_bytes
    assert textures.emission.get_pixel(cell.x0, cell.y0) == (0, 0, 0, 0)

    cx, cy = cell.center
    assert textures.emission.get_pixel(cx, cy)[0] > 0

    interior = [
        textures.color.get_pixel(x, y)[0]
        for y in range(cell.y0 + 5, cell.y1 - 5)
        for x in range(cell.x0 + 5, cell.x1 - 5)
    ]
    assert len(set(interior)) > 1


def test_roof_rows_cleared(small_grid):
    """Test the top strip holds no windows"""
    spec = facades.WindowGridSpec(
        texture_width=64, texture_height=128, cols=4, rows=8, window_on_probability=1.0
    )
    style = facades.FacadeStyle(palette=(RED,), clear_roof=True, roof_clear_fraction=0.12)

    textures = facades.synthesize(spec, style, 8)
    facade_bytes = colors.to_bytes(style.facade_color)

    assert textures.roof_rows == 15  # round(128 * 0.12)
    for y in range(128 - 15, 128):
        for x in range(64):
            assert textures.color.get_pixel(x, y) == facade_bytes
            assert textures.emission.get_pixel(x, y) == (0, 0, 0, 0)
    assert not textures.emission.is_zero()  # Windows below the roof still glow


def test_roof_clear_idempotent(small_grid, red_style):
    """Test clearing an already cleared buffer changes nothing"""
    textures = facades.synthesize(small_grid, red_style, 21)
    color = textures.color.copy()
    emission = textures.emission.copy()

    facades.clear_roof_rows(color, emission, red_style.facade_color, 0.25)
    once = (color.to_bytes(), emission.to_bytes())
    facades.clear_roof_rows(color, emission, red_style.facade_color, 0.25)

    assert (color.to_bytes(), emission.to_bytes()) == once


def test_roof_clear_at_least_one_row(small_grid):
    """Test a zero fraction still clears one row"""
    style = facades.FacadeStyle(palette=(RED,), clear_roof=True, roof_clear_fraction=0.0)

    textures = facades.synthesize(small_grid, style, 3)

    assert textures.roof_rows == 1
    assert textures.roof_color == style.facade_color


def test_synthesize_buffers_matches_synthesize(small_grid):
    """Test the buffer-only entry point gives the same pixels"""
    style = facades.FacadeStyle(palette=(RED, GREY), clear_roof=True, roof_clear_fraction=0.2)

    color, emission = facades.synthesize_buffers(
        small_grid, [RED, GREY], style.facade_color, style.off_color, style.emission_intensity, 0.2, 64
    )
    textures = facades.synthesize(small_grid, style, 64)

    assert color == textures.color
    assert emission == textures.emission


def test_rgb_palette_entries_accepted(small_grid):
    """Test 3-channel colors are widened to RGBA"""
    style = facades.FacadeStyle(palette=((1.0, 0.5, 0.0),), clear_roof=False)

    assert style.palette == ((1.0, 0.5, 0.0, 1.0),)
    facades.synthesize(small_grid, style, 1)


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"cols": 0}, "cols"),
        ({"rows": -2}, "rows"),
        ({"texture_width": 0}, "texture_width"),
        ({"texture_height": -1}, "texture_height"),
        ({"window_on_probability": 1.5}, "window_on_probability"),
        ({"padding_normalized": 0.5}, "padding_normalized"),
    ],
)
def test_invalid_grid(overrides, field, red_style):
    """Test invalid grid parameters fail naming the field"""
    values = {"texture_width": 16, "texture_height": 16, "cols": 2, "rows": 2}
    values.update(overrides)

    with pytest.raises(InvalidParameter) as exc_info:
        facades.synthesize(facades.WindowGridSpec(**values), red_style, 0)
    assert exc_info.value.field == field


def test_invalid_style(small_grid):
    """Test empty palette and out-of-range style values"""
    with pytest.raises(InvalidParameter) as exc_info:
        facades.synthesize(small_grid, facades.FacadeStyle(palette=()), 0)
    assert exc_info.value.field == "palette"

    with pytest.raises(InvalidParameter) as exc_info:
        facades.synthesize(small_grid, facades.FacadeStyle(palette=(RED,), emission_intensity=-1.0), 0)
    assert exc_info.value.field == "emission_intensity"

    with pytest.raises(InvalidParameter) as exc_info:
        facades.synthesize(small_grid, facades.FacadeStyle(palette=(RED,), roof_clear_fraction=0.6), 0)
    assert exc_info.value.field == "roof_clear_fraction"


def test_style_from_preset():
    """Test palette presets load from facade-palettes.json"""
    style = facades.FacadeStyle.from_preset("night_warm", clear_roof=False)

    assert len(style.palette) == 3
    assert style.emission_intensity == 2.0
    assert style.clear_roof is False

    with pytest.raises(InvalidParameter):
        facades.FacadeStyle.from_preset("does_not_exist")
