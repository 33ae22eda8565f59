"""
Pytest configuration and fixtures for city generation tests.
"""

import sys
from pathlib import Path

import pytest

# Add server directory to path
server_dir = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(server_dir))

from internal.citygen import color_palettes
from internal.citygen import facades
from internal.citygen import layout

RED = (1.0, 0.0, 0.0, 1.0)


@pytest.fixture(autouse=True)
def fresh_palette_cache():
    """Reload facade-palettes.json for every test."""
    color_palettes.clear_cache()
    yield
    color_palettes.clear_cache()


@pytest.fixture
def small_grid():
    return facades.WindowGridSpec(
        texture_width=64,
        texture_height=128,
        cols=4,
        rows=8,
        window_on_probability=0.5,
        padding_normalized=0.1,
    )


@pytest.fixture
def red_style():
    return facades.FacadeStyle(palette=(RED,), clear_roof=False)


@pytest.fixture
def city_spec():
    """2x2 blocks, 36 buildings, half of them burning."""
    return layout.BlockGridSpec(
        blocks_x=2,
        blocks_y=2,
        fire_probability=0.5,
        max_fire_count=100,
    )
