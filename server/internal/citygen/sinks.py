"""
Output sinks for generated data.

The generators only describe what should exist. A RendererSink binds texture
buffers, a SceneSink creates scene objects. The in-memory sinks here replace
their previous output in a single assignment, so readers never see a
half-built result and a failed regeneration leaves the old output in place.
"""

import logging
from typing import List, Optional, Protocol, Sequence, Tuple

from . import facades
from . import layout
from .instances import PlacedInstance
from .pixels import PIXEL_FORMAT, PixelBuffer

logger = logging.getLogger(__name__)


class RendererSink(Protocol):
    def apply(self, color: PixelBuffer, emission: PixelBuffer) -> None:
        ...


class SceneSink(Protocol):
    def place(self, instances: Sequence[PlacedInstance]) -> None:
        ...


class MemoryRendererSink:
    """Keeps the last applied texture pair."""

    pixel_format = PIXEL_FORMAT

    def __init__(self):
        self.textures: Optional[Tuple[PixelBuffer, PixelBuffer]] = None
        self.generation = 0

    def apply(self, color: PixelBuffer, emission: PixelBuffer) -> None:
        if (color.width, color.height) != (emission.width, emission.height):
            raise ValueError(
                f"Color {color.width}x{color.height} and emission "
                f"{emission.width}x{emission.height} buffers differ in size"
            )
        self.textures = (color, emission)
        self.generation += 1


class MemorySceneSink:
    """Keeps the last placed instance list, indexed by id."""

    def __init__(self):
        self.instances: List[PlacedInstance] = []
        self.generation = 0

    def place(self, instances: Sequence[PlacedInstance]) -> None:
        self.instances = list(instances)
        self.generation += 1

    def get(self, instance_id: str) -> Optional[PlacedInstance]:
        for inst in self.instances:
            if inst.id == instance_id:
                return inst
        return None

    def children_of(self, parent_id: str) -> List[PlacedInstance]:
        return [inst for inst in self.instances if inst.parent_id == parent_id]


def regenerate_facade(
    sink: RendererSink, spec: facades.WindowGridSpec, style: facades.FacadeStyle, seed: int
) -> facades.FacadeTextures:
    """Synthesize textures and hand them to the sink only once complete."""
    textures = facades.synthesize(spec, style, seed)
    sink.apply(textures.color, textures.emission)
    return textures


def regenerate_city(
    sink: SceneSink,
    spec: layout.BlockGridSpec,
    seed: int,
    templates: Optional[layout.TemplateSet] = None,
) -> layout.CityLayout:
    """Generate a layout and replace the sink's scene with it."""
    city = layout.generate(spec, seed, templates)
    sink.place(city.instances)
    logger.debug("Placed %d instances (seed=%d)", len(city), seed)
    return city
