"""
Placed instance records produced by the city layout generator.

Instances are plain data for a scene sink: what to create, where, and under
which parent (referenced by id). Axis convention: y is up, the ground plane
is x/z.
"""

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, Iterable, Optional, Tuple

import shapely.geometry as sg
import shapely.ops as so

Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class PlacedInstance:
    """Base record; position is in world space."""

    kind: ClassVar[str] = "instance"

    id: str
    position: Vec3
    scale: Vec3 = (1.0, 1.0, 1.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)  # Euler angles in degrees
    parent_id: Optional[str] = None
    anchor: Optional[str] = None  # Named child of the parent to attach to
    local_position: Optional[Vec3] = None  # Relative to parent/anchor when parented
    template: Optional[str] = None

    def footprint(self) -> sg.Polygon:
        """Axis-aligned ground footprint (x/z) from position and scale."""
        x, _, z = self.position
        half_x = self.scale[0] / 2.0
        half_z = self.scale[2] / 2.0
        return sg.box(x - half_x, z - half_z, x + half_x, z + half_z)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.kind
        return data


@dataclass(frozen=True)
class Street(PlacedInstance):
    kind: ClassVar[str] = "street"

    orientation: str = "vertical"  # "vertical" runs along z, "horizontal" along x


@dataclass(frozen=True)
class Intersection(PlacedInstance):
    kind: ClassVar[str] = "intersection"


@dataclass(frozen=True)
class SidewalkSegment(PlacedInstance):
    kind: ClassVar[str] = "sidewalk"

    side: str = "N"  # N, S, E, W or Corner_NE, Corner_NW, Corner_SE, Corner_SW

    @property
    def is_corner(self) -> bool:
        return self.side.startswith("Corner_")


@dataclass(frozen=True)
class Vehicle(PlacedInstance):
    kind: ClassVar[str] = "vehicle"


@dataclass(frozen=True)
class Light(PlacedInstance):
    kind: ClassVar[str] = "light"

    light_type: str = "point"  # "spot" or "point"
    intensity: float = 1.0
    range: float = 1.0
    spot_angle: Optional[float] = None
    shadows: bool = False


@dataclass(frozen=True)
class Building(PlacedInstance):
    kind: ClassVar[str] = "building"

    global_index: int = 0
    height: float = 0.0
    facade_seed: int = 0
    damaged: bool = False


@dataclass(frozen=True)
class DamageEffect(PlacedInstance):
    kind: ClassVar[str] = "damage_effect"

    building_index: int = 0
    simulation_space: str = "local"  # Effect moves with its parent


def layout_bounds(instances: Iterable[PlacedInstance]) -> Optional[Tuple[float, float, float, float]]:
    """
    Ground-plane bounds (min_x, min_z, max_x, max_z) of the union of all
    footprints, or None for an empty sequence.
    """
    footprints = [inst.footprint() for inst in instances]
    if not footprints:
        return None
    return so.unary_union(footprints).bounds
