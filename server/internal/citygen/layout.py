"""
City block layout generation.
Lays out a grid of 3x3-building blocks separated by streets, with
intersections, sidewalk rings, taxis with lights, and a deterministic subset
of burning buildings.

Emission order is fixed: streets, intersections, sidewalks, vehicles,
buildings (each building followed by its damage effect, if any).
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple

from . import seeds
from . import selection
from .errors import InvalidParameter, MissingDependency
from .instances import (
    Building,
    DamageEffect,
    Intersection,
    Light,
    PlacedInstance,
    SidewalkSegment,
    Street,
    Vec3,
    Vehicle,
    layout_bounds,
)

logger = logging.getLogger(__name__)

BLOCK_CELLS = 3  # Each block is a 3x3 grid of buildings
BUILDINGS_PER_BLOCK = BLOCK_CELLS * BLOCK_CELLS

STREET_THICKNESS = 0.02
INTERSECTION_THICKNESS = 0.02
INTERSECTION_Y_OFFSET = 0.01  # Above the streets to prevent z-fighting
VEHICLE_Y_OFFSET = 0.02  # Above the sidewalk base

SPOT_LIGHT_OFFSET: Vec3 = (0.0, 0.5, 0.0)  # Roof light
SPOT_LIGHT_ROTATION: Vec3 = (-90.0, 0.0, 0.0)
POINT_LIGHT_OFFSET: Vec3 = (0.0, 0.2, 0.0)  # Cabin glow
POINT_LIGHT_FACTOR = 0.5  # Point light intensity and range relative to the spot


@dataclass(frozen=True)
class BlockGridSpec:
    """City grid parameters. Distances in scene units, angles in degrees."""

    blocks_x: int = 15
    blocks_y: int = 15
    building_footprint: Tuple[float, float] = (1.0, 1.0)  # (x, z)
    gap_between_buildings: float = 0.2
    street_width: float = 3.0
    sidewalk_width: float = 0.6
    sidewalk_height: float = 0.12  # Buildings rest on top of the sidewalk
    sidewalk_offset: Vec3 = (0.0, 0.0, 0.0)
    height_range: Tuple[float, float] = (2.0, 10.0)
    fire_probability: float = 0.2
    max_fire_count: int = 100
    fire_y_offset: float = 0.1  # Above the roof to prevent z-fighting
    attach_fire_to_roof: bool = True
    vehicle_spawn_probability: float = 0.25
    max_vehicles: int = 30
    vehicle_light_intensity: float = 2.0
    vehicle_light_range: float = 3.0
    vehicle_light_angle: float = 90.0

    @property
    def cell_size(self) -> Tuple[float, float]:
        return (
            self.building_footprint[0] + self.gap_between_buildings,
            self.building_footprint[1] + self.gap_between_buildings,
        )

    @property
    def block_size(self) -> Tuple[float, float]:
        cell_x, cell_z = self.cell_size
        return (
            BLOCK_CELLS * cell_x - self.gap_between_buildings,
            BLOCK_CELLS * cell_z - self.gap_between_buildings,
        )

    @property
    def block_pitch(self) -> Tuple[float, float]:
        """Distance between the centers of adjacent blocks."""
        block_x, block_z = self.block_size
        return (block_x + self.street_width, block_z + self.street_width)

    @property
    def total_size(self) -> Tuple[float, float]:
        pitch_x, pitch_z = self.block_pitch
        return (
            self.blocks_x * pitch_x - self.street_width,
            self.blocks_y * pitch_z - self.street_width,
        )

    @property
    def total_buildings(self) -> int:
        return self.blocks_x * self.blocks_y * BUILDINGS_PER_BLOCK

    def validate(self) -> None:
        if self.blocks_x < 1:
            raise InvalidParameter("blocks_x", self.blocks_x, "must be at least 1")
        if self.blocks_y < 1:
            raise InvalidParameter("blocks_y", self.blocks_y, "must be at least 1")
        if len(self.building_footprint) != 2 or min(self.building_footprint) <= 0.0:
            raise InvalidParameter("building_footprint", self.building_footprint, "both sides must be positive")
        for name in ("gap_between_buildings", "street_width", "sidewalk_width", "sidewalk_height"):
            if getattr(self, name) < 0.0:
                raise InvalidParameter(name, getattr(self, name), "must not be negative")
        height_min, height_max = self.height_range
        if height_min <= 0.0 or height_max < height_min:
            raise InvalidParameter("height_range", self.height_range, "expected 0 < min <= max")
        if not 0.0 <= self.fire_probability <= 1.0:
            raise InvalidParameter("fire_probability", self.fire_probability, "must be within [0, 1]")
        if self.max_fire_count < 0:
            raise InvalidParameter("max_fire_count", self.max_fire_count, "must not be negative")
        if not 0.0 <= self.vehicle_spawn_probability <= 1.0:
            raise InvalidParameter(
                "vehicle_spawn_probability", self.vehicle_spawn_probability, "must be within [0, 1]"
            )
        if self.max_vehicles < 0:
            raise InvalidParameter("max_vehicles", self.max_vehicles, "must not be negative")


@dataclass(frozen=True)
class TemplateSet:
    """
    Opaque references the scene sink resolves (prefab or material names).
    A None entry is a missing dependency.
    """

    building: Optional[str] = "building"
    vehicle: Optional[str] = "taxi"
    damage_effect: Optional[str] = "fire"
    street_material: Optional[str] = "street"
    intersection_material: Optional[str] = "intersection"
    sidewalk_material: Optional[str] = "sidewalk"
    building_roof_anchor: Optional[str] = "Roof"  # Child anchor on the building template


@dataclass
class CityLayout:
    """Ordered instances plus what was selected and what was skipped."""

    instances: List[PlacedInstance]
    damage_selection: FrozenSet[int]
    total_buildings: int
    seed: int
    warnings: List[MissingDependency] = field(default_factory=list)

    def __iter__(self) -> Iterator[PlacedInstance]:
        return iter(self.instances)

    def __len__(self) -> int:
        return len(self.instances)

    def of_kind(self, kind: str) -> List[PlacedInstance]:
        return [inst for inst in self.instances if inst.kind == kind]

    @property
    def buildings(self) -> List[Building]:
        return self.of_kind(Building.kind)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "total_buildings": self.total_buildings,
            "damaged_indices": sorted(self.damage_selection),
            "instances": [inst.to_dict() for inst in self.instances],
            "warnings": [w.to_dict() for w in self.warnings],
            "bounds": layout_bounds(self.instances),
        }


class _Reporter:
    """Collects MissingDependency warnings and logs each once."""

    def __init__(self):
        self.warnings: List[MissingDependency] = []

    def missing(self, dependency: str, feature: str) -> None:
        warning = MissingDependency(dependency, feature)
        logger.warning("%s", warning)
        self.warnings.append(warning)


def _block_center(spec: BlockGridSpec, bx: int, by: int) -> Tuple[float, float]:
    pitch_x, pitch_z = spec.block_pitch
    return (bx * pitch_x, by * pitch_z)


def _street_center(spec: BlockGridSpec, index: int, axis: int) -> float:
    """Center of the street between block index and index + 1 along an axis."""
    return index * spec.block_pitch[axis] + spec.block_size[axis] * 0.5 + spec.street_width * 0.5


def _span_center(spec: BlockGridSpec, axis: int) -> float:
    """Center of the whole city extent along an axis."""
    return -spec.block_size[axis] * 0.5 + spec.total_size[axis] * 0.5


def _generate_streets(spec: BlockGridSpec, material: Optional[str]) -> List[PlacedInstance]:
    streets = []
    total_x, total_z = spec.total_size

    # Vertical streets (columns between blocks)
    for bx in range(spec.blocks_x - 1):
        streets.append(
            Street(
                id=f"Street_V_{bx}",
                position=(_street_center(spec, bx, 0), 0.0, _span_center(spec, 1)),
                scale=(spec.street_width, STREET_THICKNESS, total_z),
                template=material,
                orientation="vertical",
            )
        )

    # Horizontal streets (rows between blocks)
    for by in range(spec.blocks_y - 1):
        streets.append(
            Street(
                id=f"Street_H_{by}",
                position=(_span_center(spec, 0), 0.0, _street_center(spec, by, 1)),
                scale=(total_x, STREET_THICKNESS, spec.street_width),
                template=material,
                orientation="horizontal",
            )
        )
    return streets


def _crossings(spec: BlockGridSpec) -> Iterator[Tuple[int, int, float, float]]:
    """Interior street crossings in row-major order."""
    for by in range(spec.blocks_y - 1):
        center_z = _street_center(spec, by, 1)
        for bx in range(spec.blocks_x - 1):
            yield bx, by, _street_center(spec, bx, 0), center_z


def _generate_intersections(spec: BlockGridSpec, material: Optional[str]) -> List[PlacedInstance]:
    # Pads reach the outer corner of the sidewalk rings
    size = spec.street_width + spec.sidewalk_width
    y = INTERSECTION_Y_OFFSET + INTERSECTION_THICKNESS * 0.5
    return [
        Intersection(
            id=f"Intersection_{bx}_{by}",
            position=(x, y, z),
            scale=(size, INTERSECTION_THICKNESS, size),
            template=material,
        )
        for bx, by, x, z in _crossings(spec)
    ]


def _generate_sidewalks(spec: BlockGridSpec, material: Optional[str]) -> List[PlacedInstance]:
    """Four edges and four corner pieces around every block."""
    sidewalks = []
    block_x, block_z = spec.block_size
    half_x = block_x * 0.5
    half_z = block_z * 0.5
    width = spec.sidewalk_width
    height = spec.sidewalk_height
    off_x, off_y, off_z = spec.sidewalk_offset
    y = height * 0.5 + off_y

    edge_x = half_x + width * 0.5
    edge_z = half_z + width * 0.5
    # side -> (dx, dz, scale_x, scale_z)
    pieces = [
        ("N", 0.0, edge_z, block_x, width),
        ("S", 0.0, -edge_z, block_x, width),
        ("E", edge_x, 0.0, width, block_z),
        ("W", -edge_x, 0.0, width, block_z),
        ("Corner_NE", edge_x, edge_z, width, width),
        ("Corner_NW", -edge_x, edge_z, width, width),
        ("Corner_SE", edge_x, -edge_z, width, width),
        ("Corner_SW", -edge_x, -edge_z, width, width),
    ]

    for by in range(spec.blocks_y):
        for bx in range(spec.blocks_x):
            center_x, center_z = _block_center(spec, bx, by)
            for side, dx, dz, scale_x, scale_z in pieces:
                sidewalks.append(
                    SidewalkSegment(
                        id=f"Sidewalk_Block_{bx}_{by}_{side}",
                        position=(center_x + dx + off_x, y, center_z + dz + off_z),
                        scale=(scale_x, height, scale_z),
                        template=material,
                        side=side,
                    )
                )
    return sidewalks


def _vehicle_lights(spec: BlockGridSpec, vehicle: Vehicle) -> List[PlacedInstance]:
    if spec.vehicle_light_intensity <= 0.0:
        return []

    x, y, z = vehicle.position
    spot = Light(
        id=f"{vehicle.id}_SpotLight",
        position=(x + SPOT_LIGHT_OFFSET[0], y + SPOT_LIGHT_OFFSET[1], z + SPOT_LIGHT_OFFSET[2]),
        rotation=SPOT_LIGHT_ROTATION,
        parent_id=vehicle.id,
        local_position=SPOT_LIGHT_OFFSET,
        light_type="spot",
        intensity=spec.vehicle_light_intensity,
        range=spec.vehicle_light_range,
        spot_angle=spec.vehicle_light_angle,
    )
    point = Light(
        id=f"{vehicle.id}_PointLight",
        position=(x + POINT_LIGHT_OFFSET[0], y + POINT_LIGHT_OFFSET[1], z + POINT_LIGHT_OFFSET[2]),
        parent_id=vehicle.id,
        local_position=POINT_LIGHT_OFFSET,
        light_type="point",
        intensity=spec.vehicle_light_intensity * POINT_LIGHT_FACTOR,
        range=spec.vehicle_light_range * POINT_LIGHT_FACTOR,
    )
    return [spot, point]


def _generate_vehicles(
    spec: BlockGridSpec, seed: int, rng: random.Random, template: Optional[str]
) -> List[PlacedInstance]:
    """
    Taxis at interior crossings.

    Re-seeds the layout stream with the city seed first. Building heights
    are drawn from the same stream afterwards, so they follow the taxi draws.
    """
    rng.seed(seed)
    vehicles: List[PlacedInstance] = []
    spawned = 0
    y = spec.sidewalk_height + VEHICLE_Y_OFFSET

    for bx, by, x, z in _crossings(spec):
        if spawned >= spec.max_vehicles:
            logger.debug("Vehicle cap of %d reached", spec.max_vehicles)
            break
        if rng.random() > spec.vehicle_spawn_probability:
            continue

        heading = 0.0 if rng.random() < 0.5 else 90.0
        vehicle = Vehicle(
            id=f"Taxi_{bx}_{by}",
            position=(x, y, z),
            rotation=(0.0, heading, 0.0),
            template=template,
        )
        vehicles.append(vehicle)
        vehicles.extend(_vehicle_lights(spec, vehicle))
        spawned += 1
    return vehicles


def _damage_effect(
    spec: BlockGridSpec, building: Building, template: str, roof_anchor: Optional[str]
) -> DamageEffect:
    x, _, z = building.position
    roof_y = spec.sidewalk_height + building.height
    if spec.attach_fire_to_roof and roof_anchor:
        anchor = roof_anchor
        local = (0.0, spec.fire_y_offset, 0.0)
    else:
        anchor = None
        local = (0.0, building.height * 0.5 + spec.fire_y_offset, 0.0)

    return DamageEffect(
        id=f"Fire_{building.id}",
        position=(x, roof_y + spec.fire_y_offset, z),
        parent_id=building.id,
        anchor=anchor,
        local_position=local,
        template=template,
        building_index=building.global_index,
    )


def _generate_buildings(
    spec: BlockGridSpec,
    seed: int,
    rng: random.Random,
    damaged: FrozenSet[int],
    templates: TemplateSet,
) -> List[PlacedInstance]:
    """
    Buildings block by block (row-major), then the 3x3 cells (row-major).

    One height draw per building. The running global index matches the
    numbering the damage selection was made against.
    """
    placed: List[PlacedInstance] = []
    footprint_x, footprint_z = spec.building_footprint
    cell_x, cell_z = spec.cell_size
    block_x, block_z = spec.block_size
    height_min, height_max = spec.height_range
    base_y = spec.sidewalk_height
    global_index = 0

    for by in range(spec.blocks_y):
        for bx in range(spec.blocks_x):
            origin_x, origin_z = _block_center(spec, bx, by)
            for cy in range(BLOCK_CELLS):
                for cx in range(BLOCK_CELLS):
                    # Start at -half block + half footprint, then step by cell size
                    pos_x = origin_x - block_x * 0.5 + cx * cell_x + footprint_x * 0.5
                    pos_z = origin_z - block_z * 0.5 + cy * cell_z + footprint_z * 0.5
                    height = rng.uniform(height_min, height_max)
                    is_damaged = global_index in damaged

                    building = Building(
                        id=f"B_{bx}_{by}_c{cx}_{cy}",
                        position=(pos_x, base_y + height * 0.5, pos_z),
                        scale=(footprint_x, height, footprint_z),
                        template=templates.building,
                        global_index=global_index,
                        height=height,
                        facade_seed=seeds.facade_seed(seed, global_index),
                        damaged=is_damaged,
                    )
                    placed.append(building)

                    if is_damaged and templates.damage_effect is not None:
                        placed.append(
                            _damage_effect(spec, building, templates.damage_effect, templates.building_roof_anchor)
                        )
                    global_index += 1
    return placed


def generate(spec: BlockGridSpec, seed: int, templates: Optional[TemplateSet] = None) -> CityLayout:
    """
    Generate a city layout.

    Args:
        spec: Block grid parameters
        seed: Seed for the layout stream
        templates: Prefab/material references; defaults to TemplateSet()

    Returns:
        CityLayout with instances in emission order

    Raises:
        InvalidParameter: If spec is out of range
    """
    spec.validate()
    templates = templates if templates is not None else TemplateSet()
    reporter = _Reporter()
    rng = seeds.seeded_random(seed)

    # The damage selection is drawn first, from the final building count
    total = spec.total_buildings
    fires = selection.damage_count(total, spec.fire_probability, spec.max_fire_count)
    damaged = selection.select(total, fires, rng)
    if damaged:
        logger.info("Selected %d buildings for fire (out of %d possible)", len(damaged), total)

    for name, feature in (
        ("street_material", "street material"),
        ("intersection_material", "intersection material"),
        ("sidewalk_material", "sidewalk material"),
    ):
        if getattr(templates, name) is None:
            reporter.missing(name, feature)

    instances: List[PlacedInstance] = []
    instances.extend(_generate_streets(spec, templates.street_material))
    instances.extend(_generate_intersections(spec, templates.intersection_material))
    instances.extend(_generate_sidewalks(spec, templates.sidewalk_material))

    if spec.vehicle_spawn_probability > 0.0 and spec.max_vehicles > 0:
        if templates.vehicle is None:
            reporter.missing("vehicle", "vehicle placement")
        else:
            instances.extend(_generate_vehicles(spec, seed, rng, templates.vehicle))

    if templates.building is None:
        reporter.missing("building", "building placement")
    else:
        if damaged and templates.damage_effect is None:
            reporter.missing("damage_effect", "damage effects")
        instances.extend(_generate_buildings(spec, seed, rng, damaged, templates))

    layout = CityLayout(
        instances=instances,
        damage_selection=damaged,
        total_buildings=total,
        seed=seed,
        warnings=reporter.warnings,
    )
    logger.info(
        "Generated %d buildings (%dx%d blocks), %d instances total",
        len(layout.buildings),
        spec.blocks_x,
        spec.blocks_y,
        len(layout),
    )
    return layout
