"""
City Generation Service
Thin HTTP wrapper around the facade and city layout generators.
"""

import base64
import logging
import os
import sys
from pathlib import Path

# Add server directory to path for imports
server_dir = Path(__file__).parent.parent.parent
sys.path.insert(0, str(server_dir))

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Tuple
import uvicorn

from internal.citygen import color_palettes
from internal.citygen import config
from internal.citygen import facades
from internal.citygen import layout
from internal.citygen import selection
from internal.citygen.errors import InvalidParameter
from internal.citygen.logging_setup import setup_logging
from internal.citygen.pixels import PIXEL_FORMAT

# Load configuration
cfg = config.load_config()
setup_logging(cfg.log_level)
logger = logging.getLogger(__name__)

SERVICE_NAME = "citygen-service"
SERVICE_VERSION = "0.1.0"

app = FastAPI(
    title="City Generation Service",
    description="Service for generating facade textures and city block layouts",
    version=SERVICE_VERSION,
)

# CORS middleware (allow editor tooling to call this service)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class HealthResponse(BaseModel):
    """Health check response"""

    status: str
    service: str
    version: str


class GenerateFacadeRequest(BaseModel):
    """Request to synthesize a facade texture pair"""

    texture_width: int = Field(default=512, ge=1, description="Texture width in pixels")
    texture_height: int = Field(default=1024, ge=1, description="Texture height in pixels")
    cols: int = Field(default=8, ge=1, description="Window columns")
    rows: int = Field(default=20, ge=1, description="Window rows")
    window_on_probability: float = Field(default=0.33, ge=0.0, le=1.0)
    padding_normalized: float = Field(default=0.08, ge=0.0, le=0.4)
    palette: Optional[str] = Field(
        default=None, description="Palette preset name (uses default if not provided)"
    )
    window_colors: Optional[List[str]] = Field(
        default=None, description="Hex window colors, overriding the preset's"
    )
    facade_color: Optional[str] = None
    off_color: Optional[str] = None
    emission_intensity: Optional[float] = Field(default=None, ge=0.0)
    clear_roof: bool = True
    roof_clear_fraction: float = Field(default=0.12, ge=0.0, le=0.5)
    seed: Optional[int] = Field(default=None, description="Seed (uses world seed if not provided)")


class GenerateFacadeResponse(BaseModel):
    """Response from facade synthesis"""

    success: bool
    seed: int
    width: int
    height: int
    format: str
    color: str  # base64 RGBA32, row-major, row 0 at the bottom
    emission: str
    roof_color: str
    lit_windows: int
    total_windows: int


class GenerateCityRequest(BaseModel):
    """Request to generate a city layout"""

    blocks_x: int = Field(default=4, ge=1)
    blocks_y: int = Field(default=4, ge=1)
    footprint_width: float = Field(default=1.0, gt=0.0)
    footprint_depth: float = Field(default=1.0, gt=0.0)
    gap_between_buildings: float = Field(default=0.2, ge=0.0)
    street_width: float = Field(default=3.0, ge=0.0)
    sidewalk_width: float = Field(default=0.6, ge=0.0)
    sidewalk_height: float = Field(default=0.12, ge=0.0)
    sidewalk_offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    height_min: float = Field(default=2.0, gt=0.0)
    height_max: float = Field(default=10.0, ge=0.0)
    fire_probability: float = Field(default=0.2, ge=0.0, le=1.0)
    max_fire_count: int = Field(default=100, ge=0)
    fire_y_offset: float = 0.1
    attach_fire_to_roof: bool = True
    vehicle_spawn_probability: float = Field(default=0.25, ge=0.0, le=1.0)
    max_vehicles: int = Field(default=30, ge=0)
    vehicle_light_intensity: float = Field(default=2.0, ge=0.0)
    vehicle_light_range: float = Field(default=3.0, ge=0.0)
    vehicle_light_angle: float = Field(default=90.0, gt=0.0, le=179.0)
    templates: Optional[Dict[str, Optional[str]]] = Field(
        default=None, description="Template overrides; null marks a template as missing"
    )
    seed: Optional[int] = Field(default=None, description="Seed (uses world seed if not provided)")


class GenerateCityResponse(BaseModel):
    """Response from city generation"""

    success: bool
    seed: int
    total_buildings: int
    damaged_indices: List[int]
    instances: List[Dict[str, Any]]
    warnings: List[Dict[str, Any]] = []
    bounds: Optional[List[float]] = None


class SelectionRequest(BaseModel):
    """Request for a deterministic subset"""

    population_size: int = Field(..., ge=0)
    count: int
    seed: Optional[int] = None


def _resolve_seed(seed: Optional[int]) -> int:
    return seed if seed is not None else cfg.world_seed


def _parse_color(field: str, value: str) -> color_palettes.Color:
    try:
        return color_palettes.from_hex(value)
    except ValueError as e:
        raise InvalidParameter(field, value, str(e))


def _build_style(request: GenerateFacadeRequest) -> facades.FacadeStyle:
    overrides: Dict[str, Any] = {
        "clear_roof": request.clear_roof,
        "roof_clear_fraction": request.roof_clear_fraction,
    }
    if request.window_colors is not None:
        overrides["palette"] = tuple(_parse_color("window_colors", c) for c in request.window_colors)
    if request.facade_color is not None:
        overrides["facade_color"] = _parse_color("facade_color", request.facade_color)
    if request.off_color is not None:
        overrides["off_color"] = _parse_color("off_color", request.off_color)
    if request.emission_intensity is not None:
        overrides["emission_intensity"] = request.emission_intensity

    return facades.FacadeStyle.from_preset(request.palette or cfg.default_palette, **overrides)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)


@app.get("/api/v1/palettes")
async def list_palettes():
    """List available facade palette presets"""
    return {"default": cfg.default_palette, "presets": color_palettes.list_presets()}


@app.post("/api/v1/facades/generate", response_model=GenerateFacadeResponse)
def generate_facade(request: GenerateFacadeRequest):
    """Synthesize albedo and emission buffers for one facade."""
    try:
        if max(request.texture_width, request.texture_height) > cfg.max_texture_size:
            raise InvalidParameter(
                "texture_width" if request.texture_width > cfg.max_texture_size else "texture_height",
                max(request.texture_width, request.texture_height),
                f"exceeds service limit of {cfg.max_texture_size}",
            )
        seed = _resolve_seed(request.seed)
        spec = facades.WindowGridSpec(
            texture_width=request.texture_width,
            texture_height=request.texture_height,
            cols=request.cols,
            rows=request.rows,
            window_on_probability=request.window_on_probability,
            padding_normalized=request.padding_normalized,
        )
        textures = facades.synthesize(spec, _build_style(request), seed)
    except InvalidParameter as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Facade generation failed")
        raise HTTPException(status_code=500, detail=f"Failed to generate facade: {str(e)}")

    return GenerateFacadeResponse(
        success=True,
        seed=seed,
        width=textures.color.width,
        height=textures.color.height,
        format=PIXEL_FORMAT,
        color=base64.b64encode(textures.color.to_bytes()).decode("ascii"),
        emission=base64.b64encode(textures.emission.to_bytes()).decode("ascii"),
        roof_color=color_palettes.to_hex(textures.roof_color),
        lit_windows=textures.lit_count,
        total_windows=len(textures.cells),
    )


@app.post("/api/v1/cities/generate", response_model=GenerateCityResponse)
def generate_city(request: GenerateCityRequest):
    """Generate a city block layout."""
    try:
        if request.blocks_x * request.blocks_y > cfg.max_blocks:
            raise InvalidParameter(
                "blocks_x", request.blocks_x * request.blocks_y, f"more than {cfg.max_blocks} blocks"
            )
        seed = _resolve_seed(request.seed)
        spec = layout.BlockGridSpec(
            blocks_x=request.blocks_x,
            blocks_y=request.blocks_y,
            building_footprint=(request.footprint_width, request.footprint_depth),
            gap_between_buildings=request.gap_between_buildings,
            street_width=request.street_width,
            sidewalk_width=request.sidewalk_width,
            sidewalk_height=request.sidewalk_height,
            sidewalk_offset=tuple(request.sidewalk_offset),
            height_range=(request.height_min, request.height_max),
            fire_probability=request.fire_probability,
            max_fire_count=request.max_fire_count,
            fire_y_offset=request.fire_y_offset,
            attach_fire_to_roof=request.attach_fire_to_roof,
            vehicle_spawn_probability=request.vehicle_spawn_probability,
            max_vehicles=request.max_vehicles,
            vehicle_light_intensity=request.vehicle_light_intensity,
            vehicle_light_range=request.vehicle_light_range,
            vehicle_light_angle=request.vehicle_light_angle,
        )
        templates = layout.TemplateSet()
        if request.templates:
            unknown = set(request.templates) - set(layout.TemplateSet.__dataclass_fields__)
            if unknown:
                raise InvalidParameter("templates", sorted(unknown), "unknown template names")
            templates = layout.TemplateSet(**request.templates)
        city = layout.generate(spec, seed, templates)
    except InvalidParameter as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("City generation failed")
        raise HTTPException(status_code=500, detail=f"Failed to generate city: {str(e)}")

    data = city.to_dict()
    return GenerateCityResponse(
        success=True,
        seed=seed,
        total_buildings=data["total_buildings"],
        damaged_indices=data["damaged_indices"],
        instances=data["instances"],
        warnings=data["warnings"],
        bounds=list(data["bounds"]) if data["bounds"] is not None else None,
    )


@app.post("/api/v1/selection")
def select_subset(request: SelectionRequest):
    """Deterministic subset of [0, population_size) (useful for debugging)"""
    try:
        if request.population_size > cfg.max_selection_population:
            raise InvalidParameter(
                "population_size",
                request.population_size,
                f"exceeds service limit of {cfg.max_selection_population}",
            )
        seed = _resolve_seed(request.seed)
        indices = selection.select(request.population_size, request.count, seed)
    except InvalidParameter as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"seed": seed, "population_size": request.population_size, "indices": sorted(indices)}


if __name__ == "__main__":
    port = int(os.getenv("CITYGEN_SERVICE_PORT", "8082"))
    host = os.getenv("CITYGEN_SERVICE_HOST", "0.0.0.0")

    uvicorn.run(
        "main:app", host=host, port=port, reload=cfg.environment == "development"
    )
