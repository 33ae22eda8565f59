"""
Tests for city generation API endpoints.
"""

import base64
import sys
from pathlib import Path

# Add server directory to path
server_dir = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(server_dir))

import pytest
from fastapi.testclient import TestClient
from internal.citygen.main import app, cfg

client = TestClient(app)


def test_health_check():
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "citygen-service"
    assert data["version"] == "0.1.0"


def test_list_palettes():
    """Test palette listing endpoint"""
    response = client.get("/api/v1/palettes")
    assert response.status_code == 200
    assert "night_warm" in response.json()["presets"]


def test_generate_facade():
    """Test facade generation endpoint"""
    request_data = {"texture_width": 32, "texture_height": 64, "cols": 4, "rows": 8, "seed": 7}

    response = client.post("/api/v1/facades/generate", json=request_data)
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is True
    assert data["seed"] == 7
    assert (data["width"], data["height"]) == (32, 64)
    assert data["format"] == "RGBA32"
    assert data["total_windows"] == 32
    assert len(base64.b64decode(data["color"])) == 32 * 64 * 4
    assert len(base64.b64decode(data["emission"])) == 32 * 64 * 4
    assert data["roof_color"].startswith("#")

    # Same request should produce the same pixels
    again = client.post("/api/v1/facades/generate", json=request_data).json()
    assert again["color"] == data["color"]
    assert again["emission"] == data["emission"]


def test_generate_facade_custom_colors():
    """Test explicit colors override the preset"""
    request_data = {
        "texture_width": 16,
        "texture_height": 16,
        "cols": 2,
        "rows": 2,
        "window_on_probability": 1.0,
        "window_colors": ["#FF0000"],
        "clear_roof": False,
        "seed": 1,
    }

    response = client.post("/api/v1/facades/generate", json=request_data)
    assert response.status_code == 200
    assert response.json()["lit_windows"] == 4


def test_generate_facade_validation():
    """Test facade request validation"""
    # Schema violations
    response = client.post("/api/v1/facades/generate", json={"cols": 0})
    assert response.status_code == 422

    response = client.post("/api/v1/facades/generate", json={"padding_normalized": 0.9})
    assert response.status_code == 422

    # Parameter errors from the generator
    response = client.post("/api/v1/facades/generate", json={"palette": "no_such_palette"})
    assert response.status_code == 400
    assert "palette" in response.json()["detail"]

    response = client.post("/api/v1/facades/generate", json={"window_colors": []})
    assert response.status_code == 400

    response = client.post("/api/v1/facades/generate", json={"facade_color": "not-a-color"})
    assert response.status_code == 400


def test_generate_city():
    """Test city generation endpoint"""
    request_data = {"blocks_x": 1, "blocks_y": 1, "seed": 42}

    response = client.post("/api/v1/cities/generate", json=request_data)
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is True
    assert data["total_buildings"] == 9
    buildings = [i for i in data["instances"] if i["type"] == "building"]
    assert len(buildings) == 9
    assert data["warnings"] == []
    assert len(data["bounds"]) == 4


def test_generate_city_missing_template():
    """Test missing templates are reported as warnings"""
    request_data = {
        "blocks_x": 2,
        "blocks_y": 2,
        "fire_probability": 0.5,
        "templates": {"damage_effect": None},
        "seed": 42,
    }

    response = client.post("/api/v1/cities/generate", json=request_data)
    assert response.status_code == 200

    data = response.json()
    assert len(data["damaged_indices"]) == 18
    assert [w["dependency"] for w in data["warnings"]] == ["damage_effect"]
    assert not any(i["type"] == "damage_effect" for i in data["instances"])


def test_generate_city_validation():
    """Test city request validation"""
    response = client.post("/api/v1/cities/generate", json={"blocks_x": 0})
    assert response.status_code == 422

    response = client.post("/api/v1/cities/generate", json={"height_min": 0.0})
    assert response.status_code == 422

    response = client.post("/api/v1/cities/generate", json={"height_min": 5.0, "height_max": 1.0})
    assert response.status_code == 400
    assert "height_range" in response.json()["detail"]

    response = client.post("/api/v1/cities/generate", json={"templates": {"spaceship": "x"}})
    assert response.status_code == 400


def test_select_subset():
    """Test subset selection endpoint"""
    response = client.post("/api/v1/selection", json={"population_size": 10, "count": 4, "seed": 3})
    assert response.status_code == 200

    data = response.json()
    assert len(data["indices"]) == 4
    assert data["indices"] == sorted(set(data["indices"]))
    assert all(0 <= i < 10 for i in data["indices"])

    # Count above population clamps
    response = client.post("/api/v1/selection", json={"population_size": 5, "count": 50, "seed": 3})
    assert response.json()["indices"] == [0, 1, 2, 3, 4]


def test_select_subset_population_limit():
    """Test selection rejects populations above the service limit"""
    request_data = {"population_size": cfg.max_selection_population + 1, "count": 1, "seed": 3}

    response = client.post("/api/v1/selection", json=request_data)
    assert response.status_code == 400
    assert "population_size" in response.json()["detail"]

    response = client.post("/api/v1/selection", json={"population_size": -1, "count": 1})
    assert response.status_code == 422


def test_generate_city_fire_and_light_options():
    """Test fire placement and taxi light settings pass through to the layout"""
    request_data = {
        "blocks_x": 2,
        "blocks_y": 2,
        "fire_probability": 0.5,
        "fire_y_offset": 0.3,
        "attach_fire_to_roof": False,
        "vehicle_spawn_probability": 1.0,
        "vehicle_light_intensity": 4.0,
        "vehicle_light_range": 6.0,
        "vehicle_light_angle": 45.0,
        "seed": 42,
    }

    response = client.post("/api/v1/cities/generate", json=request_data)
    assert response.status_code == 200

    instances = response.json()["instances"]
    fires = [i for i in instances if i["type"] == "damage_effect"]
    assert len(fires) == 18
    assert all(f["anchor"] is None for f in fires)

    lights = [i for i in instances if i["type"] == "light"]
    spot = next(light for light in lights if light["light_type"] == "spot")
    point = next(light for light in lights if light["light_type"] == "point")
    assert (spot["intensity"], spot["range"], spot["spot_angle"]) == (4.0, 6.0, 45.0)
    assert (point["intensity"], point["range"]) == (2.0, 3.0)

    # Lights are omitted when their intensity is zero
    request_data["vehicle_light_intensity"] = 0.0
    data = client.post("/api/v1/cities/generate", json=request_data).json()
    assert any(i["type"] == "vehicle" for i in data["instances"])
    assert not any(i["type"] == "light" for i in data["instances"])
