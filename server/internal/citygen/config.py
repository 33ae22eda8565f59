"""
Configuration management for the city generation service.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# server/.env, if present; real environment variables take precedence
_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Config:
    """Configuration for city generation service"""

    def __init__(self):
        # Server configuration
        self.host = os.getenv("CITYGEN_SERVICE_HOST", "0.0.0.0")
        self.port = int(os.getenv("CITYGEN_SERVICE_PORT", "8082"))
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Generation configuration
        self.world_seed = int(os.getenv("WORLD_SEED", "12345"))
        self.default_palette = os.getenv("DEFAULT_PALETTE", "night_warm")

        # Limits for API requests (textures are rasterized in pure Python)
        self.max_texture_size = int(os.getenv("MAX_TEXTURE_SIZE", "2048"))
        self.max_blocks = int(os.getenv("MAX_BLOCKS", "64"))
        self.max_selection_population = int(os.getenv("MAX_SELECTION_POPULATION", "1000000"))


def load_config() -> Config:
    """Load configuration from .env file and environment variables"""
    if _ENV_FILE.exists():
        load_dotenv(_ENV_FILE, override=False)
    return Config()
