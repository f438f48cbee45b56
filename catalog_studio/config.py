"""
Configuration management for the catalog generator
Loads settings from YAML files with environment variable overrides
"""

import os
import yaml
from pathlib import Path
from typing import Dict, List
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from loguru import logger


CONFIG_DIR = Path(os.getenv('CATALOG_CONFIG_DIR', 'config'))


class AppConfig(BaseModel):
    """Main application configuration"""

    # Flask settings
    SECRET_KEY: str = Field(default_factory=lambda: os.urandom(24).hex())
    FLASK_ENV: str = "development"
    DEBUG: bool = True

    # Paths
    EXPORT_FOLDER: str = "exports"
    ITEM_SOURCES: Dict[str, str] = {
        "digital": "data/products.json",
        "physical": "data/products-f.json",
    }

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Selection
    MAX_SELECTION: int = 20

    # Page geometry in design units (A4 in points)
    PAGE_WIDTH: int = 595
    PAGE_HEIGHT: int = 842
    HEADER_HEIGHT: int = 100
    FOOTER_HEIGHT: int = 80

    # Rendering
    PREVIEW_SCALE: float = 0.5
    PREVIEW_RENDER_SCALE: float = 1.0
    PREVIEW_DEBOUNCE_SECONDS: float = 0.22
    EXPORT_SCALE: float = 4.0
    EXPORT_JPEG_QUALITY: int = 95

    # Image cache
    IMAGE_FETCH_TIMEOUT: float = 10.0
    IMAGE_CACHE_MAX_ENTRIES: int = 256

    # Price display
    CURRENCY_SYMBOL: str = "$"
    THOUSANDS_SEPARATOR: str = "."


def load_yaml_config(file_path) -> Dict:
    """Load configuration from YAML file"""
    path = Path(file_path)
    if not path.exists():
        logger.warning(f"Config file not found: {file_path}")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config file {file_path}: {e}")
        return {}


def load_config(environment: str = "development") -> AppConfig:
    """Load configuration with environment-specific overrides"""

    # Load base settings
    base_config = load_yaml_config(CONFIG_DIR / "settings.yaml")

    # Load environment-specific settings
    env_config = load_yaml_config(CONFIG_DIR / f"settings_{environment}.yaml")

    # Merge configurations (env overrides base)
    config_dict = {**base_config, **env_config}

    # Apply environment variable overrides
    env_overrides = {
        'FLASK_ENV': os.getenv('FLASK_ENV', environment),
        'LOG_LEVEL': os.getenv('LOG_LEVEL'),
        'SECRET_KEY': os.getenv('SECRET_KEY'),
        'EXPORT_FOLDER': os.getenv('EXPORT_FOLDER'),
        'MAX_SELECTION': os.getenv('MAX_SELECTION'),
    }

    # Only include non-None values
    env_overrides = {k: v for k, v in env_overrides.items() if v is not None}
    config_dict.update(env_overrides)

    # Special handling for boolean DEBUG flag
    if 'FLASK_ENV' in config_dict:
        config_dict['DEBUG'] = config_dict['FLASK_ENV'] == 'development'

    try:
        return AppConfig(**config_dict)
    except PydanticValidationError as e:
        logger.error(f"Configuration validation error: {e}")
        # Return default config on validation error
        return AppConfig()


# Global config instance
_config_instance = None

def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config(os.getenv('FLASK_ENV', 'development'))
    return _config_instance


def load_template_config() -> List[Dict]:
    """Load raw layout template definitions from YAML"""
    config_data = load_yaml_config(CONFIG_DIR / "templates.yaml")
    templates = config_data.get("templates", [])
    logger.info(f"Loaded {len(templates)} layout template definitions")
    return templates


def load_style_presets() -> Dict[str, Dict[str, str]]:
    """Load style colour presets from YAML"""
    config_data = load_yaml_config(CONFIG_DIR / "styles.yaml")
    presets = config_data.get("presets", {})
    logger.info(f"Loaded {len(presets)} style presets")
    return presets
