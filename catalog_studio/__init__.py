"""
Catalog Studio - Flask Application Factory
Build paginated product catalogs with live previews and print-quality PDF export
"""

import os
from pathlib import Path
from flask import Flask
from loguru import logger
from dotenv import load_dotenv

from .config import AppConfig, load_config


def create_app(config_name=None, transport=None):
    """
    Flask application factory

    config_name is an environment name ("development", "production")
    or a dict of settings applied over the loaded configuration.
    transport is an optional httpx transport for image fetches.
    """

    # Load environment variables
    load_dotenv()

    overrides = {}
    if isinstance(config_name, dict):
        overrides = config_name
        config_name = None
    environment = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)

    # Load configuration
    config = load_config(environment)
    known = {k: v for k, v in overrides.items() if k in AppConfig.model_fields}
    if known:
        config = config.model_copy(update=known)
    app.config.update(config.model_dump())
    app.config.update(overrides)

    # Configure logging
    setup_logging(app)

    # Ensure output directories exist
    setup_directories(app)

    # Shared services and session registry
    from .sessions import create_services
    app.extensions['catalog_studio'] = create_services(config, transport=transport)

    # Register blueprints
    from . import routes
    app.register_blueprint(routes.bp)

    logger.info(f"Catalog Studio initialized in {environment} mode")

    return app


def setup_logging(app):
    """Configure loguru logging"""
    log_level = app.config.get('LOG_LEVEL', 'INFO')
    log_file = app.config.get('LOG_FILE', 'logs/app.log')

    # Ensure logs directory exists
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        rotation="1 day",
        retention="30 days",
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )


def setup_directories(app):
    """Ensure required directories exist"""
    dirs = [
        app.config.get('EXPORT_FOLDER', 'exports'),
        Path(app.config.get('LOG_FILE', 'logs/app.log')).parent,
    ]

    for dir_path in dirs:
        Path(dir_path).mkdir(parents=True, exist_ok=True)
