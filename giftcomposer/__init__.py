"""
Gift Composer - Flask Application Factory
Composes customer photos into layout templates for personalized gift products
"""

import os
from pathlib import Path
from flask import Flask
from loguru import logger
from dotenv import load_dotenv

from .config import load_config


def create_app(config_name=None):
    """Flask application factory

    ``config_name`` is either an environment name or a dict of overrides
    applied on top of the loaded configuration.
    """

    # Load environment variables
    load_dotenv()

    app = Flask(__name__)

    overrides = {}
    if isinstance(config_name, dict):
        overrides = config_name
        config_name = None
    environment = config_name or os.getenv('FLASK_ENV', 'development')

    # Load configuration
    config = load_config(environment)
    app.config.update(config.model_dump())
    app.config.update(overrides)

    # Configure logging
    setup_logging(app)

    # Ensure working directories exist
    setup_directories(app)

    # Register blueprints
    from . import routes
    app.register_blueprint(routes.bp)

    logger.info(f"Gift Composer initialized in {environment} mode")

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
        app.config.get('UPLOAD_FOLDER', 'storage/uploads'),
        app.config.get('TEMP_FOLDER', 'tmp'),
    ]

    for dir_path in dirs:
        Path(dir_path).mkdir(parents=True, exist_ok=True)
