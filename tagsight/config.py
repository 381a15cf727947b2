"""Detector configuration.

This module provides environment-based configuration for the detector.
Configuration is loaded from environment variables with sensible defaults.

Environment Variables:
    TAGSIGHT_ENV: Configuration environment (development, production, testing)
    TAGSIGHT_DEBUG: Enable debug logging (0 or 1)
    TAGSIGHT_TAG_FAMILY: Default tag family for create_detector (default: 36h11)
    TAGSIGHT_BLACK_BORDER: Default black border width in bits (default: 1)
    TAGSIGHT_FAMILIES: Comma separated optional families to register, or "all"
    TAGSIGHT_CODEWORD_DIR: Directory of codeword files (tag36h9.txt, tag25h7.txt)
    TAGSIGHT_ERROR_RECOVERY_BITS: Max Hamming distance reported as good (default: 1)
    TAGSIGHT_CORNER_REFINEMENT: Sub-pixel corner refinement (0 or 1, default: 1)
    TAGSIGHT_LOG_LEVEL: Logging level for scripts (default: WARNING)
"""

import logging
import os


def _env_flag(name, default):
    return os.environ.get(name, default).lower() not in ('0', 'false', 'no')


def _env_families(name, default='all'):
    raw = os.environ.get(name, default).strip()
    if raw.lower() == 'all':
        return None
    return tuple(part.strip() for part in raw.split(',') if part.strip())


class Config:
    """Base configuration with defaults suitable for production."""

    DEBUG = False
    TESTING = False

    # Detector defaults
    DEFAULT_TAG_FAMILY = os.environ.get('TAGSIGHT_TAG_FAMILY', '36h11')
    DEFAULT_BLACK_BORDER = int(os.environ.get('TAGSIGHT_BLACK_BORDER', 1))

    # Optional codeword tables to register; None means every table this build provides
    ENABLED_FAMILIES = _env_families('TAGSIGHT_FAMILIES')

    # Codeword files for families OpenCV does not ship
    CODEWORD_DIR = os.environ.get('TAGSIGHT_CODEWORD_DIR') or None

    # Engine settings
    ERROR_RECOVERY_BITS = int(os.environ.get('TAGSIGHT_ERROR_RECOVERY_BITS', 1))
    CORNER_REFINEMENT = _env_flag('TAGSIGHT_CORNER_REFINEMENT', '1')

    # Logging
    LOG_LEVEL = os.environ.get('TAGSIGHT_LOG_LEVEL', 'WARNING').upper()
    LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


class DevelopmentConfig(Config):
    """Development configuration with verbose logging."""

    DEBUG = True
    ENV = 'development'
    LOG_LEVEL = os.environ.get('TAGSIGHT_LOG_LEVEL', 'DEBUG').upper()


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    ENV = 'production'


class TestingConfig(Config):
    """Testing configuration with deterministic engine settings."""

    TESTING = True
    DEBUG = False
    ENV = 'testing'
    DEFAULT_TAG_FAMILY = '36h11'
    DEFAULT_BLACK_BORDER = 1
    ENABLED_FAMILIES = None
    CODEWORD_DIR = None
    ERROR_RECOVERY_BITS = 1


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig  # Default to production for safety
}


def get_config():
    """Get the appropriate configuration based on environment.

    Returns:
        Config: Configuration class based on TAGSIGHT_ENV or TAGSIGHT_DEBUG

    Priority:
        1. TAGSIGHT_ENV environment variable
        2. TAGSIGHT_DEBUG environment variable (0/1)
        3. Default to production (safe default)
    """
    env = os.environ.get('TAGSIGHT_ENV', '').lower()
    if env in config:
        return config[env]

    debug = os.environ.get('TAGSIGHT_DEBUG', '0').lower()
    if debug in ('1', 'true', 'yes', 'on'):
        return config['development']

    return config['default']


def configure_logging(config_class=None):
    """Apply the configured log level and format to the root logger.

    Intended for scripts; library code only creates module loggers.
    """
    config_class = config_class or get_config()
    level = getattr(logging, config_class.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(level=level, format=config_class.LOG_FORMAT)
    return level
