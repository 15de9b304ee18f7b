"""CLI commands and entry points for web-audit."""

from .config import load_config, create_default_config, validate_config, settings_from_config
from .main import main

__all__ = [
    "load_config",
    "create_default_config",
    "validate_config",
    "settings_from_config",
    "main",
]
