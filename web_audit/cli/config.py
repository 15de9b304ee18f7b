"""
Configuration loader for YAML-based audit settings.

A YAML file can hold any ``AuditSettings`` field, either flat or grouped
under sections (``target``, ``browser``, ``erp``, ``output``...). Section
names are dropped when flattening, so ``target: {target_url: ...}`` and
``target_url: ...`` are equivalent; ``retry`` keeps its prefix.
"""

import os
from pathlib import Path
from typing import Dict, Any, Optional

import yaml
from dotenv import dotenv_values

from ..config import AuditSettings, apply_overrides, settings_from_env, settings_to_dict


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config format is invalid
    """
    from ..exceptions import ValidationError

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"Create a config file using: web-audit init-config"
        )

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in config file: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValidationError("Config file must contain a YAML dictionary")

    return config


def flatten_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten grouped configuration into settings field names.

    Example:
        >>> flatten_config({"browser": {"headless": False}, "retry": {"delay_ms": 500}})
        {'headless': False, 'retry.delay_ms': 500}
    """
    flat = {}
    for key, value in config.items():
        if key == "retry" and isinstance(value, dict):
            for sub, sub_value in value.items():
                flat[f"retry.{sub}"] = sub_value
        elif isinstance(value, dict):
            flat.update(flatten_config(value))
        else:
            flat[key] = value
    return flat


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration keys and value types.

    Raises:
        ValidationError: If an unknown key or a wrongly typed value is found
    """
    from ..exceptions import ConfigurationError, ValidationError

    flat = flatten_config(config)
    try:
        apply_overrides(AuditSettings(), flat)
    except ConfigurationError as e:
        raise ValidationError(f"{e}\nSee example config: web-audit init-config")

    for key in ("target_hints", "target_methods", "tenant_headers"):
        if key in flat and not isinstance(flat[key], (list, str)):
            raise ValidationError(f"{key} must be a list or a comma-separated string")
    return True


def load_env_file(env_file: str) -> Dict[str, str]:
    """
    Read ``KEY=value`` pairs from a dotenv file without touching ``os.environ``.

    Args:
        env_file: Path to the ``.env`` file

    Returns:
        Variables defined in the file; keys without a value are left out

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not Path(env_file).is_file():
        raise FileNotFoundError(f"Environment file not found: {env_file}")
    return {k: v for k, v in dotenv_values(env_file).items() if v is not None}


def settings_from_config(config_path: Optional[str] = None, environ=None, overrides=None,
                         env_file: Optional[str] = None) -> AuditSettings:
    """
    Resolve settings: defaults, YAML file, ``.env`` file, environment, overrides.

    Variables already set in the environment win over the ``.env`` file.

    Args:
        config_path: Optional YAML file
        environ: Environment mapping (defaults to ``os.environ``)
        overrides: Field overrides from the command line (None values ignored)
        env_file: Optional dotenv file

    Returns:
        AuditSettings
    """
    if environ is None:
        environ = os.environ
    if env_file:
        environ = {**load_env_file(env_file), **environ}

    settings = AuditSettings()
    if config_path:
        config = load_config(config_path)
        validate_config(config)
        settings = apply_overrides(settings, flatten_config(config))
    settings = settings_from_env(environ, base=settings)
    if overrides:
        settings = apply_overrides(settings, overrides)
    return settings


def create_default_config(output_path: str = "web-audit.yaml"):
    """
    Create a default configuration file with all options.

    Args:
        output_path: Where to save the config file
    """
    flat = settings_to_dict(AuditSettings())
    default_config = {
        "target": {
            "target_url": flat["target_url"],
            "target_hints": flat["target_hints"],
            "target_methods": flat["target_methods"],
            "tenant_headers": flat["tenant_headers"],
        },
        "browser": {
            "headless": flat["headless"],
            "frontend_url": flat["frontend_url"],
            "frontend_observe_ms": flat["frontend_observe_ms"],
            "wait_interactive_ms": flat["wait_interactive_ms"],
            "swagger_url": flat["swagger_url"],
            "swagger_observe_ms": flat["swagger_observe_ms"],
        },
        "erp": {
            "audit_erp": flat["audit_erp"],
            "erp_url": flat["erp_url"],
            "erp_user": flat["erp_user"],
            "erp_stock_route": flat["erp_stock_route"],
            "nav_timeout_ms": flat["nav_timeout_ms"],
            "login_wait_ms": flat["login_wait_ms"],
            "observe_ms": flat["observe_ms"],
        },
        "retry": flat["retry"],
        "output": {
            "output_file": flat["output_file"],
            "repeat_interval_ms": flat["repeat_interval_ms"],
        },
    }

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)

    return output_path
