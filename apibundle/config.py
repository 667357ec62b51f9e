#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'APIBUNDLE_CONFIG'
ENV_PREFIX = 'APIBUNDLE_'

DEBUG_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. APIBUNDLE_CONFIG environment variable
    2. ~/.apibundle/config.{json,toml,yaml,yml}
    """
    if CONFIG_ENV_VAR in os.environ:
        path = Path(os.environ[CONFIG_ENV_VAR]).expanduser()
        if path.exists():
            return path

    config_dir = Path.home() / '.apibundle'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 10:  # Not empty/trivial
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                # Default to JSON format
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            if isinstance(file_config, dict):
                config = merge_configs(config, file_config)
            else:
                logger.error(f"Ignoring config in {config_path}: top level is not a mapping")
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config):
    """Save configuration to file.

    Returns:
        Path the configuration was written to
    """
    config_path = get_config_path()

    # Create directory if it doesn't exist
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        if config_path.suffix.lower() in ['.toml']:
            # tomllib is read-only
            logger.warning("TOML config is read-only. Saving as JSON instead.")
            config_path = config_path.with_suffix('.json')
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "workspace": {
            "base_dir": "",   # Empty: system temp directory
            "keep": False     # Keep workspaces after CLI operations
        },
        "catalog": {
            "path": "~/.apibundle/catalog",
            "supported_tiers": ["Bronze", "Silver", "Gold", "Unlimited"]
        },
        "actor": {
            "username": "admin"
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        }
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def _coerce_env_value(value, current=None):
    """Convert an environment string to the type of the value it replaces."""
    if isinstance(current, list):
        return [item.strip() for item in value.split(',') if item.strip()]
    if value.lower() in ('true', '1', 'yes', 'on'):
        return True
    if value.lower() in ('false', '0', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: APIBUNDLE_SECTION_KEY
    For example: APIBUNDLE_WORKSPACE_KEEP=true

    List values take a comma-separated string:
    APIBUNDLE_CATALOG_SUPPORTED_TIERS=Gold,Silver
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == CONFIG_ENV_VAR:
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            # At the end of the env var: this is the key to set
            if i + best_match_len == len(key_parts):
                current_level[matched_key] = _coerce_env_value(value, current_level[matched_key])
                break

            if not isinstance(current_level[matched_key], dict):
                # Path conflict: env var is longer but the value is not a section
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


def setup_logging(config=None, debug=False):
    """
    Configure root logging on stderr.

    Uses the ``logging`` section of the configuration; ``debug``
    switches to DEBUG with a timestamped format.
    """
    log_config = (config or {}).get('logging', {})
    if debug:
        level = logging.DEBUG
        fmt = DEBUG_LOG_FORMAT
    else:
        level = getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO)
        fmt = log_config.get('format', '%(levelname)s: %(message)s')

    logging.basicConfig(
        level=level,
        format=fmt,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
