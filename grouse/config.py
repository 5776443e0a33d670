#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

logger = logging.getLogger("grouse")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. GROUSE_CONFIG environment variable
    2. ~/.grouse/ directory
    """
    # Check for environment variable override
    if 'GROUSE_CONFIG' in os.environ:
        path = Path(os.environ['GROUSE_CONFIG'])
        if path.exists():
            return path
        logger.warning(f"GROUSE_CONFIG points to missing file {path}; ignoring it")

    grouse_dir = Path.home() / '.grouse'
    for filename in CONFIG_FILENAMES:
        path = grouse_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path
    return grouse_dir / 'config.json'


def read_config_file(config_path):
    """Parse a JSON, TOML or YAML config file into a dict."""
    suffix = config_path.suffix.lower()
    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                file_config = tomllib.load(f)
        elif suffix in ['.yaml', '.yml']:
            with open(config_path, 'r') as f:
                file_config = yaml.safe_load(f)
        else:
            # Default to JSON format
            with open(config_path, 'r') as f:
                file_config = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # tomllib.TOMLDecodeError and json.JSONDecodeError are ValueErrors
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e

    if file_config is None:
        return {}
    if not isinstance(file_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return file_config


def load_config():
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        logger.debug(f"Loading config from {config_path}")
        config = merge_configs(config, read_config_file(config_path))

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def get_default_config():
    """Get default configuration."""
    return {
        "git": {
            "executable": "git",
        },
        "build": {
            "command": "hugo",            # shell-quoted; build args are appended
            "destination_flag": "--destination",
        },
        "diff": {
            "command": "diff",
            "tool_command": "difftool",
        },
        "scratch": {
            "directory": "",              # empty: <git-dir>/grouse
        },
        "submodules": {
            "strategies": ["local_worktree", "shared_local_clone", "remote_fetch"],
            "max_depth": 32,
        },
        "output": {
            "author_name": "Grouse Diff",
            "author_email": "grouse-diff@example.com",
        },
        "logging": {
            "level": "WARNING",
            "format": "%(levelname)s: %(message)s"
        },
    }


def configure_logging(config, debug=False):
    """Send grouse's log records to stderr at the configured level."""
    logging_config = config.get("logging", {})
    level_name = "DEBUG" if debug else str(logging_config.get("level", "WARNING")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigError(f"Unknown logging level: {level_name}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(logging_config.get("format", "%(levelname)s: %(message)s")))
    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    result = base_config.copy()

    for key, value in override_config.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.

    Environment variables should be in the format:
    GROUSE_SECTION_KEY=value

    For example:
    GROUSE_BUILD_COMMAND="hugo --environment staging"
    GROUSE_SUBMODULES_MAX_DEPTH=8

    Args:
        config (dict): Configuration dictionary

    Returns:
        dict: Configuration with environment overrides applied
    """
    env_prefix = "GROUSE_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == 'GROUSE_CONFIG':
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', '1', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', '0', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config
