# utils/config.py
"""
Configuration loader for the JTL analysis engine.

Reads the YAML configuration that tunes parser defaults, chart bucketing and
error analysis. Lookup order:
  1. An explicit path passed to load_config()
  2. The JTLANALYSIS_CONFIG environment variable (a .env file is honoured)
  3. The packaged jtlanalysis/config.yaml

The loaded configuration is validated and cached at module level.
"""

import os
import copy
import logging
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
CONFIG_FILENAME = "config.yaml"
CONFIG_ENV_VAR = "JTLANALYSIS_CONFIG"
CONFIG_SECTION = "jtl_analysis"

# Defaults merged underneath whatever the YAML file provides
DEFAULTS: Dict[str, Dict[str, Any]] = {
    "parser": {
        "default_label": "Unknown",
        "default_response_code": "200",
        "default_thread_name": "Thread Group 1-1",
        "default_elapsed_ms": 100,
        "synthetic_timestamp_step_ms": 1000,
    },
    "chart": {
        "bucket_seconds": 30,
        "time_format": "%Y-%m-%d %H:%M:%S",
        "fill_gaps": True,
        "max_buckets": 1000,
    },
    "errors": {
        "top_errors_limit": 5,
        "fallback_message": "Unknown error",
    },
}

# Module-level cache for the loaded config
_CONFIG_CACHE: Optional[Dict[str, Any]] = None


def load_config(config_path: Optional[str] = None, force_reload: bool = False) -> Dict[str, Any]:
    """
    Load, merge and validate the analysis configuration.

    Args:
        config_path: Optional explicit path to a YAML file. Bypasses the cache.
        force_reload: If True, re-read the file even when a cached copy exists.

    Returns:
        Dict with the 'parser', 'chart' and 'errors' sections fully populated.

    Raises:
        FileNotFoundError: If the resolved configuration file does not exist.
        ValueError: If the file cannot be parsed or fails validation.
    """
    global _CONFIG_CACHE

    if config_path is None and _CONFIG_CACHE is not None and not force_reload:
        return _CONFIG_CACHE

    resolved_path = _resolve_config_path(config_path)
    if not os.path.exists(resolved_path):
        raise FileNotFoundError(f"Configuration file not found: {resolved_path}")

    with open(resolved_path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing '{resolved_path}': {e}")

    config = _merge_with_defaults(raw)
    _validate_config(config)

    logger.debug("Configuration loaded from '%s'.", resolved_path)
    if config_path is None:
        _CONFIG_CACHE = config
    return config


def get_section(name: str, config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return one named section ('parser', 'chart', 'errors') of the config."""
    if config is None:
        config = load_config()
    return config.get(name, DEFAULTS[name])


def _resolve_config_path(config_path: Optional[str]) -> str:
    if config_path:
        return config_path

    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return env_path

    # config.yaml lives at the package root (one level up from utils/)
    package_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    return os.path.join(package_root, CONFIG_FILENAME)


def _merge_with_defaults(raw: Any) -> Dict[str, Any]:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"{CONFIG_FILENAME} must contain a YAML mapping (dict) at the root level.")

    section = raw.get(CONFIG_SECTION, {}) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{CONFIG_SECTION}' must be a mapping.")

    merged = copy.deepcopy(DEFAULTS)
    for name, defaults in merged.items():
        overrides = section.get(name) or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"'{CONFIG_SECTION}.{name}' must be a mapping.")
        defaults.update({k: v for k, v in overrides.items() if v is not None})
    return merged


def _validate_config(config: Dict[str, Any]) -> None:
    """
    Validate value types and ranges.

    Raises:
        ValueError: If any value is out of range.
    """
    bucket_seconds = config["chart"]["bucket_seconds"]
    if isinstance(bucket_seconds, bool) or not isinstance(bucket_seconds, int) or bucket_seconds <= 0:
        raise ValueError(
            f"'chart.bucket_seconds' must be a positive integer, got {bucket_seconds!r}."
        )

    limit = config["errors"]["top_errors_limit"]
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValueError(
            f"'errors.top_errors_limit' must be a positive integer, got {limit!r}."
        )

    max_buckets = config["chart"]["max_buckets"]
    if isinstance(max_buckets, bool) or not isinstance(max_buckets, int) or max_buckets <= 0:
        raise ValueError(f"'chart.max_buckets' must be a positive integer, got {max_buckets!r}.")

    elapsed = config["parser"]["default_elapsed_ms"]
    if isinstance(elapsed, bool) or not isinstance(elapsed, int) or elapsed < 0:
        raise ValueError(f"'parser.default_elapsed_ms' must be a non-negative integer, got {elapsed!r}.")

    # synthetic timestamps must stay strictly decreasing
    step = config["parser"]["synthetic_timestamp_step_ms"]
    if isinstance(step, bool) or not isinstance(step, int) or step <= 0:
        raise ValueError(f"'parser.synthetic_timestamp_step_ms' must be a positive integer, got {step!r}.")
