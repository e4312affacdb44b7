"""
YAML configuration access for engine assumptions
"""
import os
from functools import lru_cache
from typing import Any, Dict

import yaml

from utils.logger import setup_logger

logger = setup_logger(__name__)

CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'config')
ENGINE_CONFIG = 'engine_assumptions.yaml'


@lru_cache(maxsize=None)
def _read_config(filepath: str) -> Dict[str, Any]:
    try:
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading {os.path.basename(filepath)}: {e}")
        return {}


def load_config(filename: str = ENGINE_CONFIG, config_dir: str = CONFIG_DIR) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Parsed files are cached per path; callers get a shallow copy so they can
    layer overrides without touching the cache.

    Args:
        filename: File name inside the config directory
        config_dir: Directory to read from

    Returns:
        Parsed configuration, or an empty dict if the file is missing or invalid
    """
    return dict(_read_config(os.path.join(config_dir, filename)))


def get_section(*keys: str, filename: str = ENGINE_CONFIG) -> Dict[str, Any]:
    """Walk nested sections, returning {} where any level is absent"""
    section: Any = load_config(filename)
    for key in keys:
        if not isinstance(section, dict):
            return {}
        section = section.get(key, {})
    return section if isinstance(section, dict) else {}
