"""
Pipeline Configuration Module

This module provides a Python interface to pipeline.yaml, the single
source of truth for the numeric constants of the detection pipeline
(input sizes, thresholds, model file names, ONNX Runtime threading).

Usage:
    from docscan.config import get_config, get_setting, get_model_config

    # Get full config
    config = get_config()

    # Get a single value
    threshold = get_setting("heatmap", "threshold")

    # Get model config
    heat = get_model_config("heatmap")

Set DOCSCAN_CONFIG to load an alternative YAML file.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml


# =============================================================================
# Constants
# =============================================================================

# Shipped next to this module: src/docscan/pipeline.yaml
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "pipeline.yaml"

CONFIG_ENV_VAR = "DOCSCAN_CONFIG"


def get_config_path() -> Path:
    """
    Resolve the configuration file path.

    Returns:
        Path from DOCSCAN_CONFIG if set, otherwise the packaged pipeline.yaml
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return _DEFAULT_CONFIG_PATH


# =============================================================================
# Configuration Loading
# =============================================================================

@lru_cache(maxsize=1)
def get_config() -> Dict[str, Any]:
    """
    Load and cache the pipeline configuration.

    Returns:
        Complete pipeline configuration dictionary

    Raises:
        FileNotFoundError: If the configuration file is not found
        yaml.YAMLError: If YAML parsing fails

    Example:
        >>> config = get_config()
        >>> config["metadata"]["name"]
        'docscan'
    """
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Pipeline configuration not found: {config_path}\n"
            f"Expected location: {config_path.absolute()}"
        )

    with open(config_path, "r") as f:
        return yaml.safe_load(f)


def reload_config() -> Dict[str, Any]:
    """
    Force reload of configuration (clears cache).

    Useful for testing or when DOCSCAN_CONFIG changes at runtime.

    Returns:
        Freshly loaded configuration dictionary
    """
    get_config.cache_clear()
    return get_config()


# =============================================================================
# Section Access
# =============================================================================

def get_section(section: str) -> Dict[str, Any]:
    """
    Get all settings of a top-level section.

    Args:
        section: Section name (e.g., "heatmap", "onnx_runtime")

    Returns:
        Dictionary of all values in the section

    Raises:
        KeyError: If section not found

    Example:
        >>> get_section("onnx_runtime")["intra_op_num_threads"]
        2
    """
    config = get_config()

    if section not in config:
        available = list(config.keys())
        raise KeyError(
            f"Section '{section}' not found. Available: {available}"
        )

    return config[section]


def get_setting(section: str, key: str) -> Any:
    """
    Get a single setting by section and key.

    Args:
        section: Top-level section name (e.g., "heatmap")
        key: Key within the section (e.g., "threshold")

    Returns:
        The configured value

    Raises:
        KeyError: If section or key not found

    Example:
        >>> get_setting("heatmap", "threshold")
        0.3
        >>> get_setting("preprocessing", "input_size")
        256
    """
    section_data = get_section(section)

    if key not in section_data:
        available = list(section_data.keys())
        raise KeyError(
            f"Key '{key}' not found in {section}. "
            f"Available keys: {available}"
        )

    return section_data[key]


# =============================================================================
# Model Configuration
# =============================================================================

def get_model_config(model_name: str) -> Dict[str, Any]:
    """
    Get configuration for a specific model.

    Args:
        model_name: Model identifier ("heatmap" or "point")

    Returns:
        Model configuration dictionary (file, input_name, output_names)

    Example:
        >>> get_model_config("heatmap")["file"]
        'model_heat.onnx'
    """
    return get_setting("models", model_name)


def get_model_names() -> List[str]:
    """
    Get list of all model names.

    Example:
        >>> get_model_names()
        ['heatmap', 'point']
    """
    return list(get_section("models").keys())


def get_aspect_ratio() -> float:
    """Output aspect ratio (width / height) for rectified documents."""
    numerator, denominator = get_setting("perspective", "aspect_ratio")
    return float(numerator) / float(denominator)


# =============================================================================
# Validation
# =============================================================================

def validate_config() -> List[str]:
    """
    Validate the pipeline configuration.

    Returns:
        List of validation error messages (empty if valid)

    Example:
        >>> errors = validate_config()
        >>> if errors:
        ...     print("Validation failed:", errors)
    """
    errors = []

    try:
        config = get_config()
    except (FileNotFoundError, yaml.YAMLError) as e:
        return [f"Failed to load config: {e}"]

    required_sections = [
        "preprocessing",
        "heatmap",
        "points",
        "perspective",
        "models",
        "onnx_runtime",
        "storage",
    ]

    for section in required_sections:
        if section not in config:
            errors.append(f"Missing required section: {section}")

    models = config.get("models", {})
    for model_name in ["heatmap", "point"]:
        if model_name not in models:
            errors.append(f"Missing model configuration: {model_name}")
        else:
            for field in ["file", "input_name", "output_names"]:
                if field not in models[model_name]:
                    errors.append(f"Model {model_name} missing field: {field}")

    heatmap = config.get("heatmap", {})
    threshold = heatmap.get("threshold")
    if threshold is not None and not 0.0 <= threshold <= 1.0:
        errors.append(f"heatmap.threshold out of range [0, 1]: {threshold}")

    ratio = config.get("perspective", {}).get("aspect_ratio")
    if ratio is not None and (len(ratio) != 2 or min(ratio) <= 0):
        errors.append(f"perspective.aspect_ratio must be two positive numbers: {ratio}")

    onnx = config.get("onnx_runtime", {})
    for field in ["intra_op_num_threads", "inter_op_num_threads"]:
        if field not in onnx:
            errors.append(f"Missing onnx_runtime field: {field}")

    return errors
