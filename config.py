"""Configuration and constants for spot counting."""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

SUPPORTED_EXTS = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")

DEFAULT_EPSILON = 50
DEFAULT_LOWER_BOUND = 4
DEFAULT_UPPER_BOUND = 4
DEFAULT_OUTPUT_DIR = Path("out")

EPSILON_RANGE = (0, 255)


def default_config() -> Dict[str, object]:
    return {
        "epsilon": DEFAULT_EPSILON,
        "lower_bound": DEFAULT_LOWER_BOUND,
        "upper_bound": DEFAULT_UPPER_BOUND,
        "output_dir": str(DEFAULT_OUTPUT_DIR),
    }


def load_detection_config(config_file: Optional[Path] = None) -> Dict[str, object]:
    """Load detection parameters from a JSON config file.

    Args:
        config_file: Optional path to a JSON object with any of ``epsilon``,
            ``lower_bound``, ``upper_bound`` and ``output_dir``

    Returns:
        Dictionary with every key present; missing keys take the defaults
        (epsilon 50, radii 4-4, output dir ``out``)
    """
    result = default_config()
    if config_file is None:
        return result

    if not config_file.exists():
        logger.warning("Config file %s not found, using defaults", config_file)
        return result

    try:
        with config_file.open("r", encoding="utf-8") as f:
            config = json.load(f)
        if not isinstance(config, dict):
            raise ValueError("top-level JSON value must be an object")
        result.update({k: v for k, v in config.items() if k in result})
        # Ensure numeric values
        result["epsilon"] = int(result["epsilon"])
        result["lower_bound"] = int(result["lower_bound"])
        result["upper_bound"] = int(result["upper_bound"])
        result["output_dir"] = str(result["output_dir"])
        return result
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        # On error, return defaults
        logger.warning("Invalid config file %s (%s), using defaults", config_file, e)
        return default_config()
