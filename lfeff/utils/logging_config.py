"""
Logging and Warning Configuration Utilities

This module provides centralized control over warning messages and
progress bars throughout the efficiency analysis.

Usage:
    from lfeff.utils.logging_config import suppress_warnings
    suppress_warnings()  # Suppress all warnings by default

    # Or with more control:
    suppress_warnings(level='error')  # Only show errors
    suppress_warnings(level='default')  # Show all warnings

    # Via environment variable:
    export ANALYSIS_WARNINGS=on  # Show warnings
    export ANALYSIS_WARNINGS=off  # Suppress warnings (default)
"""

import logging
import os
import warnings
from typing import Literal

import numpy as np

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging level"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger("LFEfficiencies")


def suppress_warnings(level: Literal["off", "error", "default", "all"] = "off") -> str:
    """
    Configure warning levels for the analysis.

    Args:
        level: Warning level to set
            - 'off': Suppress all warnings (default for the CLI)
            - 'error': Turn warnings into errors
            - 'default': Show important warnings but filter common noise
            - 'all': Show everything (useful for debugging)

    Environment variable ANALYSIS_WARNINGS overrides the level parameter.

    Returns:
        The level that was applied
    """
    # Check environment variable override
    env_level = os.environ.get("ANALYSIS_WARNINGS", "").lower()
    if env_level in ["on", "yes", "true", "1"]:
        level = "all"
    elif env_level in ["off", "no", "false", "0"]:
        level = "off"
    elif env_level in ["error", "default"]:
        level = env_level

    if level == "off":
        warnings.filterwarnings("ignore")
        np.seterr(all="ignore")

    elif level == "error":
        warnings.filterwarnings("error")
        warnings.filterwarnings("ignore", category=DeprecationWarning)
        warnings.filterwarnings("ignore", category=FutureWarning)

    elif level == "default":
        warnings.filterwarnings("default")
        warnings.filterwarnings("ignore", category=DeprecationWarning)
        warnings.filterwarnings("ignore", message=".*uproot.*")
        warnings.filterwarnings("ignore", message=".*awkward.*")

    elif level == "all":
        warnings.filterwarnings("default")
        np.seterr(all="warn")

    _suppress_library_warnings(level)
    return level


def _suppress_library_warnings(level: str) -> None:
    """Suppress known noisy warnings from specific libraries."""
    if level in ["off", "error", "default"]:
        warnings.filterwarnings("ignore", module="awkward.*")
        warnings.filterwarnings("ignore", module="vector.*")
        warnings.filterwarnings("ignore", message=".*Matplotlib.*")


def enable_progress_bars() -> bool:
    """
    Check if progress bars should be enabled.

    Can be controlled via ANALYSIS_PROGRESS environment variable.
    """
    env_progress = os.environ.get("ANALYSIS_PROGRESS", "on").lower()
    return env_progress in ["on", "yes", "true", "1"]


def get_tqdm_kwargs(desc: str = "", **kwargs) -> dict:
    """
    Get standard kwargs for tqdm progress bars with consistent styling.

    Args:
        desc: Description for the progress bar
        **kwargs: Additional tqdm parameters

    Returns:
        Dictionary of tqdm parameters
    """
    default_kwargs = {
        "desc": desc,
        "unit": "ev",
        "ncols": 80,
        "bar_format": "{l_bar}{bar}| {n_fmt} [{elapsed}, {rate_fmt}]",
        "disable": not enable_progress_bars(),
    }
    default_kwargs.update(kwargs)
    return default_kwargs
