"""
Paths Module

Resolves the Retrofit data and log directories.
"""

import os
from pathlib import Path


def get_retrofit_data_dir() -> Path:
    """
    Return the Retrofit data directory (default: ~/Retrofit).

    The RETROFIT_DATA_DIR environment variable overrides the default, and is
    what the test suite uses to keep logs and downloads out of the home dir.
    """
    override = os.environ.get("RETROFIT_DATA_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / "Retrofit"


def get_retrofit_logs_dir() -> Path:
    """Return the directory log files are written to."""
    return get_retrofit_data_dir() / "logs"


def get_retrofit_downloads_dir() -> Path:
    """Return the directory wrapper archives are cached in."""
    return get_retrofit_data_dir() / "downloads"
