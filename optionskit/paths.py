"""Filesystem path helpers for the OptionsKit backend."""

import os

from optionskit.config import DATA_DIR_ENV


def get_package_dir() -> str:
    """Return the absolute path to the optionskit package directory."""
    return os.path.dirname(os.path.realpath(__file__))


def get_data_dir() -> str:
    """Return the directory holding persisted option records."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return os.path.abspath(override)
    return os.path.join(get_package_dir(), "data")


def data_path(filename: str) -> str:
    """Return an absolute path to a file inside the data directory."""
    return os.path.join(get_data_dir(), filename)
