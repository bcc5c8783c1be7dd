"""
Core functionality for mvnboot.

This package contains the install pipeline building blocks that the
orchestrator in ``mvnboot.toolchain`` drives.
"""

from .config import BootstrapConfig, load_config
from .exceptions import (
    EXIT_INTEGRITY_FAILURE,
    BootstrapError,
    ConfigError,
    NetworkError,
    DownloadError,
    IntegrityError,
    ExtractionError,
)
from .version import MavenVersion, parse_version, resolve_version

__all__ = [
    "BootstrapConfig",
    "load_config",
    "EXIT_INTEGRITY_FAILURE",
    "BootstrapError",
    "ConfigError",
    "NetworkError",
    "DownloadError",
    "IntegrityError",
    "ExtractionError",
    "MavenVersion",
    "parse_version",
    "resolve_version",
]
