"""
Version command implementation.

Shows the Maven version declared by the project.
"""

import logging

from mvnboot.cli.utils import config_from_args
from mvnboot.core.version import resolve_version_from_file

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the version command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = config_from_args(args)
    version = resolve_version_from_file(config.pom, config.version_marker)

    if args.normalized:
        print(version.normalized)
    else:
        print(f"{version} ({version.normalized})")
    return 0
