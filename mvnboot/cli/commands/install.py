"""
Install command implementation.

Makes the Maven version the project requires available and prints the
path of its binary on stdout.
"""

import logging

from mvnboot.cli.utils import config_from_args
from mvnboot.toolchain.installer import MavenBootstrapper

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)

    Raises:
        BootstrapError: If any pipeline stage fails
    """
    config = config_from_args(args)
    result = MavenBootstrapper(config).bootstrap()

    if result.mirror is not None:
        logger.debug(f"Downloaded from {result.mirror.url} ({result.mirror.kind.value})")

    print(result.binary)
    return 0
