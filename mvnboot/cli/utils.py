"""
Shared utilities for CLI commands.
"""

import logging

from mvnboot.core.config import BootstrapConfig, load_config

logger = logging.getLogger(__name__)


def config_from_args(args) -> BootstrapConfig:
    """
    Build the run configuration from parsed arguments.

    Command-specific flags that were not given are left to the config file
    and environment.

    Raises:
        ConfigError: If any configuration source is invalid
    """
    overrides = {
        "install_root": getattr(args, "install_root", None),
        "mirror": getattr(args, "mirror", None),
        "transports": getattr(args, "transports", None),
        "require_checksum": getattr(args, "require_checksum", None),
        "force": getattr(args, "force", None),
    }

    config = load_config(args.project_root, config_file=args.config, **overrides)
    logger.debug(f"Configuration: {config}")
    return config
