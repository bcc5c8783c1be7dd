"""
Toolchain bootstrap orchestration.
"""

from .installer import (
    MAVEN,
    BootstrapResult,
    MavenBootstrapper,
    ToolchainDistribution,
    bootstrap,
)
from .system_detector import SystemMavenDetector

__all__ = [
    "MAVEN",
    "BootstrapResult",
    "MavenBootstrapper",
    "ToolchainDistribution",
    "bootstrap",
    "SystemMavenDetector",
]
