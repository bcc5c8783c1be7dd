"""
Maven bootstrap orchestration.

Determines whether the project's required Maven version is already usable
and, if not, drives the install pipeline:

    MirrorSelector -> Fetcher -> ChecksumVerifier -> ArchiveInstaller

Repeated invocations are idempotent: once the binary exists under the
install root, the run returns it without touching the network.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from mvnboot.core.artifacts import CHECKSUM_SUFFIX
from mvnboot.core.config import BootstrapConfig
from mvnboot.core.download import Fetcher
from mvnboot.core.filesystem import ArchiveInstaller
from mvnboot.core.mirrors import Mirror, MirrorSelector
from mvnboot.core.transport import Transport, create_transports, first_available
from mvnboot.core.verification import ChecksumVerifier
from mvnboot.core.version import MavenVersion, resolve_version_from_file
from mvnboot.toolchain.system_detector import SystemMavenDetector

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"


@dataclass(frozen=True)
class ToolchainDistribution:
    """Naming scheme of a toolchain's binary distribution."""

    name: str = "apache-maven"
    binary: str = "mvn.cmd" if IS_WINDOWS else "mvn"
    remote_dir: str = "maven/maven-{major}/{version}/binaries"
    tarball: str = "{name}-{version}-bin.tar.gz"

    def install_dir_name(self, version: MavenVersion) -> str:
        return f"{self.name}-{version}"

    @property
    def binary_path(self) -> str:
        """Binary location relative to the install directory."""
        return f"bin/{self.binary}"

    def tarball_name(self, version: MavenVersion) -> str:
        return self.tarball.format(name=self.name, version=version)

    def artifact_path(self, version: MavenVersion) -> str:
        """Artifact path relative to a mirror root."""
        remote_dir = self.remote_dir.format(major=version.major, version=version)
        return f"{remote_dir}/{self.tarball_name(version)}"


MAVEN = ToolchainDistribution()


@dataclass
class BootstrapResult:
    """Outcome of a bootstrap run."""

    binary: Path
    """Path to the usable toolchain binary"""

    version: MavenVersion
    """Version the project requires"""

    source: str
    """'installed' (already under install root), 'system' (on PATH), or 'downloaded'"""

    mirror: Optional[Mirror] = None
    """Mirror the toolchain was downloaded from, if any"""


class MavenBootstrapper:
    """
    Make the project's Maven version available.

    Example:
        >>> config = load_config(Path("."))
        >>> result = MavenBootstrapper(config).bootstrap()
        >>> print(result.binary)
        /path/to/project/build/apache-maven-3.8.8/bin/mvn
    """

    def __init__(
        self,
        config: BootstrapConfig,
        transports: Optional[List[Transport]] = None,
        detector: Optional[SystemMavenDetector] = None,
        distribution: ToolchainDistribution = MAVEN,
    ):
        """
        Args:
            config: Settings for this run
            transports: Transports in preference order (default: from config)
            detector: PATH detector (default: looks for ``mvn``)
            distribution: Naming scheme of the distribution
        """
        self.config = config
        self.transports = (
            transports
            if transports is not None
            else create_transports(config.transports, timeout=config.timeout)
        )
        self.detector = detector or SystemMavenDetector(timeout=config.timeout)
        self.distribution = distribution
        self.installer = ArchiveInstaller(config.install_root)

    def resolve_version(self) -> MavenVersion:
        """Required version declared by the project."""
        return resolve_version_from_file(self.config.pom, self.config.version_marker)

    def expected_binary(self, version: MavenVersion) -> Path:
        """Where the binary lives once installed under the install root."""
        return (
            self.config.install_root
            / self.distribution.install_dir_name(version)
            / self.distribution.binary_path
        )

    def bootstrap(self) -> BootstrapResult:
        """
        Return a usable toolchain binary, installing it if necessary.

        Raises:
            ConfigError: If the required version cannot be determined
            DownloadError: If no mirror or transport yields the artifact
            IntegrityError: If the artifact fails checksum verification
            ExtractionError: If the archive cannot be installed
        """
        version = self.resolve_version()
        binary = self.expected_binary(version)

        if binary.is_file():
            logger.debug(f"Using installed {self.distribution.name} {version}: {binary}")
            return BootstrapResult(binary=binary, version=version, source="installed")

        if not self.config.force:
            system_binary = self.detector.find_matching(version)
            if system_binary is not None:
                logger.info(f"Using `{self.distribution.binary}` from path: {system_binary}")
                return BootstrapResult(
                    binary=system_binary, version=version, source="system"
                )

        return self._install(version)

    def _install(self, version: MavenVersion) -> BootstrapResult:
        distribution = self.distribution
        artifact_path = distribution.artifact_path(version)

        selector = MirrorSelector(
            first_available(self.transports), primary=self.config.mirror
        )
        mirror = selector.select(artifact_path)

        tarball_path = self.config.install_root / distribution.tarball_name(version)
        checksum_path = tarball_path.with_name(f"{tarball_path.name}.{CHECKSUM_SUFFIX}")

        fetcher = Fetcher(self.transports, max_retries=self.config.max_retries)
        verifier = ChecksumVerifier()

        logger.info(f"Installing {distribution.name} {version} into {self.config.install_root}")
        with self.installer.staged([tarball_path, checksum_path]):
            tarball = fetcher.fetch(
                mirror.artifact_url(artifact_path),
                tarball_path,
                checksum_url=mirror.sidecar_url(artifact_path, CHECKSUM_SUFFIX),
                checksum_destination=checksum_path,
                require_checksum=self.config.require_checksum,
            )
            verifier.verify(tarball)
            binary = self.installer.install(
                tarball.path,
                distribution.install_dir_name(version),
                distribution.binary_path,
            )

        logger.info(f"Installed {distribution.name} {version}: {binary}")
        return BootstrapResult(
            binary=binary, version=version, source="downloaded", mirror=mirror
        )


def bootstrap(config: BootstrapConfig) -> BootstrapResult:
    """
    Convenience function running a single bootstrap.

    Example:
        >>> from mvnboot.toolchain.installer import bootstrap
        >>> bootstrap(load_config(Path("."))).binary
    """
    return MavenBootstrapper(config).bootstrap()
