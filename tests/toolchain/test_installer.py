"""
Tests for MavenBootstrapper orchestration.

Every run goes through a FakeTransport so no network is touched; the
PATH detector is a Mock so the host's own mvn never interferes.
"""

import hashlib
from pathlib import Path
from unittest.mock import Mock

import pytest

from mvnboot.core.exceptions import ConfigError, DownloadError, ExtractionError, IntegrityError
from mvnboot.core.mirrors import ARCHIVE_MIRROR, PRIMARY_MIRROR, MirrorKind
from mvnboot.core.version import MavenVersion
from mvnboot.toolchain.installer import MAVEN, MavenBootstrapper, ToolchainDistribution
from mvnboot.toolchain.system_detector import SystemMavenDetector

ARTIFACT = "maven/maven-3/3.8.8/binaries/apache-maven-3.8.8-bin.tar.gz"
PRIMARY_URL = f"{PRIMARY_MIRROR}/{ARTIFACT}?action=download"
PRIMARY_SHA_URL = f"{PRIMARY_MIRROR}/{ARTIFACT}.sha512?action=download"
ARCHIVE_URL = f"{ARCHIVE_MIRROR}/{ARTIFACT}"
ARCHIVE_SHA_URL = f"{ARCHIVE_URL}.sha512"


@pytest.fixture
def detector():
    detector = Mock(spec=SystemMavenDetector)
    detector.find_matching.return_value = None
    return detector


@pytest.fixture
def tarball_bytes(maven_tarball):
    return maven_tarball("3.8.8")


def sha512(data: bytes) -> bytes:
    return hashlib.sha512(data).hexdigest().encode()


def leftover_downloads(install_root: Path):
    if not install_root.exists():
        return []
    return sorted(p.name for p in install_root.iterdir() if p.is_file())


class TestToolchainDistribution:
    """Test the Maven naming scheme."""

    def test_paths(self):
        version = MavenVersion(3, 8, 8)
        distribution = ToolchainDistribution(binary="mvn")

        assert distribution.install_dir_name(version) == "apache-maven-3.8.8"
        assert distribution.tarball_name(version) == "apache-maven-3.8.8-bin.tar.gz"
        assert distribution.artifact_path(version) == ARTIFACT
        assert distribution.binary_path == "bin/mvn"

    def test_major_version_in_remote_dir(self):
        path = MAVEN.artifact_path(MavenVersion(4, 0, 0))
        assert path.startswith("maven/maven-4/4.0.0/binaries/")


class TestBootstrap:
    """Test MavenBootstrapper.bootstrap end to end."""

    def test_downloads_from_primary(self, bootstrap_config, make_transport, detector, tarball_bytes):
        transport = make_transport(
            {PRIMARY_URL: tarball_bytes, PRIMARY_SHA_URL: sha512(tarball_bytes)}
        )
        bootstrapper = MavenBootstrapper(
            bootstrap_config,
            transports=[transport],
            detector=detector,
            distribution=ToolchainDistribution(binary="mvn"),
        )

        result = bootstrapper.bootstrap()

        install_root = bootstrap_config.install_root
        assert result.binary == install_root / "apache-maven-3.8.8" / "bin" / "mvn"
        assert result.binary.is_file()
        assert result.source == "downloaded"
        assert result.version == MavenVersion(3, 8, 8)
        assert result.mirror.kind is MirrorKind.PRIMARY
        assert [c for c in transport.calls if c[0] == "fetch"] == [
            ("fetch", PRIMARY_URL, 3),
            ("fetch", PRIMARY_SHA_URL, 3),
        ]
        assert leftover_downloads(install_root) == []

    def test_installed_binary_short_circuits(self, bootstrap_config, make_transport, detector):
        binary = bootstrap_config.install_root / "apache-maven-3.8.8" / "bin" / "mvn"
        binary.parent.mkdir(parents=True)
        binary.write_text("#!/bin/sh\n")
        transport = make_transport({})

        result = MavenBootstrapper(
            bootstrap_config,
            transports=[transport],
            detector=detector,
            distribution=ToolchainDistribution(binary="mvn"),
        ).bootstrap()

        assert result.binary == binary
        assert result.source == "installed"
        assert transport.calls == []
        detector.find_matching.assert_not_called()

    def test_falls_back_to_archive(self, bootstrap_config, make_transport, detector, tarball_bytes):
        transport = make_transport(
            {ARCHIVE_URL: tarball_bytes, ARCHIVE_SHA_URL: sha512(tarball_bytes)}
        )

        result = MavenBootstrapper(
            bootstrap_config,
            transports=[transport],
            detector=detector,
            distribution=ToolchainDistribution(binary="mvn"),
        ).bootstrap()

        assert result.mirror.kind is MirrorKind.FALLBACK
        assert transport.calls == [
            ("probe", PRIMARY_URL),
            ("fetch", ARCHIVE_URL, 3),
            ("fetch", ARCHIVE_SHA_URL, 3),
        ]
        assert result.binary.is_file()

    def test_bad_checksum_installs_nothing(self, bootstrap_config, make_transport, detector, tarball_bytes):
        transport = make_transport(
            {PRIMARY_URL: tarball_bytes, PRIMARY_SHA_URL: b"0" * 128}
        )
        bootstrapper = MavenBootstrapper(
            bootstrap_config, transports=[transport], detector=detector
        )

        with pytest.raises(IntegrityError) as exc_info:
            bootstrapper.bootstrap()

        install_root = bootstrap_config.install_root
        assert exc_info.value.exit_code == 2
        assert not (install_root / "apache-maven-3.8.8").exists()
        assert leftover_downloads(install_root) == []

    def test_missing_checksum_is_tolerated(self, bootstrap_config, make_transport, detector, tarball_bytes):
        transport = make_transport({PRIMARY_URL: tarball_bytes})

        result = MavenBootstrapper(
            bootstrap_config,
            transports=[transport],
            detector=detector,
            distribution=ToolchainDistribution(binary="mvn"),
        ).bootstrap()

        assert result.binary.is_file()

    def test_missing_checksum_required(self, bootstrap_config, make_transport, detector, tarball_bytes):
        transport = make_transport({PRIMARY_URL: tarball_bytes})
        config = bootstrap_config.with_overrides(require_checksum=True)

        with pytest.raises(DownloadError):
            MavenBootstrapper(config, transports=[transport], detector=detector).bootstrap()

        assert leftover_downloads(config.install_root) == []

    def test_archive_without_binary(self, bootstrap_config, make_transport, make_tarball, detector):
        broken = make_tarball({"apache-maven-3.8.8/conf/settings.xml": b"<settings/>"})
        transport = make_transport({PRIMARY_URL: broken, PRIMARY_SHA_URL: sha512(broken)})

        with pytest.raises(ExtractionError):
            MavenBootstrapper(
                bootstrap_config,
                transports=[transport],
                detector=detector,
                distribution=ToolchainDistribution(binary="mvn"),
            ).bootstrap()

        install_root = bootstrap_config.install_root
        assert not (install_root / "apache-maven-3.8.8").exists()
        assert leftover_downloads(install_root) == []

    def test_second_run_is_offline(self, bootstrap_config, make_transport, detector, tarball_bytes):
        transport = make_transport(
            {PRIMARY_URL: tarball_bytes, PRIMARY_SHA_URL: sha512(tarball_bytes)}
        )
        bootstrapper = MavenBootstrapper(
            bootstrap_config,
            transports=[transport],
            detector=detector,
            distribution=ToolchainDistribution(binary="mvn"),
        )

        first = bootstrapper.bootstrap()
        calls = list(transport.calls)
        second = bootstrapper.bootstrap()

        assert second.binary == first.binary
        assert second.source == "installed"
        assert transport.calls == calls

    def test_matching_system_maven_is_used(self, bootstrap_config, make_transport, detector):
        detector.find_matching.return_value = Path("/usr/bin/mvn")
        transport = make_transport({})

        result = MavenBootstrapper(
            bootstrap_config, transports=[transport], detector=detector
        ).bootstrap()

        assert result.binary == Path("/usr/bin/mvn")
        assert result.source == "system"
        assert transport.calls == []
        detector.find_matching.assert_called_once_with(MavenVersion(3, 8, 8))

    def test_force_ignores_system_maven(self, bootstrap_config, make_transport, detector, tarball_bytes):
        detector.find_matching.return_value = Path("/usr/bin/mvn")
        transport = make_transport(
            {PRIMARY_URL: tarball_bytes, PRIMARY_SHA_URL: sha512(tarball_bytes)}
        )
        config = bootstrap_config.with_overrides(force=True)

        result = MavenBootstrapper(
            config,
            transports=[transport],
            detector=detector,
            distribution=ToolchainDistribution(binary="mvn"),
        ).bootstrap()

        assert result.source == "downloaded"
        detector.find_matching.assert_not_called()

    def test_mirror_override(self, bootstrap_config, make_transport, detector, tarball_bytes):
        url = f"https://dlcdn.example/{ARTIFACT}?action=download"
        transport = make_transport({url: tarball_bytes})
        config = bootstrap_config.with_overrides(mirror="https://dlcdn.example")

        result = MavenBootstrapper(
            config,
            transports=[transport],
            detector=detector,
            distribution=ToolchainDistribution(binary="mvn"),
        ).bootstrap()

        assert result.mirror.url == "https://dlcdn.example"
        assert ("fetch", url, 3) in transport.calls

    def test_undeclared_version(self, bootstrap_config, make_transport, detector):
        bootstrap_config.pom.write_text("<project></project>")
        transport = make_transport({})

        with pytest.raises(ConfigError, match="No <maven.version> declaration"):
            MavenBootstrapper(
                bootstrap_config, transports=[transport], detector=detector
            ).bootstrap()

        assert transport.calls == []

    def test_version_follows_pom(self, bootstrap_config, make_transport, detector, maven_tarball, write_pom):
        write_pom(bootstrap_config.project_root, "3.9.6")
        artifact = "maven/maven-3/3.9.6/binaries/apache-maven-3.9.6-bin.tar.gz"
        data = maven_tarball("3.9.6")
        transport = make_transport({f"{PRIMARY_MIRROR}/{artifact}?action=download": data})

        result = MavenBootstrapper(
            bootstrap_config,
            transports=[transport],
            detector=detector,
            distribution=ToolchainDistribution(binary="mvn"),
        ).bootstrap()

        assert result.binary == (
            bootstrap_config.install_root / "apache-maven-3.9.6" / "bin" / "mvn"
        )
