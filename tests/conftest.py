"""
Pytest configuration and shared fixtures for mvnboot tests.
"""

import io
import tarfile
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

from mvnboot.core.config import BootstrapConfig, load_config
from mvnboot.core.exceptions import DownloadError
from mvnboot.core.transport import Transport

POM_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>org.example</groupId>
  <artifactId>demo</artifactId>
  <version>1.0.0-SNAPSHOT</version>
  <properties>
    <java.version>17</java.version>
    <maven.version>{version}</maven.version>
  </properties>
</project>
"""


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


# ============================================================================
# Fake Transport
# ============================================================================


class FakeTransport(Transport):
    """In-memory transport serving a fixed set of URLs and recording calls."""

    name = "fake"

    def __init__(
        self,
        resources: Optional[Dict[str, bytes]] = None,
        available: bool = True,
        name: str = "fake",
    ):
        super().__init__(timeout=1)
        self.resources = dict(resources or {})
        self.available = available
        self.name = name
        self.calls = []

    def is_available(self) -> bool:
        return self.available

    def probe(self, url: str) -> bool:
        self.calls.append(("probe", url))
        return url in self.resources

    def fetch(self, url: str, destination: Path, attempts: int = 1) -> None:
        self.calls.append(("fetch", url, attempts))
        if url not in self.resources:
            raise DownloadError("404 Not Found", resource=url)
        Path(destination).write_bytes(self.resources[url])


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    """Factory for FakeTransport instances."""
    return FakeTransport


# ============================================================================
# Archives and Projects
# ============================================================================


def build_tarball(members: Dict[str, bytes], executable: tuple = ()) -> bytes:
    """Build a .tar.gz in memory from name -> content."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = 0o755 if name in executable else 0o644
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


@pytest.fixture
def maven_tarball() -> Callable[[str], bytes]:
    """Factory building a minimal Maven binary distribution tarball."""

    def _build(version: str = "3.8.8") -> bytes:
        root = f"apache-maven-{version}"
        return build_tarball(
            {
                f"{root}/bin/mvn": b"#!/bin/sh\necho 'Apache Maven " + version.encode() + b"'\n",
                f"{root}/bin/mvn.cmd": b"@echo off\r\n",
                f"{root}/conf/settings.xml": b"<settings/>\n",
            },
            executable=(f"{root}/bin/mvn",),
        )

    return _build


@pytest.fixture
def make_tarball() -> Callable[..., bytes]:
    """Factory building arbitrary .tar.gz archives."""
    return build_tarball


@pytest.fixture
def maven_project(tmp_path: Path) -> Path:
    """Project root with a pom.xml declaring Maven 3.8.8."""
    project = tmp_path / "project"
    project.mkdir()
    (project / "pom.xml").write_text(POM_TEMPLATE.format(version="3.8.8"))
    return project


@pytest.fixture
def write_pom() -> Callable[[Path, str], Path]:
    """Write a pom.xml declaring the given Maven version."""

    def _write(project: Path, version: str) -> Path:
        pom = project / "pom.xml"
        pom.write_text(POM_TEMPLATE.format(version=version))
        return pom

    return _write


@pytest.fixture
def bootstrap_config(maven_project: Path) -> BootstrapConfig:
    """Configuration for maven_project, isolated from the real environment."""
    return load_config(maven_project, environ={})
