"""
Required toolchain version resolution.

Reads the version a project asks for from its configuration text (for
Maven projects, the ``<maven.version>`` property in ``pom.xml``) and
normalizes it into a fixed-width numeric code so that versions compare
correctly regardless of how many digits each component has.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from mvnboot.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_VERSION_MARKER = "maven.version"

# Digits per component in the normalized code
COMPONENT_WIDTH = 3

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, order=True)
class MavenVersion:
    """A (major, minor, patch) version triple."""

    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def normalized(self) -> str:
        """
        Fixed-width comparable form, e.g. ``3.8.8`` -> ``"003008008"``.

        Example:
            >>> MavenVersion(3, 10, 1).normalized
            '003010001'
        """
        return "".join(
            f"{part:0{COMPONENT_WIDTH}d}" for part in (self.major, self.minor, self.patch)
        )

    @property
    def code(self) -> int:
        """Normalized form as an integer."""
        return int(self.normalized)


def parse_version(text: str) -> MavenVersion:
    """
    Parse a bare ``X.Y.Z`` version string.

    Raises:
        ConfigError: If the text is not three numeric components, or a
            component does not fit the normalized width
    """
    value = text.strip()
    match = _VERSION_RE.match(value)
    if not match:
        raise ConfigError(
            f"Cannot parse version '{value}': expected MAJOR.MINOR.PATCH"
        )

    parts = tuple(int(group) for group in match.groups())
    limit = 10**COMPONENT_WIDTH
    if any(part >= limit for part in parts):
        raise ConfigError(
            f"Version component out of range in '{value}' (max {limit - 1})"
        )

    return MavenVersion(*parts)


def resolve_version(text: str, marker: str = DEFAULT_VERSION_MARKER) -> MavenVersion:
    """
    Extract the first ``<marker>value</marker>`` declaration from text.

    Args:
        text: Project configuration text (e.g. contents of pom.xml)
        marker: Element name holding the version

    Returns:
        Parsed MavenVersion

    Raises:
        ConfigError: If the marker is absent or its value is unparseable

    Example:
        >>> resolve_version("<maven.version>3.8.8</maven.version>")
        MavenVersion(major=3, minor=8, patch=8)
    """
    tag = re.escape(marker)
    match = re.search(rf"<{tag}>\s*([^<]*?)\s*</{tag}>", text)
    if not match:
        raise ConfigError(f"No <{marker}> declaration found in project configuration")

    version = parse_version(match.group(1))
    logger.debug(f"Resolved {marker} = {version} ({version.normalized})")
    return version


def resolve_version_from_file(
    path: Union[str, Path], marker: str = DEFAULT_VERSION_MARKER
) -> MavenVersion:
    """Read a project file and resolve the required version from it."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            f"Cannot read project configuration: {e}", resource=str(path)
        ) from e

    try:
        return resolve_version(text, marker)
    except ConfigError as e:
        raise ConfigError(str(e), resource=str(path)) from e
