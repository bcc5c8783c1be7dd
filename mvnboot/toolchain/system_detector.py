"""
Detection of a Maven installation already on the search path.
"""

import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from mvnboot.core.exceptions import ConfigError
from mvnboot.core.version import MavenVersion, parse_version

logger = logging.getLogger(__name__)

# First line of `mvn --version`: "Apache Maven 3.8.8 (4c87b05d9aedce574290d1acc98575ed5eb6cd39)"
_MAVEN_VERSION_RE = re.compile(r"Apache Maven (\d+\.\d+\.\d+)")


class SystemMavenDetector:
    """Find ``mvn`` on PATH and read the version it reports."""

    def __init__(self, executable: str = "mvn", timeout: int = 30):
        self.executable = executable
        self.timeout = timeout

    def find(self) -> Optional[Path]:
        """Path of the executable on PATH, or None."""
        found = shutil.which(self.executable)
        return Path(found) if found else None

    def extract_version(self, binary: Path) -> Optional[MavenVersion]:
        """
        Run ``binary --version`` and parse the reported Maven version.

        Returns:
            The version, or None if it could not be determined
        """
        try:
            result = subprocess.run(
                [str(binary), "--version"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.debug(f"Timeout extracting version from {binary}")
            return None
        except OSError as e:
            logger.debug(f"Failed to run {binary}: {e}")
            return None

        if result.returncode != 0:
            logger.debug(f"{binary} --version returned {result.returncode}")
            return None

        match = _MAVEN_VERSION_RE.search(result.stdout + result.stderr)
        if not match:
            logger.debug(f"Could not parse version from output: {result.stdout[:200]}")
            return None

        try:
            return parse_version(match.group(1))
        except ConfigError:
            return None

    def find_matching(self, desired: MavenVersion) -> Optional[Path]:
        """
        Return the mvn on PATH if it reports exactly the desired version.
        """
        binary = self.find()
        if binary is None:
            logger.debug(f"No {self.executable} found on PATH")
            return None

        detected = self.extract_version(binary)
        if detected is None or detected.code != desired.code:
            logger.debug(f"{binary} reports {detected}, need {desired}")
            return None

        return binary
