"""
Centralized exception hierarchy for mvnboot.

Every fatal pipeline failure derives from BootstrapError and records the
stage that failed and the resource (URL or path) involved, so the CLI can
report it in one line and map it to an exit code.
"""

from typing import Optional

# Reserved exit code for "integrity/availability failure": the toolchain
# could not be downloaded or its checksum could not be verified.
EXIT_INTEGRITY_FAILURE = 2


# ============================================================================
# Base Exception
# ============================================================================


class BootstrapError(Exception):
    """Base exception for all mvnboot errors."""

    stage = "bootstrap"
    exit_code = 1

    def __init__(self, message: str, resource: Optional[str] = None):
        self.resource = resource
        super().__init__(message)

    def describe(self) -> str:
        """One-line description naming the failing stage and resource."""
        text = f"[{self.stage}] {self}"
        if self.resource and self.resource not in str(self):
            text += f" ({self.resource})"
        return text


# ============================================================================
# Pipeline Exceptions
# ============================================================================


class ConfigError(BootstrapError):
    """Required version is undeclared or unparseable, or settings are invalid."""

    stage = "config"


class NetworkError(BootstrapError):
    """No reachable mirror or transport."""

    stage = "network"
    exit_code = EXIT_INTEGRITY_FAILURE


class DownloadError(NetworkError):
    """No transport produced the requested artifact."""

    stage = "download"


class IntegrityError(BootstrapError):
    """Artifact digest does not match its checksum descriptor."""

    stage = "verify"
    exit_code = EXIT_INTEGRITY_FAILURE


class ExtractionError(BootstrapError):
    """Archive is malformed or did not yield the expected binary."""

    stage = "extract"
