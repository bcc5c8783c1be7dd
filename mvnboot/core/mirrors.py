"""
Distribution mirror selection.

Apache's content-delivery mirrors only carry recent releases; older ones are
pruned but stay available on the permanent archive host. The selector
probes the primary mirror for the requested artifact and, if it is not
there, switches to the archive for the rest of the run. The switch is
one-way: once on the archive, the primary is never tried again.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mvnboot.core.transport import Transport

logger = logging.getLogger(__name__)

PRIMARY_MIRROR = "https://www.apache.org/dyn/closer.lua"
PRIMARY_QUERY = "?action=download"
ARCHIVE_MIRROR = "https://archive.apache.org/dist"


class MirrorKind(Enum):
    """Which host a mirror refers to."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Mirror:
    """A distribution host and the query suffix its URLs need."""

    url: str
    query: str
    kind: MirrorKind

    def artifact_url(self, path: str) -> str:
        """URL of an artifact path on this mirror."""
        return f"{self.url.rstrip('/')}/{path.lstrip('/')}{self.query}"

    def sidecar_url(self, path: str, suffix: str) -> str:
        """URL of the ``path.suffix`` companion resource (e.g. a checksum)."""
        return self.artifact_url(f"{path}.{suffix}")


def primary_mirror(override: Optional[str] = None) -> Mirror:
    return Mirror(override or PRIMARY_MIRROR, PRIMARY_QUERY, MirrorKind.PRIMARY)


def fallback_mirror() -> Mirror:
    return Mirror(ARCHIVE_MIRROR, "", MirrorKind.FALLBACK)


class MirrorSelector:
    """
    Two-state mirror chooser: PRIMARY -> FALLBACK, no way back.

    Example:
        >>> selector = MirrorSelector(RequestsTransport())
        >>> mirror = selector.select("maven/maven-3/3.8.8/binaries/x.tar.gz")
        >>> mirror.kind
        <MirrorKind.PRIMARY: 'primary'>
    """

    def __init__(self, transport: Optional[Transport], primary: Optional[str] = None):
        """
        Args:
            transport: Transport used for the existence probe (None skips it)
            primary: Primary mirror override
        """
        self.transport = transport
        self.primary = primary_mirror(primary)
        self.state = MirrorKind.PRIMARY

    def select(self, path: str) -> Mirror:
        """
        Choose the mirror to use for path.

        Args:
            path: Artifact path relative to the mirror root

        Returns:
            Mirror whose URLs should be used for all requests this run
        """
        if self.state is MirrorKind.FALLBACK:
            return fallback_mirror()

        if self.transport is None:
            logger.warning(
                "No transport available to probe the primary mirror; using it unprobed"
            )
            return self.primary

        probe_url = self.primary.artifact_url(path)
        logger.debug(f"Probing primary mirror: {probe_url}")
        if self.transport.probe(probe_url):
            return self.primary

        logger.info(
            f"{path} not available on {self.primary.url}; "
            f"falling back to {ARCHIVE_MIRROR}"
        )
        self.state = MirrorKind.FALLBACK
        return fallback_mirror()
