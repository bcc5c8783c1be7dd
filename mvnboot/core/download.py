"""
Artifact fetching with transport fallback and bounded retry.

The preferred transport gets several attempts; if it is not available on
this host, the next available transport gets a single attempt. A tarball
already on disk is reused (it is verified before use), while a checksum
descriptor is always fetched fresh so that it describes this run's
download.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

from mvnboot.core.artifacts import CHECKSUM_ALGORITHM, Checksum, Tarball
from mvnboot.core.exceptions import DownloadError, IntegrityError
from mvnboot.core.transport import Transport

logger = logging.getLogger(__name__)


class Fetcher:
    """
    Download artifacts and their checksum descriptors.

    Example:
        >>> fetcher = Fetcher([RequestsTransport(), CurlTransport()])
        >>> tarball = fetcher.fetch(url, Path("build/x.tar.gz"), checksum_url=url + ".sha512")
    """

    def __init__(
        self,
        transports: Sequence[Transport],
        max_retries: int = 3,
        algorithm: str = CHECKSUM_ALGORITHM,
    ):
        """
        Args:
            transports: Transports in preference order
            max_retries: Attempts given to the preferred transport
            algorithm: Digest algorithm the checksum descriptors use
        """
        self.transports = list(transports)
        self.max_retries = max_retries
        self.algorithm = algorithm

    def select_transport(self) -> Tuple[Transport, int]:
        """
        Pick the transport to use and how many attempts it gets.

        Raises:
            DownloadError: If no transport is available
        """
        for index, transport in enumerate(self.transports):
            if transport.is_available():
                attempts = self.max_retries if index == 0 else 1
                if index > 0:
                    logger.debug(
                        f"{self.transports[0].name} unavailable, using {transport.name}"
                    )
                return transport, attempts

        names = ", ".join(t.name for t in self.transports) or "none configured"
        raise DownloadError(f"No download transport available (tried: {names})")

    def fetch(
        self,
        url: str,
        destination: Path,
        checksum_url: Optional[str] = None,
        checksum_destination: Optional[Path] = None,
        require_checksum: bool = False,
    ) -> Tarball:
        """
        Make sure the artifact is on disk and fetch its checksum descriptor.

        Args:
            url: Artifact URL
            destination: Local artifact path
            checksum_url: Checksum descriptor URL (None skips it)
            checksum_destination: Local descriptor path
                (default: destination with ``.sha512`` appended)
            require_checksum: Fail if the descriptor cannot be fetched

        Returns:
            Tarball with its Checksum if one was fetched

        Raises:
            DownloadError: If the artifact (or a required descriptor)
                cannot be fetched
            IntegrityError: If a fetched descriptor is malformed
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)

        if destination.exists():
            logger.info(f"Reusing previously downloaded {destination.name}")
        else:
            self._transfer(url, destination)

        tarball = Tarball(path=destination, url=url)
        if checksum_url is None:
            return tarball

        if checksum_destination is None:
            checksum_destination = destination.with_name(
                f"{destination.name}.{self.algorithm}"
            )
        tarball.checksum_path = checksum_destination
        tarball.checksum = self._fetch_checksum(
            checksum_url, checksum_destination, destination.name, require_checksum
        )
        return tarball

    def _transfer(self, url: str, destination: Path) -> None:
        transport, attempts = self.select_transport()
        logger.info(f"Downloading from {url}")
        logger.debug(f"Using {transport.name} transport ({attempts} attempt(s))")

        transport.fetch(url, destination, attempts=attempts)

        if not destination.exists():
            raise DownloadError(
                f"{transport.name} reported success but produced no file",
                resource=str(destination),
            )
        logger.debug(f"Download complete: {destination}")

    def _fetch_checksum(
        self,
        url: str,
        destination: Path,
        subject: str,
        required: bool,
    ) -> Optional[Checksum]:
        # A descriptor left over from an earlier run is never trusted
        destination.unlink(missing_ok=True)

        try:
            self._transfer(url, destination)
        except DownloadError as e:
            if required:
                raise
            logger.warning(f"Checksum descriptor unavailable, skipping verification: {e}")
            return None

        text = destination.read_text(encoding="utf-8", errors="replace")
        try:
            return Checksum.parse(text, subject, self.algorithm)
        except IntegrityError as e:
            e.resource = url
            raise
