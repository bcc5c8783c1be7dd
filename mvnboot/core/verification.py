"""
Checksum verification of downloaded artifacts.

Verification is best-effort in two ways: an artifact without a checksum
descriptor is accepted as-is, and a host whose hashlib lacks the digest
algorithm skips verification with a warning. A descriptor that is present
but does not match, however, always aborts the run before extraction.
"""

import hashlib
import logging
import secrets
from pathlib import Path

from mvnboot.core.artifacts import CHECKSUM_ALGORITHM, Tarball
from mvnboot.core.exceptions import IntegrityError

logger = logging.getLogger(__name__)


def compute_file_hash(file_path: Path, algorithm: str = CHECKSUM_ALGORITHM) -> str:
    """
    Compute the hex digest of a file, reading it in chunks.

    Raises:
        IntegrityError: If the file cannot be read
        ValueError: If the algorithm is not supported by hashlib
    """
    hasher = hashlib.new(algorithm)
    try:
        with open(file_path, "rb") as f:
            while chunk := f.read(8192):
                hasher.update(chunk)
    except OSError as e:
        raise IntegrityError(
            f"Cannot read file for verification: {e}", resource=str(file_path)
        ) from e
    return hasher.hexdigest()


class ChecksumVerifier:
    """
    Verify a Tarball against its Checksum.

    Example:
        >>> verifier = ChecksumVerifier()
        >>> verifier.verify(tarball)  # raises IntegrityError on mismatch
        True
    """

    def __init__(self, algorithm: str = CHECKSUM_ALGORITHM):
        self.algorithm = algorithm.lower()

    def is_available(self) -> bool:
        """Whether this host can compute the digest."""
        return self.algorithm in hashlib.algorithms_available

    def verify(self, tarball: Tarball) -> bool:
        """
        Check the tarball's digest.

        Returns:
            True if the digest was checked and matched, False if
            verification was skipped

        Raises:
            IntegrityError: If the digest does not match
        """
        checksum = tarball.checksum
        if checksum is None:
            logger.debug(f"No checksum descriptor for {tarball.path.name}; skipping")
            return False

        if not self.is_available():
            logger.warning(
                f"Skipping checksum verification of {tarball.path.name}: "
                f"{self.algorithm} is not available on this host"
            )
            return False

        logger.info(f"Verifying {self.algorithm} checksum of {checksum.filename}")
        logger.debug(f"Expected: {checksum.pairing}")
        actual = compute_file_hash(tarball.path, self.algorithm)

        if not _constant_time_compare(actual, checksum.digest):
            raise IntegrityError(
                f"Bad checksum for {checksum.filename}: "
                f"expected {checksum.digest}, got {actual}",
                resource=tarball.url,
            )

        logger.debug(f"Checksum verified: {checksum.filename}")
        return True


def _constant_time_compare(a: str, b: str) -> bool:
    return secrets.compare_digest(a.lower().encode("utf-8"), b.lower().encode("utf-8"))
