"""
Archive installation and temporary-file handling.

Extracts verified toolchain tarballs into the install root and guarantees
that downloaded tarballs and checksum descriptors never outlive the run
that fetched them, whether that run succeeds or fails.
"""

import logging
import shutil
import sys
import tarfile
from contextlib import contextmanager
from pathlib import Path
from typing import ContextManager, Iterable, Iterator, Union

from mvnboot.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """Check whether path is located under parent."""
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def safe_rmtree(path: Union[str, Path], require_prefix: Union[str, Path]) -> None:
    """
    Remove a directory tree, refusing to touch anything outside require_prefix.

    Raises:
        ValueError: If path is not under require_prefix
    """
    path = Path(path).resolve()
    prefix = Path(require_prefix).resolve()
    if not is_relative_to(path, prefix) or path == prefix:
        raise ValueError(
            f"Refusing to delete '{path}': not under required prefix '{prefix}'"
        )
    if path.exists():
        shutil.rmtree(path)


# ============================================================================
# Temporary Download State
# ============================================================================


def remove_files(paths: Iterable[Path]) -> None:
    """Delete files, ignoring ones that are already gone."""
    for path in paths:
        try:
            path.unlink(missing_ok=True)
            logger.debug(f"Removed {path}")
        except OSError as e:
            logger.warning(f"Failed to remove {path}: {e}")


@contextmanager
def scoped_cleanup(paths: Iterable[Path]) -> Iterator[None]:
    """
    Remove the given files when the block exits, however it exits.

    Example:
        >>> with scoped_cleanup([tarball, tarball_sha512]):
        ...     verify_and_extract()
    """
    paths = list(paths)
    try:
        yield
    finally:
        remove_files(paths)


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(name: str, destination: Path) -> None:
    """
    Reject archive members that would land outside destination.

    Raises:
        ExtractionError: If the member attempts directory traversal
    """
    member_path = (destination / name).resolve()
    if not is_relative_to(member_path, destination.resolve()):
        raise ExtractionError(
            f"Archive member '{name}' attempts directory traversal; "
            "extraction has been blocked"
        )


def extract_tarball(archive_path: Path, destination: Path) -> None:
    """
    Extract a gzip-compressed tar archive into destination.

    Raises:
        ExtractionError: If the archive is missing, not a .tar.gz, malformed,
            or contains unsafe member paths
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.name.lower().endswith((".tar.gz", ".tgz")):
        raise ExtractionError(
            "Unsupported archive format (expected .tar.gz)",
            resource=str(archive_path),
        )

    destination.mkdir(parents=True, exist_ok=True)

    try:
        with tarfile.open(archive_path, "r:gz") as tar:
            members = tar.getmembers()
            for member in members:
                _validate_archive_path(member.name, destination)

            if sys.version_info >= (3, 12):
                tar.extractall(destination, filter="data")
            else:
                tar.extractall(destination)
    except ExtractionError as e:
        e.resource = str(archive_path)
        raise
    except (tarfile.TarError, EOFError, OSError) as e:
        raise ExtractionError(
            f"Failed to extract {archive_path.name}: {e}", resource=str(archive_path)
        ) from e

    logger.debug(f"Extracted {len(members)} entries into {destination}")


class ArchiveInstaller:
    """
    Unpack toolchain tarballs into an install root.

    Example:
        >>> installer = ArchiveInstaller(Path("build"))
        >>> with installer.staged(tarball.temporary_files):
        ...     mvn = installer.install(tarball, "apache-maven-3.8.8", "bin/mvn")
    """

    def __init__(self, install_root: Path):
        self.install_root = Path(install_root)

    def staged(self, temporary_files: Iterable[Path]) -> ContextManager[None]:
        """Context manager removing download state on exit."""
        return scoped_cleanup(temporary_files)

    def install(self, tarball_path: Path, install_dir_name: str, binary: str) -> Path:
        """
        Extract the tarball and locate the toolchain binary.

        Args:
            tarball_path: Verified archive
            install_dir_name: Top-level directory the archive unpacks to
            binary: Binary path relative to that directory

        Returns:
            Path to the installed binary

        Raises:
            ExtractionError: If extraction fails or the binary is missing;
                a partially created install directory is removed
        """
        install_dir = self.install_root / install_dir_name
        existed = install_dir.exists()

        logger.info(f"Extracting {Path(tarball_path).name} to {self.install_root}")
        try:
            extract_tarball(Path(tarball_path), self.install_root)

            binary_path = install_dir / binary
            if not binary_path.is_file():
                raise ExtractionError(
                    f"Archive did not contain {install_dir_name}/{binary}",
                    resource=str(tarball_path),
                )
        except ExtractionError:
            if not existed and install_dir.exists():
                logger.info(f"Removing partial installation: {install_dir}")
                safe_rmtree(install_dir, require_prefix=self.install_root)
            raise

        return binary_path
