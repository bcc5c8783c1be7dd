"""
Download artifacts produced by the fetch stage.

A Tarball is the downloaded archive on disk, optionally accompanied by the
Checksum parsed from its descriptor. Both are transient: they exist only
between the fetch and install stages of a single run.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from mvnboot.core.exceptions import IntegrityError

CHECKSUM_ALGORITHM = "sha512"
CHECKSUM_SUFFIX = "sha512"

# Hex digest lengths for the algorithms we accept in descriptors
DIGEST_LENGTHS = {"md5": 32, "sha1": 40, "sha256": 64, "sha512": 128}

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
# BSD style: "SHA512 (file.tar.gz) = abc..."
_BSD_RE = re.compile(r"^\w+\s*\((?P<name>.+)\)\s*=\s*(?P<digest>[0-9a-fA-F]+)$")


@dataclass(frozen=True)
class Checksum:
    """Expected digest of a file."""

    algorithm: str
    digest: str
    filename: str

    @property
    def pairing(self) -> str:
        """
        Canonical ``"digest  filename"`` line (two spaces), as expected by
        sha*sum-style verification tools.
        """
        return f"{self.digest}  {self.filename}"

    @classmethod
    def parse(
        cls, text: str, filename: str, algorithm: str = CHECKSUM_ALGORITHM
    ) -> "Checksum":
        """
        Parse a checksum descriptor.

        Accepts ``digest``, ``digest  name``, ``digest *name`` and the BSD
        ``ALGO (name) = digest`` form; only the first non-comment line is
        used. The digest is always paired with filename, the local file it
        will be checked against.

        Raises:
            IntegrityError: If no well-formed digest is found
        """
        for line in _content_lines(text):
            bsd = _BSD_RE.match(line)
            digest = bsd.group("digest") if bsd else line.split()[0]
            digest = digest.lower()

            expected_len = DIGEST_LENGTHS.get(algorithm.lower())
            if not _HEX_RE.match(digest) or (
                expected_len and len(digest) != expected_len
            ):
                raise IntegrityError(
                    f"Malformed {algorithm} digest in checksum descriptor: {digest[:32]}"
                )
            return cls(algorithm=algorithm.lower(), digest=digest, filename=filename)

        raise IntegrityError("Checksum descriptor is empty")


@dataclass
class Tarball:
    """A downloaded archive and its optional checksum sidecar."""

    path: Path
    url: str
    checksum: Optional[Checksum] = None
    checksum_path: Optional[Path] = None

    @property
    def temporary_files(self) -> List[Path]:
        """Files that must not outlive the run."""
        files = [self.path]
        if self.checksum_path is not None:
            files.append(self.checksum_path)
        return files


def _content_lines(text: str) -> List[str]:
    return [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
