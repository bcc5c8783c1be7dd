"""
Transport capability interface.

A Transport moves bytes from a URL to a local file. Implementations differ
only in the mechanism they use: the in-process ``requests`` client, or the
host's ``curl`` / ``wget`` executables. Callers ask each transport whether
it is available and pick the first one that is, rather than probing for
commands ad hoc.
"""

import logging
import os
import shutil
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Type

import requests
from requests.exceptions import HTTPError, RequestException

from mvnboot.core.exceptions import ConfigError, DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class Transport(ABC):
    """Abstract interface for moving a remote resource to local storage."""

    name = "transport"

    def __init__(self, timeout: int = 30):
        self.timeout = timeout

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this transport can be used on this host."""
        pass

    @abstractmethod
    def probe(self, url: str) -> bool:
        """
        Check that a resource exists without transferring its body.

        Redirects are followed; only a successful final status counts.

        Returns:
            True if the resource is reachable, False otherwise
        """
        pass

    @abstractmethod
    def fetch(self, url: str, destination: Path, attempts: int = 1) -> None:
        """
        Download url to destination.

        Args:
            url: Remote resource
            destination: Local file to create
            attempts: Total number of tries before giving up

        Raises:
            DownloadError: If the transfer fails; no partial file is left
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(timeout={self.timeout})"


class RequestsTransport(Transport):
    """HTTP(S) transport built on a requests Session."""

    name = "requests"

    def __init__(
        self,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
        backoff_factor: float = 1.0,
    ):
        super().__init__(timeout)
        self.session = session or requests.Session()
        self.backoff_factor = backoff_factor

    def is_available(self) -> bool:
        return True

    def probe(self, url: str) -> bool:
        try:
            response = self.session.head(
                url, allow_redirects=True, timeout=self.timeout
            )
        except RequestException as e:
            logger.debug(f"HEAD {url} failed: {e}")
            return False

        response.close()
        logger.debug(f"HEAD {url} -> {response.status_code}")
        return response.ok

    def fetch(self, url: str, destination: Path, attempts: int = 1) -> None:
        for attempt in range(attempts):
            try:
                self._stream_to_file(url, destination)
                return
            except (RequestException, OSError) as e:
                _remove_partial(destination)
                if attempt == attempts - 1 or not _is_transient(e):
                    raise DownloadError(
                        f"Download failed after {attempt + 1} attempt(s): {e}",
                        resource=url,
                    ) from e

                # Exponential backoff
                backoff_seconds = self.backoff_factor * 2**attempt
                logger.warning(
                    f"Download attempt {attempt + 1} failed: {e}. "
                    f"Retrying in {backoff_seconds:g}s..."
                )
                time.sleep(backoff_seconds)

    def _stream_to_file(self, url: str, destination: Path) -> None:
        with self.session.get(
            url, stream=True, timeout=self.timeout, allow_redirects=True
        ) as response:
            response.raise_for_status()
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)


class _CommandTransport(Transport):
    """Transport that shells out to an executable found on PATH."""

    executable = ""

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def probe(self, url: str) -> bool:
        try:
            result = subprocess.run(
                self._probe_command(url),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"{self.executable} probe of {url} failed: {e}")
            return False

        logger.debug(f"{self.executable} probe of {url} exited {result.returncode}")
        return result.returncode == 0

    def fetch(self, url: str, destination: Path, attempts: int = 1) -> None:
        command = self._fetch_command(url, destination, attempts)
        logger.debug(f"exec: {' '.join(command)}")

        try:
            result = subprocess.run(
                command, capture_output=True, text=True, check=False
            )
        except OSError as e:
            _remove_partial(destination)
            raise DownloadError(
                f"Failed to run {self.executable}: {e}", resource=url
            ) from e

        if result.returncode != 0:
            _remove_partial(destination)
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise DownloadError(f"{self.executable} failed: {detail}", resource=url)

    @abstractmethod
    def _probe_command(self, url: str) -> List[str]:
        pass

    @abstractmethod
    def _fetch_command(self, url: str, destination: Path, attempts: int) -> List[str]:
        pass


class CurlTransport(_CommandTransport):
    """Transport using the curl executable."""

    name = "curl"
    executable = "curl"

    def _probe_command(self, url: str) -> List[str]:
        return [
            self.executable,
            "-L",
            "--output",
            os.devnull,
            "--silent",
            "--head",
            "--fail",
            "--max-time",
            str(self.timeout),
            url,
        ]

    def _fetch_command(self, url: str, destination: Path, attempts: int) -> List[str]:
        command = [self.executable]
        if attempts > 1:
            command += ["--retry", str(attempts - 1)]
        command += [
            "--silent",
            "--show-error",
            "-L",
            "--fail",
            "--connect-timeout",
            str(self.timeout),
            "--output",
            str(destination),
            url,
        ]
        return command


class WgetTransport(_CommandTransport):
    """Transport using the wget executable."""

    name = "wget"
    executable = "wget"

    def _probe_command(self, url: str) -> List[str]:
        return [
            self.executable,
            "--spider",
            "--quiet",
            f"--timeout={self.timeout}",
            url,
        ]

    def _fetch_command(self, url: str, destination: Path, attempts: int) -> List[str]:
        return [
            self.executable,
            "--no-verbose",
            f"--tries={attempts}",
            f"--timeout={self.timeout}",
            "-O",
            str(destination),
            url,
        ]


TRANSPORTS: Dict[str, Type[Transport]] = {
    RequestsTransport.name: RequestsTransport,
    CurlTransport.name: CurlTransport,
    WgetTransport.name: WgetTransport,
}


def create_transports(names: Iterable[str], timeout: int = 30) -> List[Transport]:
    """
    Instantiate transports in preference order.

    Raises:
        ConfigError: If a name is not a known transport
    """
    transports = []
    for name in names:
        transport_cls = TRANSPORTS.get(name)
        if transport_cls is None:
            raise ConfigError(f"Unknown transport: {name}")
        transports.append(transport_cls(timeout=timeout))
    return transports


def first_available(transports: Iterable[Transport]) -> Optional[Transport]:
    """Return the first transport that reports itself available."""
    for transport in transports:
        if transport.is_available():
            return transport
    return None


def _remove_partial(destination: Path) -> None:
    try:
        destination.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to remove partial download {destination}: {e}")


def _is_transient(error: Exception) -> bool:
    """Whether a failed transfer is worth another attempt."""
    if isinstance(error, HTTPError) and error.response is not None:
        status = error.response.status_code
        # Client errors are permanent, except timeouts and throttling
        return status >= 500 or status in (408, 429)
    return True
