"""
Network download manager with retry logic and checksum verification.

Release archives are large, so downloads are streamed to disk, hashed while
streaming, retried with exponential backoff on transient failures, and
resumed from a partial file when the server honours ``Range`` requests.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.bytes_downloaded / self.total_bytes * 100

    def __str__(self) -> str:
        mb_downloaded = self.bytes_downloaded / 1024 / 1024
        if self.total_bytes > 0:
            mb_total = self.total_bytes / 1024 / 1024
            return f"{mb_downloaded:.1f}/{mb_total:.1f} MB ({self.percentage:.1f}%)"
        return f"{mb_downloaded:.1f} MB"


class DownloadError(Exception):
    """Exception raised when download fails."""

    pass


class ChecksumError(Exception):
    """Exception raised when checksum verification fails."""

    pass


def download_file(
    url: str,
    destination: Path,
    expected_sha256: Optional[str] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    resume: bool = True,
    timeout: int = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download file from URL to destination with retry logic and checksum verification.

    Args:
        url: URL to download from
        destination: Local path to save file
        expected_sha256: Expected SHA256 hash (verified during download)
        progress_callback: Optional callback for progress updates
        resume: Whether to resume partial downloads
        timeout: Request timeout in seconds
        max_retries: Maximum number of retry attempts

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If download fails after retries
        ChecksumError: If checksum doesn't match expected value
        ValueError: If URL is empty
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    if destination.exists() and expected_sha256:
        if verify_checksum(destination, expected_sha256):
            logger.info(f"Archive already downloaded: {destination.name}")
            return destination
        if not resume:
            destination.unlink()

    for attempt in range(max_retries):
        resume_from = 0
        if resume and destination.exists():
            resume_from = destination.stat().st_size
            logger.info(f"Resuming download from byte {resume_from}")

        try:
            return _download_with_progress(
                url=url,
                destination=destination,
                resume_from=resume_from,
                expected_sha256=expected_sha256,
                progress_callback=progress_callback,
                timeout=timeout,
            )
        except RequestException as e:
            if attempt == max_retries - 1:
                raise DownloadError(
                    f"Download failed after {max_retries} attempts: {e}"
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"Download attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)

    raise DownloadError("Download failed for unknown reason")


def _download_with_progress(
    url: str,
    destination: Path,
    resume_from: int,
    expected_sha256: Optional[str],
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> Path:
    """Stream one download attempt to disk, hashing as it goes."""
    headers = {}
    if resume_from > 0:
        headers["Range"] = f"bytes={resume_from}-"

    logger.debug(f"GET {url}")
    response = requests.get(
        url, headers=headers, stream=True, timeout=timeout, allow_redirects=True
    )
    if resume_from > 0 and response.status_code == 416:
        # Partial file is not a prefix of this archive
        response.close()
        logger.info(f"Cannot resume {destination.name}, downloading from the start")
        destination.unlink()
        return _download_with_progress(
            url, destination, 0, expected_sha256, progress_callback, timeout
        )
    response.raise_for_status()

    # Server ignored the Range header, start over
    if resume_from > 0 and response.status_code != 206:
        resume_from = 0

    content_length = response.headers.get("content-length")
    total_size = int(content_length) + resume_from if content_length else 0

    hasher = hashlib.sha256() if expected_sha256 else None
    if resume_from > 0 and hasher:
        with open(destination, "rb") as f:
            while chunk := f.read(CHUNK_SIZE):
                hasher.update(chunk)

    downloaded = resume_from
    mode = "ab" if resume_from > 0 else "wb"
    with open(destination, mode) as f:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            f.write(chunk)
            downloaded += len(chunk)
            if hasher:
                hasher.update(chunk)
            if progress_callback:
                progress_callback(DownloadProgress(downloaded, total_size))

    if expected_sha256 and hasher:
        actual_hash = hasher.hexdigest()
        if actual_hash.lower() != expected_sha256.lower():
            destination.unlink()
            raise ChecksumError(
                f"Checksum mismatch for {destination.name}: "
                f"expected {expected_sha256}, got {actual_hash}"
            )
        logger.debug("Checksum verified successfully")

    logger.info(f"Download complete: {destination.name}")
    return destination


def verify_checksum(file_path: Path, expected_sha256: str) -> bool:
    """
    Verify file SHA256 checksum.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            hasher.update(chunk)

    return hasher.hexdigest().lower() == expected_sha256.lower()
