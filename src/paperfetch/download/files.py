"""
Verified Downloads

Streams an artifact to disk while hashing every byte in the same pass, then
compares the digest with the checksum the metadata service declared.
"""

import hashlib
import time
from pathlib import Path
from typing import Optional

from requests.exceptions import RequestException

from paperfetch.constants import DEFAULT_CHUNK_SIZE, PROGRESS_LOG_EVERY_CHUNKS
from paperfetch.context import CallContext
from paperfetch.exceptions import FileSystemError, IntegrityError, TransportError
from paperfetch.log_utils import logger
from paperfetch.utils import format_size

from .interfaces import Artifact, DownloadResult, MetadataSource, Pathish


def calculate_sha256(file_path: Pathish) -> Optional[str]:
    """
    Compute the SHA-256 hex digest of a file.

    Streams the file without loading it into memory. Returns the lowercase
    hexadecimal digest, or None if the file cannot be opened or read.
    """
    try:
        sha256_hash = hashlib.sha256()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(DEFAULT_CHUNK_SIZE), b""):
                sha256_hash.update(chunk)
        return sha256_hash.hexdigest()
    except OSError as e:
        logger.debug(f"Error calculating SHA-256 for {file_path}: {e}")
        return None


class IntegrityDownloader:
    """
    Downloads artifacts and verifies them against their declared SHA-256.

    Destinations are opened with exclusive create; two calls writing the same
    path is a caller error and the second one fails with FileSystemError. The
    file is only created once the server has answered with a success status.
    """

    def __init__(
        self,
        source: MetadataSource,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: Optional[float] = None,
    ):
        """
        Parameters:
            source (MetadataSource): Where artifact bytes are streamed from.
            chunk_size (int): Bytes read per chunk.
            timeout (Optional[float]): Upper bound in seconds for one fetch,
                body transfer included; None leaves only the caller's deadline.
        """
        self.source = source
        self.chunk_size = chunk_size
        self.timeout = timeout

    def fetch(
        self, artifact: Artifact, destination: Pathish, ctx: CallContext
    ) -> DownloadResult:
        """
        Download ``artifact`` to ``destination`` and verify its checksum.

        Missing parent directories are created. When the metadata service gave no
        checksum the download is accepted as valid.

        Returns:
            DownloadResult: The verified result (``valid`` is True).

        Raises:
            IntegrityError: The digest differs from the declared checksum. The
                error carries the completed DownloadResult (``valid`` False).
            TransportError: The connection failed before or during streaming.
                A status error leaves no file behind.
            FileSystemError: The destination could not be created or written.
            OperationCancelledError | DeadlineExceededError: The context stopped
                the transfer. Partial file contents are left on disk.
        """
        ctx = ctx.child(self.timeout)
        ctx.check(f"download of {artifact.name}")
        target = Path(destination)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(
                "Failed to create destination directory",
                path=str(target.parent),
                details=str(e),
            ) from e

        hasher = hashlib.sha256()
        downloaded_bytes = 0
        downloaded_chunks = 0
        start_time = time.time()

        logger.debug(f"Downloading {artifact.url} to {target}")
        stream = self.source.open_stream(artifact.url, ctx, self.chunk_size)
        try:
            with open(target, "xb") as file:
                for chunk in stream:
                    ctx.check(f"download of {artifact.name}")
                    file.write(chunk)
                    hasher.update(chunk)
                    downloaded_chunks += 1
                    downloaded_bytes += len(chunk)
                    if downloaded_chunks % PROGRESS_LOG_EVERY_CHUNKS == 0:
                        logger.debug(
                            f"Downloaded {downloaded_chunks} chunks ({downloaded_bytes} bytes) so far for {artifact.url}"
                        )
        except FileExistsError as e:
            raise FileSystemError(
                "Destination already exists", path=str(target), details=str(e)
            ) from e
        except RequestException as e:
            raise TransportError(
                "Connection failed while streaming", url=artifact.url, details=str(e)
            ) from e
        except OSError as e:
            raise FileSystemError(
                "Failed to write download", path=str(target), details=str(e)
            ) from e
        finally:
            stream.close()

        elapsed = time.time() - start_time
        logger.debug("Download elapsed time: %.2fs for %s", elapsed, artifact.url)

        actual = hasher.hexdigest()
        expected = artifact.sha256.strip().lower() if artifact.sha256 else None
        result = DownloadResult(
            path=target,
            expected_sha256=artifact.sha256,
            actual_sha256=actual,
            valid=expected is None or actual == expected,
            size=downloaded_bytes,
        )

        if expected is None:
            logger.warning(
                f"No checksum published for {artifact.name}; skipping verification"
            )
        elif not result.valid:
            logger.error(
                f"SHA256 mismatch for {artifact.name}: expected {artifact.sha256}, got {actual}"
            )
            raise IntegrityError(f"SHA256 mismatch for {artifact.name}", result)

        logger.info(f"Downloaded: {target.name} ({format_size(downloaded_bytes)})")
        return result
