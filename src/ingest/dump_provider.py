"""Regions dump retrieval and decompression.

This module resolves a snapshot identity to a local gzip dump,
downloading the current dump when it is not already on disk.
"""

from __future__ import annotations

from datetime import date
import gzip
from pathlib import Path
import zlib

import requests

from core.config import SweepConfig
from core.constants import DUMP_DOWNLOAD_CHUNK_SIZE
from core.errors import SweepDumpError
from core.logging_config import get_logger
from core.snapshot_identity import SnapshotIdentity

_LOGGER = get_logger(__name__)


class DumpProvider:
    """Locates, downloads, and unzips regions dumps."""

    def __init__(self, config: SweepConfig, session: requests.Session) -> None:
        self._config = config
        self._session = session

    def fetch(self, identity: SnapshotIdentity, today: date) -> Path:
        """Return a local path to the dump for ``identity``.

        Args:
            identity: Snapshot identity to resolve.
            today: Invocation date; only today's dump can be downloaded.

        Returns:
            Existing local dump path.

        Raises:
            SweepDumpError: If the dump is missing and cannot be downloaded.
        """
        local_path = self._find_local_dump(identity)
        if local_path is not None:
            return local_path
        if not identity.is_current(today):
            raise SweepDumpError(
                f"Dump {identity.dump_file_name} not found and only the current "
                "dump can be downloaded. Place the archived dump in the data root."
            )
        target_path = self._config.data_root / identity.dump_file_name
        _LOGGER.info("dump_download_started", url=self._config.dump_url, path=str(target_path))
        self._download(target_path)
        return target_path

    def decompress(self, dump_path: Path) -> bytes:
        """Read and gunzip a dump file.

        Args:
            dump_path: Local gzip dump path.

        Returns:
            Raw snapshot bytes.

        Raises:
            SweepDumpError: If the archive is unreadable or corrupt.
        """
        try:
            with gzip.open(dump_path, "rb") as handle:
                raw = handle.read()
        except (OSError, EOFError, zlib.error) as error:
            raise SweepDumpError(
                f"Failed to decompress dump at {dump_path}: {error}. "
                "Delete the file and download it again."
            ) from error
        _LOGGER.info("dump_decompressed", path=str(dump_path), size_bytes=len(raw))
        return raw

    def _find_local_dump(self, identity: SnapshotIdentity) -> Path | None:
        for candidate in (identity.dump_path, self._config.data_root / identity.dump_file_name):
            if candidate.is_file():
                return candidate
        return None

    def _download(self, target_path: Path) -> None:
        """Stream the current dump to ``target_path`` via a partial file.

        Args:
            target_path: Final dump location.

        Raises:
            SweepConfigError: If no user nation is configured.
            SweepDumpError: If the HTTP transfer fails.
        """
        target_path.parent.mkdir(parents=True, exist_ok=True)
        partial_path = target_path.with_name(target_path.name + ".part")
        try:
            with self._session.get(
                self._config.dump_url,
                headers={"User-Agent": self._config.user_agent()},
                stream=True,
                timeout=self._config.http_timeout,
            ) as response:
                response.raise_for_status()
                with partial_path.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=DUMP_DOWNLOAD_CHUNK_SIZE):
                        handle.write(chunk)
        except requests.RequestException as error:
            partial_path.unlink(missing_ok=True)
            raise SweepDumpError(
                f"Failed to download dump from {self._config.dump_url}: {error}. "
                "Check connectivity and retry."
            ) from error
        partial_path.replace(target_path)
