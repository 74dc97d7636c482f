"""
File-backed Auth Persistence Layer supporting many Saleor instances.

Two on-disk shapes are understood:

- single-domain: one flat record ``{"saleorApiUrl": ..., "token": ..., "appId": ...}``
  as written by the Saleor SDK's FileAPL
- multi-domain: ``{"<saleorApiUrl>": {record}, ...}``

Both are readable. Writes always produce the multi-domain shape.

Concurrency: set() and delete() are read-modify-write cycles. They are
serialized by a per-instance lock, and every write replaces the whole file
atomically, so readers never see a partial record. Separate processes
writing the same file are NOT serialized: the last writer wins and may drop
a record written in between. Run a single writer per file, or use the
Redis APL.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .interfaces import SALEOR_API_URL_KEY, AuthData
from ..auth.errors import StorageWriteError

logger = logging.getLogger(__name__)

SINGLE = "single"
MULTI = "multi"


class MultiDomainFileAPL:
    """JSON file APL keyed by Saleor API URL."""

    name = "file"

    def __init__(self, file_path: str = ".saleor-app-auth.json"):
        """
        Initialize file APL.

        Args:
            file_path: Path of the JSON file holding credentials
        """
        self.file_path = Path(file_path)
        self._lock = threading.RLock()

    async def get(self, saleor_api_url: str) -> Optional[AuthData]:
        logger.debug(f"Getting auth data for URL: {saleor_api_url}")

        loaded = self._load("get")
        if loaded is None:
            return None

        shape, content = loaded
        if shape == MULTI:
            entry = content.get(saleor_api_url)
            if entry is None:
                logger.debug(f"No auth data found for: {saleor_api_url}")
                return None
            try:
                return AuthData.from_dict(entry)
            except ValueError as e:
                logger.error(f"Malformed auth data entry for {saleor_api_url}: {e}")
                return None

        if content.get(SALEOR_API_URL_KEY) == saleor_api_url:
            logger.debug(f"Found auth data in single-domain format for: {saleor_api_url}")
            return AuthData.from_dict(content)

        logger.debug(f"No auth data found for: {saleor_api_url}")
        return None

    async def set(self, auth_data: AuthData) -> None:
        logger.debug(f"Setting auth data for URL: {auth_data.saleor_api_url}")

        with self._lock:
            existing: Dict[str, Any] = {}
            loaded = self._load("set")

            if loaded is None:
                if self.file_path.exists():
                    logger.warning(
                        f"Auth file {self.file_path} is unreadable, replacing it with a new one"
                    )
                else:
                    logger.debug("No existing auth file found, creating new one")
            else:
                shape, content = loaded
                if shape == MULTI:
                    existing = dict(content)
                else:
                    # Keep the legacy record under its own key
                    existing[content[SALEOR_API_URL_KEY]] = content

            existing[auth_data.saleor_api_url] = auth_data.to_dict()
            self._write(existing)

        logger.debug(f"Auth data saved for: {auth_data.saleor_api_url}")

    async def delete(self, saleor_api_url: str) -> None:
        logger.debug(f"Deleting auth data for URL: {saleor_api_url}")

        with self._lock:
            loaded = self._load("delete")
            if loaded is None:
                logger.debug(f"Nothing to delete for: {saleor_api_url}")
                return

            shape, content = loaded
            if shape == MULTI:
                if saleor_api_url not in content:
                    logger.debug(f"Nothing to delete for: {saleor_api_url}")
                    return
                remaining = {k: v for k, v in content.items() if k != saleor_api_url}
                # Stays multi-domain even with zero or one entry left
                self._write(remaining)
            elif content.get(SALEOR_API_URL_KEY) == saleor_api_url:
                try:
                    self.file_path.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    logger.error(f"Error deleting auth file {self.file_path}: {e}")
                    raise StorageWriteError(
                        f"Could not delete auth data for {saleor_api_url}: {e}"
                    ) from e
            else:
                logger.debug(f"Nothing to delete for: {saleor_api_url}")
                return

        logger.debug(f"Auth data deleted for: {saleor_api_url}")

    async def get_all(self) -> List[AuthData]:
        logger.debug("Getting all auth data")

        loaded = self._load("get_all")
        if loaded is None:
            return []

        shape, content = loaded
        if shape == SINGLE:
            return [AuthData.from_dict(content)]

        records = []
        for key, entry in content.items():
            try:
                records.append(AuthData.from_dict(entry))
            except ValueError as e:
                logger.error(f"Skipping malformed auth data entry {key}: {e}")
        return records

    async def is_ready(self) -> bool:
        return True

    async def is_configured(self) -> bool:
        if not self.file_path.exists():
            # Not configured yet, but ready to accept data
            return True

        loaded = self._load("is_configured")
        if loaded is None:
            return False

        shape, content = loaded
        if shape == MULTI:
            return len(content) > 0
        return bool(content.get(SALEOR_API_URL_KEY))

    def _load(self, operation: str) -> Optional[Tuple[str, Dict[str, Any]]]:
        """
        Read and classify the auth file.

        Returns:
            (shape, content) or None when the file is missing or unusable
        """
        try:
            raw = self.file_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"Auth file {self.file_path} does not exist ({operation})")
            return None
        except OSError as e:
            logger.error(f"Error reading auth file {self.file_path} ({operation}): {e}")
            return None

        try:
            content = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing auth file {self.file_path} ({operation}): {e}")
            return None

        if not isinstance(content, dict):
            logger.error(
                f"Auth file {self.file_path} holds {type(content).__name__}, expected an object ({operation})"
            )
            return None

        if SALEOR_API_URL_KEY in content:
            url = content[SALEOR_API_URL_KEY]
            if not url or not isinstance(url, str):
                logger.error(
                    f"Auth file {self.file_path} holds a single-domain record without a usable "
                    f"{SALEOR_API_URL_KEY} ({operation})"
                )
                return None
            return SINGLE, content
        return MULTI, content

    def _write(self, content: Dict[str, Any]) -> None:
        """Atomically replace the auth file with content."""
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.file_path.name}.", suffix=".tmp", dir=self.file_path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(content, f, indent=2)
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            logger.error(f"Error writing auth file {self.file_path}: {e}")
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageWriteError(f"Could not write auth file {self.file_path}: {e}") from e
