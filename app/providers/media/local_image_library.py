"""Filesystem image library for broadcasts."""

from __future__ import annotations

import logging
from pathlib import Path

from app.core.exceptions import MediaError
from app.interfaces.image_library import ImageLibrary

logger = logging.getLogger(__name__)


class LocalImageLibrary(ImageLibrary):
    """Looks up images by bare file name inside one directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    async def exists(self, name: str) -> bool:
        path = self._resolve(name)
        if path is None:
            return False
        try:
            return path.is_file()
        except OSError as exc:
            raise MediaError(f"Could not check image '{name}': {exc}") from exc

    async def read(self, name: str) -> bytes:
        path = self._resolve(name)
        if path is None:
            raise MediaError(f"Invalid image name '{name}'.")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise MediaError(f"Could not read image '{name}': {exc}") from exc

    def _resolve(self, name: str) -> Path | None:
        # Only bare file names directly inside the directory are allowed.
        candidate = name.strip()
        if not candidate or Path(candidate).name != candidate or candidate in {".", ".."}:
            logger.warning("Rejected image name '%s'", name)
            return None
        return self.directory / candidate
