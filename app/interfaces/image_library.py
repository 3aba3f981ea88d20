"""Interface contract for broadcast image lookup."""

from abc import ABC, abstractmethod


class ImageLibrary(ABC):
    """Named images an authorized broadcaster can send."""

    @abstractmethod
    async def exists(self, name: str) -> bool:
        """Raises MediaError when the library cannot be checked."""
        raise NotImplementedError

    @abstractmethod
    async def read(self, name: str) -> bytes:
        """Return image bytes. Raises MediaError when the image cannot be read."""
        raise NotImplementedError
