"""Interface contract for scannable code generation."""

from abc import ABC, abstractmethod


class CodeGenerator(ABC):
    """Renders a payload into an image a scanner can read back."""

    @abstractmethod
    def generate(self, payload: str) -> bytes:
        """Return PNG bytes. Raises CodeGenerationError on failure."""
        raise NotImplementedError
