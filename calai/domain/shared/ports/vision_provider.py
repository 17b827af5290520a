"""Port (interface) for vision AI providers.

The analysis service depends on this protocol only; the OpenAI adapter
and the stub live in the infrastructure layer.
"""

from typing import Optional, Protocol

from calai.domain.analysis.image import UploadedImage


class IVisionProvider(Protocol):
    """
    Interface for vision AI providers.

    Implementations:
    - OpenAIVisionClient (chat completions, JSON mode)
    - StubVisionProvider (deterministic, no network)
    """

    @property
    def name(self) -> str:
        """Short provider identifier used in logs and metrics."""
        ...

    async def analyze_image(self, image: UploadedImage) -> Optional[str]:
        """
        Ask the model for a nutrition estimate of one photo.

        Args:
            image: The uploaded photo (never persisted)

        Returns:
            Raw text content of the model answer (expected to be a single
            JSON object), or None if the model produced no content

        Raises:
            Exception: Implementation-specific errors (network, API, etc.)
        """
        ...
