"""Provider factory for the vision model.

Environment-based selection:
- VISION_PROVIDER=openai (default) requires OPENAI_API_KEY
- VISION_PROVIDER=stub for local runs without network access
"""

from typing import Union

import structlog

from calai.infrastructure.ai.openai_client import OpenAIVisionClient
from calai.infrastructure.ai.stub_vision_provider import StubVisionProvider
from calai.infrastructure.config import (
    get_analysis_timeout_s,
    get_openai_api_key,
    get_vision_model,
    get_vision_provider_mode,
)

logger = structlog.get_logger(__name__)

VisionProvider = Union[OpenAIVisionClient, StubVisionProvider]


def create_vision_provider() -> VisionProvider:
    """Create vision provider based on VISION_PROVIDER env var.

    Returns:
        Uninitialized provider; enter it with ``async with`` before use.

    Raises:
        ValueError: VISION_PROVIDER=openai without OPENAI_API_KEY, or an
            unknown provider name
    """
    mode = get_vision_provider_mode()

    if mode == "stub":
        logger.info("vision_provider.selected", provider="stub")
        return StubVisionProvider()

    if mode == "openai":
        api_key = get_openai_api_key()
        if not api_key:
            raise ValueError(
                "VISION_PROVIDER=openai but OPENAI_API_KEY not set. "
                "Set OPENAI_API_KEY in .env or use VISION_PROVIDER=stub"
            )
        logger.info("vision_provider.selected", provider="openai", model=get_vision_model())
        # transport timeout a bit above the service deadline; the deadline wins
        return OpenAIVisionClient(
            api_key=api_key,
            model=get_vision_model(),
            timeout=get_analysis_timeout_s() + 5.0,
        )

    raise ValueError(f"Unknown VISION_PROVIDER: {mode!r} (expected 'openai' or 'stub')")
