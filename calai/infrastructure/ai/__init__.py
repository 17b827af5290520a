"""Vision model adapters."""

from calai.infrastructure.ai.factory import create_vision_provider
from calai.infrastructure.ai.openai_client import OpenAIVisionClient
from calai.infrastructure.ai.stub_vision_provider import StubVisionProvider

__all__ = ["OpenAIVisionClient", "StubVisionProvider", "create_vision_provider"]
