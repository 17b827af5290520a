"""
OpenAI vision client for nutrition analysis.

Async client with JSON-only output. Implements IVisionProvider.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import structlog
from openai import APITimeoutError, AsyncOpenAI

from calai.domain.analysis.image import UploadedImage
from calai.domain.analysis.prompts import build_vision_messages
from calai.domain.shared.errors import AnalysisTimeoutError
from calai.infrastructure.config import get_openai_api_key

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletion

logger = structlog.get_logger(__name__)


class OpenAIVisionClient:
    """
    Async OpenAI client for food photo analysis.

    The SDK's own retries are disabled: a failed analysis is only
    repeated when the user asks for it. The hard deadline is enforced by
    the analysis service; ``timeout`` here is a transport-level backstop.

    Example:
        >>> async with OpenAIVisionClient() as client:
        ...     content = await client.analyze_image(image)
        ...     print(content)
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (reads OPENAI_API_KEY if None)
            model: Vision-capable chat model
            timeout: Transport timeout in seconds
            client: Optional pre-configured AsyncOpenAI client (for testing)

        Raises:
            ValueError: If API key not found and client not provided
        """
        if client is not None:
            self._client: Optional[AsyncOpenAI] = client
            self.api_key: str = api_key or "test-key"
        else:
            resolved_key = api_key or get_openai_api_key()
            if not resolved_key:
                raise ValueError(
                    "OPENAI_API_KEY not found in environment. "
                    "Set it in .env file or pass as parameter."
                )
            self.api_key = resolved_key
            self._client = None

        self.model = model
        self.timeout = timeout

    async def __aenter__(self) -> OpenAIVisionClient:
        """Async context manager entry."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.close()

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        response_format: Optional[Dict[str, str]] = None,
        temperature: float = 0.2,
        max_tokens: int = 800,
    ) -> Optional[str]:
        """
        Run one chat completion and return the first choice's text.

        Args:
            messages: Chat messages (system, user)
            response_format: {"type": "json_object"} for JSON mode
            temperature: Sampling temperature
            max_tokens: Max tokens in response

        Returns:
            Message content, None if the model returned none

        Raises:
            RuntimeError: If used outside ``async with``
            AnalysisTimeoutError: On transport timeout
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with.")

        params: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            params["response_format"] = response_format

        start = time.perf_counter()
        try:
            completion: ChatCompletion = await self._client.chat.completions.create(**params)
        except APITimeoutError as exc:
            raise AnalysisTimeoutError() from exc

        choice = completion.choices[0]
        logger.info(
            "vision.completion",
            model=self.model,
            finish_reason=choice.finish_reason,
            total_tokens=completion.usage.total_tokens if completion.usage else 0,
            elapsed_ms=int((time.perf_counter() - start) * 1000),
        )
        return choice.message.content

    async def analyze_image(self, image: UploadedImage) -> Optional[str]:
        """
        Ask the model for a JSON nutrition estimate of ``image``.

        The image travels inline as a base64 data URI with its original
        media type.
        """
        messages = build_vision_messages(image.to_data_uri())
        return await self.complete(
            messages=messages,
            response_format={"type": "json_object"},
        )
