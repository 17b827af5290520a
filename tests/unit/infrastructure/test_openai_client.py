"""
Unit tests for the OpenAI vision client.

The AsyncOpenAI client is injected as a mock; nothing leaves the process.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APITimeoutError

from calai.domain.analysis.image import UploadedImage
from calai.domain.shared.errors import AnalysisTimeoutError
from calai.infrastructure.ai.openai_client import OpenAIVisionClient


@pytest.fixture
def mock_openai_response() -> MagicMock:
    """Mock OpenAI ChatCompletion response."""
    response = MagicMock()

    choice = MagicMock()
    choice.message.content = '{"food_name": "Bibimbap", "estimated_kcal": 550}'
    choice.finish_reason = "stop"

    usage = MagicMock()
    usage.total_tokens = 321

    response.choices = [choice]
    response.usage = usage
    return response


@pytest.fixture
def mock_openai_client(mock_openai_response: MagicMock) -> AsyncMock:
    """Mock AsyncOpenAI client."""
    client = AsyncMock()
    client.close = AsyncMock()
    client.chat.completions.create = AsyncMock(return_value=mock_openai_response)
    return client


class TestInit:
    def test_defaults(self) -> None:
        client = OpenAIVisionClient(api_key="sk-test-123")

        assert client.api_key == "sk-test-123"
        assert client.model == "gpt-4o-mini"
        assert client.timeout == 30.0
        assert client.name == "openai"

    def test_missing_api_key_raises(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError, match="OPENAI_API_KEY not found"):
                OpenAIVisionClient()

    def test_reads_key_from_env(self) -> None:
        with patch.dict("os.environ", {"OPENAI_API_KEY": "sk-env-456"}):
            assert OpenAIVisionClient().api_key == "sk-env-456"


class TestAnalyzeImage:
    @pytest.mark.asyncio
    async def test_sends_json_mode_request_with_inline_image(
        self, mock_openai_client: AsyncMock, jpeg_image: UploadedImage
    ) -> None:
        async with OpenAIVisionClient(client=mock_openai_client) as client:
            content = await client.analyze_image(jpeg_image)

        assert content == '{"food_name": "Bibimbap", "estimated_kcal": 550}'
        kwargs = mock_openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"] == {"type": "json_object"}

        system, user = kwargs["messages"]
        assert system["role"] == "system"
        assert "JSON" in system["content"]
        image_part = user["content"][1]
        assert image_part["type"] == "image_url"
        assert image_part["image_url"]["url"] == jpeg_image.to_data_uri()
        assert image_part["image_url"]["url"].startswith("data:image/jpeg;base64,")

    @pytest.mark.asyncio
    async def test_png_media_type_preserved(self, mock_openai_client: AsyncMock) -> None:
        image = UploadedImage(data=b"\x89PNG\r\n", media_type="image/png")

        async with OpenAIVisionClient(client=mock_openai_client) as client:
            await client.analyze_image(image)

        user = mock_openai_client.chat.completions.create.call_args.kwargs["messages"][1]
        assert user["content"][1]["image_url"]["url"].startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_missing_content_returns_none(
        self,
        mock_openai_client: AsyncMock,
        mock_openai_response: MagicMock,
        jpeg_image: UploadedImage,
    ) -> None:
        mock_openai_response.choices[0].message.content = None

        async with OpenAIVisionClient(client=mock_openai_client) as client:
            assert await client.analyze_image(jpeg_image) is None

    @pytest.mark.asyncio
    async def test_transport_timeout_mapped(
        self, mock_openai_client: AsyncMock, jpeg_image: UploadedImage
    ) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        mock_openai_client.chat.completions.create.side_effect = APITimeoutError(request=request)

        async with OpenAIVisionClient(client=mock_openai_client) as client:
            with pytest.raises(AnalysisTimeoutError):
                await client.analyze_image(jpeg_image)

        # exactly one attempt
        assert mock_openai_client.chat.completions.create.await_count == 1

    @pytest.mark.asyncio
    async def test_other_errors_propagate(
        self, mock_openai_client: AsyncMock, jpeg_image: UploadedImage
    ) -> None:
        mock_openai_client.chat.completions.create.side_effect = RuntimeError("quota")

        async with OpenAIVisionClient(client=mock_openai_client) as client:
            with pytest.raises(RuntimeError, match="quota"):
                await client.analyze_image(jpeg_image)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, mock_openai_client: AsyncMock) -> None:
        async with OpenAIVisionClient(client=mock_openai_client) as client:
            assert client._client is mock_openai_client

        mock_openai_client.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_complete_requires_context(self, jpeg_image: UploadedImage) -> None:
        client = OpenAIVisionClient(api_key="sk-test")

        with pytest.raises(RuntimeError, match="Use async with"):
            await client.analyze_image(jpeg_image)

    @pytest.mark.asyncio
    async def test_sdk_client_built_without_retries(self) -> None:
        with patch("calai.infrastructure.ai.openai_client.AsyncOpenAI") as sdk_cls:
            sdk_cls.return_value.close = AsyncMock()
            async with OpenAIVisionClient(api_key="sk-test", timeout=12.0):
                pass

        sdk_cls.assert_called_once_with(api_key="sk-test", timeout=12.0, max_retries=0)
