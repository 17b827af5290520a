"""
Shared fixtures.

The app is exercised in-process through httpx.AsyncClient with an
explicit ASGITransport. ASGITransport does not run the lifespan, so the
``client`` fixture installs an AnalysisService with a mocked provider on
``app.state`` itself.
"""

from __future__ import annotations

import io
import json
from typing import Any, AsyncIterator, Dict, Generator, cast
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

from calai.app import app
from calai.domain.analysis.image import UploadedImage
from calai.domain.analysis.service import AnalysisService
from calai.infrastructure.rate_limit.in_memory import InMemoryRateLimiter
from calai.metrics.analysis import reset_all


# ═══════════════════════════════════════════════════════════
# DOMAIN FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def bibimbap_payload() -> Dict[str, Any]:
    """Well-formed provider answer."""
    return {
        "food_name": "Bibimbap",
        "estimated_kcal": 550,
        "macros_g": {"carbs": 70, "protein": 20, "fat": 15},
        "confidence": "high",
        "reason": "Rice bowl with seasoned vegetables, egg and gochujang.",
        "notes": [],
    }


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Small real JPEG."""
    buf = io.BytesIO()
    Image.new("RGB", (32, 24), (200, 120, 40)).save(buf, format="JPEG")
    return buf.getvalue()


@pytest.fixture
def jpeg_image(jpeg_bytes: bytes) -> UploadedImage:
    return UploadedImage(data=jpeg_bytes, media_type="image/jpeg", filename="bibimbap.jpg")


# ═══════════════════════════════════════════════════════════
# MOCK PROVIDER / SERVICE FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def mock_provider(bibimbap_payload: Dict[str, Any]) -> AsyncMock:
    """Vision provider mock.

    Default behavior: returns the Bibimbap JSON.
    Override ``analyze_image.return_value`` / ``side_effect`` in tests.
    """
    provider = AsyncMock()
    provider.name = "mock"
    provider.analyze_image.return_value = json.dumps(bibimbap_payload)
    return provider


@pytest.fixture
def rate_limiter() -> InMemoryRateLimiter:
    return InMemoryRateLimiter(limit=5, window_s=60)


@pytest.fixture
def analysis_service(mock_provider: AsyncMock, rate_limiter: InMemoryRateLimiter) -> AnalysisService:
    return AnalysisService(provider=mock_provider, rate_limiter=rate_limiter, timeout_s=25.0)


@pytest.fixture(autouse=True)
def _reset_metrics() -> Generator[None, None, None]:
    """Reset metrics before and after each test for isolation."""
    reset_all()
    yield
    reset_all()


@pytest_asyncio.fixture
async def client(analysis_service: AnalysisService) -> AsyncIterator[AsyncClient]:
    """Async HTTP client bound to the app, with the test service installed."""
    app.state.analysis_service = analysis_service
    transport = ASGITransport(app=cast(Any, app))
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.state.analysis_service = None
