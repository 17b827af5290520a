"""
Food photo analysis service.

Validates the upload, asks the vision provider for an estimate under a
hard deadline, and validates the answer against the shared contract.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import structlog

from calai.domain.analysis.image import MAX_IMAGE_BYTES, UploadedImage, is_image_media_type
from calai.domain.analysis.models import AnalysisResult, validate_analysis
from calai.domain.shared.errors import (
    AnalysisTimeoutError,
    ImageValidationError,
    RateLimitExceededError,
    UpstreamFormatError,
)
from calai.domain.shared.ports.rate_limiter import IRateLimiter
from calai.domain.shared.ports.vision_provider import IVisionProvider
from calai.metrics.analysis import record_confidence, time_provider_call

logger = structlog.get_logger(__name__)

MISSING_IMAGE_MESSAGE = "이미지 파일이 필요합니다."
IMAGE_TOO_LARGE_MESSAGE = "이미지 용량은 5MB를 초과할 수 없습니다."
NOT_AN_IMAGE_MESSAGE = "이미지 파일만 업로드 가능합니다."
EMPTY_RESPONSE_MESSAGE = "AI 응답을 생성하지 못했습니다."
MALFORMED_RESPONSE_MESSAGE = "AI 응답을 해석하지 못했습니다."


class AnalysisService:
    """
    Orchestrates one analysis request.

    No retries anywhere: every failure is raised to the caller as a typed
    AnalysisError and the user decides whether to try again.

    Example:
        >>> service = AnalysisService(provider=StubVisionProvider(), rate_limiter=limiter)
        >>> await service.enforce_rate_limit("203.0.113.7")
        >>> result = await service.analyze(image)
        >>> print(result.food_name, result.estimated_kcal)
    """

    def __init__(
        self,
        provider: IVisionProvider,
        rate_limiter: IRateLimiter,
        timeout_s: float = 25.0,
        max_image_bytes: int = MAX_IMAGE_BYTES,
    ) -> None:
        """
        Args:
            provider: Vision model adapter (already entered if it is a context manager)
            rate_limiter: Per-client fixed-window limiter
            timeout_s: Hard deadline for the provider call
            max_image_bytes: Upload size limit
        """
        self.provider = provider
        self.rate_limiter = rate_limiter
        self.timeout_s = timeout_s
        self.max_image_bytes = max_image_bytes

    async def enforce_rate_limit(self, client_id: str) -> None:
        """Count this request for ``client_id``.

        Raises:
            RateLimitExceededError: Limit exceeded in the current window
        """
        decision = await self.rate_limiter.hit(client_id)
        if not decision.allowed:
            raise RateLimitExceededError(
                f"요청이 너무 많습니다. 잠시 후 다시 시도해주세요. (분당 {decision.limit}회 제한)",
                retry_after_s=decision.retry_after_s,
            )

    def validate_upload(self, image: Optional[UploadedImage]) -> UploadedImage:
        """Authoritative intake check: presence, then size, then media type.

        Raises:
            ImageValidationError: With a distinct message per failure
        """
        if image is None:
            raise ImageValidationError(MISSING_IMAGE_MESSAGE)
        if image.exceeds(self.max_image_bytes):
            raise ImageValidationError(IMAGE_TOO_LARGE_MESSAGE)
        if not is_image_media_type(image.media_type):
            raise ImageValidationError(NOT_AN_IMAGE_MESSAGE)
        return image

    async def analyze(self, image: Optional[UploadedImage]) -> AnalysisResult:
        """
        Validate ``image`` and return the model's validated estimate.

        Raises:
            ImageValidationError: Bad upload (nothing is sent to the provider)
            AnalysisTimeoutError: Provider exceeded ``timeout_s``
            UpstreamFormatError: Empty or non-JSON answer
            SchemaMismatchError: JSON not matching AnalysisResult
            Exception: Provider errors, propagated unchanged
        """
        image = self.validate_upload(image)
        logger.info(
            "analysis.start",
            provider=self.provider.name,
            media_type=image.media_type,
            size=image.size,
        )

        content = await self._call_provider(image)
        data = self._parse_content(content)
        result = validate_analysis(data)

        record_confidence(result.confidence.value)
        logger.info(
            "analysis.done",
            provider=self.provider.name,
            confidence=result.confidence.value,
            estimated_kcal=result.estimated_kcal,
        )
        return result

    async def _call_provider(self, image: UploadedImage) -> Optional[str]:
        # wait_for cancels the pending call on expiry, nothing keeps running
        with time_provider_call(self.provider.name):
            try:
                return await asyncio.wait_for(
                    self.provider.analyze_image(image), timeout=self.timeout_s
                )
            except asyncio.TimeoutError as exc:
                logger.warning(
                    "analysis.timeout",
                    provider=self.provider.name,
                    timeout_s=self.timeout_s,
                )
                raise AnalysisTimeoutError() from exc

    @staticmethod
    def _parse_content(content: Optional[str]) -> Any:
        if not content or not content.strip():
            raise UpstreamFormatError(EMPTY_RESPONSE_MESSAGE)
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("analysis.malformed_json", error=str(exc), length=len(content))
            raise UpstreamFormatError(MALFORMED_RESPONSE_MESSAGE) from exc
