"""
Capture/display controller.

Headless state machine behind the photo screen:

    idle --select_file--> idle (image set, "ready")
    ready --analyze--> loading --200 + valid--> success
                               --error/network--> error (image kept)
    any --reset--> idle (everything cleared, in-flight request cancelled)

The controller owns one httpx.AsyncClient and issues at most one request
per ``analyze()`` call. Nothing is retried automatically.
"""

from __future__ import annotations

import asyncio
import io
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

import httpx
import structlog
from PIL import Image, UnidentifiedImageError

from calai.client.view import ResultView, build_result_view
from calai.domain.analysis.image import MAX_IMAGE_BYTES, UploadedImage, is_image_media_type
from calai.domain.analysis.models import AnalysisResult, validate_analysis
from calai.domain.shared.errors import AnalysisError
from calai.infrastructure.config import get_api_url

logger = structlog.get_logger(__name__)

NOT_AN_IMAGE_MESSAGE = "이미지 파일만 업로드 가능합니다."
IMAGE_TOO_LARGE_MESSAGE = "5MB 이하의 사진을 사용해주세요."
ANALYSIS_FAILED_MESSAGE = "분석 실패"
GENERIC_ERROR_MESSAGE = "오류가 발생했습니다."

ANALYZE_PATH = "/api/analyze"


class UploadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class ImagePreview:
    """Displayable form of the selected photo."""

    data_uri: str
    width: Optional[int] = None
    height: Optional[int] = None


class AnalysisRequestError(AnalysisError):
    """Server answered with a non-success status."""

    def __init__(self, message: Optional[str], status_code: int) -> None:
        super().__init__(message or ANALYSIS_FAILED_MESSAGE)
        self.status_code = status_code


def load_image_file(path: Union[str, Path]) -> UploadedImage:
    """Read a photo from disk into memory, guessing its media type."""
    path = Path(path)
    media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return UploadedImage(data=path.read_bytes(), media_type=media_type, filename=path.name)


def build_preview(image: UploadedImage) -> ImagePreview:
    """Data URI plus pixel size when Pillow can read the header."""
    width: Optional[int] = None
    height: Optional[int] = None
    try:
        with Image.open(io.BytesIO(image.data)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError) as exc:
        # the server still decides; an unreadable preview is not a rejection
        logger.debug("preview.size_unavailable", filename=image.filename, error=str(exc))
    return ImagePreview(data_uri=image.to_data_uri(), width=width, height=height)


class CaptureController:
    """
    Client-side upload/analysis state machine.

    Example:
        >>> async with CaptureController("http://localhost:8000") as ctrl:
        ...     ctrl.select_file(load_image_file("bibimbap.jpg"))
        ...     await ctrl.analyze()
        ...     if ctrl.state is UploadState.SUCCESS:
        ...         print(ctrl.view().kcal_label)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        max_image_bytes: int = MAX_IMAGE_BYTES,
        timeout_s: float = 60.0,
    ) -> None:
        """
        Args:
            base_url: Analysis server (reads CALAI_API_URL if None)
            http_client: Optional pre-configured client (for testing)
            max_image_bytes: Client-side size limit
            timeout_s: Transport timeout; the server enforces its own deadline
        """
        self.base_url = (base_url or get_api_url()).rstrip("/")
        self.max_image_bytes = max_image_bytes
        self._timeout_s = timeout_s
        self._http = http_client
        self._owns_http = http_client is None

        self.state = UploadState.IDLE
        self.image: Optional[UploadedImage] = None
        self.preview: Optional[ImagePreview] = None
        self.result: Optional[AnalysisResult] = None
        self.error: Optional[str] = None
        self.details_open = False

        self._inflight: Optional[asyncio.Task[AnalysisResult]] = None
        # bumped on reset / new selection; stale responses are dropped
        self._generation = 0

    async def __aenter__(self) -> CaptureController:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout_s)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self._cancel_inflight()
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    # ───────────────────────── queries ─────────────────────────

    @property
    def is_ready(self) -> bool:
        """Image selected, not analyzed yet."""
        return self.image is not None and self.state is UploadState.IDLE

    @property
    def can_analyze(self) -> bool:
        return self.image is not None and self.state is not UploadState.LOADING

    def view(self) -> Optional[ResultView]:
        if self.state is not UploadState.SUCCESS or self.result is None:
            return None
        return build_result_view(self.result, details_open=self.details_open)

    # ───────────────────────── commands ─────────────────────────

    def select_file(self, file: UploadedImage) -> bool:
        """
        Take a newly chosen photo.

        Rejected files only set ``error``; state, image and result stay as
        they were.

        Returns:
            True if the photo was accepted
        """
        if not is_image_media_type(file.media_type):
            self.error = NOT_AN_IMAGE_MESSAGE
            return False
        if file.exceeds(self.max_image_bytes):
            self.error = IMAGE_TOO_LARGE_MESSAGE
            return False

        self._cancel_inflight()
        self.image = file
        self.preview = build_preview(file)
        self.state = UploadState.IDLE
        self.result = None
        self.error = None
        self.details_open = False
        logger.info("capture.selected", filename=file.filename, size=file.size)
        return True

    async def analyze(self) -> None:
        """Send the selected photo once and settle in success or error."""
        if self.image is None or self.state is UploadState.LOADING:
            return
        if self._http is None:
            raise RuntimeError("Controller not initialized. Use async with.")

        self.state = UploadState.LOADING
        self.error = None
        generation = self._generation
        task = asyncio.create_task(self._request_analysis(self.image))
        self._inflight = task

        try:
            result = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.info("capture.analysis_cancelled")
                return
            raise
        except AnalysisError as exc:
            self._settle_error(generation, exc.message)
            return
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("capture.network_error", error=str(exc))
            self._settle_error(generation, GENERIC_ERROR_MESSAGE)
            return
        finally:
            if self._inflight is task:
                self._inflight = None

        if generation != self._generation:
            return
        self.result = result
        self.state = UploadState.SUCCESS

    def reset(self) -> None:
        """Back to the initial screen, cancelling any in-flight analysis."""
        self._cancel_inflight()
        self.image = None
        self.preview = None
        self.result = None
        self.error = None
        self.details_open = False
        self.state = UploadState.IDLE

    def toggle_details(self) -> bool:
        self.details_open = not self.details_open
        return self.details_open

    # ───────────────────────── internals ─────────────────────────

    def _cancel_inflight(self) -> None:
        self._generation += 1
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None

    def _settle_error(self, generation: int, message: str) -> None:
        if generation != self._generation:
            return
        self.error = message
        self.state = UploadState.ERROR

    async def _request_analysis(self, image: UploadedImage) -> AnalysisResult:
        if self._http is None:
            raise RuntimeError("Controller not initialized. Use async with.")
        response = await self._http.post(
            f"{self.base_url}{ANALYZE_PATH}",
            files={"image": (image.filename, image.data, image.media_type)},
        )
        try:
            payload: Any = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            message = payload.get("error") if isinstance(payload, dict) else None
            raise AnalysisRequestError(
                message if isinstance(message, str) else None,
                status_code=response.status_code,
            )

        # never trust the wire: same contract as the server
        return validate_analysis(payload)
