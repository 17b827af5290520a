"""REST API endpoint for food photo analysis.

POST /api/analyze takes a multipart form with one ``image`` field and
returns either an AnalysisResult (200) or ``{"error": message}`` with
400 / 429 / 500 / 504.

The photo only lives in memory for the duration of the request; the
parsed form is closed before the response goes out.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.datastructures import UploadFile

from calai.domain.analysis.image import UploadedImage
from calai.domain.analysis.models import AnalysisResult, analysis_json_schema
from calai.domain.analysis.service import IMAGE_TOO_LARGE_MESSAGE, AnalysisService
from calai.domain.shared.errors import (
    AnalysisError,
    AnalysisTimeoutError,
    ImageValidationError,
    RateLimitExceededError,
    SchemaMismatchError,
    UnexpectedAnalysisError,
    UpstreamFormatError,
)
from calai.metrics.analysis import record_request

logger = structlog.get_logger(__name__)

ANONYMOUS_CLIENT = "anonymous"
FORWARDED_FOR_HEADER = "x-forwarded-for"


class ErrorResponse(BaseModel):
    """Body of every non-200 response."""

    error: str


router = APIRouter(prefix="/api", tags=["analyze"])


def get_client_id(request: Request) -> str:
    """Client identifier for rate limiting.

    First address of X-Forwarded-For, or the shared "anonymous" bucket.
    The header is client-controlled: coarse abuse mitigation only.
    """
    forwarded = request.headers.get(FORWARDED_FOR_HEADER, "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or ANONYMOUS_CLIENT


def get_analysis_service(request: Request) -> AnalysisService:
    service: Optional[AnalysisService] = getattr(request.app.state, "analysis_service", None)
    if service is None:
        raise RuntimeError("Analysis service not initialized (lifespan not started)")
    return service


def error_response(exc: AnalysisError) -> JSONResponse:
    headers: Dict[str, str] = {}
    if isinstance(exc, RateLimitExceededError) and exc.retry_after_s is not None:
        headers["Retry-After"] = str(exc.retry_after_s)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump(),
        headers=headers or None,
    )


def _status_label(exc: AnalysisError) -> str:
    if isinstance(exc, RateLimitExceededError):
        return "rejected_rate_limit"
    if isinstance(exc, ImageValidationError):
        return "invalid_image"
    if isinstance(exc, AnalysisTimeoutError):
        return "timeout"
    if isinstance(exc, SchemaMismatchError):
        return "schema_mismatch"
    if isinstance(exc, UpstreamFormatError):
        return "upstream_format"
    return "error"


async def _read_image(field: Any, max_bytes: int) -> Optional[UploadedImage]:
    if not isinstance(field, UploadFile):
        # missing, or sent as a plain text field
        return None
    if field.size is not None and field.size > max_bytes:
        raise ImageValidationError(IMAGE_TOO_LARGE_MESSAGE)
    # at most one byte over the limit is loaded; validation rejects it
    data = await field.read(max_bytes + 1)
    return UploadedImage(
        data=data,
        media_type=field.content_type or "",
        filename=field.filename or "image",
    )


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def analyze(request: Request) -> Any:
    """Analyze one food photo.

    Sequence: rate limit (before the body is parsed), upload validation,
    provider call under the deadline, response validation.

    Example:
        ```bash
        curl -X POST http://localhost:8000/api/analyze \\
          -F "image=@/path/to/bibimbap.jpg;type=image/jpeg"
        ```
    """
    client_id = get_client_id(request)
    service = get_analysis_service(request)

    try:
        await service.enforce_rate_limit(client_id)

        form = await request.form()
        try:
            image = await _read_image(form.get("image"), service.max_image_bytes)
            result = await service.analyze(image)
        finally:
            await form.close()

    except AnalysisError as exc:
        record_request(_status_label(exc))
        logger.warning(
            "analyze.failed",
            client_id=client_id,
            status_code=exc.status_code,
            error_type=type(exc).__name__,
        )
        return error_response(exc)
    except Exception as exc:
        record_request("error")
        logger.exception("analyze.unexpected_error", client_id=client_id)
        return error_response(UnexpectedAnalysisError(str(exc) or None))

    record_request("ok")
    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))


@router.get("/analyze/schema")
async def analyze_schema() -> Dict[str, Any]:
    """JSON Schema of the AnalysisResult contract."""
    return analysis_json_schema()
