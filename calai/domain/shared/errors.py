"""
Domain exceptions for the analysis pipeline.

Every exception carries the HTTP status it maps to and a human-readable
(Korean) message that is safe to show to the user. The API layer converts
them into ``{"error": message}`` bodies; nothing else about the exception
reaches the client.
"""

from __future__ import annotations

from typing import Optional


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class AnalysisError(Exception):
    """
    Base exception for all analysis errors.

    Subclasses override ``status_code`` and ``default_message``.
    All of them are terminal for the current request: no retries.

    Example:
        >>> err = AnalysisError()
        >>> err.status_code, err.message
        (500, '서버 오류가 발생했습니다.')
    """

    status_code: int = 500
    default_message: str = "서버 오류가 발생했습니다."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ═══════════════════════════════════════════════════════════
# CLIENT INPUT EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ImageValidationError(AnalysisError):
    """
    Uploaded image rejected.

    Raised when:
    - No file in the ``image`` field
    - File larger than the configured maximum
    - Media type not starting with ``image/``
    """

    status_code = 400
    default_message = "이미지 파일이 필요합니다."


class RateLimitExceededError(AnalysisError):
    """
    Too many requests from one client identifier in the current window.

    Attributes:
        retry_after_s: Seconds until the window resets (None if unknown)
    """

    status_code = 429
    default_message = "요청이 너무 많습니다. 잠시 후 다시 시도해주세요. (분당 5회 제한)"

    def __init__(self, message: Optional[str] = None, retry_after_s: Optional[int] = None) -> None:
        super().__init__(message)
        self.retry_after_s = retry_after_s


# ═══════════════════════════════════════════════════════════
# EXTERNAL PROVIDER EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class AnalysisTimeoutError(AnalysisError):
    """Provider call did not complete within the deadline."""

    status_code = 504
    default_message = "분석 시간이 너무 오래 걸립니다. 다시 시도해주세요."


class UpstreamFormatError(AnalysisError):
    """
    Provider answered, but not with usable JSON.

    Raised when:
    - Response content is empty
    - Response content is not valid JSON
    """

    status_code = 500
    default_message = "AI 응답을 생성하지 못했습니다."


class SchemaMismatchError(UpstreamFormatError):
    """
    JSON does not match the AnalysisResult contract.

    Used on both sides: the server rejects a misbehaving model,
    the client rejects a misbehaving (or tampered) response.
    """

    default_message = "데이터 분석 형식이 올바르지 않습니다."


class UnexpectedAnalysisError(AnalysisError):
    """
    Anything else.

    The message may come from the provider SDK and must be treated as
    untrusted free text.
    """

    pass
