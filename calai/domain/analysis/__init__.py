"""Food photo analysis domain."""

from calai.domain.analysis.image import MAX_IMAGE_BYTES, UploadedImage, is_image_media_type
from calai.domain.analysis.models import (
    AnalysisResult,
    Confidence,
    MacrosG,
    analysis_json_schema,
    validate_analysis,
)

__all__ = [
    "MAX_IMAGE_BYTES",
    "AnalysisResult",
    "Confidence",
    "MacrosG",
    "UploadedImage",
    "analysis_json_schema",
    "is_image_media_type",
    "validate_analysis",
]
