"""Client-side capture/display controller."""

from calai.client.controller import (
    AnalysisRequestError,
    CaptureController,
    ImagePreview,
    UploadState,
    load_image_file,
)
from calai.client.view import ResultView, build_result_view

__all__ = [
    "AnalysisRequestError",
    "CaptureController",
    "ImagePreview",
    "ResultView",
    "UploadState",
    "build_result_view",
    "load_image_file",
]
