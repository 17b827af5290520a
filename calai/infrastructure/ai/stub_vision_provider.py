"""Stub vision provider for local runs and tests.

Returns a fixed nutrition estimate without calling external APIs.
"""

import json
from typing import Any, Dict, Optional

from calai.domain.analysis.image import UploadedImage

STUB_ANALYSIS: Dict[str, Any] = {
    "food_name": "비빔밥",
    "estimated_kcal": 550,
    "macros_g": {"carbs": 70, "protein": 20, "fat": 15},
    "confidence": "high",
    "reason": "밥 위에 나물, 고추장, 달걀이 올라간 전형적인 1인분 비빔밥입니다.",
    "notes": ["고추장 양에 따라 나트륨 함량이 달라질 수 있습니다."],
}


class StubVisionProvider:
    """
    Stub implementation of IVisionProvider.

    Supports async context manager protocol for lifespan compatibility.
    """

    name = "stub"

    def __init__(self, payload: Optional[Dict[str, Any]] = None) -> None:
        self._payload = payload if payload is not None else STUB_ANALYSIS

    async def __aenter__(self) -> "StubVisionProvider":
        """Enter async context (no-op for stub)."""
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        """Exit async context (no-op for stub)."""
        return None

    async def analyze_image(self, image: UploadedImage) -> Optional[str]:
        return json.dumps(self._payload, ensure_ascii=False)
