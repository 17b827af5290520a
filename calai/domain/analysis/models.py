"""
Shared AnalysisResult contract.

The same pydantic models validate the provider output on the server
before it is returned, and the HTTP payload on the client before it is
rendered. Validation is strict and fails closed: one bad field rejects
the whole object.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from calai.domain.shared.errors import SchemaMismatchError

# integers stay integers on the wire (550, not 550.0)
Number = Union[int, float]


class Confidence(str, Enum):
    """Model confidence in the estimate."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MacrosG(BaseModel):
    """Macronutrients in grams."""

    model_config = ConfigDict(frozen=True, strict=True, allow_inf_nan=False)

    carbs: Number
    protein: Number
    fat: Number


class AnalysisResult(BaseModel):
    """
    Nutrition estimate for one food photo.

    Attributes:
        food_name: Dish name as identified by the model
        estimated_kcal: Estimated energy (kcal)
        macros_g: Carbs/protein/fat in grams
        confidence: low | medium | high
        reason: Rationale for the estimate (or for low confidence)
        notes: Additional remarks, in order

    Example:
        >>> result = AnalysisResult.model_validate(
        ...     {
        ...         "food_name": "Bibimbap",
        ...         "estimated_kcal": 550,
        ...         "macros_g": {"carbs": 70, "protein": 20, "fat": 15},
        ...         "confidence": "high",
        ...         "reason": "rice bowl with vegetables",
        ...         "notes": [],
        ...     }
        ... )
        >>> result.confidence
        <Confidence.HIGH: 'high'>
    """

    model_config = ConfigDict(frozen=True, strict=True, allow_inf_nan=False)

    food_name: str = Field(..., description="Dish name")
    estimated_kcal: Number = Field(..., description="Estimated kcal for the whole portion")
    macros_g: MacrosG
    # strict mode would refuse plain strings for the enum
    confidence: Confidence = Field(..., strict=False)
    reason: str
    notes: List[str]


def validate_analysis(data: Any) -> AnalysisResult:
    """Validate raw JSON-decoded data against the contract.

    Args:
        data: Object produced by ``json.loads`` (or ``response.json()``)

    Returns:
        Validated, immutable AnalysisResult

    Raises:
        SchemaMismatchError: On any missing field, wrong type or bad enum
    """
    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as exc:
        raise SchemaMismatchError() from exc


def analysis_json_schema() -> Dict[str, Any]:
    """JSON Schema of AnalysisResult, for consumers outside Python."""
    return AnalysisResult.model_json_schema()
