"""Display model for a validated AnalysisResult.

Pure functions, no I/O: the controller hands a validated result in and
gets back everything a screen (or the terminal) needs to draw.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Union

from calai.domain.analysis.models import AnalysisResult, Confidence

# bar is full at 60 g (visual scale only)
MACRO_BAR_FULL_G = 60.0

CONFIDENCE_LABELS = {
    Confidence.HIGH: "높음",
    Confidence.MEDIUM: "보통",
    Confidence.LOW: "낮음",
}


@dataclass(frozen=True)
class MacroBar:
    label: str
    grams: float
    width_pct: float

    @property
    def grams_label(self) -> str:
        return f"{format_number(self.grams)}g"


@dataclass(frozen=True)
class ConfidenceBadge:
    level: Confidence

    @property
    def label(self) -> str:
        return CONFIDENCE_LABELS[self.level]

    @property
    def text(self) -> str:
        return f"신뢰도 {self.label}"


@dataclass(frozen=True)
class ResultView:
    food_name: str
    kcal_label: str
    badge: ConfidenceBadge
    macros: Tuple[MacroBar, MacroBar, MacroBar]
    reason: str
    notes: Tuple[str, ...]
    details_open: bool = False


def format_number(value: Union[int, float]) -> str:
    """550.0 -> "550", 12.5 -> "12.5"."""
    if float(value).is_integer():
        return str(int(value))
    return str(round(float(value), 1))


def macro_bar_width(grams: float) -> float:
    """Bar width in percent, clamped to 0..100."""
    return max(0.0, min(100.0, (grams / MACRO_BAR_FULL_G) * 100.0))


def build_result_view(result: AnalysisResult, details_open: bool = False) -> ResultView:
    macros = result.macros_g
    return ResultView(
        food_name=result.food_name,
        kcal_label=f"{format_number(result.estimated_kcal)} kcal",
        badge=ConfidenceBadge(result.confidence),
        macros=(
            MacroBar("탄수화물", macros.carbs, macro_bar_width(macros.carbs)),
            MacroBar("단백질", macros.protein, macro_bar_width(macros.protein)),
            MacroBar("지방", macros.fat, macro_bar_width(macros.fat)),
        ),
        reason=result.reason,
        notes=tuple(result.notes),
        details_open=details_open,
    )


def render_text(view: ResultView, bar_cells: int = 20) -> str:
    """Plain-text rendering used by the CLI."""
    lines: List[str] = [
        f"[{view.badge.text}] 추정치",
        view.food_name,
        view.kcal_label,
        "",
    ]
    for bar in view.macros:
        filled = int(round(bar.width_pct / 100.0 * bar_cells))
        lines.append(f"{bar.label:<5} {'█' * filled}{'·' * (bar_cells - filled)} {bar.grams_label}")
    if view.details_open:
        lines += ["", "상세 분석 근거", view.reason]
        if view.notes:
            lines.append("AI Notes")
            lines += [f"• {note}" for note in view.notes]
    return "\n".join(lines)
