"""
normalizer.py — turns raw model text into a fully populated AnalysisResult.

Only a failed top-level parse makes a response unusable. Every individual
field that is missing or has the wrong type is replaced by its default, so a
partial object from a model is always recovered.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

from models import SEVERITIES, AnalysisResult, TherapyRecommendation
from providers.base import parse_json_response

logger = logging.getLogger(__name__)

# ── Defaults (applied independently per field) ────────────────────────────────

DEFAULT_AREA           = "Unknown Area"
DEFAULT_SEVERITY       = "moderate"
DEFAULT_CONFIDENCE     = 75
DEFAULT_PRIMARY        = "Heat Therapy"
DEFAULT_SECONDARY      = "Light Massage"
DEFAULT_INTENSITY      = 5
DEFAULT_DURATION       = 20
DEFAULT_TEMPERATURE    = "Medium (38°C)"
DEFAULT_FREQUENCY      = "2-3 times daily"
DEFAULT_NOTES          = ("Analysis completed",)
DEFAULT_PRECAUTIONS    = ("Consult a healthcare provider if symptoms persist",)


def _first(data: dict, *keys: str) -> Any:
    """Value of the first key present in data, else None."""
    for key in keys:
        if key in data:
            return data[key]
    return None


def _as_str(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _as_int(value: Any, default: int, lo: int, hi: Optional[int] = None) -> int:
    """Accept JSON numbers only; bools, strings and junk get the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    number = int(round(value))
    number = max(lo, number)
    if hi is not None:
        number = min(hi, number)
    return number


def _as_severity(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in SEVERITIES:
        return value.strip().lower()
    return DEFAULT_SEVERITY


def _as_lines(value: Any, default: tuple[str, ...]) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return default
    lines = tuple(v for v in value if isinstance(v, str) and v.strip())
    return lines or default


def normalize_data(data: dict, model_id: Optional[str] = None) -> AnalysisResult:
    """Build an AnalysisResult from a parsed JSON object, defaulting field by field."""
    recs = data.get("recommendations")
    if not isinstance(recs, dict):
        recs = {}

    recommendation = TherapyRecommendation(
        primary_therapy   = _as_str(recs.get("primaryTherapy"), DEFAULT_PRIMARY),
        secondary_therapy = _as_str(recs.get("secondaryTherapy"), DEFAULT_SECONDARY),
        intensity         = _as_int(recs.get("intensity"), DEFAULT_INTENSITY, 1, 10),
        duration_minutes  = _as_int(_first(recs, "duration", "durationMinutes"), DEFAULT_DURATION, 1),
        temperature_label = _as_str(_first(recs, "temperature", "temperatureLabel"), DEFAULT_TEMPERATURE),
        frequency_label   = _as_str(_first(recs, "frequency", "frequencyLabel"), DEFAULT_FREQUENCY),
    )

    return AnalysisResult(
        success         = True,
        detected_area   = _as_str(data.get("detectedArea"), DEFAULT_AREA),
        severity        = _as_severity(data.get("severity")),
        confidence      = _as_int(data.get("confidence"), DEFAULT_CONFIDENCE, 0, 100),
        recommendations = recommendation,
        analysis_notes  = _as_lines(_first(data, "analysis", "analysisNotes"), DEFAULT_NOTES),
        precautions     = _as_lines(data.get("precautions"), DEFAULT_PRECAUTIONS),
        error_reason    = None,
        model_id        = model_id,
    )


def normalize_response(raw: str, model_id: str = "model") -> Optional[AnalysisResult]:
    """
    Strip code fences, parse and default a model response.
    Returns None when the text is not a JSON object at all.
    """
    try:
        data = parse_json_response(raw, model_id)
    except ValueError as exc:
        logger.warning("Unparseable analysis from %s: %s", model_id, exc)
        return None
    return normalize_data(data, model_id=model_id)
