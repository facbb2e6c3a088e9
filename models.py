"""
models.py — value objects shared by the analysis client, the normaliser
and the offline fallback.

Results are frozen: built once per request and handed to the UI as-is.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

SEVERITIES = ("mild", "moderate", "severe")

# Raw bytes, plain base64, or a "data:image/...;base64," URL
ImageInput = Union[bytes, str]


@dataclass(frozen=True)
class TherapyRecommendation:
    """Device settings suggested for one session."""
    primary_therapy: str        # e.g. "Heat Therapy"
    secondary_therapy: str      # may be "None"
    intensity: int              # 1-10
    duration_minutes: int       # > 0, typically 10-30
    temperature_label: str      # e.g. "Medium (38°C)"
    frequency_label: str        # e.g. "2-3 times daily"

    def to_dict(self) -> dict:
        return {
            "primaryTherapy":   self.primary_therapy,
            "secondaryTherapy": self.secondary_therapy,
            "intensity":        self.intensity,
            "durationMinutes":  self.duration_minutes,
            "temperatureLabel": self.temperature_label,
            "frequencyLabel":   self.frequency_label,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Fully populated analysis, safe to render without further checks."""
    success: bool
    detected_area: str
    severity: str               # mild | moderate | severe
    confidence: int             # 0-100
    recommendations: TherapyRecommendation
    analysis_notes: tuple[str, ...]
    precautions: tuple[str, ...]
    error_reason: Optional[str] = None   # set on fallback / invalid input only
    model_id: Optional[str] = None       # remote model that produced it

    def to_dict(self) -> dict:
        """camelCase dict in the shape the app screens consume."""
        data = {
            "success":         self.success,
            "detectedArea":    self.detected_area,
            "severity":        self.severity,
            "confidence":      self.confidence,
            "recommendations": self.recommendations.to_dict(),
            "analysisNotes":   list(self.analysis_notes),
            "precautions":     list(self.precautions),
        }
        if self.error_reason is not None:
            data["errorReason"] = self.error_reason
        if self.model_id is not None:
            data["modelId"] = self.model_id
        return data

    def context_summary(self) -> str:
        """Short context line for follow-up questions."""
        return (
            f"Area: {self.detected_area}, Severity: {self.severity}, "
            f"Therapy: {self.recommendations.primary_therapy}"
        )


@dataclass(frozen=True)
class AnalysisRequest:
    """
    One analysis request: either a photo (with optional hint) or a text
    description, never both. A request with neither is representable so the
    client can report it as invalid input instead of raising.
    """
    image: Optional[ImageInput] = None
    hint: str = ""
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.image is not None and self.description is not None:
            raise ValueError("AnalysisRequest takes an image or a description, not both")

    @classmethod
    def for_image(cls, image: ImageInput, hint: str = "") -> "AnalysisRequest":
        return cls(image=image, hint=hint or "")

    @classmethod
    def for_text(cls, description: str) -> "AnalysisRequest":
        return cls(description=description)

    @property
    def is_image(self) -> bool:
        return self.image is not None
