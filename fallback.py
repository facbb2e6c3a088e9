"""
fallback.py — offline, keyword-driven therapy recommendation.

Used when no remote model produced a usable answer. Pure: no I/O, no clock,
no randomness, so the same text always gives the same result.

All tables are ordered (keywords, result) pairs, evaluated top to bottom,
first match wins.
"""
from __future__ import annotations

from typing import Optional

from models import AnalysisResult, TherapyRecommendation

# ── Area table ────────────────────────────────────────────────────────────────
# Specific left/right entries sit above the generic entry for the same joint.

AREA_RULES: list[tuple[tuple[str, ...], str]] = [
    # Back
    (("lower back", "lumbar"),        "Lower Back - Lumbar Region"),
    (("upper back", "thoracic"),      "Upper Back - Thoracic Region"),
    (("mid back", "middle back"),     "Mid Back Region"),
    (("back",),                       "Back - Lumbar Region"),
    # Shoulder
    (("left shoulder",),              "Left Shoulder Joint"),
    (("right shoulder",),             "Right Shoulder Joint"),
    (("shoulder",),                   "Shoulder Joint"),
    # Neck
    (("neck", "cervical"),            "Neck - Cervical Region"),
    # Knee / leg
    (("left knee",),                  "Left Knee Joint"),
    (("right knee",),                 "Right Knee Joint"),
    (("knee",),                       "Knee Joint"),
    (("thigh", "quad"),               "Thigh - Quadriceps Area"),
    (("calf", "shin"),                "Calf Muscle Area"),
    (("hamstring",),                  "Hamstring Area"),
    # Arm
    (("elbow",),                      "Elbow Joint"),
    (("wrist",),                      "Wrist Joint"),
    (("forearm",),                    "Forearm Area"),
    (("bicep", "upper arm"),          "Upper Arm - Biceps Area"),
    # Ankle / foot
    (("ankle",),                      "Ankle Joint"),
    (("foot", "feet"),                "Foot Area"),
    # Hip / glutes
    (("hip",),                        "Hip Joint"),
    (("glute", "buttock"),            "Gluteal Area"),
    # Torso
    (("abdomen", "stomach", "abs"),   "Abdominal Area"),
    (("chest", "pectoral"),           "Chest - Pectoral Area"),
]

DEFAULT_TEXT_AREA  = "Upper Body Area"
DEFAULT_IMAGE_AREA = "Body Area - Image Captured"

# ── Severity table (severe outranks mild) ─────────────────────────────────────

SEVERITY_RULES: list[tuple[tuple[str, ...], str]] = [
    (("severe", "intense", "sharp"),  "severe"),
    (("mild", "slight", "minor"),     "mild"),
]

DEFAULT_SEVERITY = "moderate"

INTENSITY_BY_SEVERITY = {"mild": 4, "moderate": 5, "severe": 6}

# ── Therapy pairing table ─────────────────────────────────────────────────────

THERAPY_RULES: list[tuple[tuple[str, ...], tuple[str, str]]] = [
    (("muscle", "tight", "stiff"),           ("Heat Therapy", "EMS Muscle Stimulation")),
    (("inflammation", "swell", "acute"),     ("Cold Therapy", "Light Compression")),
    (("chronic", "recurring"),               ("Alternating Heat & EMS", "Low-Frequency Stimulation")),
]

DEFAULT_THERAPY = ("Heat Therapy", "Light EMS")

FALLBACK_CONFIDENCE  = 70
FALLBACK_DURATION    = 20
FALLBACK_TEMPERATURE = "Medium (38°C)"
FALLBACK_FREQUENCY   = "2-3 times daily"

DEGRADED_NOTE  = "AI analysis temporarily unavailable - using text-based analysis"
DEGRADED_REASON = "Remote AI analysis unavailable; result produced by offline text heuristics"

FALLBACK_PRECAUTIONS = (
    "Start with lower intensity and gradually increase",
    "Stop if you experience any discomfort or pain",
    "Consult a healthcare provider for persistent or severe symptoms",
)


def _match(text: str, rules: list[tuple[tuple[str, ...], object]], default):
    for keywords, result in rules:
        if any(k in text for k in keywords):
            return result
    return default


def detect_area(text: str, image_captured: bool = False) -> str:
    default = DEFAULT_IMAGE_AREA if image_captured else DEFAULT_TEXT_AREA
    return _match(text.lower(), AREA_RULES, default)


def detect_severity(text: str) -> str:
    return _match(text.lower(), SEVERITY_RULES, DEFAULT_SEVERITY)


def select_therapy(text: str) -> tuple[str, str]:
    return _match(text.lower(), THERAPY_RULES, DEFAULT_THERAPY)


def fallback_analysis(text: Optional[str], image_captured: bool = False) -> AnalysisResult:
    """Classify free text into a recommendation. Never raises."""
    text = (text or "").strip()
    severity = detect_severity(text)
    primary, secondary = select_therapy(text)

    if text:
        first_note = f'Analysis based on your description: "{text}"'
    else:
        first_note = "Image captured successfully" if image_captured else "No description provided"

    return AnalysisResult(
        success=True,
        detected_area=detect_area(text, image_captured=image_captured),
        severity=severity,
        confidence=FALLBACK_CONFIDENCE,
        recommendations=TherapyRecommendation(
            primary_therapy=primary,
            secondary_therapy=secondary,
            intensity=INTENSITY_BY_SEVERITY[severity],
            duration_minutes=FALLBACK_DURATION,
            temperature_label=FALLBACK_TEMPERATURE,
            frequency_label=FALLBACK_FREQUENCY,
        ),
        analysis_notes=(
            first_note,
            "Recommended standard therapy protocol for this area",
            DEGRADED_NOTE,
        ),
        precautions=FALLBACK_PRECAUTIONS,
        error_reason=DEGRADED_REASON,
    )


def invalid_input_result(reason: str) -> AnalysisResult:
    """success=False result for a request that carried nothing to analyse."""
    primary, secondary = DEFAULT_THERAPY
    return AnalysisResult(
        success=False,
        detected_area="Unknown Area",
        severity=DEFAULT_SEVERITY,
        confidence=0,
        recommendations=TherapyRecommendation(
            primary_therapy=primary,
            secondary_therapy=secondary,
            intensity=INTENSITY_BY_SEVERITY[DEFAULT_SEVERITY],
            duration_minutes=FALLBACK_DURATION,
            temperature_label=FALLBACK_TEMPERATURE,
            frequency_label=FALLBACK_FREQUENCY,
        ),
        analysis_notes=(
            f"Nothing to analyse: {reason}",
            "Take a photo of the area or describe where it hurts, then try again",
        ),
        precautions=("Consult a healthcare provider if symptoms persist",),
        error_reason=f"invalid input: {reason}",
    )
