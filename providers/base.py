"""
Shared prompts, payload helpers and the base class for chat providers.
"""
from __future__ import annotations

import base64
import json
import logging
from abc import ABC, abstractmethod
from typing import Union

logger = logging.getLogger(__name__)

# ── Prompts ───────────────────────────────────────────────────────────────────

_JSON_SCHEMA = """{
  "detectedArea": "Specific body part or area detected (e.g., 'Lower Back - Lumbar Region', 'Right Shoulder', 'Left Knee')",
  "severity": "mild | moderate | severe",
  "confidence": 85,
  "recommendations": {
    "primaryTherapy": "Main therapy type (e.g., 'Heat Therapy', 'EMS Stimulation', 'Cold Therapy')",
    "secondaryTherapy": "Supporting therapy if needed",
    "intensity": 5,
    "duration": 20,
    "temperature": "Medium (38°C)",
    "frequency": "2-3 times daily"
  },
  "analysis": [
    "Key observation 1 about the area",
    "Key observation 2 about potential issues",
    "Key observation 3 about treatment approach"
  ],
  "precautions": [
    "Safety precaution 1",
    "Safety precaution 2"
  ]
}"""

_GUIDELINES = """Important guidelines:
- Be specific about the detected area
- Provide practical therapy recommendations suitable for a portable therapy device
- Suggest appropriate intensity levels (1-10 scale)
- Duration should be in minutes (typical range: 10-30 minutes)
- Include relevant precautions for safe therapy application

Respond ONLY with the JSON object, no additional text."""


def build_image_prompt(hint: str = "") -> str:
    """Prompt sent alongside a photo of the area that needs therapy."""
    hint = (hint or "").strip()
    if hint:
        extra = f"Additional information from user: {hint}"
    else:
        extra = "No additional information provided - analyze based solely on the image."
    return (
        "You are an AI medical therapy assistant for SmartHeal, a therapeutic device "
        "application. Analyze this image of a body part/area that needs therapy treatment.\n\n"
        f"{extra}\n\n"
        "Please analyze the image and provide a detailed therapy recommendation "
        "in the following JSON format:\n"
        f"{_JSON_SCHEMA}\n\n{_GUIDELINES}"
    )


def build_text_prompt(description: str) -> str:
    """Prompt for a text-only description of the problem area."""
    return (
        "You are an AI medical therapy assistant for SmartHeal. Based on the following "
        "description of a problem area, provide therapy recommendations.\n\n"
        f"User description: {description.strip()}\n\n"
        "Provide recommendations in the following JSON format:\n"
        f"{_JSON_SCHEMA}\n\n{_GUIDELINES}"
    )


def build_question_prompt(question: str, context: str | None = None) -> str:
    ctx = f"Context: {context.strip()}. " if context and context.strip() else ""
    return (
        f"You are a medical therapy assistant for SmartHeal. {ctx}"
        f"Answer this question concisely and helpfully: {question.strip()}"
    )


# ── Payload helpers ───────────────────────────────────────────────────────────

def encode_image(image: Union[bytes, str]) -> tuple[str, str]:
    """
    Return (media_type, base64_data) for an image given as raw bytes, plain
    base64 text, or a data URL. A data URL keeps its declared media type;
    bare base64 is sent as JPEG.
    """
    if isinstance(image, bytes):
        media_type = "image/jpeg"
        if image[:8] == b"\x89PNG\r\n\x1a\n":
            media_type = "image/png"
        elif image[:4] == b"RIFF":
            media_type = "image/webp"
        return media_type, base64.b64encode(image).decode()

    data = image.strip()
    media_type = "image/jpeg"
    if "base64," in data:
        prefix, data = data.split("base64,", 1)
        # "data:image/png;base64," → "image/png"
        declared = prefix[len("data:"):].split(";", 1)[0].strip() if prefix.startswith("data:") else ""
        if declared.startswith("image/"):
            media_type = declared
    return media_type, data


def image_message(prompt: str, image: Union[bytes, str]) -> list[dict]:
    """Single user message carrying the prompt text followed by the image."""
    media_type, b64 = encode_image(image)
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {
                    "type":      "image_url",
                    "image_url": {"url": f"data:{media_type};base64,{b64}"},
                },
            ],
        },
    ]


def text_message(prompt: str) -> list[dict]:
    return [{"role": "user", "content": prompt}]


def parse_json_response(raw: str, model_id: str) -> dict:
    """
    Parse a JSON object from a model response, handling markdown fences gracefully.
    Raises ValueError on parse failure or when the top level is not an object.
    """
    text = raw.strip()
    # Strip ```json ... ``` or ``` ... ``` fences if present
    if text.startswith("```"):
        lines = text.split("\n")
        if lines[-1].strip() == "```":
            lines = lines[:-1]
        elif lines[-1].rstrip().endswith("```"):
            lines[-1] = lines[-1].rstrip()[:-3]
        text = "\n".join(lines[1:]).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("[%s] Non-JSON response: %s", model_id, raw[:300])
        raise ValueError(f"[{model_id}] JSON parse error: {exc}") from exc
    except RecursionError as exc:
        logger.warning("[%s] JSON nested too deeply to parse (%d chars)", model_id, len(raw))
        raise ValueError(f"[{model_id}] JSON parse error: nested too deeply") from exc
    if not isinstance(data, dict):
        logger.warning("[%s] JSON response is not an object: %s", model_id, raw[:300])
        raise ValueError(f"[{model_id}] expected a JSON object, got {type(data).__name__}")
    return data


# ── Abstract base ─────────────────────────────────────────────────────────────

class ChatProvider(ABC):
    """One chat-completion endpoint that can serve several model ids."""

    name: str           # e.g. "openrouter"

    @abstractmethod
    async def complete(
        self,
        model_id: str,
        messages: list[dict],
        max_tokens: int,
        temperature: float,
    ) -> str:
        """
        Run one chat completion and return the message content ("" when the
        response carried none). Transport and HTTP errors propagate.
        """
        ...
