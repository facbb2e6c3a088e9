"""
analysis_client.py — the one entry point the app screens call.

    client = build_client()
    result = await client.analyze_image(photo_bytes, hint="left shoulder, after gym")
    result = await client.analyze_text("stiff lower back, chronic")
    answer = await client.ask_question("Should I use heat or ice?", result.context_summary())

None of these raise because a model is unavailable. When every remote model
fails, the offline fallback answers and result.error_reason says so. Only a
request with nothing to analyse yields success=False, still as a return value.
"""
from __future__ import annotations

import logging
from typing import Optional

import config
from answers import EMPTY_QUESTION_ANSWER, fallback_answer
from fallback import fallback_analysis, invalid_input_result
from models import AnalysisRequest, AnalysisResult, ImageInput
from normalizer import normalize_response
from providers.base import (
    ChatProvider,
    build_image_prompt,
    build_question_prompt,
    build_text_prompt,
    image_message,
    text_message,
)
from providers.manager import run_models

logger = logging.getLogger(__name__)

IMAGE_MAX_TOKENS    = 1000
TEXT_MAX_TOKENS     = 800
QUESTION_MAX_TOKENS = 500
ANALYSIS_TEMPERATURE = 0.3
QUESTION_TEMPERATURE = 0.5


def _accept_answer(content: str, model_id: str) -> Optional[str]:
    text = content.strip()
    return text or None


class AnalysisClient:
    """Photo / text analysis and follow-up questions with model failover."""

    def __init__(
        self,
        provider: Optional[ChatProvider],
        analysis_models: list[str],
        question_models: list[str],
        remote_text_analysis: bool = True,
    ):
        self.provider             = provider
        self.analysis_models      = list(analysis_models)
        self.question_models      = list(question_models)
        self.remote_text_analysis = remote_text_analysis

    # ── Analysis ──────────────────────────────────────────────────────────────

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        if request.is_image:
            return await self.analyze_image(request.image, request.hint)
        if request.description is not None:
            return await self.analyze_text(request.description)
        logger.warning("Analysis requested with neither image nor description")
        return invalid_input_result("no image or description was supplied")

    async def analyze_image(self, image: Optional[ImageInput], hint: str = "") -> AnalysisResult:
        hint = (hint or "").strip()
        if not image or (isinstance(image, str) and not image.strip()):
            logger.warning("Image analysis requested without image data")
            return invalid_input_result("no image data was supplied")

        messages = image_message(build_image_prompt(hint), image)
        hit = await run_models(
            self.provider,
            self.analysis_models,
            messages,
            accept=normalize_response,
            max_tokens=IMAGE_MAX_TOKENS,
            temperature=ANALYSIS_TEMPERATURE,
            purpose="image analysis",
        )
        if hit is not None:
            return hit[1]

        logger.info("Using offline fallback for image analysis")
        return fallback_analysis(hint, image_captured=True)

    async def analyze_text(self, description: Optional[str]) -> AnalysisResult:
        description = (description or "").strip()
        if not description:
            logger.warning("Text analysis requested with an empty description")
            return invalid_input_result("no description was supplied")

        if not self.remote_text_analysis:
            logger.info("Remote text analysis disabled, using local text analysis")
            return fallback_analysis(description)

        hit = await run_models(
            self.provider,
            self.analysis_models,
            text_message(build_text_prompt(description)),
            accept=normalize_response,
            max_tokens=TEXT_MAX_TOKENS,
            temperature=ANALYSIS_TEMPERATURE,
            purpose="text analysis",
        )
        if hit is not None:
            return hit[1]

        logger.info("Using offline fallback for text analysis")
        return fallback_analysis(description)

    # ── Questions ─────────────────────────────────────────────────────────────

    async def ask_question(self, question: Optional[str], context: Optional[str] = None) -> str:
        question = (question or "").strip()
        if not question:
            return EMPTY_QUESTION_ANSWER

        hit = await run_models(
            self.provider,
            self.question_models,
            text_message(build_question_prompt(question, context)),
            accept=_accept_answer,
            max_tokens=QUESTION_MAX_TOKENS,
            temperature=QUESTION_TEMPERATURE,
            purpose="question",
        )
        if hit is not None:
            return hit[1]

        logger.info("Using canned answer for question")
        return fallback_answer(question)


def build_client() -> AnalysisClient:
    """AnalysisClient wired from config (.env / environment)."""
    provider: Optional[ChatProvider] = None
    if config.OPENROUTER_API_KEY:
        from providers.openrouter_provider import OpenRouterProvider
        provider = OpenRouterProvider(
            api_key=config.OPENROUTER_API_KEY,
            base_url=config.OPENROUTER_BASE_URL,
            referer=config.APP_REFERER,
            title=config.APP_TITLE,
            timeout=config.OPENROUTER_TIMEOUT_SECS,
        )
        logger.info("Loaded provider: %s (%s)", provider.name, provider.base_url)
    else:
        logger.warning("OPENROUTER_API_KEY not set — all analysis will use the offline fallback")

    return AnalysisClient(
        provider=provider,
        analysis_models=config.ANALYSIS_MODELS,
        question_models=config.QUESTION_MODELS,
        remote_text_analysis=config.REMOTE_TEXT_ANALYSIS,
    )
