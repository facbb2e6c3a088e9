"""
Model failover — tries an ordered list of model ids until one gives a usable answer.

Rules, per model id (exactly one request each, never retried):
  429             → log "rate limited", move on
  other HTTP error → log status, move on
  network error    → log, move on
  empty content    → log, move on
  content rejected by accept() (e.g. unparseable JSON) → log, move on
  content accepted → stop and return (model_id, value)

Running out of model ids is not an error: run_models() returns None and the
caller switches to its offline fallback. Nothing is cached between runs.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

import openai

from providers.base import ChatProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_models(
    provider: Optional[ChatProvider],
    model_ids: list[str],
    messages: list[dict],
    accept: Callable[[str, str], Optional[T]],
    max_tokens: int,
    temperature: float,
    purpose: str = "request",
) -> Optional[tuple[str, T]]:
    """
    Try each model id in order, strictly one after another.

    accept(content, model_id) turns raw content into a value, or returns None
    when the content is unusable. Returns (model_id, value) for the first
    accepted answer, or None when every model id was exhausted.
    """
    if provider is None:
        logger.warning("No remote provider configured; skipping %s models", purpose)
        return None

    for model_id in model_ids:
        logger.info("[%s] Attempting %s…", model_id, purpose)
        try:
            content = await provider.complete(
                model_id,
                messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.RateLimitError:
            logger.info("[%s] Rate limited, trying next model", model_id)
            continue
        except openai.APIStatusError as exc:
            logger.warning("[%s] API error %s: %s", model_id, exc.status_code, exc.message)
            continue
        except openai.APIConnectionError as exc:
            logger.warning("[%s] Network error: %s", model_id, exc)
            continue
        except Exception as exc:
            logger.error("[%s] Failed: %s", model_id, exc)
            continue

        if not content or not content.strip():
            logger.warning("[%s] Empty content, trying next model", model_id)
            continue

        try:
            value = accept(content, model_id)
        except Exception as exc:
            logger.warning("[%s] Unusable content (%s: %s), trying next model",
                           model_id, type(exc).__name__, exc)
            continue
        if value is None:
            logger.warning("[%s] Unusable content, trying next model", model_id)
            continue

        logger.info("[%s] OK — %s answered", model_id, purpose)
        return model_id, value

    logger.warning("All %d %s models exhausted or rate limited", len(model_ids), purpose)
    return None
