"""
OpenRouter chat provider — one OpenAI-compatible endpoint, many model ids.

OpenRouter (https://openrouter.ai) routes each request to the model named in
the payload, so a single client serves the whole failover list. Model ids look
like "google/gemini-2.0-flash-exp:free" or "mistralai/mistral-7b-instruct:free".

The SDK's own retry loop is disabled (max_retries=0): a rate-limited or failing
model id is never retried, the orchestrator moves on to the next id instead.
"""
from __future__ import annotations

import logging
from typing import Optional

import openai

from providers.base import ChatProvider

logger = logging.getLogger(__name__)

_OR_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(ChatProvider):
    """Chat provider backed by the OpenRouter chat-completions endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = _OR_BASE_URL,
        referer: str = "https://smartheal.app",
        title: str = "SmartHeal Therapy App",
        timeout: Optional[float] = None,
    ):
        self.name     = "openrouter"
        self.base_url = base_url.rstrip("/")

        kwargs = {}
        if timeout is not None:
            kwargs["timeout"] = timeout   # otherwise the SDK default applies

        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            max_retries=0,
            default_headers={
                "HTTP-Referer": referer,
                "X-Title":      title,
            },
            **kwargs,
        )

    async def complete(
        self,
        model_id: str,
        messages: list[dict],
        max_tokens: int,
        temperature: float,
    ) -> str:
        response = await self._client.chat.completions.create(
            model=model_id,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


# ── Discovery helper ─────────────────────────────────────────────────────────

def select_free_models(data: dict, vision_only: bool = False) -> list[dict]:
    """
    Pick the zero-cost models out of an OpenRouter /models listing.

    Each returned dict has:
        id        — the full model id (e.g. "google/gemini-2.0-flash-exp:free")
        name      — human-readable name
        context   — context window (tokens)
        vision    — True when the model accepts image input
        provider  — the upstream provider ("google", "mistralai", etc.)
    """
    models = []
    for m in data.get("data", []):
        pricing = m.get("pricing", {}) or {}
        try:
            prompt_cost     = float(pricing.get("prompt", "0") or "0")
            completion_cost = float(pricing.get("completion", "0") or "0")
        except (TypeError, ValueError):
            continue
        if prompt_cost > 0 or completion_cost > 0:
            continue

        arch     = m.get("architecture", {}) or {}
        modality = arch.get("modality", "") or arch.get("input_modalities", "")
        vision   = "image" in str(modality).lower()
        if vision_only and not vision:
            continue

        models.append({
            "id":       m["id"],
            "name":     m.get("name", m["id"]),
            "context":  m.get("context_length", 0),
            "vision":   vision,
            "provider": m["id"].split("/")[0] if "/" in m["id"] else "unknown",
        })

    # Largest context first, then alphabetical for a stable listing
    models.sort(key=lambda x: (-int(x["context"] or 0), x["id"]))
    return models


async def discover_free_models(
    api_key: str,
    base_url: str = _OR_BASE_URL,
    vision_only: bool = False,
) -> list[dict]:
    """Query OpenRouter's public models endpoint and return the free models."""
    import aiohttp

    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                f"{base_url.rstrip('/')}/models",
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=aiohttp.ClientTimeout(total=15),
            ) as resp:
                if resp.status != 200:
                    raise RuntimeError(f"OpenRouter models API returned {resp.status}")
                data = await resp.json()
    except Exception as exc:
        logger.error("Failed to fetch OpenRouter models: %s", exc)
        raise

    return select_free_models(data, vision_only=vision_only)
