from __future__ import annotations

import json
import logging

from google import genai

from store_builder.state import BuilderSession, Step

logger = logging.getLogger(__name__)

_INSTRUCTIONS = (
    "Rewrite the assistant message below for a friendly store-builder chat.\n"
    "Keep it to one or two short sentences.\n"
    "Keep every emoji, name, URL and domain exactly as written.\n"
    "Do not ask for anything the message does not ask for.\n"
    "No extra commentary.\n\n"
)


class PromptWriter:
    """Optionally rephrases bot prompts with Gemini; falls back to the static text."""

    def __init__(self, api_key: str | None, model: str = "gemini-2.5-flash"):
        self.model = model
        self._client = genai.Client(api_key=api_key) if api_key else None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def render(self, session: BuilderSession, step: Step, base: str) -> str:
        if self._client is None:
            return base

        cache_key = f"{step.value}:{base}"
        cached = session.prompt_cache.get(cache_key)
        if cached:
            return cached

        known = session.draft.model_dump(mode="json", exclude_none=True, by_alias=True)
        contents = (
            _INSTRUCTIONS
            + f"next_step: {step.value}\n"
            + f"known_data: {json.dumps(known, ensure_ascii=False)}\n"
            + f"message: {base}\n"
        )
        try:
            resp = await self._client.aio.models.generate_content(model=self.model, contents=contents)
        except Exception as e:
            logger.warning("Prompt rephrasing failed for %s: %s", step.value, e)
            return base

        text = (resp.text or "").strip()
        if not text:
            return base
        rendered = text.splitlines()[0].strip() if len(text) > 240 else text
        session.prompt_cache[cache_key] = rendered
        return rendered
