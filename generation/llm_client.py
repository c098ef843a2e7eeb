"""
Text-generation service client shared by the MCQ pipeline and the study tools.

Talks to Gemini through its OpenAI-compatible endpoint with the OpenAI SDK, so the
model/provider can be swapped with LLM_BASE_URL + LLM_MODEL alone.

Model: gemini-2.5-flash  (override with LLM_MODEL env var)

The client is constructed explicitly and passed to whoever needs it;
GenerationClient.from_env() fails fast when no API key is configured.
"""

import json
import os
import re
from typing import Any, Optional

import json_repair
from openai import AsyncOpenAI

from generation.exceptions import (
    EmptyResponseError,
    GenerationServiceUnconfigured,
    MalformedResponseError,
)

# ── Model config ───────────────────────────────────────────────────────────────
LLM_MODEL = os.getenv("LLM_MODEL", "gemini-2.5-flash")
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/")
LLM_MAX_OUTPUT_TOKENS = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "8192"))

DEFAULT_SYSTEM = "You are a helpful academic assistant for CSS/PMS exam preparation. Output only what is asked."


def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    raw = re.sub(r"^```(?:json)?\s*", "", raw)
    raw = re.sub(r"\s*```$", "", raw)
    return raw


class GenerationClient:
    """Narrow wrapper: generate_json(prompt, schema) and generate_text(prompt)."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = LLM_MODEL,
        base_url: Optional[str] = LLM_BASE_URL,
        max_output_tokens: int = LLM_MAX_OUTPUT_TOKENS,
        client: Optional[AsyncOpenAI] = None,
    ):
        if not api_key:
            raise GenerationServiceUnconfigured("GEMINI_API_KEY is not set. Add it to your .env file.")
        self.model = model
        self.max_output_tokens = max_output_tokens
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    @classmethod
    def from_env(cls) -> "GenerationClient":
        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise GenerationServiceUnconfigured("Gemini API key not configured")
        return cls(api_key)

    async def _complete(self, prompt: str, system: str, response_format: Optional[dict], temperature: float) -> str:
        kwargs: dict = {}
        if response_format is not None:
            kwargs["response_format"] = response_format
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            max_tokens=self.max_output_tokens,
            **kwargs,
        )
        if not response.choices:
            raise EmptyResponseError("Empty response from model")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise EmptyResponseError("Empty response from model")
        return content

    async def generate_json(
        self,
        prompt: str,
        schema: dict,
        *,
        system: str = DEFAULT_SYSTEM,
        schema_name: str = "response",
        temperature: float = 0.4,
    ) -> Any:
        """
        Ask for a schema-constrained JSON answer and return it parsed.

        Raises:
            EmptyResponseError:     no content came back
            MalformedResponseError: content is not valid JSON
        """
        content = await self._complete(
            prompt,
            system,
            {"type": "json_schema", "json_schema": {"name": schema_name, "schema": schema}},
            temperature,
        )
        raw = _strip_fences(content)
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            pass
        # truncated or slightly broken output (unclosed brackets, trailing commas)
        repaired = json_repair.loads(raw)
        if not isinstance(repaired, (dict, list)) or not repaired:
            raise MalformedResponseError(f"Invalid JSON from model: got {content[:200]!r}")
        return repaired

    async def generate_text(self, prompt: str, *, system: str = DEFAULT_SYSTEM, temperature: float = 0.6) -> str:
        """Free-form (markdown) answer."""
        return (await self._complete(prompt, system, None, temperature)).strip()

    async def aclose(self) -> None:
        await self._client.close()
