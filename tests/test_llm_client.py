# tests/test_llm_client.py
import asyncio
from types import SimpleNamespace

import pytest

from generation.exceptions import EmptyResponseError, GenerationServiceUnconfigured, MalformedResponseError
from generation.llm_client import GenerationClient


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(content):
    completions = FakeCompletions(content)
    openai_like = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return GenerationClient("test-key", model="test-model", client=openai_like), completions


class TestGenerationClient:
    def test_requires_api_key(self):
        with pytest.raises(GenerationServiceUnconfigured):
            GenerationClient("")

    def test_from_env_without_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(GenerationServiceUnconfigured):
            GenerationClient.from_env()

    def test_generate_json_sends_schema(self):
        client, completions = _client('{"questions": []}')
        data = asyncio.run(client.generate_json("prompt", {"type": "object"}, schema_name="mcq_quiz"))
        assert data == {"questions": []}
        assert completions.kwargs["model"] == "test-model"
        assert completions.kwargs["response_format"]["json_schema"]["name"] == "mcq_quiz"

    def test_strips_code_fences(self):
        client, _ = _client('```json\n{"a": 1}\n```')
        assert asyncio.run(client.generate_json("p", {})) == {"a": 1}

    def test_repairs_truncated_json(self):
        client, _ = _client('{"questions": [{"question": "Q?", "options": ["a", "b"]')
        data = asyncio.run(client.generate_json("p", {}))
        assert data["questions"][0]["question"] == "Q?"

    def test_unparseable_content(self):
        client, _ = _client("I cannot help with that.")
        with pytest.raises(MalformedResponseError):
            asyncio.run(client.generate_json("p", {}))

    def test_empty_content(self):
        client, _ = _client("   ")
        with pytest.raises(EmptyResponseError):
            asyncio.run(client.generate_text("p"))
