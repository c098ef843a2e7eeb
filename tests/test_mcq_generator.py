# tests/test_mcq_generator.py
import asyncio

import httpx
import openai
import pytest

from generation.chunker import TextChunk
from generation.exceptions import ChunkGenerationError, EmptyResponseError, MalformedResponseError
from generation.mcq_generator import ChunkGenerator, build_quiz_schema
from generation.retry import RetryPolicy
from tests.helpers import FakeGenerationClient, make_questions, no_sleep

CHUNK = TextChunk(index=1, text="The Objectives Resolution was passed in March 1949.", start=0)


def _generator(responses):
    client = FakeGenerationClient(responses)
    gen = ChunkGenerator(client, RetryPolicy(max_attempts=3, base_delay=2.0), sleep=no_sleep)
    return gen, client


def _run(gen, **kwargs):
    return asyncio.run(gen.generate(CHUNK, "Constitutional History", **kwargs))


class TestChunkGenerator:
    def test_accepts_valid_questions(self):
        gen, client = _generator([{"questions": make_questions(3)}])
        result = _run(gen, total_chunks=3)

        assert result.chunk_index == 1
        assert result.accepted_count == 3
        assert result.parsed_count == 3
        assert all(q.correct_answer == "A" for q in result.questions)
        assert "Part 2 of 3" in client.prompts[0]
        assert "Constitutional History" in client.prompts[0]

    def test_invalid_items_dropped_and_counted(self):
        items = make_questions(3) + [{"question": "Broken?", "options": ["x", "y"], "correct_answer": "z"}]
        gen, _ = _generator([{"questions": items}])
        result = _run(gen)

        assert result.parsed_count == 4
        assert result.accepted_count == 3
        assert result.dropped_count == 1

    def test_empty_question_list_is_not_retried(self):
        gen, client = _generator([{"questions": []}])
        result = _run(gen)
        assert result.accepted_count == 0
        assert len(client.prompts) == 1

    def test_wrong_shape_is_retried(self):
        gen, client = _generator([{"unexpected": True}, {"questions": make_questions(2)}])
        result = _run(gen)
        assert result.accepted_count == 2
        assert len(client.prompts) == 2

    def test_api_errors_are_retried(self):
        api_error = openai.APIError("upstream hiccup", httpx.Request("POST", "https://example.test"), body=None)
        gen, client = _generator([api_error, MalformedResponseError("bad json"), {"questions": make_questions(1)}])
        result = _run(gen)
        assert result.accepted_count == 1
        assert len(client.prompts) == 3

    def test_exhausted_retries_raise_chunk_error(self):
        gen, client = _generator([EmptyResponseError("empty")] * 3)
        with pytest.raises(ChunkGenerationError) as exc_info:
            _run(gen)
        assert exc_info.value.chunk_index == 1
        assert isinstance(exc_info.value.cause, EmptyResponseError)
        assert len(client.prompts) == 3

    def test_unexpected_errors_are_not_retried(self):
        gen, client = _generator([ValueError("bug")])
        with pytest.raises(ValueError):
            _run(gen)
        assert len(client.prompts) == 1


class TestQuizSchema:
    def test_urdu_fields_required_only_when_requested(self):
        plain = build_quiz_schema(False)["properties"]["questions"]["items"]["required"]
        bilingual = build_quiz_schema(True)["properties"]["questions"]["items"]["required"]
        assert "question_urdu" not in plain
        assert {"question_urdu", "options_urdu", "explanation_urdu"} <= set(bilingual)
