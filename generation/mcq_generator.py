"""
Chunk Generator — one schema-constrained LLM request per text chunk.

Flow per chunk:
  1. Build the examiner prompt (part N of M, 12–20 questions, 4 options each)
  2. Call the generation service with a strict JSON schema
  3. Retry transient failures (empty/malformed output, API errors) with backoff
  4. Re-validate every item through the normalizer; drop the invalid ones

After the retries are exhausted a ChunkGenerationError is raised; whether that
aborts anything is the orchestrator's decision.
"""

import logging
from typing import Any, Dict, List

import openai

from generation.chunker import TextChunk
from generation.exceptions import (
    ChunkGenerationError,
    EmptyResponseError,
    MalformedResponseError,
)
from generation.llm_client import GenerationClient
from generation.question_normalizer import normalize_question
from generation.retry import RetryPolicy, retry_async
from generation.schemas import ChunkResult

log = logging.getLogger("generation.mcq")

TRANSIENT_ERRORS = (EmptyResponseError, MalformedResponseError, openai.APIError)

MIN_QUESTIONS_PER_CHUNK = 12
MAX_QUESTIONS_PER_CHUNK = 20


# ─── Prompt ────────────────────────────────────────────────────────────────────

SYSTEM_INSTRUCTION = (
    "You are a Forensic Educational Examiner for CSS/PMS exam preparation. "
    "Create COMPREHENSIVE MCQ assessments."
)
URDU_INSTRUCTION = " You are also an expert translator to Urdu."

MCQ_PROMPT = """Task: Create an EXHAUSTIVE MCQ quiz based ONLY on the provided text segment (Part {part} of {total}).

Rules:
1. EXHAUSTIVE COVERAGE: Extract EVERY distinct fact, definition, date, and concept from this text segment into a question.
2. SEQUENCE: Follow the chronological order of this text segment.
3. QUANTITY: Generate between {min_q} to {max_q} questions for this segment. If the text is dense, aim for {max_q}. If sparse, aim for {min_q}.
4. DEPTH: Include "Why" and "How" questions, not just "What".
5. OPTIONS: Provide exactly 4 options for each question.
6. CORRECT_ANSWER: The correct_answer field must be one of the exact option texts (not A/B/C/D).
7. EXPLANATIONS: Provide factual explanations for why the answer is correct (max 2 sentences).
{urdu_rule}
Topic Context: "{topic}"

INPUT TEXT SEGMENT:
{chunk_text}
"""

URDU_RULE = "REQUIREMENT: PROVIDE URDU TRANSLATIONS for every item including question, options, and explanation.\n"


def build_quiz_schema(include_urdu: bool) -> Dict[str, Any]:
    """JSON schema the service must answer with; Urdu fields become required when requested."""
    required = ["question", "options", "correct_answer", "explanation"]
    if include_urdu:
        required += ["question_urdu", "options_urdu", "explanation_urdu"]
    return {
        "type": "object",
        "properties": {
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "question": {"type": "string"},
                        "question_urdu": {"type": "string"},
                        "options": {"type": "array", "items": {"type": "string"}},
                        "options_urdu": {"type": "array", "items": {"type": "string"}},
                        "correct_answer": {"type": "string"},
                        "explanation": {
                            "type": "string",
                            "description": "Concise factual explanation (max 2 sentences).",
                        },
                        "explanation_urdu": {"type": "string"},
                    },
                    "required": required,
                },
            }
        },
        "required": ["questions"],
    }


def build_prompt(chunk: TextChunk, total_chunks: int, topic_name: str, include_urdu: bool) -> str:
    return MCQ_PROMPT.format(
        part=chunk.index + 1,
        total=total_chunks,
        min_q=MIN_QUESTIONS_PER_CHUNK,
        max_q=MAX_QUESTIONS_PER_CHUNK,
        urdu_rule=URDU_RULE if include_urdu else "",
        topic=topic_name,
        chunk_text=chunk.text,
    )


def _extract_items(data: Any) -> List[Any]:
    """Pull the question list out of the response; a wrong shape counts as malformed."""
    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        return data["questions"]
    if isinstance(data, list):
        return data
    raise MalformedResponseError(f"Expected an object with a 'questions' array, got {type(data).__name__}")


# ─── Generator ─────────────────────────────────────────────────────────────────

class ChunkGenerator:
    """Stateless per-call: every generate() is independent of the others."""

    def __init__(self, client: GenerationClient, retry_policy: RetryPolicy = RetryPolicy(), *, sleep=None):
        self.client = client
        self.retry_policy = retry_policy
        self._sleep = sleep

    async def _request(self, prompt: str, schema: dict, system: str) -> List[Any]:
        data = await self.client.generate_json(prompt, schema, system=system, schema_name="mcq_quiz")
        return _extract_items(data)

    async def generate(
        self,
        chunk: TextChunk,
        topic_name: str,
        include_urdu: bool = False,
        total_chunks: int = 1,
    ) -> ChunkResult:
        """
        Generate and validate MCQs for one chunk.

        Raises:
            ChunkGenerationError: every attempt failed with a transient error
        """
        prompt = build_prompt(chunk, total_chunks, topic_name, include_urdu)
        schema = build_quiz_schema(include_urdu)
        system = SYSTEM_INSTRUCTION + (URDU_INSTRUCTION if include_urdu else "")

        retry_kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        try:
            items = await retry_async(
                lambda: self._request(prompt, schema, system),
                self.retry_policy,
                retry_on=TRANSIENT_ERRORS,
                label=f"chunk {chunk.index + 1}/{total_chunks}",
                **retry_kwargs,
            )
        except TRANSIENT_ERRORS as e:
            raise ChunkGenerationError(chunk.index, e) from e

        questions = [q for q in (normalize_question(item) for item in items) if q is not None]
        result = ChunkResult(chunk_index=chunk.index, questions=questions, parsed_count=len(items))
        if result.dropped_count:
            log.warning(
                f"[MCQ] chunk {chunk.index + 1}/{total_chunks}: accepted {result.accepted_count}/{result.parsed_count} "
                f"parsed items, dropped {result.dropped_count} invalid"
            )
        else:
            log.info(f"[MCQ] chunk {chunk.index + 1}/{total_chunks}: {result.accepted_count} questions")
        return result
