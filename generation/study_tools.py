"""
Single-call AI study tools: theory notes, mentor chat, article analysis, essay structure.
None of these are chunked or tracked as jobs; each is one request to the generation service.
"""

import logging
from typing import List, Sequence, Tuple

from generation.exceptions import EmptyResponseError
from generation.llm_client import GenerationClient
from generation.schemas import ArticleAnalysis, VocabularyItem

log = logging.getLogger("generation.study_tools")

MENTOR_HISTORY_LIMIT = 10
MENTOR_FALLBACK = "I apologize, but I couldn't generate a response. Please try again."

THEORY_PROMPT = """Create comprehensive study notes from the following text.

TEXT:
{text}

Create well-structured study notes with:
1. Key concepts and definitions
2. Important points highlighted
3. Clear explanations
4. Summary at the end

Format with markdown for readability."""

MENTOR_SYSTEM = (
    "You are an expert educational mentor and tutor for CSS/PMS aspirants. You help students "
    "with their studies, explain concepts clearly, and provide guidance on academic matters."
)

MENTOR_PROMPT = """CONVERSATION HISTORY:
{history}

STUDENT'S NEW MESSAGE:
{message}

Respond helpfully and encourage the student's learning. Be supportive but also challenge them to think critically."""

ARTICLE_PROMPT = """Analyze the following article/text for academic study purposes.

TEXT:
{text}

Extract:
1. Important vocabulary terms with definitions
2. Key points and main arguments
3. Different analytical angles/perspectives
4. Potential counter-narratives or opposing viewpoints"""

ARTICLE_SCHEMA = {
    "type": "object",
    "properties": {
        "vocabulary": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"word": {"type": "string"}, "definition": {"type": "string"}},
                "required": ["word", "definition"],
            },
        },
        "keyPoints": {"type": "array", "items": {"type": "string"}},
        "analyticalAngles": {"type": "array", "items": {"type": "string"}},
        "counterNarratives": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["vocabulary", "keyPoints", "analyticalAngles", "counterNarratives"],
}

ESSAY_SYSTEM = "You are a CSS (Central Superior Services) examination expert."

ESSAY_PROMPT = """Generate a comprehensive essay structure for the following topic that would help a candidate score highly in CSS Essay Paper.

TOPIC: {topic}

Provide a detailed essay structure in the following format:

# {topic}

## Introduction
[Compelling introduction with thesis statement, key definitions, and context]

## Key Arguments / Main Body

### 1. [First Major Argument]
- Key points to cover
- Supporting evidence and examples
- Relevant statistics or case studies
- Pakistan-specific context

### 2. [Second Major Argument]
- Key points to cover
- Supporting evidence and examples
- International perspectives

### 3. [Third Major Argument]
- Key points to cover
- Policy implications
- Future prospects

## Counter-Arguments
[Opposing viewpoints, addressed critically]

## Case Studies
[2-3 relevant case studies with brief analysis]

## Recommendations / Way Forward
[Practical, policy-oriented recommendations]

## Conclusion
[Summarize key points, restate thesis, end with an impactful closing statement]

## Expert Tips for CSS Examiners
- Writing style recommendations
- Common mistakes to avoid
- Quotations and references to include
- Word count management tips

Use formal academic language."""


async def generate_theory_summary(client: GenerationClient, text: str) -> str:
    """Markdown study notes for a block of source text."""
    return await client.generate_text(THEORY_PROMPT.format(text=text))


def format_history(history: Sequence[Tuple[str, str]], limit: int = MENTOR_HISTORY_LIMIT) -> str:
    """(role, content) pairs, oldest first → transcript of the last `limit` turns."""
    lines = [
        f"{'Student' if role == 'user' else 'Mentor'}: {content}"
        for role, content in list(history)[-limit:]
    ]
    return "\n\n".join(lines) if lines else "(no previous messages)"


async def chat_with_mentor(client: GenerationClient, message: str, history: Sequence[Tuple[str, str]]) -> str:
    prompt = MENTOR_PROMPT.format(history=format_history(history), message=message)
    try:
        reply = await client.generate_text(prompt, system=MENTOR_SYSTEM, temperature=0.7)
    except EmptyResponseError:
        log.warning("[MENTOR] empty reply from model, sending fallback")
        return MENTOR_FALLBACK
    return reply or MENTOR_FALLBACK


def _string_list(value) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


async def analyze_article(client: GenerationClient, text: str) -> ArticleAnalysis:
    data = await client.generate_json(ARTICLE_PROMPT.format(text=text), ARTICLE_SCHEMA, schema_name="article_analysis")
    if not isinstance(data, dict):
        log.warning(f"[ARTICLE] unexpected response type {type(data).__name__}; returning empty analysis")
        return ArticleAnalysis()

    vocabulary = []
    for item in data.get("vocabulary") or []:
        if isinstance(item, dict) and item.get("word") and item.get("definition"):
            vocabulary.append(VocabularyItem(word=str(item["word"]), definition=str(item["definition"])))

    return ArticleAnalysis(
        vocabulary=vocabulary,
        key_points=_string_list(data.get("keyPoints")),
        analytical_angles=_string_list(data.get("analyticalAngles")),
        counter_narratives=_string_list(data.get("counterNarratives")),
    )


async def generate_essay_structure(client: GenerationClient, topic: str) -> str:
    """CSS essay outline (markdown) for a topic."""
    return await client.generate_text(ESSAY_PROMPT.format(topic=topic), system=ESSAY_SYSTEM, temperature=0.7)
