"""
Pydantic schemas for the AI generation layer.

Internal pipeline types:   GeneratedQuestion (letter-keyed), ChunkResult
API request/response:      MCQ generation, theory, essay, article analysis, mentor chat
"""

from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, Field

LETTERS = ("A", "B", "C", "D")
OPTION_MAX_CHARS = 500   # mcq_questions.option_* column width


# ─── Internal pipeline types ───────────────────────────────────────────────────

class GeneratedQuestion(BaseModel):
    """One validated MCQ; correct_answer is always a letter pointing into options."""
    question: str
    options: List[str] = Field(..., min_length=2, max_length=4)
    correct_answer: Literal["A", "B", "C", "D"]
    explanation: str = ""
    question_urdu: Optional[str] = None
    options_urdu: Optional[List[str]] = None
    explanation_urdu: Optional[str] = None
    position: Optional[int] = None   # global order in the aggregated job output


class ChunkResult(BaseModel):
    """Questions accepted from one chunk plus how many items the model returned."""
    chunk_index: int
    questions: List[GeneratedQuestion] = Field(default_factory=list)
    parsed_count: int = 0

    @property
    def accepted_count(self) -> int:
        return len(self.questions)

    @property
    def dropped_count(self) -> int:
        return self.parsed_count - self.accepted_count


# ─── MCQ generation requests ───────────────────────────────────────────────────

class GenerateMcqsRequest(BaseModel):
    """Generate an MCQ material (plus a theory copy of the source) under an existing topic."""
    text: str = Field(..., min_length=1, description="Source study text")
    topic_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=255)
    include_urdu: bool = False


class CreateTopicWithMcqsRequest(BaseModel):
    """Create a topic under a subject and start MCQ generation for it in one step."""
    text: str = Field(..., min_length=1)
    subject_id: int = Field(..., gt=0)
    topic_name: str = Field(..., min_length=1, max_length=255)
    include_urdu: bool = False


class GenerateQuizRequest(BaseModel):
    """Synchronous quiz generation for one topic; stores the source text as topic content."""
    text: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=255)
    include_urdu: bool = False


class McqJobStarted(BaseModel):
    job_id: int
    material_id: int
    topic_id: int
    total_chunks: int
    message: str


class ImportQuizRequest(BaseModel):
    """Import pre-written MCQs; items may use either answer convention."""
    title: str = Field(..., min_length=1, max_length=255)
    questions: List[Dict[str, Any]] = Field(..., min_length=1)


# ─── Study tools ───────────────────────────────────────────────────────────────

class GenerateTheoryRequest(BaseModel):
    text: str = Field(..., min_length=1)
    topic_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=255)


class AnalyzeArticleRequest(BaseModel):
    text: str = Field(..., min_length=1)


class VocabularyItem(BaseModel):
    word: str
    definition: str


class ArticleAnalysis(BaseModel):
    vocabulary: List[VocabularyItem] = Field(default_factory=list)
    key_points: List[str] = Field(default_factory=list)
    analytical_angles: List[str] = Field(default_factory=list)
    counter_narratives: List[str] = Field(default_factory=list)


class GenerateEssayRequest(BaseModel):
    topic: str = Field(..., min_length=1, max_length=500)


class EssayStructureResponse(BaseModel):
    content: str


class MentorChatRequest(BaseModel):
    message: str = Field(..., min_length=1)


class MentorChatReply(BaseModel):
    response: str
    message_id: int
