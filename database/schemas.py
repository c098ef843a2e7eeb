"""
Pydantic schemas for request/response validation
Separate from SQLAlchemy models for clean API contracts
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Any, Literal
from datetime import datetime

from database.models import MaterialType
from generation.schemas import OPTION_MAX_CHARS


AnswerLetter = Literal["A", "B", "C", "D"]


# ==========================================
# MCQ QUESTION SCHEMAS
# ==========================================

class McqQuestionBase(BaseModel):
    """Base schema for McqQuestion - letter-keyed answer"""
    question: str = Field(..., min_length=1, description="Question stem")
    question_urdu: Optional[str] = None
    option_a: str = Field(..., min_length=1, max_length=OPTION_MAX_CHARS)
    option_a_urdu: Optional[str] = Field(None, max_length=OPTION_MAX_CHARS)
    option_b: str = Field(..., min_length=1, max_length=OPTION_MAX_CHARS)
    option_b_urdu: Optional[str] = Field(None, max_length=OPTION_MAX_CHARS)
    option_c: Optional[str] = Field(None, max_length=OPTION_MAX_CHARS)
    option_c_urdu: Optional[str] = Field(None, max_length=OPTION_MAX_CHARS)
    option_d: Optional[str] = Field(None, max_length=OPTION_MAX_CHARS)
    option_d_urdu: Optional[str] = Field(None, max_length=OPTION_MAX_CHARS)
    correct_answer: AnswerLetter
    explanation: Optional[str] = None
    explanation_urdu: Optional[str] = None
    order: int = Field(default=0, ge=0)


class McqQuestionCreate(McqQuestionBase):
    """Schema for creating a new McqQuestion"""
    material_id: int = Field(..., gt=0, description="Parent material ID")


class McqQuestionUpdate(BaseModel):
    """Schema for updating a McqQuestion - all fields optional"""
    question: Optional[str] = Field(None, min_length=1)
    question_urdu: Optional[str] = None
    option_a: Optional[str] = Field(None, min_length=1, max_length=OPTION_MAX_CHARS)
    option_b: Optional[str] = Field(None, min_length=1, max_length=OPTION_MAX_CHARS)
    option_c: Optional[str] = Field(None, max_length=OPTION_MAX_CHARS)
    option_d: Optional[str] = Field(None, max_length=OPTION_MAX_CHARS)
    correct_answer: Optional[AnswerLetter] = None
    explanation: Optional[str] = None
    explanation_urdu: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)


class McqQuestionResponse(McqQuestionBase):
    """Schema for McqQuestion response"""
    id: int
    material_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# BOOK CHAPTER SCHEMAS
# ==========================================

class BookChapterCreate(BaseModel):
    material_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None
    order: int = Field(default=0, ge=0)


class BookChapterUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)


class BookChapterResponse(BookChapterCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# MATERIAL SCHEMAS
# ==========================================

class MaterialBase(BaseModel):
    """Base schema for Material - shared fields"""
    type: MaterialType
    title: str = Field(..., min_length=1, max_length=255, description="Material title")
    description: Optional[str] = None
    content: Optional[str] = Field(None, description="Body for theory, essay and past-paper materials")
    order: int = Field(default=0, ge=0, description="Display order within topic")


class MaterialCreate(MaterialBase):
    """Schema for creating a new Material"""
    topic_id: int = Field(..., gt=0, description="Parent topic ID")


class MaterialUpdate(BaseModel):
    """Schema for updating a Material - all fields optional"""
    type: Optional[MaterialType] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)


class MaterialResponse(MaterialBase):
    """Schema for Material response without child rows"""
    id: int
    topic_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MaterialWithContent(MaterialResponse):
    """Material with its MCQs and book chapters"""
    mcq_questions: List[McqQuestionResponse] = []
    book_chapters: List[BookChapterResponse] = []

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# TOPIC SCHEMAS
# ==========================================

class TopicBase(BaseModel):
    """Base schema for Topic - shared fields"""
    name: str = Field(..., min_length=1, max_length=255, description="Topic name")
    description: Optional[str] = None
    content: Optional[str] = None
    order: int = Field(default=0, ge=0, description="Display order within subject")


class TopicCreate(TopicBase):
    """Schema for creating a new Topic"""
    subject_id: int = Field(..., gt=0, description="Parent subject ID")
    parent_topic_id: Optional[int] = Field(None, gt=0, description="Parent topic for sub-topics")


class TopicUpdate(BaseModel):
    """Schema for updating a Topic - all fields optional"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)
    parent_topic_id: Optional[int] = Field(None, gt=0)


class TopicResponse(TopicBase):
    """Schema for Topic response"""
    id: int
    subject_id: int
    parent_topic_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TopicWithSubTopics(TopicResponse):
    sub_topics: List[TopicResponse] = []

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# SUBJECT SCHEMAS
# ==========================================

class SubjectBase(BaseModel):
    """Base schema for Subject - shared fields"""
    name: str = Field(..., min_length=1, max_length=255, description="Subject name")
    description: Optional[str] = Field(None, description="Subject description")
    icon: Optional[str] = Field(None, max_length=50)


class SubjectCreate(SubjectBase):
    """Schema for creating a new Subject"""
    pass


class SubjectUpdate(BaseModel):
    """Schema for updating a Subject - all fields optional"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=50)


class SubjectResponse(SubjectBase):
    """Schema for Subject response without topics"""
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SubjectWithTopics(SubjectResponse):
    """Subject with its topics"""
    topics: List[TopicResponse] = []

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# ESSAY / QUIZ SCHEMAS
# ==========================================

class EssaySubmissionCreate(BaseModel):
    material_id: int = Field(..., gt=0)
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)


class EssayReview(BaseModel):
    status: Literal["submitted", "reviewed", "graded"] = "reviewed"
    feedback: Optional[str] = None
    score: Optional[int] = Field(None, ge=0, le=100)


class EssaySubmissionResponse(EssaySubmissionCreate):
    id: int
    user_id: int
    status: str
    feedback: Optional[str] = None
    score: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AnsweredQuestion(BaseModel):
    question_id: int
    selected_answer: Optional[AnswerLetter] = None
    is_correct: bool


class QuizAttemptCreate(BaseModel):
    material_id: int = Field(..., gt=0)
    total_questions: int = Field(..., ge=0)
    correct_answers: int = Field(..., ge=0)
    score: int = Field(..., ge=0, le=100)
    answers: List[AnsweredQuestion]


class QuizAttemptResponse(BaseModel):
    id: int
    user_id: int
    material_id: int
    total_questions: int
    correct_answers: int
    score: int
    answers: List[Any]
    completed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MaterialProgress(BaseModel):
    """Best score and attempt count on one quiz"""
    material_id: int
    best_score: int
    attempts: int


class UserProgress(BaseModel):
    total_attempts: int
    quizzes_taken: int
    average_score: float
    best_score: int
    materials: List[MaterialProgress]


class QuizSessionUpdate(BaseModel):
    current_question_index: Optional[int] = Field(None, ge=0)
    correct_answers: Optional[int] = Field(None, ge=0)
    answered_questions: Optional[List[int]] = None
    is_completed: Optional[bool] = None


class QuizSessionResponse(BaseModel):
    id: int
    user_id: int
    material_id: int
    current_question_index: int
    correct_answers: int
    total_questions: int
    is_completed: bool
    answered_questions: List[int]

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# ADMIN SCHEMAS
# ==========================================

class ActivityLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    details: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SiteSettingUpdate(BaseModel):
    value: str
    label: Optional[str] = Field(None, max_length=255)


class SiteSettingResponse(BaseModel):
    key: str
    value: str
    label: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# AI JOB SCHEMAS
# ==========================================

class AiJobResponse(BaseModel):
    """What a polling client sees for one generation job"""
    id: int
    user_id: Optional[int] = None
    job_type: str
    status: Literal["pending", "processing", "completed", "failed"]
    total_chunks: Optional[int] = None
    processed_chunks: int = 0
    input_text: Optional[str] = None
    output_data: Optional[Any] = None
    error_message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
