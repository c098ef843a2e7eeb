"""
SQLAlchemy models for the CSS/PMS preparation backend
Subject → Topic (→ sub-topics) → Material hierarchy, plus quiz, essay,
mentor-chat and AI generation job tables.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship, backref
from sqlalchemy.sql import func
import enum
from database.database import Base
from generation.schemas import OPTION_MAX_CHARS


class UserRole(str, enum.Enum):
    """Enum for account roles"""
    STUDENT = "student"
    ADMIN = "admin"


class MaterialType(str, enum.Enum):
    """Enum for material content types"""
    BOOK = "book"
    PAST_PAPER = "past_paper"
    ESSAY = "essay"
    MCQ = "mcq"
    THEORY = "theory"


class JobStatus(str, enum.Enum):
    """Lifecycle of an AI generation job: pending → processing → completed | failed"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_JOB_STATUSES = (JobStatus.COMPLETED.value, JobStatus.FAILED.value)


# ==========================================
# AUTH: USERS
# ==========================================

class User(Base):
    """
    Candidate or admin account.
    email + hashed_password for login; role gates content management.
    refresh_token stored after login, cleared on logout (for server-side revocation).
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=UserRole.STUDENT,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    refresh_token = Column(String(512), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"


# ==========================================
# STRUCTURE: SUBJECT → TOPIC → MATERIAL
# ==========================================

class Subject(Base):
    """
    Top-level exam subject (e.g. 'Pakistan Affairs', 'Current Affairs').
    """
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    icon = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    topics = relationship(
        "Topic",
        back_populates="subject",
        cascade="all, delete-orphan",
        order_by="Topic.order",
    )

    def __repr__(self):
        return f"<Subject(id={self.id}, name='{self.name}')>"


class Topic(Base):
    """
    Syllabus topic within a subject.
    parent_topic_id makes sub-topics; deleting a parent removes its sub-topics.
    content holds admin-editable notes (or the source text used for AI generation).
    """
    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    subject = relationship("Subject", back_populates="topics")
    sub_topics = relationship(
        "Topic",
        backref=backref("parent_topic", remote_side=[id]),
        cascade="all, delete-orphan",
        order_by="Topic.order",
    )
    materials = relationship(
        "Material",
        back_populates="topic",
        cascade="all, delete-orphan",
        order_by="Material.order",
    )

    def __repr__(self):
        return f"<Topic(id={self.id}, name='{self.name}', subject_id={self.subject_id})>"


class Material(Base):
    """
    One piece of study content attached to a topic.
    type decides which child rows are meaningful (mcq → McqQuestion, book → BookChapter).
    """
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(
        SQLEnum(MaterialType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    topic = relationship("Topic", back_populates="materials")
    mcq_questions = relationship(
        "McqQuestion",
        back_populates="material",
        cascade="all, delete-orphan",
        order_by="McqQuestion.order",
    )
    book_chapters = relationship(
        "BookChapter",
        back_populates="material",
        cascade="all, delete-orphan",
        order_by="BookChapter.order",
    )

    def __repr__(self):
        return f"<Material(id={self.id}, type='{self.type}', topic_id={self.topic_id})>"


class McqQuestion(Base):
    """
    MCQ in letter-keyed form: option_a..option_d, correct_answer is "A".."D".
    Urdu columns are filled when the quiz was generated or imported bilingually.
    """
    __tablename__ = "mcq_questions"

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    question_urdu = Column(Text, nullable=True)
    option_a = Column(String(OPTION_MAX_CHARS), nullable=False)
    option_a_urdu = Column(String(OPTION_MAX_CHARS), nullable=True)
    option_b = Column(String(OPTION_MAX_CHARS), nullable=False)
    option_b_urdu = Column(String(OPTION_MAX_CHARS), nullable=True)
    option_c = Column(String(OPTION_MAX_CHARS), nullable=True)
    option_c_urdu = Column(String(OPTION_MAX_CHARS), nullable=True)
    option_d = Column(String(OPTION_MAX_CHARS), nullable=True)
    option_d_urdu = Column(String(OPTION_MAX_CHARS), nullable=True)
    correct_answer = Column(String(1), nullable=False)
    explanation = Column(Text, nullable=True)
    explanation_urdu = Column(Text, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    material = relationship("Material", back_populates="mcq_questions")

    def __repr__(self):
        return f"<McqQuestion(id={self.id}, material_id={self.material_id}, answer='{self.correct_answer}')>"


class BookChapter(Base):
    """Chapter of a book-type material."""
    __tablename__ = "book_chapters"

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    material = relationship("Material", back_populates="book_chapters")


# ==========================================
# CANDIDATE ACTIVITY: ESSAYS, QUIZZES, CHAT
# ==========================================

class EssaySubmission(Base):
    """
    Essay written by a candidate against an essay material.
    status: submitted | reviewed | graded
    """
    __tablename__ = "essay_submissions"

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    status = Column(String(20), default="submitted", nullable=False, index=True)
    feedback = Column(Text, nullable=True)
    score = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    material = relationship("Material", backref=backref("essay_submissions", cascade="all, delete-orphan"))
    user = relationship("User")


class QuizAttempt(Base):
    """Finished quiz run; answers is a list of {question_id, selected_answer, is_correct}."""
    __tablename__ = "quiz_attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False)
    score = Column(Integer, nullable=False)  # percentage 0-100
    answers = Column(JSON, nullable=False, default=list)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    material = relationship("Material", backref=backref("quiz_attempts", cascade="all, delete-orphan"))


class QuizSession(Base):
    """In-progress quiz state so a candidate can resume where they stopped."""
    __tablename__ = "quiz_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    current_question_index = Column(Integer, default=0, nullable=False)
    correct_answers = Column(Integer, default=0, nullable=False)
    total_questions = Column(Integer, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    answered_questions = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    material = relationship("Material", backref=backref("quiz_sessions", cascade="all, delete-orphan"))


class MentorChat(Base):
    """One message of the AI mentor conversation; role is 'user' or 'assistant'."""
    __tablename__ = "mentor_chats"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


# ==========================================
# ADMIN: ACTIVITY LOG, SITE SETTINGS
# ==========================================

class ActivityLog(Base):
    """Audit trail of admin/candidate actions (entity_type: subject, topic, material, ...)."""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(100), nullable=False)
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class SiteSetting(Base):
    """Globally editable text (hero copy, footer, notices) keyed by a stable string."""
    __tablename__ = "site_settings"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=False)
    label = Column(String(255), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# ==========================================
# AI GENERATION JOBS
# ==========================================

class AiGenerationJob(Base):
    """
    Tracks one long-running AI generation request for polling clients.

    status: pending → processing → completed | failed (finalized exactly once)
    processed_chunks only ever grows; output_data holds the JSON summary on success.
    Rows are never deleted by the generation pipeline.
    """
    __tablename__ = "ai_generation_jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    job_type = Column(String(50), nullable=False)  # mcq_generation, ...
    status = Column(String(20), default=JobStatus.PENDING.value, nullable=False, index=True)
    input_text = Column(Text, nullable=True)  # truncated preview of the source text
    output_data = Column(JSON, nullable=True)
    total_chunks = Column(Integer, nullable=True)
    processed_chunks = Column(Integer, default=0, nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<AiGenerationJob(id={self.id}, type='{self.job_type}', status='{self.status}')>"
