"""
CRUD operations for the study-content layer
All subject/topic/material database operations go through these functions
"""

import logging
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from database import models, schemas

log = logging.getLogger("database.crud")


# ==========================================
# SUBJECT CRUD
# ==========================================

def create_subject(db: Session, subject: schemas.SubjectCreate) -> models.Subject:
    """Create a new subject"""
    db_subject = models.Subject(**subject.model_dump())
    db.add(db_subject)
    db.commit()
    db.refresh(db_subject)
    return db_subject


def get_subject(db: Session, subject_id: int) -> Optional[models.Subject]:
    """Get subject by ID"""
    return db.query(models.Subject).filter(models.Subject.id == subject_id).first()


def get_subjects(db: Session, skip: int = 0, limit: int = 100) -> List[models.Subject]:
    """Get all subjects with pagination"""
    return db.query(models.Subject).order_by(models.Subject.name).offset(skip).limit(limit).all()


def get_subject_with_topics(db: Session, subject_id: int) -> Optional[models.Subject]:
    """Get subject with all its topics loaded"""
    return db.query(models.Subject).options(
        joinedload(models.Subject.topics)
    ).filter(models.Subject.id == subject_id).first()


def update_subject(db: Session, subject_id: int, subject_update: schemas.SubjectUpdate) -> Optional[models.Subject]:
    """Update an existing subject"""
    db_subject = get_subject(db, subject_id)
    if not db_subject:
        return None

    update_data = subject_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_subject, field, value)

    db.commit()
    db.refresh(db_subject)
    return db_subject


def delete_subject(db: Session, subject_id: int) -> bool:
    """Delete a subject (cascades to topics and materials)"""
    db_subject = get_subject(db, subject_id)
    if not db_subject:
        return False

    db.delete(db_subject)
    db.commit()
    return True


# ==========================================
# TOPIC CRUD
# ==========================================

def create_topic(db: Session, topic: schemas.TopicCreate) -> models.Topic:
    """Create a new topic (or sub-topic when parent_topic_id is set)"""
    db_topic = models.Topic(**topic.model_dump())
    db.add(db_topic)
    db.commit()
    db.refresh(db_topic)
    return db_topic


def get_topic(db: Session, topic_id: int) -> Optional[models.Topic]:
    """Get topic by ID"""
    return db.query(models.Topic).filter(models.Topic.id == topic_id).first()


def get_topics_by_subject(db: Session, subject_id: int) -> List[models.Topic]:
    """Get top-level topics for a subject, ordered"""
    return db.query(models.Topic).filter(
        models.Topic.subject_id == subject_id,
        models.Topic.parent_topic_id.is_(None),
    ).order_by(models.Topic.order, models.Topic.id).all()


def get_sub_topics(db: Session, topic_id: int) -> List[models.Topic]:
    """Get direct sub-topics of a topic, ordered"""
    return db.query(models.Topic).filter(
        models.Topic.parent_topic_id == topic_id
    ).order_by(models.Topic.order, models.Topic.id).all()


def update_topic(db: Session, topic_id: int, topic_update: schemas.TopicUpdate) -> Optional[models.Topic]:
    """Update an existing topic"""
    db_topic = get_topic(db, topic_id)
    if not db_topic:
        return None

    update_data = topic_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_topic, field, value)

    db.commit()
    db.refresh(db_topic)
    return db_topic


def delete_topic(db: Session, topic_id: int) -> bool:
    """Delete a topic (cascades to sub-topics and materials)"""
    db_topic = get_topic(db, topic_id)
    if not db_topic:
        return False

    db.delete(db_topic)
    db.commit()
    return True


# ==========================================
# MATERIAL CRUD
# ==========================================

def create_material(db: Session, material: schemas.MaterialCreate) -> models.Material:
    """Create a new material"""
    db_material = models.Material(**material.model_dump())
    db.add(db_material)
    db.commit()
    db.refresh(db_material)
    return db_material


def get_material(db: Session, material_id: int) -> Optional[models.Material]:
    """Get material by ID"""
    return db.query(models.Material).filter(models.Material.id == material_id).first()


def get_material_with_content(db: Session, material_id: int) -> Optional[models.Material]:
    """Get material with MCQs and book chapters loaded"""
    return db.query(models.Material).options(
        joinedload(models.Material.mcq_questions),
        joinedload(models.Material.book_chapters),
    ).filter(models.Material.id == material_id).first()


def get_materials_by_topic(db: Session, topic_id: int) -> List[models.Material]:
    """Get materials for a topic, ordered"""
    return db.query(models.Material).filter(
        models.Material.topic_id == topic_id
    ).order_by(models.Material.order, models.Material.id).all()


def get_materials_by_subject(db: Session, subject_id: int) -> List[models.Material]:
    """Get every material under any topic of a subject"""
    return db.query(models.Material).join(models.Topic).filter(
        models.Topic.subject_id == subject_id
    ).order_by(models.Topic.order, models.Material.order, models.Material.id).all()


def update_material(db: Session, material_id: int, material_update: schemas.MaterialUpdate) -> Optional[models.Material]:
    """Update an existing material"""
    db_material = get_material(db, material_id)
    if not db_material:
        return None

    update_data = material_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_material, field, value)

    db.commit()
    db.refresh(db_material)
    return db_material


def delete_material(db: Session, material_id: int) -> bool:
    """Delete a material (cascades to questions, chapters, attempts)"""
    db_material = get_material(db, material_id)
    if not db_material:
        return False

    db.delete(db_material)
    db.commit()
    return True


# ==========================================
# MCQ QUESTION CRUD
# ==========================================

def get_mcq_questions(db: Session, material_id: int) -> List[models.McqQuestion]:
    """Get a material's MCQs in display order"""
    return db.query(models.McqQuestion).filter(
        models.McqQuestion.material_id == material_id
    ).order_by(models.McqQuestion.order, models.McqQuestion.id).all()


def create_mcq_questions_bulk(db: Session, rows: List[dict]) -> int:
    """Insert many letter-keyed MCQ rows in one transaction; returns the count"""
    db.add_all([models.McqQuestion(**row) for row in rows])
    db.commit()
    return len(rows)


def create_material_with_questions(
    db: Session,
    material: schemas.MaterialCreate,
    build_rows: Callable[[int], List[dict]],
) -> models.Material:
    """
    Create a material and its MCQ rows in one transaction.
    build_rows gets the new material id; on any failure nothing is kept.
    """
    db_material = models.Material(**material.model_dump())
    try:
        db.add(db_material)
        db.flush()
        db.add_all([models.McqQuestion(**row) for row in build_rows(db_material.id)])
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_material)
    return db_material


def get_mcq_question(db: Session, question_id: int) -> Optional[models.McqQuestion]:
    """Get MCQ question by ID"""
    return db.query(models.McqQuestion).filter(models.McqQuestion.id == question_id).first()


def create_mcq_question(db: Session, question: schemas.McqQuestionCreate) -> models.McqQuestion:
    """Create a single MCQ question"""
    db_question = models.McqQuestion(**question.model_dump())
    db.add(db_question)
    db.commit()
    db.refresh(db_question)
    return db_question


def update_mcq_question(
    db: Session, question_id: int, question_update: schemas.McqQuestionUpdate
) -> Optional[models.McqQuestion]:
    """Update an MCQ question"""
    db_question = get_mcq_question(db, question_id)
    if not db_question:
        return None

    for field, value in question_update.model_dump(exclude_unset=True).items():
        setattr(db_question, field, value)

    db.commit()
    db.refresh(db_question)
    return db_question


def delete_mcq_question(db: Session, question_id: int) -> bool:
    db_question = get_mcq_question(db, question_id)
    if not db_question:
        return False

    db.delete(db_question)
    db.commit()
    return True


def next_mcq_order(db: Session, material_id: int) -> int:
    """Order value that appends after the material's last question"""
    current = db.query(func.max(models.McqQuestion.order)).filter(
        models.McqQuestion.material_id == material_id
    ).scalar()
    return 0 if current is None else current + 1


# ==========================================
# BOOK CHAPTER CRUD
# ==========================================

def get_book_chapter(db: Session, chapter_id: int) -> Optional[models.BookChapter]:
    return db.query(models.BookChapter).filter(models.BookChapter.id == chapter_id).first()


def create_book_chapter(db: Session, chapter: schemas.BookChapterCreate) -> models.BookChapter:
    db_chapter = models.BookChapter(**chapter.model_dump())
    db.add(db_chapter)
    db.commit()
    db.refresh(db_chapter)
    return db_chapter


def update_book_chapter(
    db: Session, chapter_id: int, chapter_update: schemas.BookChapterUpdate
) -> Optional[models.BookChapter]:
    db_chapter = get_book_chapter(db, chapter_id)
    if not db_chapter:
        return None

    for field, value in chapter_update.model_dump(exclude_unset=True).items():
        setattr(db_chapter, field, value)

    db.commit()
    db.refresh(db_chapter)
    return db_chapter


def delete_book_chapter(db: Session, chapter_id: int) -> bool:
    db_chapter = get_book_chapter(db, chapter_id)
    if not db_chapter:
        return False

    db.delete(db_chapter)
    db.commit()
    return True


# ==========================================
# ACTIVITY LOG
# ==========================================

def log_activity(
    db: Session,
    user_id: Optional[int],
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    details: Optional[str] = None,
) -> None:
    """Best-effort audit entry; a failure here never breaks the calling request."""
    try:
        db.add(models.ActivityLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        ))
        db.commit()
    except Exception:
        db.rollback()
        log.exception(f"Failed to log activity '{action}' for user {user_id}")
