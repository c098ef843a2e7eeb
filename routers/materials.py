"""
Material API endpoints
Materials (theory, MCQ quizzes, books, essays, past papers) under topics,
plus their MCQ questions and book chapters, and bulk quiz import.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import schemas, crud
from database.database import get_db
from database.models import MaterialType, User
from generation.question_normalizer import normalize_question, to_mcq_row
from generation.schemas import ImportQuizRequest
from routers.auth import get_current_user, require_admin

log = logging.getLogger("routers.materials")

router = APIRouter(prefix="/materials", tags=["materials"])


def _material_or_404(db: Session, material_id: int):
    material = crud.get_material(db, material_id)
    if not material:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Material with ID {material_id} not found"
        )
    return material


# ─── Materials ─────────────────────────────────────────────────────────────────

@router.post("/", response_model=schemas.MaterialResponse, status_code=status.HTTP_201_CREATED)
def create_material(
    material: schemas.MaterialCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if not crud.get_topic(db, material.topic_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Topic with ID {material.topic_id} not found"
        )
    db_material = crud.create_material(db, material)
    crud.log_activity(db, admin.id, "create", "material", db_material.id, db_material.title)
    return db_material


@router.get("/{material_id}", response_model=schemas.MaterialWithContent)
def get_material(
    material_id: int,
    _user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Get a material with its MCQs and book chapters
    """
    material = crud.get_material_with_content(db, material_id)
    if not material:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Material with ID {material_id} not found"
        )
    return material


@router.put("/{material_id}", response_model=schemas.MaterialResponse)
def update_material(
    material_id: int,
    material_update: schemas.MaterialUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    material = crud.update_material(db, material_id, material_update)
    if not material:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Material with ID {material_id} not found"
        )
    crud.log_activity(db, admin.id, "update", "material", material_id)
    return material


@router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_material(
    material_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if not crud.delete_material(db, material_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Material with ID {material_id} not found"
        )
    crud.log_activity(db, admin.id, "delete", "material", material_id)


# ─── MCQ questions ─────────────────────────────────────────────────────────────

@router.get("/{material_id}/questions", response_model=List[schemas.McqQuestionResponse])
def list_questions(
    material_id: int,
    _user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _material_or_404(db, material_id)
    return crud.get_mcq_questions(db, material_id)


@router.post("/questions", response_model=schemas.McqQuestionResponse, status_code=status.HTTP_201_CREATED)
def create_question(
    question: schemas.McqQuestionCreate,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    material = _material_or_404(db, question.material_id)
    if material.type != MaterialType.MCQ:
        raise HTTPException(status_code=400, detail="Questions can only be added to MCQ materials")
    options = [question.option_a, question.option_b, question.option_c, question.option_d]
    if not options[ord(question.correct_answer) - ord("A")]:
        raise HTTPException(status_code=400, detail="correct_answer points at an empty option")
    return crud.create_mcq_question(db, question)


@router.put("/questions/{question_id}", response_model=schemas.McqQuestionResponse)
def update_question(
    question_id: int,
    question_update: schemas.McqQuestionUpdate,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    question = crud.update_mcq_question(db, question_id, question_update)
    if not question:
        raise HTTPException(status_code=404, detail=f"Question with ID {question_id} not found")
    return question


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    question_id: int,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if not crud.delete_mcq_question(db, question_id):
        raise HTTPException(status_code=404, detail=f"Question with ID {question_id} not found")


# ─── Book chapters ─────────────────────────────────────────────────────────────

@router.post("/chapters", response_model=schemas.BookChapterResponse, status_code=status.HTTP_201_CREATED)
def create_chapter(
    chapter: schemas.BookChapterCreate,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    material = _material_or_404(db, chapter.material_id)
    if material.type != MaterialType.BOOK:
        raise HTTPException(status_code=400, detail="Chapters can only be added to book materials")
    return crud.create_book_chapter(db, chapter)


@router.put("/chapters/{chapter_id}", response_model=schemas.BookChapterResponse)
def update_chapter(
    chapter_id: int,
    chapter_update: schemas.BookChapterUpdate,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    chapter = crud.update_book_chapter(db, chapter_id, chapter_update)
    if not chapter:
        raise HTTPException(status_code=404, detail=f"Chapter with ID {chapter_id} not found")
    return chapter


@router.delete("/chapters/{chapter_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chapter(
    chapter_id: int,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if not crud.delete_book_chapter(db, chapter_id):
        raise HTTPException(status_code=404, detail=f"Chapter with ID {chapter_id} not found")


# ─── Quiz import ───────────────────────────────────────────────────────────────

@router.post("/topics/{topic_id}/import-quiz", status_code=status.HTTP_201_CREATED)
def import_quiz(
    topic_id: int,
    payload: ImportQuizRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Create an MCQ material from pre-written questions.
    Items may give the answer as option text or as a letter; invalid items are skipped.
    """
    if not crud.get_topic(db, topic_id):
        raise HTTPException(status_code=404, detail=f"Topic with ID {topic_id} not found")

    questions = [q for q in (normalize_question(item) for item in payload.questions) if q is not None]
    skipped = len(payload.questions) - len(questions)
    if not questions:
        raise HTTPException(
            status_code=400,
            detail="None of the questions could be imported (each needs text, 2-4 options and a valid answer)",
        )

    material = crud.create_material_with_questions(
        db,
        schemas.MaterialCreate(
            topic_id=topic_id,
            type=MaterialType.MCQ,
            title=payload.title,
            description=f"Imported quiz with {len(questions)} questions",
        ),
        lambda material_id: [to_mcq_row(q, material_id, i) for i, q in enumerate(questions)],
    )
    if skipped:
        log.warning(f"[IMPORT] material {material.id}: skipped {skipped} of {len(payload.questions)} items")
    crud.log_activity(db, admin.id, "import_quiz", "material", material.id, f"{len(questions)} questions")

    return {
        "material_id": material.id,
        "imported": len(questions),
        "skipped": skipped,
    }
