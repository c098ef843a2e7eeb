"""
Quiz player endpoints
Finished attempts (scores, per-question answers), per-user progress,
and resumable in-progress sessions.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import schemas, crud
from database.database import get_db
from database.models import QuizAttempt, QuizSession, User
from routers.auth import get_current_user

router = APIRouter(prefix="/quiz", tags=["quiz"])


@router.post("/attempts", response_model=schemas.QuizAttemptResponse, status_code=status.HTTP_201_CREATED)
def record_attempt(
    payload: schemas.QuizAttemptCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not crud.get_material(db, payload.material_id):
        raise HTTPException(status_code=404, detail=f"Material with ID {payload.material_id} not found")
    if payload.correct_answers > payload.total_questions:
        raise HTTPException(status_code=400, detail="correct_answers cannot exceed total_questions")

    attempt = QuizAttempt(
        user_id=current.id,
        material_id=payload.material_id,
        total_questions=payload.total_questions,
        correct_answers=payload.correct_answers,
        score=payload.score,
        answers=[a.model_dump() for a in payload.answers],
    )
    db.add(attempt)

    # a finished attempt closes any open session for the same quiz
    db.query(QuizSession).filter(
        QuizSession.user_id == current.id,
        QuizSession.material_id == payload.material_id,
        QuizSession.is_completed == False,
    ).update({"is_completed": True}, synchronize_session=False)

    db.commit()
    db.refresh(attempt)
    return attempt


@router.get("/attempts", response_model=List[schemas.QuizAttemptResponse])
def list_attempts(
    material_id: Optional[int] = None,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    q = db.query(QuizAttempt).filter(QuizAttempt.user_id == current.id)
    if material_id is not None:
        q = q.filter(QuizAttempt.material_id == material_id)
    return q.order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc()).all()


@router.get("/progress", response_model=schemas.UserProgress)
def user_progress(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Best score and attempt count per quiz, plus totals over all finished attempts
    """
    rows = db.query(
        QuizAttempt.material_id,
        func.max(QuizAttempt.score),
        func.count(QuizAttempt.id),
    ).filter(
        QuizAttempt.user_id == current.id
    ).group_by(QuizAttempt.material_id).order_by(QuizAttempt.material_id).all()
    avg = db.query(func.avg(QuizAttempt.score)).filter(QuizAttempt.user_id == current.id).scalar()

    materials = [
        schemas.MaterialProgress(material_id=material_id, best_score=best or 0, attempts=count)
        for material_id, best, count in rows
    ]
    return schemas.UserProgress(
        total_attempts=sum(m.attempts for m in materials),
        quizzes_taken=len(materials),
        average_score=round(float(avg), 1) if avg is not None else 0.0,
        best_score=max((m.best_score for m in materials), default=0),
        materials=materials,
    )


@router.get("/sessions/{material_id}", response_model=schemas.QuizSessionResponse)
def get_or_create_session(
    material_id: int,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Return the open session for this quiz, starting a new one if there is none
    """
    session = db.query(QuizSession).filter(
        QuizSession.user_id == current.id,
        QuizSession.material_id == material_id,
        QuizSession.is_completed == False,
    ).order_by(QuizSession.id.desc()).first()
    if session:
        return session

    if not crud.get_material(db, material_id):
        raise HTTPException(status_code=404, detail=f"Material with ID {material_id} not found")

    session = QuizSession(
        user_id=current.id,
        material_id=material_id,
        total_questions=len(crud.get_mcq_questions(db, material_id)),
        current_question_index=0,
        correct_answers=0,
        answered_questions=[],
        is_completed=False,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


@router.patch("/sessions/{session_id}", response_model=schemas.QuizSessionResponse)
def update_session(
    session_id: int,
    payload: schemas.QuizSessionUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = db.query(QuizSession).filter(
        QuizSession.id == session_id,
        QuizSession.user_id == current.id,
    ).first()
    if not session:
        raise HTTPException(status_code=404, detail=f"Quiz session with ID {session_id} not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(session, field, value)
    db.commit()
    db.refresh(session)
    return session
