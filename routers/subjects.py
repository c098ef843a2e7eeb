"""
Subject API endpoints
Public browsing of subjects; create/update/delete restricted to admins
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from database import schemas, crud
from database.database import get_db
from database.models import User
from routers.auth import require_admin

router = APIRouter(prefix="/subjects", tags=["subjects"])


def _subject_or_404(db: Session, subject_id: int):
    subject = crud.get_subject(db, subject_id)
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject with ID {subject_id} not found"
        )
    return subject


@router.post("/", response_model=schemas.SubjectResponse, status_code=status.HTTP_201_CREATED)
def create_subject(
    subject: schemas.SubjectCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Create a new subject
    """
    db_subject = crud.create_subject(db, subject)
    crud.log_activity(db, admin.id, "create", "subject", db_subject.id, db_subject.name)
    return db_subject


@router.get("/", response_model=List[schemas.SubjectResponse])
def list_subjects(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """
    List all subjects with pagination
    """
    return crud.get_subjects(db, skip=skip, limit=limit)


@router.get("/{subject_id}", response_model=schemas.SubjectWithTopics)
def get_subject(subject_id: int, db: Session = Depends(get_db)):
    """
    Get a subject with its topics
    """
    subject = crud.get_subject_with_topics(db, subject_id)
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject with ID {subject_id} not found"
        )
    return subject


@router.get("/{subject_id}/topics", response_model=List[schemas.TopicResponse])
def list_subject_topics(subject_id: int, db: Session = Depends(get_db)):
    """
    List top-level topics of a subject, ordered by order field
    """
    _subject_or_404(db, subject_id)
    return crud.get_topics_by_subject(db, subject_id)


@router.get("/{subject_id}/materials", response_model=List[schemas.MaterialResponse])
def list_subject_materials(subject_id: int, db: Session = Depends(get_db)):
    """
    List every material under the subject's topics
    """
    _subject_or_404(db, subject_id)
    return crud.get_materials_by_subject(db, subject_id)


@router.put("/{subject_id}", response_model=schemas.SubjectResponse)
def update_subject(
    subject_id: int,
    subject_update: schemas.SubjectUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Update a subject
    Only provided fields will be updated
    """
    subject = crud.update_subject(db, subject_id, subject_update)
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject with ID {subject_id} not found"
        )
    crud.log_activity(db, admin.id, "update", "subject", subject_id)
    return subject


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subject(
    subject_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Delete a subject and everything under it (topics, materials, questions)
    """
    if not crud.delete_subject(db, subject_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject with ID {subject_id} not found"
        )
    crud.log_activity(db, admin.id, "delete", "subject", subject_id)
