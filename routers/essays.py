"""
Essay submission endpoints
Candidates submit essays against essay materials; admins review and grade them.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import schemas, crud
from database.database import get_db
from database.models import EssaySubmission, MaterialType, User
from routers.auth import get_current_user, require_admin

router = APIRouter(prefix="/essays", tags=["essays"])


@router.post("/", response_model=schemas.EssaySubmissionResponse, status_code=status.HTTP_201_CREATED)
def submit_essay(
    payload: schemas.EssaySubmissionCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    material = crud.get_material(db, payload.material_id)
    if not material:
        raise HTTPException(status_code=404, detail=f"Material with ID {payload.material_id} not found")
    if material.type != MaterialType.ESSAY:
        raise HTTPException(status_code=400, detail="Essays can only be submitted for essay materials")

    submission = EssaySubmission(user_id=current.id, **payload.model_dump())
    db.add(submission)
    db.commit()
    db.refresh(submission)
    crud.log_activity(db, current.id, "submit_essay", "essay", submission.id)
    return submission


@router.get("/mine", response_model=List[schemas.EssaySubmissionResponse])
def my_submissions(current: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(EssaySubmission).filter(
        EssaySubmission.user_id == current.id
    ).order_by(EssaySubmission.created_at.desc(), EssaySubmission.id.desc()).all()


@router.get("/material/{material_id}", response_model=List[schemas.EssaySubmissionResponse])
def list_for_material(
    material_id: int,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return db.query(EssaySubmission).filter(
        EssaySubmission.material_id == material_id
    ).order_by(EssaySubmission.created_at.desc(), EssaySubmission.id.desc()).all()


@router.patch("/{submission_id}/review", response_model=schemas.EssaySubmissionResponse)
def review_essay(
    submission_id: int,
    review: schemas.EssayReview,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    submission = db.query(EssaySubmission).filter(EssaySubmission.id == submission_id).first()
    if not submission:
        raise HTTPException(status_code=404, detail=f"Essay submission with ID {submission_id} not found")

    for field, value in review.model_dump(exclude_unset=True).items():
        setattr(submission, field, value)
    db.commit()
    db.refresh(submission)
    crud.log_activity(db, admin.id, "review_essay", "essay", submission.id, submission.status)
    return submission
