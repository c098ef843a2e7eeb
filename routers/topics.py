"""
Topic API endpoints
Topics live under a subject and may nest one level of sub-topics via parent_topic_id
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from database import schemas, crud
from database.database import get_db
from database.models import User
from routers.auth import get_current_user, require_admin

router = APIRouter(prefix="/topics", tags=["topics"])


def _topic_or_404(db: Session, topic_id: int):
    topic = crud.get_topic(db, topic_id)
    if not topic:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Topic with ID {topic_id} not found"
        )
    return topic


def _check_parent(db: Session, subject_id: int, parent_topic_id):
    if parent_topic_id is None:
        return
    parent = crud.get_topic(db, parent_topic_id)
    if not parent:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Parent topic with ID {parent_topic_id} not found"
        )
    if parent.subject_id != subject_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Parent topic belongs to a different subject"
        )


@router.post("/", response_model=schemas.TopicResponse, status_code=status.HTTP_201_CREATED)
def create_topic(
    topic: schemas.TopicCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Create a new topic under a subject (or a sub-topic under another topic)
    """
    if not crud.get_subject(db, topic.subject_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject with ID {topic.subject_id} not found"
        )
    _check_parent(db, topic.subject_id, topic.parent_topic_id)

    db_topic = crud.create_topic(db, topic)
    crud.log_activity(db, admin.id, "create", "topic", db_topic.id, db_topic.name)
    return db_topic


@router.get("/{topic_id}", response_model=schemas.TopicWithSubTopics)
def get_topic(topic_id: int, db: Session = Depends(get_db)):
    """
    Get a topic with its sub-topics
    """
    return _topic_or_404(db, topic_id)


@router.get("/{topic_id}/sub-topics", response_model=List[schemas.TopicResponse])
def list_sub_topics(topic_id: int, db: Session = Depends(get_db)):
    _topic_or_404(db, topic_id)
    return crud.get_sub_topics(db, topic_id)


@router.get("/{topic_id}/materials", response_model=List[schemas.MaterialResponse])
def list_topic_materials(
    topic_id: int,
    _user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    List materials of a topic (signed-in users only)
    """
    _topic_or_404(db, topic_id)
    return crud.get_materials_by_topic(db, topic_id)


@router.put("/{topic_id}", response_model=schemas.TopicResponse)
def update_topic(
    topic_id: int,
    topic_update: schemas.TopicUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Update a topic
    Only provided fields will be updated
    """
    existing = _topic_or_404(db, topic_id)
    if topic_update.parent_topic_id is not None:
        if topic_update.parent_topic_id == topic_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A topic cannot be its own parent"
            )
        _check_parent(db, existing.subject_id, topic_update.parent_topic_id)

    topic = crud.update_topic(db, topic_id, topic_update)
    crud.log_activity(db, admin.id, "update", "topic", topic_id)
    return topic


@router.delete("/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_topic(
    topic_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Delete a topic, its sub-topics and their materials
    """
    if not crud.delete_topic(db, topic_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Topic with ID {topic_id} not found"
        )
    crud.log_activity(db, admin.id, "delete", "topic", topic_id)
