"""
Admin endpoints: activity log and editable site settings.
Site settings are readable by anyone (the frontend renders them); only admins edit.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import schemas, crud
from database.database import get_db
from database.models import ActivityLog, SiteSetting, User
from routers.auth import require_admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/activity-logs", response_model=List[schemas.ActivityLogResponse])
def list_activity_logs(
    limit: int = 100,
    _admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return db.query(ActivityLog).order_by(
        ActivityLog.created_at.desc(), ActivityLog.id.desc()
    ).limit(min(max(limit, 1), 500)).all()


@router.get("/site-settings", response_model=List[schemas.SiteSettingResponse])
def list_site_settings(db: Session = Depends(get_db)):
    return db.query(SiteSetting).order_by(SiteSetting.key).all()


@router.patch("/site-settings/{key}", response_model=schemas.SiteSettingResponse)
def upsert_site_setting(
    key: str,
    payload: schemas.SiteSettingUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create or overwrite one setting."""
    setting = db.query(SiteSetting).filter(SiteSetting.key == key).first()
    if setting is None:
        setting = SiteSetting(key=key, value=payload.value, label=payload.label)
        db.add(setting)
    else:
        setting.value = payload.value
        if payload.label is not None:
            setting.label = payload.label
    db.commit()
    db.refresh(setting)
    crud.log_activity(db, admin.id, "update_setting", "site_setting", setting.id, key)
    return setting
