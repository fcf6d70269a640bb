from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dependencies import get_db, require_roles
from models import USER_ROLES, User
from notification_service import NotificationService
from schemas import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def my_notifications(user: User = Depends(require_roles(*USER_ROLES)), db: Session = Depends(get_db)) -> dict:
    notifications = NotificationService(db).list_for_user(user.id)
    return {"success": True, "notifications": [NotificationResponse.model_validate(n) for n in notifications]}


@router.patch("/{notification_id}/read")
def mark_read(
    notification_id: str,
    user: User = Depends(require_roles(*USER_ROLES)),
    db: Session = Depends(get_db),
) -> dict:
    notification = NotificationService(db).mark_as_read(notification_id, user.id)
    return {
        "success": True,
        "message": "Notification marked as read",
        "notification": NotificationResponse.model_validate(notification),
    }
