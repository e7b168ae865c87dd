from fastapi import Depends, HTTPException
from app.config import settings
from app.models.user import User
from app.utils.token import get_current_user


def is_admin(user: User) -> bool:
    """Admin if the account carries the admin role or its email is on the configured list."""
    if user is None:
        return False
    if user.role == "admin":
        return True
    return (user.email or "").lower() in settings.admin_emails


def require_admin(current_user: User = Depends(get_current_user)):
    if not is_admin(current_user):
        raise HTTPException(status_code=403, detail="You do not have admin privileges")
    return current_user
