from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import SessionUser, get_current_user
from core.config import logger
from core.database import get_db
from models.user import User

router = APIRouter(prefix="/api/auth", tags=["account"])


@router.get("/me")
async def me(user: SessionUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Current session; also keeps the users mirror row up to date."""
    try:
        row = db.query(User).filter(User.uid == user.id).first()
        now = datetime.now(timezone.utc)
        if row:
            row.email = user.email or row.email
            row.display_name = user.display_name or row.display_name
            row.last_login_at = now
        else:
            db.add(User(
                uid=user.id,
                email=user.email or None,
                display_name=user.display_name or (user.email.split("@")[0] if user.email else None),
                last_login_at=now,
            ))
        db.commit()
    except Exception as ex:
        db.rollback()
        # The session itself is valid; a failed mirror write is not fatal
        logger.warning(f"[auth.me] users mirror upsert failed uid={user.id}: {ex}")
    return user.to_dict()
