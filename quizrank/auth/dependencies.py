from fastapi import Depends, Header, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
import logging

from quizrank.auth.auth_utils import bearer_token, decode_token, subject_of
from quizrank.config import ALLOW_USER_ID_HEADER

logger = logging.getLogger(__name__)


def get_db_instance():
    """Get database from main module"""
    from quizrank.main import db
    return db

# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return get_db_instance()


class UserContext:
    """
    Authenticated, approved user
    """
    def __init__(self, user_id: str, profile: dict):
        self.user_id = user_id
        self.role = profile.get("role", "student")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


async def _load_profile(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    return await db.users_profile.find_one({"user_id": user_id}, {"_id": 0})


async def get_current_user(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> UserContext:
    """
    Dependency: Bearer token, or X-User-ID header when enabled

    Raises:
        400: Blank X-User-ID
        401: No credentials, bad token, unknown user
        403: Account pending approval
    """
    token = bearer_token(authorization)

    if token:
        user_id = subject_of(decode_token(token))
        if not user_id:
            raise HTTPException(status_code=401, detail="Not authorized, token failed")
    elif x_user_id is not None and ALLOW_USER_ID_HEADER:
        user_id = x_user_id.strip()
        if not user_id:
            raise HTTPException(status_code=400, detail="Invalid X-User-ID header")
    else:
        raise HTTPException(status_code=401, detail="Not authorized, no token")

    profile = await _load_profile(db, user_id)
    if not profile:
        logger.info("Rejected request for unknown user %s", user_id)
        raise HTTPException(status_code=401, detail="Not authorized, user not found")

    if not profile.get("is_approved", False):
        raise HTTPException(status_code=403, detail="Account pending approval. Access denied.")

    return UserContext(user_id, profile)


async def require_admin(user: UserContext = Depends(get_current_user)) -> UserContext:
    """Dependency: administrators only"""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Not authorized as an administrator")
    return user
