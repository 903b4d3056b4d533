from motor.motor_asyncio import AsyncIOMotorDatabase
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from quizrank.quiz.errors import translate_storage_errors

UNKNOWN_NAME = "Unknown"

# ==================== DISPLAY IDENTITY ====================

@dataclass(frozen=True)
class Identity:
    first_name: str
    last_name: str
    username: str

    @property
    def name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username or UNKNOWN_NAME


def _from_profile(profile: dict) -> Identity:
    return Identity(
        first_name=profile.get("first_name") or "",
        last_name=profile.get("last_name") or "",
        username=profile.get("username") or "",
    )


@translate_storage_errors
async def resolve_identity(db: AsyncIOMotorDatabase, user_id: str) -> Optional[Identity]:
    """Display data for a user, or None if no profile exists"""
    profile = await db.users_profile.find_one({"user_id": user_id}, {"_id": 0})
    if not profile:
        return None
    return _from_profile(profile)


@translate_storage_errors
async def resolve_identities(db: AsyncIOMotorDatabase, user_ids: Iterable[str]) -> Dict[str, Identity]:
    ids = list(set(user_ids))
    if not ids:
        return {}
    cursor = db.users_profile.find({"user_id": {"$in": ids}}, {"_id": 0})
    profiles = await cursor.to_list(length=None)
    return {p["user_id"]: _from_profile(p) for p in profiles}


def display_fields(identity: Optional[Identity]) -> dict:
    """name/username for leaderboard rows; missing users render as Unknown"""
    if identity is None:
        return {"name": UNKNOWN_NAME, "username": UNKNOWN_NAME}
    return {"name": identity.name, "username": identity.username or UNKNOWN_NAME}
