# quizrank/auth/auth_utils.py
from jose import jwt, JWTError
from fastapi import HTTPException
from typing import Optional

from quizrank.config import JWT_SECRET_KEY, JWT_ALGORITHM


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token part of an 'Authorization: Bearer <token>' header"""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


def subject_of(payload: dict) -> Optional[str]:
    # older tokens carry the user id as "id"
    return payload.get("sub") or payload.get("id")
