import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Header, HTTPException
from pymongo.database import Database

import config
from database import get_db, parse_object_id
from schemas import ADMIN

logger = logging.getLogger(__name__)

SALT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes of a secret
_BCRYPT_MAX_BYTES = 72


def _secret(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_secret(password), bcrypt.gensalt(rounds=SALT_ROUNDS)).decode("utf-8")


def compare_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_secret(password), hashed_password.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_token(payload: dict) -> str:
    exp = datetime.now(timezone.utc) + timedelta(days=config.JWT_EXPIRE_DAYS)
    to_encode = {**payload, "exp": exp}
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGO)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGO])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def public_user(user: dict) -> dict:
    """Strip credentials from a serialized user document."""
    return {k: v for k, v in user.items() if k not in ("password_hash", "answer")}


async def require_sign_in(
    authorization: Optional[str] = Header(None),
    db: Database = Depends(get_db),
) -> dict:
    """Resolve the signed-in user from the Authorization header.

    The header may carry the bare token or the usual ``Bearer <token>`` form.
    Returns the raw user document.
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Unauthorized: No token provided")

    token = authorization.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()

    payload = decode_token(token)
    user_id = payload.get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    try:
        oid = parse_object_id(user_id, "user")
    except HTTPException:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = db["user"].find_one({"_id": oid})
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def is_admin(user: dict = Depends(require_sign_in)) -> dict:
    if user.get("role") != ADMIN:
        logger.warning("Non-admin user %s denied admin access", user.get("_id"))
        raise HTTPException(status_code=401, detail="Unauthorized Access")
    return user
