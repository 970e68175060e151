# ---------- routes/auth_routes.py ----------
"""
Auth routes — local accounts stored with SQLAlchemy, bcrypt hashes and JWTs.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth import hash_password, verify_password, create_token, get_current_user
from database import get_db
from models.user import User
from schemas import Identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


# ── Pydantic schemas ──────────────────────────────────────────────
class RegisterRequest(BaseModel):
    username: str
    password: str
    display_name: str | None = None
    avatar_url: str | None = None


class AuthRequest(BaseModel):
    username: str
    password: str


def _token_for(user: User) -> str:
    return create_token({
        "user_id": user.id,
        "username": user.username,
        "display_name": user.display_name,
        "avatar_url": user.avatar_url,
    })


def _user_data(user: User, token: str = None) -> dict:
    data = {
        "id": user.id,
        "username": user.username,
        "display_name": user.display_name,
        "avatar_url": user.avatar_url,
    }
    if token:
        data["token"] = token
    return data


# ── Routes ────────────────────────────────────────────────────────
@router.post("/register")
async def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create a local account and return a token for it."""
    username = body.username.strip()
    if not username or len(body.password) < 6:
        raise HTTPException(status_code=400, detail="Username is required and password must be at least 6 characters")

    if db.query(User).filter(User.username == username).first():
        raise HTTPException(status_code=400, detail="Username already taken")

    user = User(
        username=username,
        display_name=(body.display_name or "").strip() or username,
        avatar_url=body.avatar_url,
        hashed_password=hash_password(body.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    return {"status": "success", "data": _user_data(user, _token_for(user))}


@router.post("/login")
async def login(body: AuthRequest, db: Session = Depends(get_db)):
    """Authenticate with username + password."""
    user = db.query(User).filter(User.username == body.username.strip()).first()
    if not user or not verify_password(body.password, user.hashed_password):
        logger.warning("Failed login for %s", body.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")

    return {"status": "success", "data": _user_data(user, _token_for(user))}


@router.get("/me")
async def me(identity: Identity = Depends(get_current_user)):
    """Return the caller's identity from the token."""
    return {"status": "success", "data": identity.model_dump()}
