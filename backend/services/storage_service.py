"""
storage_service.py — Garden persistence
Three interchangeable stores with the same load/save contract (memory, local SQL,
remote Supabase) plus the versioned codec every collection goes through.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable

import httpx
from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import config
from errors import PersistenceError
from schemas import Achievement, ChallengeProgress, FocusSession, FocusSettings, Plant, Profile, SocialFeed, Task

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# key -> shape of the "items" field
COLLECTIONS: dict[str, TypeAdapter] = {
    "tasks": TypeAdapter(list[Task]),
    "plants": TypeAdapter(list[Plant]),
    "sessions": TypeAdapter(list[FocusSession]),
    "profile": TypeAdapter(Profile),
    "achievements": TypeAdapter(list[Achievement]),
    "settings": TypeAdapter(FocusSettings),
    "challenges": TypeAdapter(list[ChallengeProgress]),
    "feed": TypeAdapter(SocialFeed),
}


def encode_collection(key: str, value: Any) -> dict:
    """Typed value -> JSON-safe envelope (dates become ISO-8601 strings)."""
    adapter = COLLECTIONS[key]
    return {"version": SCHEMA_VERSION, "items": adapter.dump_python(value, mode="json")}


def decode_collection(key: str, payload: Any) -> Any:
    """Envelope -> typed value. Any mismatch raises PersistenceError (fail closed)."""
    if not isinstance(payload, dict) or payload.get("version") != SCHEMA_VERSION:
        raise PersistenceError(f"Unsupported schema for {key!r}")
    try:
        return COLLECTIONS[key].validate_python(payload.get("items"))
    except PydanticValidationError as e:
        raise PersistenceError(f"Corrupt {key!r} payload: {e.error_count()} error(s)") from e


class GardenStore:
    """load(user_id, key) -> dict | None, save(user_id, key, payload). Errors are PersistenceError."""

    def load(self, user_id: str, key: str) -> dict | None:
        raise NotImplementedError

    def save(self, user_id: str, key: str, payload: dict) -> None:
        raise NotImplementedError


class MemoryStore(GardenStore):
    def __init__(self):
        self._data: dict[tuple[str, str], str] = {}

    def load(self, user_id: str, key: str) -> dict | None:
        raw = self._data.get((user_id, key))
        return json.loads(raw) if raw is not None else None

    def save(self, user_id: str, key: str, payload: dict) -> None:
        # Round-trip through JSON so nothing mutable is shared with the caller
        self._data[(user_id, key)] = json.dumps(payload)


class SqlStore(GardenStore):
    """Local durable storage in the `garden_state` table."""

    def __init__(self, session_factory: Callable[[], Session] = None):
        if session_factory is None:
            from database import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def load(self, user_id: str, key: str) -> dict | None:
        from models.garden_state import GardenBlob

        db = self.session_factory()
        try:
            row = db.query(GardenBlob).filter_by(user_id=user_id, key=key).first()
            return json.loads(row.payload) if row else None
        except (SQLAlchemyError, ValueError) as e:
            raise PersistenceError(f"Failed to load {key!r}: {e}") from e
        finally:
            db.close()

    def save(self, user_id: str, key: str, payload: dict) -> None:
        from models.garden_state import GardenBlob

        db = self.session_factory()
        try:
            row = db.query(GardenBlob).filter_by(user_id=user_id, key=key).first()
            if row is None:
                row = GardenBlob(user_id=user_id, key=key)
                db.add(row)
            row.payload = json.dumps(payload)
            row.updated_at = datetime.now(timezone.utc)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to save {key!r}: {e}") from e
        finally:
            db.close()


class SupabaseStore(GardenStore):
    """Remote relational backend: one row per (user_id, key) in the state table."""

    def __init__(self, table: str = None, client: httpx.Client = None):
        self.table = table or config.SUPABASE_STATE_TABLE
        self.client = client

    def load(self, user_id: str, key: str) -> dict | None:
        from supabase_rest import sb_select

        try:
            rows = sb_select(self.table, filters={"user_id": user_id, "key": key},
                             columns="payload", client=self.client)
        except (httpx.HTTPError, ValueError) as e:
            raise PersistenceError(f"Failed to load {key!r} from Supabase: {e}") from e
        if not rows:
            return None
        payload = rows[0].get("payload")
        # jsonb comes back parsed, text comes back as a string
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                raise PersistenceError(f"Unreadable {key!r} payload") from e
        return payload

    def save(self, user_id: str, key: str, payload: dict) -> None:
        from supabase_rest import sb_upsert

        row = {
            "user_id": user_id,
            "key": key,
            "payload": payload,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            sb_upsert(self.table, row, on_conflict="user_id,key", client=self.client)
        except httpx.HTTPError as e:
            raise PersistenceError(f"Failed to save {key!r} to Supabase: {e}") from e


def make_store(kind: str = None) -> GardenStore:
    """Store selected by GARDEN_STORE (memory / sql / supabase)."""
    kind = (kind or config.GARDEN_STORE).lower()
    if kind == "memory":
        return MemoryStore()
    if kind == "supabase":
        if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment variables")
        return SupabaseStore()
    if kind == "sql":
        return SqlStore()
    raise ValueError(f"Unknown GARDEN_STORE: {kind}")
