"""
supabase_rest.py — HTTP-based database client using Supabase's PostgREST API.
Backs the remote garden store; uses only httpx.
"""
from contextlib import nullcontext
from urllib.parse import quote

import httpx

from config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY


def _headers(prefer: str = "return=representation"):
    return {
        "apikey": SUPABASE_SERVICE_ROLE_KEY,
        "Authorization": f"Bearer {SUPABASE_SERVICE_ROLE_KEY}",
        "Content-Type": "application/json",
        "Prefer": prefer,
    }


def _session(client: httpx.Client | None):
    # Injected clients stay open for the caller
    return nullcontext(client) if client is not None else httpx.Client(timeout=10)


def _filter_query(filters: dict | None) -> str:
    if not filters:
        return ""
    return "".join(f"&{key}=eq.{quote(str(value))}" for key, value in filters.items())


def sb_select(table: str, filters: dict = None, columns: str = "*", client: httpx.Client = None) -> list:
    """Select rows from a table with optional equality filters."""
    url = f"{SUPABASE_URL}/rest/v1/{table}?select={columns}{_filter_query(filters)}"
    with _session(client) as http:
        resp = http.get(url, headers=_headers())
        resp.raise_for_status()
        return resp.json()


def sb_upsert(table: str, data: dict, on_conflict: str, client: httpx.Client = None) -> dict:
    """Insert or update on the given unique columns (comma-separated)."""
    url = f"{SUPABASE_URL}/rest/v1/{table}?on_conflict={on_conflict}"
    headers = _headers("resolution=merge-duplicates,return=representation")
    with _session(client) as http:
        resp = http.post(url, json=data, headers=headers)
        resp.raise_for_status()
        result = resp.json()
        return result[0] if isinstance(result, list) and result else {}


