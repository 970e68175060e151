import json
import random

import httpx
import pytest

from errors import PersistenceError
from models.garden_state import GardenBlob
from schemas import Identity
from services.garden_service import GardenEngine
from services.storage_service import (
    MemoryStore,
    SqlStore,
    SupabaseStore,
    decode_collection,
    encode_collection,
)


class BrokenStore(MemoryStore):
    def save(self, user_id, key, payload):
        raise PersistenceError("disk full")


def make_engine(store, clock, **kwargs):
    engine = GardenEngine("user-1", store, clock=clock, rng=random.Random(1),
                          identity=Identity(user_id="user-1", display_name="Ada"), **kwargs)
    engine.load()
    return engine


def test_decode_fails_closed():
    with pytest.raises(PersistenceError):
        decode_collection("tasks", {"version": 99, "items": []})
    with pytest.raises(PersistenceError):
        decode_collection("tasks", {"version": 1, "items": [{"title": "no id"}]})
    with pytest.raises(PersistenceError):
        decode_collection("profile", "garbage")


def test_garden_survives_reload(store, clock):
    engine = make_engine(store, clock, seed_sample_data=False)
    task = engine.create_task({"title": "Persist me", "priority": "high"})
    engine.complete_task(task.id)

    again = make_engine(store, clock, seed_sample_data=False)
    assert again.get_task(task.id).status == "completed"
    assert again.garden.profile.compost == 15
    assert len(again.garden.plants) == 1
    assert again.garden.plants[0].planted_at == clock()


def test_corrupt_collection_falls_back_to_defaults(store, clock):
    engine = make_engine(store, clock, seed_sample_data=False)
    engine.create_task({"title": "Kept"})
    store.save("user-1", "profile", {"version": 1, "items": {"compost": -5}})

    again = make_engine(store, clock, seed_sample_data=False)
    assert len(again.list_tasks()) == 1
    assert again.garden.profile.compost == 0
    assert again.garden.profile.user_id == "user-1"


def test_first_run_seeds_sample_garden(store, clock):
    engine = make_engine(store, clock, seed_sample_data=True)
    titles = [t.title for t in engine.list_tasks()]
    assert titles == ["Morning workout", "Review project proposal", "Call mom"]
    assert engine.garden.profile.compost == 128
    assert engine.garden.plants[0].growth == 90


def test_failed_save_keeps_memory_state(clock):
    engine = make_engine(BrokenStore(), clock, seed_sample_data=False)
    task = engine.create_task({"title": "Still here"})
    engine.complete_task(task.id)

    assert engine.get_task(task.id).status == "completed"
    assert engine.save() is False


def test_identical_state_is_not_rewritten(store, clock):
    engine = make_engine(store, clock, seed_sample_data=False)
    engine.create_task({"title": "Once"})

    writes = []
    original = store.save
    store.save = lambda user_id, key, payload: writes.append(key) or original(user_id, key, payload)
    assert engine.save() is True
    assert writes == []


def test_sql_store_upserts_one_row_per_key(db_session_factory):
    store = SqlStore(db_session_factory)
    assert store.load("u1", "tasks") is None

    store.save("u1", "tasks", encode_collection("tasks", []))
    store.save("u1", "tasks", {"version": 1, "items": []})
    store.save("u2", "tasks", {"version": 1, "items": []})

    db = db_session_factory()
    try:
        assert db.query(GardenBlob).filter_by(user_id="u1").count() == 1
        assert db.query(GardenBlob).count() == 2
    finally:
        db.close()
    assert store.load("u1", "tasks") == {"version": 1, "items": []}


def test_supabase_store_round_trip():
    rows = {}
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.headers.get("Prefer")))
        if request.method == "POST":
            row = json.loads(request.content)
            rows[(row["user_id"], row["key"])] = row
            return httpx.Response(201, json=[row])
        params = request.url.params
        key = (params["user_id"].removeprefix("eq."), params["key"].removeprefix("eq."))
        found = [{"payload": rows[key]["payload"]}] if key in rows else []
        return httpx.Response(200, json=found)

    client = httpx.Client(base_url="https://garden.supabase.co", transport=httpx.MockTransport(handler))
    store = SupabaseStore(table="garden_state", client=client)

    assert store.load("u1", "profile") is None
    store.save("u1", "profile", {"version": 1, "items": {"user_id": "u1"}})
    assert store.load("u1", "profile") == {"version": 1, "items": {"user_id": "u1"}}
    assert seen[1][1] == "/rest/v1/garden_state"
    assert "merge-duplicates" in seen[1][2]


def test_supabase_errors_become_persistence_errors():
    client = httpx.Client(base_url="https://garden.supabase.co",
                          transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    store = SupabaseStore(table="garden_state", client=client)

    with pytest.raises(PersistenceError):
        store.load("u1", "tasks")
    with pytest.raises(PersistenceError):
        store.save("u1", "tasks", {"version": 1, "items": []})
