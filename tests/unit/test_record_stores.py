import pytest

from keyspace.errors import DuplicateRecordError, NotFoundError
from keyspace.models import NamespaceRecord
from keyspace.persistence import InMemoryRecordStore, SQLiteRecordStore


@pytest.fixture(params=["inmemory", "sqlite"])
def store(request, tmp_path):
    if request.param == "inmemory":
        return InMemoryRecordStore()
    return SQLiteRecordStore(tmp_path / "keys.db")


def _record(namespace_id="ns1", key_id="100", previous=None):
    return NamespaceRecord(
        id=namespace_id,
        algorithm="HS256",
        token_ttl_in_secs=300,
        clock_tolerance_in_secs=30,
        state={
            "key": {"id": key_id, "data": "c2VjcmV0", "created": 100, "expires": 430},
            "previous_key": previous,
        },
    )


@pytest.mark.asyncio
async def test_insert_and_get(store):
    record = _record()
    await store.insert(record)

    loaded = await store.get("ns1")
    assert loaded.id == "ns1"
    assert loaded.algorithm == "HS256"
    assert loaded.token_ttl_in_secs == 300
    assert loaded.clock_tolerance_in_secs == 30
    assert loaded.state == record.state
    assert loaded.meta.created == record.meta.created


@pytest.mark.asyncio
async def test_duplicate_insert(store):
    await store.insert(_record())
    with pytest.raises(DuplicateRecordError) as excinfo:
        await store.insert(_record(key_id="200"))
    assert excinfo.value.details["namespace"] == "ns1"
    assert (await store.get("ns1")).state["key"]["id"] == "100"


@pytest.mark.asyncio
async def test_get_missing(store):
    with pytest.raises(NotFoundError):
        await store.get("nope")


@pytest.mark.asyncio
async def test_conditional_update_applies_when_predicate_holds(store):
    await store.insert(_record())
    new_state = _record(key_id="200", previous=_record().state["key"]).state

    updated = await store.conditional_update("ns1", new_state, match={"key.id": "100"})
    assert updated == 1
    loaded = await store.get("ns1")
    assert loaded.state == new_state
    assert loaded.meta.updated >= loaded.meta.created


@pytest.mark.asyncio
async def test_conditional_update_rejects_stale_predicate(store):
    await store.insert(_record())
    first = _record(key_id="200", previous=_record().state["key"]).state
    second = _record(key_id="201", previous=_record().state["key"]).state

    assert await store.conditional_update("ns1", first, match={"key.id": "100"}) == 1
    assert await store.conditional_update("ns1", second, match={"key.id": "100"}) == 0
    assert (await store.get("ns1")).state == first


@pytest.mark.asyncio
async def test_conditional_update_on_missing_path_or_namespace(store):
    await store.insert(_record())
    state = _record(key_id="200").state

    assert await store.conditional_update("ns1", state, match={"previous_key.id": "1"}) == 0
    assert await store.conditional_update("other", state, match={"key.id": "100"}) == 0
    assert await store.conditional_update("ns1", state) == 1


@pytest.mark.asyncio
async def test_conditional_update_rejects_unsafe_paths(store):
    await store.insert(_record())
    with pytest.raises(ValueError):
        await store.conditional_update("ns1", {}, match={"key.id') OR 1=1 --": "x"})


@pytest.mark.asyncio
async def test_list_namespaces(store):
    await store.insert(_record("b"))
    await store.insert(_record("a"))
    ids = sorted(r.id for r in await store.list_namespaces())
    assert ids == ["a", "b"]


@pytest.mark.asyncio
async def test_inmemory_returns_copies():
    store = InMemoryRecordStore()
    await store.insert(_record())

    loaded = await store.get("ns1")
    loaded.state["key"]["id"] = "tampered"
    assert (await store.get("ns1")).state["key"]["id"] == "100"
