import asyncio
import json
import logging
from datetime import timedelta

import pytest

from lessonplan.database import (
    create_engine_for,
    create_session_maker,
    create_tables,
    drop_tables,
    get_async_database_url,
)
from lessonplan.errors import CorruptDocumentError
from lessonplan.models import PlanDocument
from lessonplan.paths import set_value
from lessonplan.persistence import (
    SCHEMA_VERSION,
    InMemoryDocumentStore,
    SqlDocumentStore,
    deserialize_document,
    load_document,
    serialize_document,
)
from lessonplan.schema import default_document


def test_serialized_plan_is_a_versioned_envelope(filled_plan) -> None:
    data = json.loads(serialize_document(filled_plan).decode("utf-8"))

    assert data["schemaVersion"] == SCHEMA_VERSION
    assert data["plan"] == filled_plan.to_wire()
    assert data["plan"]["steps"][1]["blackboard"] == "apple\nbanana"


def test_stored_plan_loads_back_unchanged(filled_plan) -> None:
    assert deserialize_document(serialize_document(filled_plan)) == filled_plan


def test_non_ascii_text_is_stored_as_utf8() -> None:
    doc = set_value(default_document(), "basic.className", "向日葵班")
    payload = serialize_document(doc)

    assert "向日葵班".encode("utf-8") in payload
    assert deserialize_document(payload).basic.class_name == "向日葵班"


def test_bare_legacy_plan_is_migrated(caplog) -> None:
    legacy = {
        "basic": {"level": "1", "unit": "7"},
        "steps": [{"step": str(n)} for n in range(6)],
    }

    with caplog.at_level(logging.INFO, logger="lessonplan.persistence"):
        doc = deserialize_document(json.dumps(legacy).encode("utf-8"))

    assert doc.basic.unit == "7"
    assert len(doc.steps) == 6
    assert doc.objectives.expansion.culture == ""
    assert "Migrating" in caplog.text


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"{not json",
        b"\xff\xfe",
        b"[1, 2, 3]",
        b'"plan"',
        b'{"schemaVersion": "5", "plan": {}}',
        b'{"schemaVersion": true, "plan": {}}',
        b'{"schemaVersion": 5}',
        b'{"schemaVersion": 5, "plan": []}',
        b'{"schemaVersion": 99, "plan": {}}',
        pytest.param(b"[" * 200000 + b"]" * 200000, id="deeply-nested"),
    ],
)
def test_unreadable_payloads_are_reported_as_corrupt(payload: bytes) -> None:
    with pytest.raises(CorruptDocumentError):
        deserialize_document(payload)


def test_in_memory_store_round_trips_bytes() -> None:
    async def scenario():
        store = InMemoryDocumentStore()
        assert await store.load("plan") is None
        await store.save("plan", b"one")
        await store.save("plan", b"two")
        return await store.load("plan")

    assert asyncio.run(scenario()) == b"two"


def test_store_keys_must_be_non_empty_strings() -> None:
    store = InMemoryDocumentStore()

    with pytest.raises(ValueError):
        asyncio.run(store.save("  ", b"x"))
    with pytest.raises(TypeError):
        asyncio.run(store.load(None))  # type: ignore[arg-type]


def test_load_document_defaults_when_nothing_is_stored(store) -> None:
    doc = asyncio.run(load_document(store, "plan", step_count=3))
    assert doc == default_document(3)


def test_load_document_discards_corrupt_payloads(store, caplog) -> None:
    asyncio.run(store.save("plan", b"{broken"))

    with caplog.at_level(logging.WARNING, logger="lessonplan.persistence"):
        doc = asyncio.run(load_document(store, "plan"))

    assert doc == default_document()
    assert "Discarding stored plan" in caplog.text


def test_load_document_discards_deeply_nested_payloads(store) -> None:
    asyncio.run(store.save("plan", b"[" * 200000 + b"]" * 200000))
    assert asyncio.run(load_document(store, "plan")) == default_document()


def test_plan_rows_carry_aware_timestamps() -> None:
    record = PlanDocument(key="plan", payload=b"{}")

    assert record.created_at.tzinfo is not None
    assert record.updated_at.utcoffset() == timedelta(0)


def test_load_document_reads_the_stored_plan(store, filled_plan) -> None:
    asyncio.run(store.save("plan", serialize_document(filled_plan)))
    assert asyncio.run(load_document(store, "plan")) == filled_plan


def test_sql_store_saves_and_overwrites(tmp_path, filled_plan) -> None:
    url = f"sqlite:///{tmp_path / 'plans.db'}"

    async def scenario():
        engine = create_engine_for(url)
        try:
            await create_tables(engine)
            sql_store = SqlDocumentStore(create_session_maker(engine))
            missing = await sql_store.load("teaching-plan-v5")
            await sql_store.save("teaching-plan-v5", serialize_document(default_document()))
            await sql_store.save("teaching-plan-v5", serialize_document(filled_plan))
            loaded = await load_document(sql_store, "teaching-plan-v5")
            await drop_tables(engine)
        finally:
            await engine.dispose()
        return missing, loaded

    missing, loaded = asyncio.run(scenario())

    assert missing is None
    assert loaded == filled_plan


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgresql://u:p@db/plans", "postgresql+asyncpg://u:p@db/plans"),
        ("postgres://u:p@db/plans", "postgresql+asyncpg://u:p@db/plans"),
        ("sqlite:///plans.db", "sqlite+aiosqlite:///plans.db"),
        ("sqlite+aiosqlite:///plans.db", "sqlite+aiosqlite:///plans.db"),
        ("", ""),
    ],
)
def test_database_urls_use_async_drivers(url: str, expected: str) -> None:
    assert get_async_database_url(url) == expected


def test_engine_requires_a_database_url() -> None:
    with pytest.raises(RuntimeError):
        create_engine_for("")
