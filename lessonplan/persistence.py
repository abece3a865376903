"""
Plan Persistence Layer

Key-value byte stores for the current plan, plus the JSON encoding used to
put a TeachingPlan into them.

Stored format:
    {"schemaVersion": 5, "plan": {...camelCase plan...}}

Older saves were the bare plan object. They are still accepted: every
decoded plan goes through the reconciliation engine, so plans saved with a
different number of default steps, or before ``objectives.expansion``
existed, load with all their known fields intact.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from lessonplan.errors import CorruptDocumentError
from lessonplan.models import PlanDocument, utcnow
from lessonplan.reconcile import reconcile
from lessonplan.schema import DEFAULT_STEP_COUNT, TeachingPlan, default_document

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 5


# =============================================================================
# STORES
# =============================================================================

class DocumentStore(ABC):
    """Interface describing how serialized plans are persisted."""

    @abstractmethod
    async def save(self, key: str, payload: bytes) -> None:
        """Store ``payload`` under ``key``, replacing any previous value."""

    @abstractmethod
    async def load(self, key: str) -> Optional[bytes]:
        """Return the bytes stored under ``key``, or None if there are none."""


class InMemoryDocumentStore(DocumentStore):
    """Keep plans in local process memory (state lost on restart)."""

    def __init__(self) -> None:
        self._payloads: Dict[str, bytes] = {}

    async def save(self, key: str, payload: bytes) -> None:
        self._payloads[_validate_key(key)] = bytes(payload)

    async def load(self, key: str) -> Optional[bytes]:
        return self._payloads.get(_validate_key(key))


class SqlDocumentStore(DocumentStore):
    """Persist plans in the ``plan_documents`` table."""

    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    async def save(self, key: str, payload: bytes) -> None:
        key = _validate_key(key)
        async with self._session_maker() as db:
            record = await db.get(PlanDocument, key)
            if record is None:
                record = PlanDocument(key=key, payload=payload)
            else:
                record.payload = payload
                record.updated_at = utcnow()
            db.add(record)
            await db.commit()

    async def load(self, key: str) -> Optional[bytes]:
        key = _validate_key(key)
        async with self._session_maker() as db:
            record = await db.get(PlanDocument, key)
            if record is None:
                return None
            return bytes(record.payload)


def _validate_key(key: str) -> str:
    if not isinstance(key, str):
        raise TypeError("key must be a string")
    stripped = key.strip()
    if not stripped:
        raise ValueError("key must be a non-empty string")
    return stripped


# =============================================================================
# ENCODING
# =============================================================================

def serialize_document(doc: TeachingPlan) -> bytes:
    envelope = {"schemaVersion": SCHEMA_VERSION, "plan": doc.to_wire()}
    return json.dumps(envelope, ensure_ascii=False).encode("utf-8")


def deserialize_document(payload: bytes, step_count: int = DEFAULT_STEP_COUNT) -> TeachingPlan:
    """
    Decode stored bytes into a plan.

    Raises:
        CorruptDocumentError: If the bytes are not a JSON object, or were
            written by a newer schema version
    """
    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptDocumentError(f"Stored plan is not valid JSON: {e}") from e
    except RecursionError as e:
        raise CorruptDocumentError("Stored plan is nested too deeply to decode") from e

    if not isinstance(data, dict):
        raise CorruptDocumentError(f"Stored plan is a JSON {type(data).__name__}, expected an object")

    if "schemaVersion" in data:
        version = data.get("schemaVersion")
        if not isinstance(version, int) or isinstance(version, bool):
            raise CorruptDocumentError(f"Stored plan has an invalid schema version: {version!r}")
        if version > SCHEMA_VERSION:
            raise CorruptDocumentError(
                f"Stored plan schema version {version} is newer than supported {SCHEMA_VERSION}"
            )
        plan = data.get("plan")
        if not isinstance(plan, dict):
            raise CorruptDocumentError("Stored plan envelope has no plan object")
    else:
        # Bare plan saved before the envelope existed
        logger.info("Migrating unversioned stored plan to schema version %s", SCHEMA_VERSION)
        plan = data

    return reconcile(plan, step_count=step_count)


async def load_document(
    store: DocumentStore, key: str, step_count: int = DEFAULT_STEP_COUNT
) -> TeachingPlan:
    """Return the stored plan, or a fresh default plan if none is stored or it is unreadable."""
    payload = await store.load(key)
    if payload is None:
        logger.info("No stored plan under %r, starting from defaults", key)
        return default_document(step_count)
    try:
        return deserialize_document(payload, step_count)
    except CorruptDocumentError as e:
        logger.warning("Discarding stored plan %r: %s", key, e)
        return default_document(step_count)
