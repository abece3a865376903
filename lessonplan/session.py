"""
Plan Editing Session

Holds the one TeachingPlan being edited, applies edits and imports to it, and
writes every new snapshot to the document store.

Concurrency model (single event loop):
- Edits are synchronous and replace the snapshot in one assignment.
- Saves are fire-and-forget tasks carrying the full snapshot. They run one at
  a time in the order they were scheduled, so the last edit is the last write.
- Import is the only operation that suspends. At most one runs at a time; the
  snapshot is untouched until the extraction reply has been reconciled, then
  replaced wholesale.
"""

import asyncio
import logging
from typing import Any, Optional, Protocol, Set

from lessonplan import lists
from lessonplan.errors import ExtractionError, ImportInProgressError
from lessonplan.extraction.sources import ExtractionSource
from lessonplan.naming import document_title
from lessonplan.paths import PathLike, set_value
from lessonplan.persistence import DocumentStore, load_document, serialize_document
from lessonplan.reconcile import reconcile
from lessonplan.schema import (
    DEFAULT_STEP_COUNT,
    TeachingPlan,
    default_document,
    default_section,
    section_attribute,
)
from lessonplan.settings import settings

logger = logging.getLogger(__name__)


class Extractor(Protocol):
    """Anything that turns a source file into a JSON guess at the plan."""

    async def extract(self, source: ExtractionSource) -> Any:
        ...


class PlanSession:
    """The editing session for the current plan."""

    def __init__(
        self,
        store: DocumentStore,
        document: TeachingPlan,
        key: Optional[str] = None,
        extractor: Optional[Extractor] = None,
        step_count: int = DEFAULT_STEP_COUNT,
        import_min_steps: int = 1,
    ):
        self.key = key or settings.PLAN_STORAGE_KEY
        self._store = store
        self._document = document
        self._extractor = extractor
        self._step_count = step_count
        self._import_min_steps = import_min_steps
        self._import_in_flight = False
        self._save_lock = asyncio.Lock()
        self._pending_saves: Set[asyncio.Task] = set()

    @classmethod
    async def open(
        cls,
        store: DocumentStore,
        key: Optional[str] = None,
        extractor: Optional[Extractor] = None,
        step_count: Optional[int] = None,
        import_min_steps: Optional[int] = None,
    ) -> "PlanSession":
        """Load the stored plan (or start from defaults) and return a session for it."""
        key = key or settings.PLAN_STORAGE_KEY
        step_count = step_count or settings.DEFAULT_STEP_COUNT
        document = await load_document(store, key, step_count)
        return cls(
            store,
            document,
            key=key,
            extractor=extractor,
            step_count=step_count,
            import_min_steps=import_min_steps or settings.IMPORT_MIN_STEPS,
        )

    # -------------------------------------------------------------------------
    # STATE
    # -------------------------------------------------------------------------
    @property
    def document(self) -> TeachingPlan:
        return self._document

    @property
    def title(self) -> str:
        return document_title(self._document)

    @property
    def import_in_progress(self) -> bool:
        return self._import_in_flight

    # -------------------------------------------------------------------------
    # EDITS
    # -------------------------------------------------------------------------
    def update(self, path: PathLike, value: str) -> TeachingPlan:
        return self._replace(set_value(self._document, path, value))

    def add_game(self) -> TeachingPlan:
        return self._replace(lists.add_game(self._document))

    def remove_game(self, index: int) -> TeachingPlan:
        return self._replace(lists.remove_game(self._document, index))

    def add_step(self) -> TeachingPlan:
        return self._replace(lists.add_step(self._document))

    def remove_step(self, index: int) -> TeachingPlan:
        return self._replace(lists.remove_step(self._document, index))

    def clear_section(self, name: str) -> TeachingPlan:
        """
        Reset one top-level section to its default value.

        Raises:
            KeyError: If ``name`` is not a section of the plan
        """
        attribute = section_attribute(name)
        cleared = default_section(attribute, self._step_count)
        return self._replace(self._document.model_copy(update={attribute: cleared}))

    def reset(self) -> TeachingPlan:
        return self._replace(default_document(self._step_count))

    # -------------------------------------------------------------------------
    # IMPORT
    # -------------------------------------------------------------------------
    async def import_source(self, source: ExtractionSource) -> TeachingPlan:
        """
        Replace the plan with one extracted from ``source``.

        Raises:
            ImportInProgressError: If another import has not finished yet
            ExtractionError: If the extraction failed; the plan is unchanged
        """
        if self._import_in_flight:
            raise ImportInProgressError("A plan import is already running")
        if self._extractor is None:
            raise ExtractionError("No extraction service is configured")

        self._import_in_flight = True
        try:
            raw = await self._extractor.extract(source)
        finally:
            self._import_in_flight = False

        document = reconcile(
            raw,
            min_steps=self._import_min_steps,
            step_count=self._step_count,
        )
        logger.info(
            "Imported plan from %s (%d games, %d steps)",
            source.filename, len(document.games), len(document.steps),
        )
        return self._replace(document)

    # -------------------------------------------------------------------------
    # PERSISTENCE
    # -------------------------------------------------------------------------
    def _replace(self, document: TeachingPlan) -> TeachingPlan:
        if document is self._document:
            return document
        self._document = document
        self._schedule_save(document)
        return document

    def _schedule_save(self, document: TeachingPlan) -> None:
        payload = serialize_document(document)
        task = asyncio.get_running_loop().create_task(self._persist(payload))
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _persist(self, payload: bytes) -> None:
        async with self._save_lock:
            try:
                await self._store.save(self.key, payload)
            except Exception:
                logger.exception("Failed to save plan %r", self.key)

    async def flush(self) -> None:
        """Wait until every scheduled save has been written."""
        while self._pending_saves:
            await asyncio.gather(*list(self._pending_saves))
