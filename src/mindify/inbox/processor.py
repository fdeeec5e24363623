"""Inbox processor: reconcile pending captures against the extractor.

Capture writes an item with ``pending_ai_processing=True`` and returns at
once; this module resolves it afterwards, usually from a background thread
started by trigger().

Per item:
  - one extracted item   → the same record is updated in place (id and
    created_at kept, pending cleared)
  - several extracted    → N new inbox items replace the original
    (created_at copied from it)
  - any error            → pending is cleared anyway and the error is logged;
    the item is never retried automatically

Only one batch runs at a time. A call made while a batch is in flight
returns an empty ProcessingResult instead of waiting.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from typing import Any

from mindify.ai.extractor import ItemExtractor
from mindify.ai.types import ExtractedItem
from mindify.db.models import Item, utcnow
from mindify.db.repository import Repository

logger = logging.getLogger(__name__)

LAST_RUN_SETTING = "processor.last_run"


@dataclass
class ProcessingResult:
    processed_count: int = 0
    extracted_count: int = 0
    failed_count: int = 0


class InboxProcessor:
    """Resolve pending items through an ItemExtractor.

    Args:
        repo: Shared repository (thread-safe).
        extractor: Extraction service; its online/offline choice is its own.
    """

    def __init__(self, repo: Repository, extractor: ItemExtractor) -> None:
        self.repo = repo
        self.extractor = extractor
        self._run_lock = threading.Lock()
        self._in_flight: set[str] = set()
        self._in_flight_lock = threading.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def is_running(self) -> bool:
        return self._run_lock.locked()

    def pending_count(self) -> int:
        return self.repo.count_pending()

    def last_run(self) -> dict[str, Any] | None:
        return self.repo.get_setting(LAST_RUN_SETTING)

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process_pending_items(self) -> ProcessingResult:
        """Process every pending inbox item once.

        Returns:
            Counts for this run; all zero if another run is in flight.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.info("Processing already in progress, skipping")
            return ProcessingResult()
        try:
            pending = self.repo.list_pending_items()
            logger.info("Found %d pending items", len(pending))
            result = ProcessingResult()

            for item in pending:
                if not self._claim(item.id):
                    continue
                try:
                    created = self._resolve(item.id)
                except Exception:
                    logger.exception("Failed to process item %s", item.id)
                    result.failed_count += 1
                    continue
                finally:
                    self._release(item.id)
                if created is None:
                    continue
                result.processed_count += 1
                result.extracted_count += len(created)

            logger.info(
                "Processed %d items into %d (%d failed)",
                result.processed_count,
                result.extracted_count,
                result.failed_count,
            )
            self.repo.set_setting(
                LAST_RUN_SETTING, {"finished_at": utcnow().isoformat(), **asdict(result)}
            )
            return result
        finally:
            self._run_lock.release()

    def process_item_by_id(self, item_id: str) -> list[Item]:
        """Process one item now.

        Returns:
            The resulting item(s); ``[item]`` unchanged if it was already
            processed, ``[]`` if it is being processed elsewhere.

        Raises:
            ItemNotFoundError: If *item_id* does not exist.
            Exception: Whatever the extraction or storage step raised; the
                pending flag has been cleared before it propagates.
        """
        item = self.repo.require_item(item_id)
        if not item.pending_ai_processing:
            return [item]
        if not self._claim(item_id):
            logger.info("Item %s is already being processed", item_id)
            return []
        try:
            created = self._resolve(item_id)
        finally:
            self._release(item_id)
        if created is None:
            current = self.repo.get_item(item_id)
            return [current] if current else []
        return created

    def trigger(self, delay: float = 0.5) -> threading.Timer:
        """Start a fire-and-forget batch run on a daemon thread after *delay* seconds."""
        timer = threading.Timer(delay, self._run_in_background)
        timer.daemon = True
        timer.start()
        return timer

    def _run_in_background(self) -> None:
        try:
            self.process_pending_items()
        except Exception:
            logger.exception("Background inbox processing failed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _claim(self, item_id: str) -> bool:
        with self._in_flight_lock:
            if item_id in self._in_flight:
                return False
            self._in_flight.add(item_id)
            return True

    def _release(self, item_id: str) -> None:
        with self._in_flight_lock:
            self._in_flight.discard(item_id)

    def _resolve(self, item_id: str) -> list[Item] | None:
        """Extract and write back one item. None when it no longer needs work."""
        item = self.repo.get_item(item_id)
        if item is None or not item.pending_ai_processing:
            return None
        try:
            extraction = self.extractor.extract_multiple_items(item.raw_input)
            return self._apply(item, extraction.items)
        except Exception:
            self._clear_pending(item_id)
            raise

    def _apply(self, item: Item, extracted: list[ExtractedItem]) -> list[Item]:
        if len(extracted) <= 1:
            fields: dict[str, Any] = {"pending_ai_processing": False}
            if extracted:
                first = extracted[0]
                has_entities = any(vars(first.entities).values())
                fields.update(
                    category=first.category,
                    title=first.title,
                    tags=first.tags,
                    urgency=first.urgency,
                    entities=first.entities if has_entities else item.entities,
                )
            updated = self.repo.update_item(item.id, **fields)
            return [updated] if updated else []

        new_items = [
            Item(
                raw_input=e.raw_text,
                category=e.category,
                title=e.title,
                tags=e.tags,
                entities=e.entities,
                urgency=e.urgency,
                status="inbox",
                created_at=item.created_at,
            )
            for e in extracted
        ]
        logger.info("Split item %s into %d items", item.id, len(new_items))
        return self.repo.replace_item(item.id, new_items)

    def _clear_pending(self, item_id: str) -> None:
        try:
            self.repo.update_item(item_id, pending_ai_processing=False)
        except Exception:
            logger.exception("Could not clear pending flag on item %s", item_id)
