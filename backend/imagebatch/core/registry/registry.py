"""Ordered collection of tracked items."""

import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from imagebatch.core.exceptions import DisplayRefError
from imagebatch.core.registry.display import DisplayRefFactory
from imagebatch.core.registry.models import Item, ItemStatus, ProcessingStats, Source
from imagebatch.utils.logging import get_logger

logger = get_logger(__name__)


class ItemRegistry:
    """Owns the ordered item list and the display reference of each item.

    Items are immutable models; every transition replaces the stored item
    with a validated copy so the output/error invariant is checked on each
    change.
    """

    def __init__(self, display_refs: DisplayRefFactory):
        self._display_refs = display_refs
        self._items: List[Item] = []
        self._index: Dict[str, int] = {}

    def add(self, sources: Iterable[Source]) -> List[Item]:
        """Append one idle item per source, preserving input order.

        Args:
            sources: Sources to track

        Returns:
            The newly created items
        """
        added = []
        for source in sources:
            item_id = uuid.uuid4().hex
            ref = self._display_refs.create(item_id, source)
            item = Item(id=item_id, source=source, display_ref=ref)
            self._index[item_id] = len(self._items)
            self._items.append(item)
            added.append(item)

        if added:
            logger.info("items_added", count=len(added), total=len(self._items))
        return added

    def remove(self, item_id: str) -> None:
        """Drop an item and release its display reference.

        Unknown ids are ignored.
        """
        position = self._index.get(item_id)
        if position is None:
            return

        item = self._items.pop(position)
        self._display_refs.release(item.display_ref)
        self._reindex()
        logger.info("item_removed", item_id=item_id, total=len(self._items))

    def clear(self) -> None:
        """Release every display reference and empty the registry.

        Every reference is released even if an earlier release fails; the
        first failure is raised afterwards.
        """
        items, self._items = self._items, []
        self._index = {}
        failures = []
        for item in items:
            try:
                self._display_refs.release(item.display_ref)
            except DisplayRefError as e:
                failures.append(e)
        if items:
            logger.info("items_cleared", count=len(items), release_failures=len(failures))
        if failures:
            raise failures[0]

    def update_status(
        self,
        item_id: str,
        status: ItemStatus,
        *,
        output: Optional[bytes] = None,
        error: Optional[str] = None,
    ) -> Optional[Item]:
        """Move an item to a new status.

        Args:
            item_id: Item to update
            status: Target status
            output: Encoded result, kept only for completed items
            error: Diagnostic text, kept only for failed items

        Returns:
            The updated item, or None when the id is no longer tracked
        """
        position = self._index.get(item_id)
        if position is None:
            # A removed item can still be reported by an in-flight conversion
            logger.debug("status_update_ignored", item_id=item_id, status=status.value)
            return None

        current = self._items[position]
        updated = Item.model_validate(
            {
                **current.model_dump(),
                "status": status,
                "output": output if status == ItemStatus.COMPLETED else None,
                "error": error if status == ItemStatus.ERROR else None,
            }
        )
        self._items[position] = updated
        return updated

    def reset_all(self, status: ItemStatus = ItemStatus.IDLE) -> None:
        """Set every item to a non-terminal status, clearing results."""
        if status in (ItemStatus.COMPLETED, ItemStatus.ERROR):
            raise ValueError("reset_all only accepts idle or converting")
        self._items = [
            item.model_copy(update={"status": status, "output": None, "error": None})
            for item in self._items
        ]

    def items(self) -> Tuple[Item, ...]:
        return tuple(self._items)

    def get(self, item_id: str) -> Optional[Item]:
        position = self._index.get(item_id)
        return None if position is None else self._items[position]

    def stats(self) -> ProcessingStats:
        completed = sum(1 for item in self._items if item.status == ItemStatus.COMPLETED)
        failed = sum(1 for item in self._items if item.status == ItemStatus.ERROR)
        return ProcessingStats(total=len(self._items), completed=completed, failed=failed)

    def __len__(self) -> int:
        return len(self._items)

    def _reindex(self) -> None:
        self._index = {item.id: position for position, item in enumerate(self._items)}
