"""Group-sequential batch conversion over the item registry."""

import asyncio
import time
from typing import List, Optional, Protocol, Sequence, TypeVar

from pydantic import BaseModel, Field

from imagebatch.config import settings
from imagebatch.core.constants import CONVERSION_FAILED_MESSAGE, MAX_ERROR_MESSAGE_LENGTH
from imagebatch.core.registry.models import Item, ItemStatus, Source
from imagebatch.core.registry.registry import ItemRegistry
from imagebatch.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

PENDING_STATUSES = (ItemStatus.IDLE, ItemStatus.ERROR)


class Converter(Protocol):
    async def convert(self, source: Source) -> bytes: ...


class BatchRunSummary(BaseModel):
    """Outcome of one scheduler run."""

    groups: int = Field(default=0, ge=0)
    attempted: int = Field(default=0, ge=0)
    succeeded: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    elapsed_seconds: float = Field(default=0.0, ge=0)


def partition(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into consecutive groups of at most ``size``."""
    if size < 1:
        raise ValueError("group size must be at least 1")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


def format_failure(error: BaseException) -> str:
    """Build the diagnostic stored on a failed item."""
    detail = getattr(error, "message", None) or str(error) or error.__class__.__name__
    return f"{CONVERSION_FAILED_MESSAGE}: {detail}"[:MAX_ERROR_MESSAGE_LENGTH]


class BatchScheduler:
    """Converts pending items in fixed-size groups.

    Groups run strictly one after another; members of a group convert
    concurrently. A failing member never affects its siblings.
    """

    def __init__(
        self,
        registry: ItemRegistry,
        converter: Converter,
        group_size: Optional[int] = None,
    ):
        self.registry = registry
        self.converter = converter
        self.group_size = settings.batch_group_size if group_size is None else group_size
        if self.group_size < 1:
            raise ValueError("group size must be at least 1")

    def pending_items(self) -> List[Item]:
        return [item for item in self.registry.items() if item.status in PENDING_STATUSES]

    async def run(self) -> BatchRunSummary:
        """Convert every idle or failed item.

        Returns:
            Summary of the run
        """
        start_time = time.time()
        groups = partition(self.pending_items(), self.group_size)
        summary = BatchRunSummary(groups=len(groups))

        logger.info(
            "batch_run_started",
            items=sum(len(group) for group in groups),
            groups=len(groups),
            group_size=self.group_size,
        )

        for group_index, group in enumerate(groups):
            results = await asyncio.gather(
                *(self._convert_item(item, group_index) for item in group)
            )
            summary.attempted += len(results)
            summary.succeeded += sum(1 for ok in results if ok)
            summary.failed += sum(1 for ok in results if not ok)

        summary.elapsed_seconds = time.time() - start_time
        logger.info(
            "batch_run_finished",
            groups=summary.groups,
            succeeded=summary.succeeded,
            failed=summary.failed,
            elapsed_seconds=round(summary.elapsed_seconds, 3),
        )
        return summary

    async def _convert_item(self, item: Item, group_index: int) -> bool:
        self.registry.update_status(item.id, ItemStatus.CONVERTING)
        try:
            output = await self.converter.convert(item.source)
        except Exception as e:
            error = format_failure(e)
            logger.warning(
                "item_conversion_failed",
                item_id=item.id,
                filename=item.source.name,
                group=group_index,
                error=str(e)[:200],
            )
            self.registry.update_status(item.id, ItemStatus.ERROR, error=error)
            return False

        self.registry.update_status(item.id, ItemStatus.COMPLETED, output=output)
        logger.debug(
            "item_converted", item_id=item.id, group=group_index, output_size=len(output)
        )
        return True
