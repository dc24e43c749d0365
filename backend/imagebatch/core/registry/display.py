"""Display references handed to the presentation layer.

Every item gets exactly one reference when it is added and gives it back
exactly once when it is removed or cleared. The ledger below records both
sides so a leak or a double release is observable.
"""

import uuid
from typing import Dict, Optional, Protocol

from imagebatch.core.exceptions import DisplayRefError
from imagebatch.core.registry.models import DisplayRef, Source
from imagebatch.utils.logging import get_logger

logger = get_logger(__name__)


class DisplayRefFactory(Protocol):
    def create(self, item_id: str, source: Source) -> DisplayRef: ...

    def release(self, ref: DisplayRef) -> None: ...


class PreviewLedger:
    """In-memory display reference provider with an explicit ledger."""

    scheme = "preview"

    def __init__(self) -> None:
        self._live: Dict[str, Source] = {}
        self.created = 0
        self.released = 0

    def create(self, item_id: str, source: Source) -> DisplayRef:
        handle = f"{self.scheme}://{uuid.uuid4().hex}"
        self._live[handle] = source
        self.created += 1
        logger.debug("display_ref_created", item_id=item_id, handle=handle)
        return DisplayRef(handle=handle, item_id=item_id)

    def release(self, ref: DisplayRef) -> None:
        if self._live.pop(ref.handle, None) is None:
            raise DisplayRefError(
                f"Display reference {ref.handle} is not live",
                details={"handle": ref.handle, "item_id": ref.item_id},
            )
        self.released += 1
        logger.debug("display_ref_released", item_id=ref.item_id, handle=ref.handle)

    def resolve(self, handle: str) -> Optional[Source]:
        """Return the source a live handle points at."""
        return self._live.get(handle)

    @property
    def live_count(self) -> int:
        return len(self._live)

    def is_live(self, ref: DisplayRef) -> bool:
        return ref.handle in self._live
