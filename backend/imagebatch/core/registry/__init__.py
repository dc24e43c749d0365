"""Item registry: tracked inputs, their status and display references."""

from .display import DisplayRefFactory, PreviewLedger
from .models import DisplayRef, Item, ItemStatus, OutputMode, ProcessingStats, Source
from .registry import ItemRegistry

__all__ = [
    "DisplayRef",
    "DisplayRefFactory",
    "Item",
    "ItemRegistry",
    "ItemStatus",
    "OutputMode",
    "PreviewLedger",
    "ProcessingStats",
    "Source",
]
