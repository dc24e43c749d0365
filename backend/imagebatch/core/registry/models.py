"""Data models for tracked conversion items."""

import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ItemStatus(str, Enum):
    """Status of an individual tracked item."""

    IDLE = "idle"
    CONVERTING = "converting"
    COMPLETED = "completed"
    ERROR = "error"


class OutputMode(str, Enum):
    """What a run produces."""

    JPEG = "jpeg"
    PDF = "pdf"


class Source(BaseModel):
    """Immutable handle to the original input bytes."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Original filename for display")
    data: bytes = Field(..., repr=False, description="Raw input bytes")
    mime_type: Optional[str] = Field(None, description="Detected MIME type")

    @field_validator("name")
    @classmethod
    def sanitize_name(cls, v: str) -> str:
        """Keep only the final path component."""
        return os.path.basename(v) or "untitled"

    @property
    def size(self) -> int:
        return len(self.data)


class DisplayRef(BaseModel):
    """Host-managed view handle paired with one item."""

    model_config = ConfigDict(frozen=True)

    handle: str
    item_id: str


class Item(BaseModel):
    """One tracked unit of input-to-output work."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable identifier assigned at ingestion")
    source: Source
    display_ref: DisplayRef
    status: ItemStatus = Field(default=ItemStatus.IDLE)
    output: Optional[bytes] = Field(None, repr=False)
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_result_presence(self) -> "Item":
        """Exactly one of output/error is set, and only for terminal statuses."""
        if self.status == ItemStatus.COMPLETED:
            if self.output is None or self.error is not None:
                raise ValueError("completed items carry an output and no error")
        elif self.status == ItemStatus.ERROR:
            if self.error is None or self.output is not None:
                raise ValueError("failed items carry an error and no output")
        elif self.output is not None or self.error is not None:
            raise ValueError(f"{self.status.value} items carry neither output nor error")
        return self


class ProcessingStats(BaseModel):
    """Aggregate counts derived from the registry."""

    total: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)

    @property
    def pending(self) -> int:
        """Items that are neither completed nor failed."""
        return self.total - self.completed - self.failed

    @property
    def progress_percentage(self) -> int:
        if self.total == 0:
            return 0
        return int(self.completed / self.total * 100)
