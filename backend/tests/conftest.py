"""Pytest fixtures for imagebatch tests."""

import asyncio
import io
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest
from PIL import Image

# Set test environment variables BEFORE any imports
os.environ["IMAGEBATCH_ENV"] = "testing"
os.environ["IMAGEBATCH_LOGGING_ENABLED"] = "false"

from imagebatch.core.exceptions import DecodeError
from imagebatch.core.registry.display import PreviewLedger
from imagebatch.core.registry.models import Source
from imagebatch.core.registry.registry import ItemRegistry


@pytest.fixture
def image_generator():
    """Generate test images on the fly."""

    def _generate(
        width: int = 100,
        height: int = 100,
        format: str = "PNG",
        color: Tuple[int, ...] = (255, 0, 0),
        mode: str = "RGB",
    ) -> bytes:
        img = Image.new(mode, (width, height), color=color)
        buffer = io.BytesIO()
        img.save(buffer, format=format)
        return buffer.getvalue()

    return _generate


@pytest.fixture
def source_factory(image_generator):
    """Build Source models, real images by default."""

    def _make(
        name: str = "image.webp",
        data: Optional[bytes] = None,
        mime_type: Optional[str] = "image/webp",
        **image_kwargs,
    ) -> Source:
        if data is None:
            image_kwargs.setdefault("format", "WEBP")
            data = image_generator(**image_kwargs)
        return Source(name=name, data=data, mime_type=mime_type)

    return _make


@pytest.fixture
def ledger():
    return PreviewLedger()


@pytest.fixture
def registry(ledger):
    return ItemRegistry(ledger)


@pytest.fixture
def temp_dir(tmp_path):
    """Temporary directory for test outputs."""
    return tmp_path


class FakeConverter:
    """Converter double that records concurrency and fails on request."""

    def __init__(self, fail_names=(), delay: float = 0.01):
        self.fail_names = set(fail_names)
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0
        self.events: List[Tuple[str, str]] = []

    async def convert(self, source: Source) -> bytes:
        self.calls.append(source.name)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.events.append(("start", source.name))
        try:
            await asyncio.sleep(self.delay)
            if source.name in self.fail_names:
                raise DecodeError(f"cannot decode {source.name}")
            return f"jpeg:{source.name}".encode()
        finally:
            self.active -= 1
            self.events.append(("end", source.name))


class RecordingWriter:
    """DocumentWriter double that records every call."""

    instances: List["RecordingWriter"] = []

    def __init__(self, options, fail_on: Optional[str] = None):
        self.options = options
        self.fail_on = fail_on
        self.calls: List[Tuple] = []
        RecordingWriter.instances.append(self)

    def _record(self, name: str, *args) -> None:
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")
        self.calls.append((name, *args))

    def add_page(self) -> None:
        self._record("add_page")

    def place_image(self, jpeg_data, x, y, width, height) -> None:
        self._record("place_image", len(jpeg_data), x, y, width, height)

    def place_text(self, text, x, y) -> None:
        self._record("place_text", text, x, y)

    def finish(self) -> bytes:
        self._record("finish")
        return b"%PDF-fake"


@pytest.fixture
def fake_converter_factory() -> Callable[..., FakeConverter]:
    return FakeConverter


@pytest.fixture
def recording_writer():
    RecordingWriter.instances = []
    yield RecordingWriter
    RecordingWriter.instances = []


class MemorySink:
    """DeliverySink double keeping delivered blobs in memory."""

    def __init__(self):
        self.delivered: Dict[str, bytes] = {}

    def deliver(self, name: str, blob: bytes) -> str:
        self.delivered[name] = blob
        return name


@pytest.fixture
def memory_sink():
    return MemorySink()
