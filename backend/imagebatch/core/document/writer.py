"""Paginated document output backed by reportlab."""

from io import BytesIO
from typing import Protocol

from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from imagebatch.core.constants import ERROR_MARKER_FONT, ERROR_MARKER_FONT_SIZE
from imagebatch.core.document.layout import DocumentOptions, page_dimensions
from imagebatch.core.exceptions import ContainerError
from imagebatch.utils.logging import get_logger

logger = get_logger(__name__)


class DocumentWriter(Protocol):
    """Sequential page writer using top-left millimetre coordinates.

    A fresh writer starts on its first page.
    """

    def add_page(self) -> None: ...

    def place_image(
        self, jpeg_data: bytes, x: float, y: float, width: float, height: float
    ) -> None: ...

    def place_text(self, text: str, x: float, y: float) -> None: ...

    def finish(self) -> bytes: ...


class ReportLabDocumentWriter:
    """DocumentWriter drawing onto a reportlab canvas held in memory."""

    def __init__(self, options: DocumentOptions):
        self.options = options
        self.page_width, self.page_height = page_dimensions(options.orientation)
        self._buffer = BytesIO()
        self._canvas = canvas.Canvas(
            self._buffer, pagesize=(self.page_width * mm, self.page_height * mm)
        )
        self._canvas.setTitle("Converted images")
        self.page_count = 1
        self._finished = False

    def add_page(self) -> None:
        self._ensure_open()
        self._canvas.showPage()
        self.page_count += 1

    def place_image(
        self, jpeg_data: bytes, x: float, y: float, width: float, height: float
    ) -> None:
        self._ensure_open()
        # reportlab measures y upwards from the bottom edge
        bottom = self.page_height - y - height
        self._canvas.drawImage(
            ImageReader(BytesIO(jpeg_data)),
            x * mm,
            bottom * mm,
            width=width * mm,
            height=height * mm,
        )

    def place_text(self, text: str, x: float, y: float) -> None:
        self._ensure_open()
        # y is the text baseline
        self._canvas.setFont(ERROR_MARKER_FONT, ERROR_MARKER_FONT_SIZE)
        self._canvas.drawString(x * mm, (self.page_height - y) * mm, text)

    def finish(self) -> bytes:
        """Close the last page and serialize the document.

        Raises:
            ContainerError: If the document cannot be written
        """
        self._ensure_open()
        self._finished = True
        try:
            self._canvas.showPage()
            self._canvas.save()
        except Exception as e:
            raise ContainerError(
                f"Failed to finalize document: {str(e)}",
                details={"container": "pdf", "stage": "finish", "reason": str(e)[:200]},
            )

        data = self._buffer.getvalue()
        logger.debug("document_finalized", pages=self.page_count, size=len(data))
        return data

    def _ensure_open(self) -> None:
        if self._finished:
            raise ContainerError(
                "Document already finalized", details={"container": "pdf", "stage": "write"}
            )
