"""Assemble an ordered list of sources into one paginated document."""

import time
from typing import Callable, Optional, Sequence

from imagebatch.config import settings
from imagebatch.core.constants import ERROR_MARKER_POSITION_MM
from imagebatch.core.conversion.encoder import encode_async
from imagebatch.core.conversion.rasterizer import rasterize_async
from imagebatch.core.document.layout import DocumentOptions, place
from imagebatch.core.document.writer import DocumentWriter, ReportLabDocumentWriter
from imagebatch.core.exceptions import ContainerError, DecodeError, EncodeError
from imagebatch.core.registry.models import Source
from imagebatch.utils.logging import get_logger

logger = get_logger(__name__)

WriterFactory = Callable[[DocumentOptions], DocumentWriter]
ProgressCallback = Callable[[int], None]


class DocumentAssembler:
    """Builds one page per source, strictly in order.

    A source that cannot be decoded or encoded becomes a page carrying an
    error line instead of its image; only writer failures abort the run.
    """

    def __init__(
        self,
        writer_factory: WriterFactory = ReportLabDocumentWriter,
        quality: Optional[float] = None,
    ):
        self.writer_factory = writer_factory
        self.quality = settings.pdf_image_quality if quality is None else quality

    async def assemble(
        self,
        sources: Sequence[Source],
        options: DocumentOptions,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bytes:
        """Render every source onto its own page.

        Args:
            sources: Ordered inputs, one page each
            options: Margin and orientation for all pages
            on_progress: Called with each page index before the page is built

        Returns:
            The finalized document bytes

        Raises:
            ContainerError: If the writer fails
        """
        start_time = time.time()
        writer = self.writer_factory(options)
        failed_pages = 0

        for index, source in enumerate(sources):
            if on_progress:
                on_progress(index)

            if index > 0:
                self._write(writer.add_page)

            try:
                raster = await rasterize_async(source)
                placement = place(raster.width, raster.height, options)
                jpeg_data = await encode_async(raster, quality=self.quality)
            except (DecodeError, EncodeError) as e:
                failed_pages += 1
                logger.warning(
                    "page_image_failed",
                    index=index,
                    filename=source.name,
                    error_code=e.error_code,
                    error=e.message[:200],
                )
                x, y = ERROR_MARKER_POSITION_MM
                self._write(writer.place_text, f"Error loading image: {source.name}", x, y)
                continue

            self._write(
                writer.place_image,
                jpeg_data,
                placement.x,
                placement.y,
                placement.width,
                placement.height,
            )

        document = self._write(writer.finish)
        logger.info(
            "document_assembled",
            pages=len(sources),
            failed_pages=failed_pages,
            margin=options.margin.value,
            orientation=options.orientation.value,
            size=len(document),
            elapsed_seconds=round(time.time() - start_time, 3),
        )
        return document

    @staticmethod
    def _write(operation, *args):
        try:
            return operation(*args)
        except ContainerError:
            raise
        except Exception as e:
            raise ContainerError(
                f"Document writer failed: {str(e)}",
                details={
                    "container": "pdf",
                    "stage": getattr(operation, "__name__", "write"),
                    "reason": str(e)[:200],
                },
            )
