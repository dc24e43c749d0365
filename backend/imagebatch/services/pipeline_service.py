"""Service layer tying the registry to conversion, assembly and delivery."""

from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from imagebatch.config import Settings, settings as default_settings
from imagebatch.core.batch.scheduler import BatchScheduler, Converter
from imagebatch.core.constants import DOCUMENT_FAILED_MESSAGE, DOCUMENT_MARKER
from imagebatch.core.conversion.encoder import JpegConverter
from imagebatch.core.document.assembler import DocumentAssembler, WriterFactory
from imagebatch.core.document.layout import DocumentOptions, MarginSize, Orientation
from imagebatch.core.document.writer import ReportLabDocumentWriter
from imagebatch.core.exceptions import RunInProgressError
from imagebatch.core.packaging.archive import build_archive, delivery_name, output_name
from imagebatch.core.packaging.delivery import DeliverySink, DirectoryDelivery
from imagebatch.core.registry.display import DisplayRefFactory, PreviewLedger
from imagebatch.core.registry.models import (
    Item,
    ItemStatus,
    OutputMode,
    ProcessingStats,
    Source,
)
from imagebatch.core.registry.registry import ItemRegistry
from imagebatch.utils.logging import LoggingContext, get_logger, new_run_id

logger = get_logger(__name__)

ProgressListener = Callable[[int, int], None]


class PipelineService:
    """Presentation-facing facade over one working set of items.

    Holds the current mode, document options and the last assembled
    document. Only one run may be active at a time.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        display_refs: Optional[DisplayRefFactory] = None,
        converter: Optional[Converter] = None,
        writer_factory: Optional[WriterFactory] = None,
        sink: Optional[DeliverySink] = None,
    ):
        self.settings = settings or default_settings
        self.display_refs = display_refs or PreviewLedger()
        self.registry = ItemRegistry(self.display_refs)
        self.converter = converter or JpegConverter(quality=self.settings.jpeg_quality)
        self.assembler = DocumentAssembler(
            writer_factory=writer_factory or ReportLabDocumentWriter,
            quality=self.settings.pdf_image_quality,
        )
        self.sink = sink or DirectoryDelivery(self.settings.output_dir)

        self._mode = OutputMode.JPEG
        self._options = DocumentOptions(
            margin=MarginSize(self.settings.default_margin),
            orientation=Orientation(self.settings.default_orientation),
        )
        self._document: Optional[bytes] = None
        self._generation = 0
        self._running = False
        self._active_run_id: Optional[str] = None
        self._progress_listeners: List[ProgressListener] = []

    # Mode and options

    @property
    def mode(self) -> OutputMode:
        return self._mode

    def set_mode(self, mode: Union[OutputMode, str]) -> None:
        """Switch output mode.

        Switching to PDF puts every item back to idle. Switching to JPEG
        resets items that only took part in a document run, since they hold
        no encoded output.
        """
        mode = OutputMode(mode)
        self._ensure_idle("set_mode")
        self._document = None

        if mode == OutputMode.PDF:
            self.registry.reset_all(ItemStatus.IDLE)
        else:
            for item in self.registry.items():
                if item.output == DOCUMENT_MARKER:
                    self.registry.update_status(item.id, ItemStatus.IDLE)

        if mode != self._mode:
            logger.info("mode_changed", previous=self._mode.value, mode=mode.value)
        self._mode = mode

    @property
    def options(self) -> DocumentOptions:
        return self._options

    def set_options(self, options: DocumentOptions) -> None:
        self._ensure_idle("set_options")
        self._options = options
        self._discard_document()

    # Working set

    def add_sources(self, sources: Iterable[Source]) -> List[Item]:
        added = self.registry.add(sources)
        self._discard_document()
        return added

    def remove(self, item_id: str) -> None:
        self.registry.remove(item_id)
        self._discard_document()

    def clear(self) -> None:
        self.registry.clear()
        self._discard_document()

    def items(self) -> Tuple[Item, ...]:
        return self.registry.items()

    def stats(self) -> ProcessingStats:
        return self.registry.stats()

    @property
    def document(self) -> Optional[bytes]:
        return self._document

    @property
    def is_running(self) -> bool:
        return self._running

    def subscribe_progress(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a listener called with (page index, total pages).

        Returns:
            A callable that removes the listener again
        """
        self._progress_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._progress_listeners:
                self._progress_listeners.remove(listener)

        return unsubscribe

    # Runs

    async def start(self, mode: Optional[Union[OutputMode, str]] = None) -> ProcessingStats:
        """Run the conversion for the current (or given) mode.

        Args:
            mode: Output mode, defaults to the current mode

        Returns:
            Registry statistics after the run

        Raises:
            RunInProgressError: If another run is active
        """
        mode = OutputMode(mode) if mode is not None else self._mode
        self._ensure_idle("start", mode)

        if len(self.registry) == 0:
            logger.info("run_skipped", mode=mode.value, reason="no items")
            return self.registry.stats()

        self._running = True
        self._active_run_id = new_run_id()
        try:
            with LoggingContext(run_id=self._active_run_id, mode=mode.value):
                if mode == OutputMode.JPEG:
                    await BatchScheduler(
                        self.registry,
                        self.converter,
                        group_size=self.settings.batch_group_size,
                    ).run()
                else:
                    await self._run_document()
        finally:
            self._running = False
            self._active_run_id = None

        return self.registry.stats()

    async def _run_document(self) -> None:
        snapshot = self.registry.items()
        total = len(snapshot)
        self._document = None
        generation = self._generation
        self.registry.reset_all(ItemStatus.CONVERTING)

        def on_progress(index: int) -> None:
            self.registry.update_status(
                snapshot[index].id, ItemStatus.COMPLETED, output=DOCUMENT_MARKER
            )
            for listener in list(self._progress_listeners):
                listener(index, total)

        try:
            document = await self.assembler.assemble(
                [item.source for item in snapshot], self._options, on_progress
            )
        except Exception as e:
            logger.error("document_run_failed", error=str(e)[:200], exc_info=True)
            for item in snapshot:
                self.registry.update_status(
                    item.id, ItemStatus.ERROR, error=DOCUMENT_FAILED_MESSAGE
                )
            return

        if generation != self._generation:
            # Working set changed while assembling; the document is stale
            logger.info("document_discarded", reason="working set changed during run")
            return
        self._document = document

    # Delivery

    def download(self, mode: Optional[Union[OutputMode, str]] = None) -> Any:
        """Package and deliver the result of the last run.

        Returns:
            Whatever the sink returned, or None when there is nothing to deliver
        """
        mode = OutputMode(mode) if mode is not None else self._mode

        if mode == OutputMode.JPEG:
            entries = [
                (output_name(item.source.name), item.output)
                for item in self.registry.items()
                if item.status == ItemStatus.COMPLETED
                and item.output
                and item.output != DOCUMENT_MARKER
            ]
            if not entries:
                logger.info("download_skipped", mode=mode.value, reason="no completed items")
                return None
            blob = build_archive(entries, self.settings.archive_collision_policy)
        else:
            if self._document is None:
                logger.info("download_skipped", mode=mode.value, reason="no document")
                return None
            blob = self._document

        return self.sink.deliver(delivery_name(mode), blob)

    def _discard_document(self) -> None:
        self._document = None
        self._generation += 1

    def _ensure_idle(self, operation: str, mode: Optional[OutputMode] = None) -> None:
        if self._running:
            details = {"mode": (mode or self._mode).value}
            if self._active_run_id:
                details["active_run_id"] = self._active_run_id
            raise RunInProgressError(
                f"Cannot {operation} while a run is in progress", details=details
            )
