"""Paginated document assembly."""

from .assembler import DocumentAssembler
from .layout import (
    ContentBox,
    DocumentOptions,
    MarginSize,
    Orientation,
    Placement,
    content_box,
    fit_inside,
    page_dimensions,
    place,
)
from .writer import DocumentWriter, ReportLabDocumentWriter

__all__ = [
    "ContentBox",
    "DocumentAssembler",
    "DocumentOptions",
    "DocumentWriter",
    "MarginSize",
    "Orientation",
    "Placement",
    "ReportLabDocumentWriter",
    "content_box",
    "fit_inside",
    "page_dimensions",
    "place",
]
