"""Output naming, archiving and delivery."""

from .archive import build_archive, delivery_name, output_name, resolve_names
from .delivery import DeliverySink, DirectoryDelivery

__all__ = [
    "DeliverySink",
    "DirectoryDelivery",
    "build_archive",
    "delivery_name",
    "output_name",
    "resolve_names",
]
