"""Archive naming and serialization."""

import io
import re
import zipfile
from datetime import datetime
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Literal, Optional, Tuple, Union

from imagebatch.core.constants import (
    ARCHIVE_EXTENSION,
    DELIVERY_PREFIX,
    DOCUMENT_EXTENSION,
    TARGET_EXTENSION,
)
from imagebatch.core.exceptions import ContainerError
from imagebatch.core.registry.models import OutputMode
from imagebatch.utils.logging import get_logger

logger = get_logger(__name__)

CollisionPolicy = Literal["suffix", "overwrite"]

_LAST_EXTENSION = re.compile(r"\.[^/.]+$")


def output_name(filename: str, extension: str = TARGET_EXTENSION) -> str:
    """Replace the last extension of a filename.

    A name without an extension simply gains one; only the final
    extension is replaced ("a.b.webp" becomes "a.b.jpg").
    """
    return _LAST_EXTENSION.sub("", filename) + extension


def _disambiguate(name: str, taken: Dict[str, int]) -> str:
    if name not in taken:
        return name

    path = PurePosixPath(name)
    counter = taken[name]
    while True:
        counter += 1
        candidate = f"{path.stem}_{counter}{path.suffix}"
        if candidate not in taken:
            taken[name] = counter
            return candidate


def resolve_names(
    entries: Iterable[Tuple[str, bytes]], collision_policy: CollisionPolicy = "suffix"
) -> List[Tuple[str, bytes]]:
    """Apply the collision policy to a list of (name, data) pairs."""
    if collision_policy == "overwrite":
        # Later entries replace earlier ones, first position is kept
        latest: Dict[str, bytes] = {}
        for name, data in entries:
            latest[name] = data
        return list(latest.items())

    if collision_policy != "suffix":
        raise ValueError(f"Unknown collision policy: {collision_policy}")

    taken: Dict[str, int] = {}
    resolved = []
    for name, data in entries:
        unique = _disambiguate(name, taken)
        taken.setdefault(unique, 0)
        resolved.append((unique, data))
    return resolved


def build_archive(
    entries: Iterable[Tuple[str, bytes]], collision_policy: CollisionPolicy = "suffix"
) -> bytes:
    """Create a ZIP archive from named payloads.

    Args:
        entries: Ordered (entry name, data) pairs
        collision_policy: "suffix" renames duplicates, "overwrite" keeps the last one

    Returns:
        ZIP file content as bytes

    Raises:
        ContainerError: If the archive cannot be written
    """
    resolved = resolve_names(entries, collision_policy)
    zip_buffer = io.BytesIO()

    try:
        with zipfile.ZipFile(zip_buffer, "w", zipfile.ZIP_DEFLATED) as zip_file:
            for name, data in resolved:
                zip_file.writestr(name, data)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise ContainerError(
            f"Failed to build archive: {str(e)}",
            details={"container": "zip", "entries": len(resolved), "reason": str(e)[:200]},
        )

    logger.info("archive_built", entries=len(resolved), collision_policy=collision_policy)
    zip_buffer.seek(0)
    return zip_buffer.read()


def delivery_name(mode: Union[OutputMode, str], now: Optional[datetime] = None) -> str:
    """Name for a delivered artifact, e.g. converted_images_1700000000000.zip."""
    mode = OutputMode(mode)
    now = now or datetime.now()
    timestamp_ms = int(now.timestamp() * 1000)
    extension = ARCHIVE_EXTENSION if mode == OutputMode.JPEG else DOCUMENT_EXTENSION
    return f"{DELIVERY_PREFIX}{timestamp_ms}{extension}"
