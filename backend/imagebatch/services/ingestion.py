"""Acceptance filter and file loading for incoming images."""

import mimetypes
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from imagebatch.config import settings
from imagebatch.core.constants import (
    ACCEPTED_MIME_TYPES,
    FORMAT_TO_MIME_TYPE,
    IMAGE_MAGIC_BYTES,
)
from imagebatch.core.exceptions import IngestionError
from imagebatch.core.registry.models import OutputMode, Source
from imagebatch.utils.logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


def accepted_mime(mode: Union[OutputMode, str]) -> str:
    """MIME pattern accepted in the given output mode."""
    return ACCEPTED_MIME_TYPES[OutputMode(mode).value]


def _matches(mime_type: str, pattern: str) -> bool:
    if pattern.endswith("/*"):
        return mime_type.startswith(pattern[:-1])
    return mime_type == pattern


def is_accepted(name: str, mime_type: Optional[str], mode: Union[OutputMode, str]) -> bool:
    """Check whether an input may enter the registry in ``mode``."""
    mime_type = mime_type or guess_mime_type(name)
    if not mime_type:
        return False
    return _matches(mime_type, accepted_mime(mode))


def guess_mime_type(name: str, data: Optional[bytes] = None) -> Optional[str]:
    """Detect an image MIME type from the filename, then from the content.

    Args:
        name: Filename, used for extension lookup
        data: Leading bytes of the file, used when the extension is unknown

    Returns:
        Detected MIME type or None
    """
    suffix = Path(name).suffix.lower().lstrip(".")
    if suffix in FORMAT_TO_MIME_TYPE:
        return FORMAT_TO_MIME_TYPE[suffix]

    guessed, _ = mimetypes.guess_type(name)
    if guessed and guessed.startswith("image/"):
        return guessed

    if data:
        # WebP is a RIFF container
        if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
            return "image/webp"
        for magic, mime_type in IMAGE_MAGIC_BYTES.items():
            if data.startswith(magic):
                return mime_type

    return guessed


def read_source(path: PathLike, max_file_size: Optional[int] = None) -> Source:
    """Read one file into a Source.

    Raises:
        IngestionError: If the file is missing, unreadable or too large
    """
    path = Path(path)
    limit = max_file_size or settings.max_file_size

    try:
        file_size = path.stat().st_size
        if file_size > limit:
            raise IngestionError(
                f"{path.name} exceeds the maximum file size",
                details={"filename": path.name, "file_size": file_size, "limit": limit},
            )
        data = path.read_bytes()
    except OSError as e:
        raise IngestionError(
            f"Cannot read {path.name}: {str(e)}", details={"filename": path.name}
        )

    return Source(name=path.name, data=data, mime_type=guess_mime_type(path.name, data[:16]))


def check_accepted(source: Source, mode: Union[OutputMode, str]) -> Source:
    """Reject a loaded source whose type the mode does not accept.

    Raises:
        IngestionError: If the MIME type is unknown or not accepted
    """
    pattern = accepted_mime(mode)
    if source.mime_type and _matches(source.mime_type, pattern):
        return source

    raise IngestionError(
        f"{source.mime_type or 'unknown type'} is not accepted (expected {pattern})",
        details={
            "filename": source.name,
            "mime_type": source.mime_type or "unknown",
            "accepted": pattern,
        },
    )


def expand_paths(paths: Iterable[PathLike]) -> List[Path]:
    """Expand directories one level deep, in sorted order."""
    expanded = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            expanded.extend(sorted(child for child in path.iterdir() if child.is_file()))
        else:
            expanded.append(path)
    return expanded


def load_sources(
    paths: Iterable[PathLike],
    mode: Union[OutputMode, str],
    max_file_size: Optional[int] = None,
) -> Tuple[List[Source], List[Tuple[Path, str]]]:
    """Load every acceptable file for ``mode``.

    Rejected paths are skipped and reported instead of raising.

    Returns:
        (accepted sources in input order, [(path, reason), ...])
    """
    accepted: List[Source] = []
    rejected: List[Tuple[Path, str]] = []

    for path in expand_paths(paths):
        try:
            source = check_accepted(read_source(path, max_file_size), mode)
        except IngestionError as e:
            logger.warning(
                "input_rejected",
                filename=path.name,
                error_code=e.error_code,
                reason=e.message,
            )
            rejected.append((path, e.message))
            continue

        accepted.append(source)

    logger.info("inputs_loaded", accepted=len(accepted), rejected=len(rejected))
    return accepted, rejected
