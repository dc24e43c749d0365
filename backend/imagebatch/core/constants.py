"""Constants and configuration values for the batch converter."""

from typing import Dict, Tuple

# Ingestion limits
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
MAX_IMAGE_PIXELS = 178956970  # ~178MP (same as PIL default)

# Batch conversion
BATCH_GROUP_SIZE = 3  # Items converted concurrently per group
MAX_ERROR_MESSAGE_LENGTH = 200

# Encoding quality on a [0, 1] scale
DEFAULT_JPEG_QUALITY = 0.9
DEFAULT_PDF_IMAGE_QUALITY = 0.95
PIL_MAX_JPEG_QUALITY = 95
HIGH_QUALITY_SUBSAMPLING_THRESHOLD = 0.9

# Flattening background for formats without alpha
FLATTEN_BACKGROUND: Tuple[int, int, int] = (255, 255, 255)

# Page geometry (millimetres)
A4_SIZE_MM: Tuple[float, float] = (210.0, 297.0)

MARGIN_SIZES_MM: Dict[str, float] = {
    "none": 0.0,
    "small": 10.0,
    "big": 25.0,
}

# Position of the in-page error marker, from the top-left corner
ERROR_MARKER_POSITION_MM: Tuple[float, float] = (10.0, 10.0)
ERROR_MARKER_FONT = "Helvetica"
ERROR_MARKER_FONT_SIZE = 16

# Document mode marks a completed item with this instead of encoded bytes
DOCUMENT_MARKER = b"pdf-page"

# Output packaging
TARGET_EXTENSION = ".jpg"
DELIVERY_PREFIX = "converted_images_"
ARCHIVE_EXTENSION = ".zip"
DOCUMENT_EXTENSION = ".pdf"

# Diagnostics shown on failed items
CONVERSION_FAILED_MESSAGE = "Conversion failed"
DOCUMENT_FAILED_MESSAGE = "PDF generation failed"

# Accepted MIME types per output mode
ACCEPTED_MIME_TYPES: Dict[str, str] = {
    "jpeg": "image/webp",
    "pdf": "image/*",
}

FORMAT_TO_MIME_TYPE: Dict[str, str] = {
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
    "ico": "image/x-icon",
}

# Magic bytes for sniffing inputs with no usable extension
IMAGE_MAGIC_BYTES: Dict[bytes, str] = {
    b"\xff\xd8\xff": "image/jpeg",
    b"\x89PNG\r\n\x1a\n": "image/png",
    b"GIF87a": "image/gif",
    b"GIF89a": "image/gif",
    b"II*\x00": "image/tiff",
    b"MM\x00*": "image/tiff",
    b"BM": "image/bmp",
}
