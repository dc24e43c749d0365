from typing import Dict, List, Optional, TypedDict, Union


class ImageDetails(TypedDict, total=False):
    """Type-safe details for decode and encode errors."""

    filename: str
    input_format: str
    output_format: str
    dimensions: tuple[int, int]
    quality: float
    reason: str


class ContainerDetails(TypedDict, total=False):
    """Type-safe details for archive and document errors."""

    container: str
    entries: int
    stage: str
    reason: str


class RunDetails(TypedDict, total=False):
    """Type-safe details for run-state errors."""

    mode: str
    active_run_id: str


class IngestionDetails(TypedDict, total=False):
    """Type-safe details for rejected inputs."""

    filename: str
    mime_type: str
    accepted: str
    file_size: int
    limit: int


ErrorDetails = Union[
    ImageDetails,
    ContainerDetails,
    RunDetails,
    IngestionDetails,
    Dict[str, Union[str, int, float, bool, List[str]]],
]


class ImageBatchError(Exception):
    """Base exception for all imagebatch errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        details: Optional[ErrorDetails] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class DecodeError(ImageBatchError):
    """Raised when a source cannot be interpreted as an image."""

    def __init__(self, message: str, details: Optional[ImageDetails] = None):
        super().__init__(message=message, error_code="IB101", details=details)


class EncodeError(ImageBatchError):
    """Raised when rasterized pixels cannot be re-encoded."""

    def __init__(self, message: str, details: Optional[ImageDetails] = None):
        super().__init__(message=message, error_code="IB102", details=details)


class ContainerError(ImageBatchError):
    """Raised when an archive or document cannot be built or finalized."""

    def __init__(self, message: str, details: Optional[ContainerDetails] = None):
        super().__init__(message=message, error_code="IB201", details=details)


class RunInProgressError(ImageBatchError):
    """Raised when a run is started while another one is active."""

    def __init__(self, message: str, details: Optional[RunDetails] = None):
        super().__init__(message=message, error_code="IB301", details=details)


class DisplayRefError(ImageBatchError):
    """Raised when a display reference is released twice or never issued."""

    def __init__(self, message: str, details: Optional[ErrorDetails] = None):
        super().__init__(message=message, error_code="IB302", details=details)


class IngestionError(ImageBatchError):
    """Raised when an input file is rejected before it reaches the registry."""

    def __init__(self, message: str, details: Optional[IngestionDetails] = None):
        super().__init__(message=message, error_code="IB401", details=details)
