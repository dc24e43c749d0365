"""Hand finished artifacts to the host."""

import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, Union

from imagebatch.core.exceptions import ContainerError
from imagebatch.utils.logging import get_logger

logger = get_logger(__name__)


class DeliverySink(Protocol):
    def deliver(self, name: str, blob: bytes) -> Any: ...


class DirectoryDelivery:
    """Writes artifacts into a directory, replacing files atomically."""

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)

    def deliver(self, name: str, blob: bytes) -> Path:
        """Write ``blob`` as ``name`` inside the output directory.

        Returns:
            Path of the written file

        Raises:
            ContainerError: If the file cannot be written
        """
        target = self.output_dir / Path(name).name
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=".partial_", suffix=target.suffix, dir=self.output_dir
            )
            try:
                with os.fdopen(fd, "wb") as tmp_file:
                    tmp_file.write(blob)
                os.replace(tmp_path, target)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ContainerError(
                f"Failed to deliver {name}: {str(e)}",
                details={"container": target.suffix.lstrip("."), "stage": "deliver"},
            )

        logger.info("artifact_delivered", path=str(target), size=len(blob))
        return target
