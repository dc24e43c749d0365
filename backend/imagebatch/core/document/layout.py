"""Page geometry for document assembly.

All coordinates are millimetres measured from the top-left corner of the
page. Writers convert to their own coordinate system.
"""

from enum import Enum
from typing import NamedTuple, Tuple

from pydantic import BaseModel, ConfigDict

from imagebatch.core.constants import A4_SIZE_MM, MARGIN_SIZES_MM


class MarginSize(str, Enum):
    NONE = "none"
    SMALL = "small"
    BIG = "big"

    @property
    def millimetres(self) -> float:
        return MARGIN_SIZES_MM[self.value]


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class DocumentOptions(BaseModel):
    """Page margin and orientation applied to every page."""

    model_config = ConfigDict(frozen=True)

    margin: MarginSize = MarginSize.SMALL
    orientation: Orientation = Orientation.PORTRAIT


class ContentBox(NamedTuple):
    x: float
    y: float
    width: float
    height: float


class Placement(NamedTuple):
    x: float
    y: float
    width: float
    height: float


def page_dimensions(orientation: Orientation) -> Tuple[float, float]:
    """Return (width, height) of an A4 page in the given orientation."""
    short_side, long_side = A4_SIZE_MM
    if orientation == Orientation.LANDSCAPE:
        return long_side, short_side
    return short_side, long_side


def content_box(options: DocumentOptions) -> ContentBox:
    """Area inside the margins, identical on every side."""
    page_width, page_height = page_dimensions(options.orientation)
    margin = options.margin.millimetres
    return ContentBox(
        x=margin,
        y=margin,
        width=page_width - 2 * margin,
        height=page_height - 2 * margin,
    )


def fit_inside(
    width: float, height: float, box_width: float, box_height: float
) -> Tuple[float, float]:
    """Scale a rectangle to the largest size that fits the box.

    Aspect ratio is preserved and smaller images are scaled up, so the
    result always touches two opposite sides of the box.

    Raises:
        ValueError: If any dimension is not positive
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if box_width <= 0 or box_height <= 0:
        raise ValueError(f"Box dimensions must be positive, got {box_width}x{box_height}")

    ratio = width / height
    final_width = box_width
    final_height = box_width / ratio

    if final_height > box_height:
        final_height = box_height
        final_width = box_height * ratio

    return final_width, final_height


def place(width: float, height: float, options: DocumentOptions) -> Placement:
    """Fit an image into the content box and center it."""
    box = content_box(options)
    final_width, final_height = fit_inside(width, height, box.width, box.height)
    return Placement(
        x=box.x + (box.width - final_width) / 2,
        y=box.y + (box.height - final_height) / 2,
        width=final_width,
        height=final_height,
    )
