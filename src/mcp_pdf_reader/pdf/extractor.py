"""
Page content extraction

Reads a page's positioned text runs and painted images and returns them as one
list ordered top to bottom, plus document level metadata extraction.
"""

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from ..models import ContentItem, EncodedImage, ImageItem, TextItem
from .engine import OPS, SHARED_PREFIX
from .pixels import encode_png_base64

logger = logging.getLogger(__name__)

# Seconds to wait for one image object before treating it as absent
IMAGE_RESOLVE_TIMEOUT = 10.0

_IMAGE_OPS = (OPS.PAINT_IMAGE_XOBJECT, OPS.PAINT_XOBJECT)

# kind -> (format tag, channels)
_KIND_FORMATS = {1: ("grayscale", 1), 2: ("rgb", 3), 3: ("rgba", 4)}


def _round(value: float) -> int:
    # Half rounds up, so -0.5 and 0.5 land on 0 and 1
    return math.floor(value + 0.5)


def _field(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


async def extract_metadata_and_page_count(
    document,
    include_metadata: bool,
    include_page_count: bool,
) -> Dict[str, Any]:
    """
    Collect the page count and document metadata.

    Metadata failures are logged and leave the metadata out of the output.
    """
    output: Dict[str, Any] = {}

    if include_page_count:
        output["num_pages"] = document.num_pages

    if include_metadata:
        try:
            pdf_metadata = await document.get_metadata()
            info = pdf_metadata.get("info")
            if info is not None:
                output["info"] = info
            metadata = pdf_metadata.get("metadata")
            if metadata is not None:
                output["metadata"] = dict(metadata)
        except Exception as e:
            logger.warning(f"Error extracting metadata: {e}")

    return output


def _group_text_runs(runs) -> List[TextItem]:
    """Merge runs sharing a rounded baseline into one text item per line"""
    lines: Dict[int, List[str]] = {}

    for run in runs:
        transform = _field(run, "transform")
        if not transform or len(transform) < 6 or transform[5] is None:
            continue
        lines.setdefault(_round(transform[5]), []).append(_field(run, "text") or "")

    items = []
    for y, parts in lines.items():
        text = "".join(parts)
        if text.strip():
            items.append(TextItem(y_position=y, text=text))
    return items


def _find_image_operations(operator_list) -> List[Tuple[int, Optional[List[Any]]]]:
    """Arguments of every image painting operation, numbered in painting order"""
    args_array = operator_list.args_array
    operations = []

    for op_index, op in enumerate(operator_list.fn_array):
        if op in _IMAGE_OPS:
            args = args_array[op_index] if op_index < len(args_array) else None
            operations.append((len(operations), args))

    return operations


def _placement_y(args: List[Any]) -> int:
    if len(args) > 1 and isinstance(args[1], (list, tuple)) and len(args[1]) > 5:
        if args[1][5] is not None:
            return _round(args[1][5])
    # Unknown placement sorts below anything on the page
    return 0


async def _wait_for_object(objs, name: str, timeout: float) -> Optional[Any]:
    """Resolve an object through its callback, giving up after timeout seconds"""
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def deliver(value: Any) -> None:
        if not future.done():
            future.set_result(value)

    objs.get(name, deliver)
    return await asyncio.wait_for(future, timeout)


async def _resolve_image_object(page, name: str, page_number: int, source_description: str, timeout: float):
    """
    Look an image object up in the shared table, then the page table, then wait
    for the page table to resolve it.
    """
    if isinstance(name, str) and name.startswith(SHARED_PREFIX):
        common_objs = getattr(page, "common_objs", None)
        if common_objs is not None:
            try:
                image = common_objs.get(name)
                if image is not None:
                    return image
            except Exception as e:
                logger.warning(
                    f"Shared image {name} unavailable on page {page_number} in {source_description}: {e}"
                )

    try:
        image = page.objs.get(name)
    except Exception as e:
        logger.debug(f"Image {name} not resolved yet on page {page_number}: {e}")
        image = None
    if image is not None:
        return image

    try:
        return await _wait_for_object(page.objs, name, timeout)
    except asyncio.TimeoutError:
        logger.warning(
            f"Timed out after {timeout}s waiting for image {name} on page {page_number} in {source_description}"
        )
        return None


def _encode_image(raw: Any, page_number: int, index: int) -> Optional[EncodedImage]:
    data = _field(raw, "data")
    width = _field(raw, "width")
    height = _field(raw, "height")

    if not isinstance(width, int) or not isinstance(height, int) or width <= 0 or height <= 0:
        return None
    if data is None or len(data) == 0:
        return None

    image_format, channels = _KIND_FORMATS.get(_field(raw, "kind"), _KIND_FORMATS[2])
    return EncodedImage(
        page=page_number,
        index=index,
        width=width,
        height=height,
        format=image_format,
        data=encode_png_base64(data, width, height, channels),
    )


async def _extract_image_item(
    page,
    page_number: int,
    index: int,
    args: Optional[List[Any]],
    source_description: str,
    timeout: float,
) -> Optional[ImageItem]:
    if not args:
        return None

    name = args[0]
    try:
        raw = await _resolve_image_object(page, name, page_number, source_description, timeout)
    except Exception as e:
        logger.warning(f"Failed to resolve image {name} on page {page_number} in {source_description}: {e}")
        return None

    if raw is None:
        return None

    image = _encode_image(raw, page_number, index)
    if image is None:
        return None
    return ImageItem(y_position=_placement_y(args), image=image)


async def extract_page_content(
    document,
    page_number: int,
    include_images: bool,
    source_description: str,
    timeout: float = IMAGE_RESOLVE_TIMEOUT,
) -> List[ContentItem]:
    """
    Extract a page's text lines and images ordered top to bottom.

    Text runs on the same rounded baseline are merged into one line. Images are
    positioned by the vertical translation of their placement transform. A page
    that cannot be read yields a single text item describing the error instead
    of raising.

    Args:
        document: Opened document handle
        page_number: 1-based page number
        include_images: Whether to resolve and encode painted images
        source_description: Source path or URL used in log messages
        timeout: Seconds to wait for each image object

    Returns:
        Content items sorted by Y position, highest first
    """
    try:
        page = await document.get_page(page_number)
        text_content = await page.get_text_content()
        items: List[ContentItem] = list(_group_text_runs(text_content.items))

        if include_images:
            operator_list = await page.get_operator_list()
            image_items = await asyncio.gather(*[
                _extract_image_item(page, page_number, index, args, source_description, timeout)
                for index, args in _find_image_operations(operator_list)
            ])
            items.extend(item for item in image_items if item is not None)

    except Exception as e:
        logger.warning(
            f"Error extracting page content for page {page_number} in {source_description}: {e}"
        )
        return [TextItem(y_position=0, text=f"Error processing page: {e}")]

    # Stable, so same-Y content keeps text before images
    items.sort(key=lambda item: item.y_position, reverse=True)
    return items
