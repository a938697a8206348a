"""
Page selection utilities

Turns user supplied page selectors ("1-3,5,7-" or [1, 3, 5]) into sorted lists of
1-based page numbers and matches them against a document's real page count.
"""

import logging
import re
from typing import List, NamedTuple, Optional, Set, Union

from ..errors import InvalidArgumentError

logger = logging.getLogger(__name__)

# Upper bound on how far an open-ended range ("7-") is expanded
MAX_RANGE_SIZE = 10000

_NUMBER = re.compile(r"^\d+$")

PageSelector = Union[str, List[int]]


class PageSelection(NamedTuple):
    """Pages that will be extracted and requested pages past the end of the document"""

    to_process: List[int]
    out_of_range: List[int]


def _parse_int(value: str) -> Optional[int]:
    value = value.strip()
    if not _NUMBER.match(value):
        return None
    return int(value)


def _parse_range_part(part: str, pages: Set[int]) -> None:
    """Add the pages named by a single comma separated part ("5", "1-3" or "7-")"""
    part = part.strip()

    if "-" not in part:
        page = _parse_int(part)
        if page is None or page <= 0:
            raise ValueError(f"Invalid page number: {part}")
        pages.add(page)
        return

    bounds = part.split("-")
    if len(bounds) != 2:
        raise ValueError(f"Invalid page range format: {part}")

    start = _parse_int(bounds[0])
    open_ended = bounds[1].strip() == ""
    end = None if open_ended else _parse_int(bounds[1])

    if start is None or start <= 0 or (not open_ended and (end is None or start > end)):
        raise ValueError(f"Invalid page range values: {part}")

    practical_end = start + MAX_RANGE_SIZE if open_ended else min(end, start + MAX_RANGE_SIZE)
    pages.update(range(start, practical_end + 1))

    if open_ended:
        logger.warning(
            f"Open-ended range starting at {start} was truncated at page {practical_end}."
        )


def parse_page_ranges(ranges: str) -> List[int]:
    """
    Parse a page range string into page numbers.

    Supports formats:
    - Single page: "5"
    - Comma-separated: "1,3,5"
    - Ranges: "1-10"
    - Open-ended ranges: "7-" (expanded up to MAX_RANGE_SIZE pages past the start)
    - Mixed: "1,3-5,7,10-"

    Args:
        ranges: Page specification string (1-based page numbers)

    Returns:
        Sorted list of unique 1-based page numbers

    Raises:
        ValueError: If any part is malformed or the result is empty
    """
    pages: Set[int] = set()

    for part in ranges.split(","):
        _parse_range_part(part, pages)

    if not pages:
        raise ValueError("Page range string resulted in zero valid pages.")

    return sorted(pages)


def get_target_pages(pages: Optional[PageSelector], source_description: str) -> Optional[List[int]]:
    """
    Resolve a source's page selector.

    Args:
        pages: Range string, list of page numbers, or None
        source_description: Source path or URL used in error messages

    Returns:
        Sorted unique page numbers, or None when no selector was given

    Raises:
        InvalidArgumentError: If the selector is invalid
    """
    if pages is None:
        return None

    try:
        if isinstance(pages, str):
            return parse_page_ranges(pages)

        if any(isinstance(p, bool) or not isinstance(p, int) or p <= 0 for p in pages):
            raise ValueError("Page numbers in array must be positive integers.")

        unique_pages = sorted(set(pages))
        if not unique_pages:
            raise ValueError("Page specification resulted in an empty set of pages.")

        return unique_pages

    except (ValueError, TypeError) as e:
        raise InvalidArgumentError(
            f"Invalid page specification for source {source_description}: {e}"
        ) from e


def select_pages_to_process(
    target_pages: Optional[List[int]],
    total_pages: int,
    include_full_text: bool,
) -> PageSelection:
    """
    Decide which pages of a document get extracted.

    Explicitly requested pages are split into those that exist and those past the
    end of the document. Without a selector, the whole document is processed only
    when full text was asked for.
    """
    if target_pages is not None:
        return PageSelection(
            to_process=[p for p in target_pages if p <= total_pages],
            out_of_range=[p for p in target_pages if p > total_pages],
        )

    if include_full_text:
        return PageSelection(to_process=list(range(1, total_pages + 1)), out_of_range=[])

    return PageSelection(to_process=[], out_of_range=[])


def build_warnings(out_of_range: List[int], total_pages: int) -> List[str]:
    """Build the advisory attached to a source when requested pages do not exist"""
    if not out_of_range:
        return []

    pages = ", ".join(str(p) for p in out_of_range)
    return [f"Requested page numbers {pages} exceed total pages ({total_pages})."]
