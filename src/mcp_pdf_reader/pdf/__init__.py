"""
PDF loading, page selection, and content extraction
"""

from .extractor import extract_metadata_and_page_count, extract_page_content
from .loader import load_pdf_document
from .pages import build_warnings, get_target_pages, parse_page_ranges, select_pages_to_process

__all__ = [
    "extract_metadata_and_page_count",
    "extract_page_content",
    "load_pdf_document",
    "build_warnings",
    "get_target_pages",
    "parse_page_ranges",
    "select_pages_to_process",
]
