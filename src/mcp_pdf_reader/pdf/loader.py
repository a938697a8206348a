"""
PDF document loading from local paths or URLs
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import fitz  # PyMuPDF

from ..errors import DocumentLoadError, DocumentNotFoundError, InvalidArgumentError, PdfReaderError
from ..security import MAX_PDF_SIZE, download_pdf_bytes, resolve_path
from .engine import PdfDocumentHandle

logger = logging.getLogger(__name__)


def _read_local_pdf(path: str, root: Optional[Union[str, Path]], max_size: int) -> bytes:
    safe_path = resolve_path(path, root)

    try:
        file_size = safe_path.stat().st_size
        if file_size > max_size:
            raise DocumentLoadError(
                f"PDF file too large: {file_size / (1024*1024):.1f}MB > {max_size / (1024*1024):.1f}MB"
            )
        return safe_path.read_bytes()
    except FileNotFoundError as e:
        raise DocumentNotFoundError(f"File not found at '{path}'.") from e


async def load_pdf_document(
    path: Optional[str] = None,
    url: Optional[str] = None,
    source_description: str = "unknown source",
    root: Optional[Union[str, Path]] = None,
    max_size: Optional[int] = None,
    allowed_domains: Optional[List[str]] = None,
) -> PdfDocumentHandle:
    """
    Load a PDF document from a local file path or URL.

    Args:
        path: Path relative to the sandbox root
        url: http(s) URL of the document
        source_description: Path or URL used in error messages
        root: Sandbox root for local paths
        max_size: Maximum document size in bytes
        allowed_domains: Host allow-list for URLs

    Returns:
        Opened document handle

    Raises:
        InvalidArgumentError: If neither path nor url is given, or the location is not allowed
        DocumentNotFoundError: If a local file does not exist
        DocumentLoadError: If the bytes cannot be read or parsed
    """
    max_size = max_size or MAX_PDF_SIZE

    try:
        if path:
            data = _read_local_pdf(path, root, max_size)
        elif url:
            data = await download_pdf_bytes(url, max_size=max_size, allowed_domains=allowed_domains)
        else:
            raise InvalidArgumentError(f"Source {source_description} missing 'path' or 'url'.")
    except PdfReaderError:
        raise
    except Exception as e:
        raise DocumentLoadError(
            f"Failed to prepare PDF source {source_description}. Reason: {e}"
        ) from e

    # Basic PDF header validation
    if b"%PDF-" not in data[:1024]:
        raise DocumentLoadError(
            f"Failed to load PDF document from {source_description}. Reason: File does not appear to be a valid PDF"
        )

    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        logger.error(f"PDF loading error for {source_description}: {e}")
        raise DocumentLoadError(
            f"Failed to load PDF document from {source_description}. Reason: {e or 'Unknown loading error'}"
        ) from e

    if doc.needs_pass:
        doc.close()
        raise DocumentLoadError(
            f"Failed to load PDF document from {source_description}. Reason: document is password protected"
        )

    return PdfDocumentHandle(doc)
