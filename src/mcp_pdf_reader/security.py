"""
Security utilities for the MCP PDF Reader server

Provides the I/O guards used before a document reaches the parser:
- Sandboxed resolution of relative local paths
- Size-capped, domain-restricted URL downloads
- Error message sanitization
"""

import os
import re
import logging
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import urlparse

import httpx

from .errors import DocumentLoadError, InvalidArgumentError

logger = logging.getLogger(__name__)

# Security Configuration
MAX_PDF_SIZE = 100 * 1024 * 1024  # 100MB
DOWNLOAD_TIMEOUT = 30.0


def get_project_root() -> Path:
    """Sandbox root for local paths: PDF_READER_ROOT, or the working directory"""
    return Path(os.getenv("PDF_READER_ROOT") or os.getcwd()).resolve()


def get_allowed_domains() -> List[str]:
    return [d.strip() for d in os.getenv("ALLOWED_DOMAINS", "").split(",") if d.strip()]


def resolve_path(path: str, root: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve a user supplied relative path inside the sandbox root.

    Args:
        path: Relative path to a local file
        root: Sandbox root (default: get_project_root())

    Returns:
        Absolute path inside the root

    Raises:
        InvalidArgumentError: If the path is empty, absolute, or escapes the root
    """
    if not path:
        raise InvalidArgumentError("PDF path cannot be empty")

    if os.path.isabs(path) or re.match(r"^[a-zA-Z]:[\\/]", path):
        raise InvalidArgumentError(f"Absolute paths are not allowed: {path}")

    root_path = Path(root).resolve() if root else get_project_root()
    resolved = (root_path / path).resolve()

    try:
        resolved.relative_to(root_path)
    except ValueError:
        raise InvalidArgumentError(f"Path traversal detected in PDF path: {path}")

    return resolved


async def download_pdf_bytes(
    url: str,
    max_size: Optional[int] = None,
    allowed_domains: Optional[List[str]] = None,
) -> bytes:
    """
    Download a PDF into memory with security checks.

    Args:
        url: http(s) URL to download from
        max_size: Maximum accepted size in bytes (default MAX_PDF_SIZE)
        allowed_domains: Host allow-list; empty means any host (default: ALLOWED_DOMAINS env)

    Returns:
        Downloaded bytes

    Raises:
        InvalidArgumentError: If the URL scheme or host is not allowed
        DocumentLoadError: If the download fails or exceeds the size limit
    """
    max_size = max_size or MAX_PDF_SIZE
    if allowed_domains is None:
        allowed_domains = get_allowed_domains()

    parsed_url = urlparse(url)
    if parsed_url.scheme not in ("http", "https"):
        raise InvalidArgumentError(f"Unsupported URL scheme: {parsed_url.scheme}")

    if allowed_domains and parsed_url.netloc not in allowed_domains:
        raise InvalidArgumentError(f"Domain not allowed: {parsed_url.netloc}")

    try:
        async with httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()

                content_type = response.headers.get("content-type", "")
                if "application/pdf" not in content_type.lower():
                    logger.warning(f"Unexpected content type for {url}: {content_type}")

                chunks = []
                downloaded_size = 0
                async for chunk in response.aiter_bytes(chunk_size=8192):
                    downloaded_size += len(chunk)
                    if downloaded_size > max_size:
                        raise DocumentLoadError(
                            f"Downloaded file too large: {downloaded_size / (1024*1024):.1f}MB"
                        )
                    chunks.append(chunk)

    except httpx.HTTPError as e:
        raise DocumentLoadError(f"Failed to download PDF from {url}. Reason: {e}") from e

    logger.info(f"Downloaded PDF: {downloaded_size / (1024*1024):.1f}MB from {url}")
    return b"".join(chunks)


def sanitize_error_message(error_msg: str) -> str:
    """
    Sanitize error messages to prevent information disclosure.

    Args:
        error_msg: Raw error message

    Returns:
        Sanitized error message
    """
    if not error_msg:
        return "Unknown error occurred"

    # Remove sensitive patterns
    patterns_to_remove = [
        r'/home/[^/\s]+',  # Home directory paths
        r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}',  # Email addresses
        r'password[=:]\s*\S+',  # Password assignments
        r'token[=:]\s*\S+',     # Token assignments
    ]

    sanitized = error_msg
    for pattern in patterns_to_remove:
        sanitized = re.sub(pattern, '[REDACTED]', sanitized, flags=re.IGNORECASE)

    # Limit length to prevent verbose stack traces
    if len(sanitized) > 500:
        sanitized = sanitized[:500] + "... [truncated]"

    return sanitized
