"""
Official FastMCP Mixins for the PDF Reader

This package contains the tool mixins registered on the server.
"""

from .read_pdf import ReadPdfMixin

__all__ = [
    "ReadPdfMixin",
]
