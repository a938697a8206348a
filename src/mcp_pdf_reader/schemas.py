"""
Argument models for the read_pdf tool
"""

import re
from typing import List, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator, model_validator

_PAGE_STRING = re.compile(r"^[0-9,-]+$")


class PdfSource(BaseModel):
    """A single PDF to read: a local path or a URL, optionally limited to some pages"""

    model_config = ConfigDict(extra="forbid")

    path: Optional[str] = Field(default=None, min_length=1, description="Relative path to the local PDF file.")
    url: Optional[str] = Field(default=None, description="URL of the PDF file.")
    pages: Optional[Union[List[int], str]] = Field(
        default=None,
        description=(
            "Extract only these pages (1-based), as a list or a range string such as '1-5,10,15-'. "
            "If provided, 'include_full_text' is ignored for this source."
        ),
    )

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid url")
        return value

    @field_validator("pages")
    @classmethod
    def _check_pages(cls, value: Optional[Union[List[int], str]]) -> Optional[Union[List[int], str]]:
        if value is None:
            return value
        if isinstance(value, str):
            if not value.strip():
                raise ValueError("Page string must not be empty.")
            if not _PAGE_STRING.match(re.sub(r"\s", "", value)):
                raise ValueError("Page string must contain only numbers, commas, and hyphens.")
            return value
        if not value:
            raise ValueError("Page list must contain at least one page.")
        if any(p < 1 for p in value):
            raise ValueError("Page numbers must be at least 1.")
        return value

    @model_validator(mode="after")
    def _check_location(self) -> "PdfSource":
        if bool(self.path) == bool(self.url):
            raise ValueError("Each source must have either 'path' or 'url', but not both.")
        return self

    @property
    def description(self) -> str:
        return self.path or self.url or "unknown source"


class ReadPdfArgs(BaseModel):
    """Arguments of the read_pdf tool"""

    model_config = ConfigDict(extra="forbid")

    sources: List[PdfSource] = Field(
        ..., min_length=1, description="An array of PDF sources to process, each can optionally specify pages."
    )
    include_full_text: StrictBool = Field(
        default=False,
        description="Include the full text content of each PDF (only if 'pages' is not specified for that source).",
    )
    include_metadata: StrictBool = Field(default=True, description="Include metadata and info objects for each PDF.")
    include_page_count: StrictBool = Field(default=True, description="Include the total number of pages for each PDF.")
    include_images: StrictBool = Field(
        default=False,
        description="Extract embedded images and return them, with the page text, in top-to-bottom order.",
    )
