"""Shared fixtures and engine doubles for the PDF reader tests"""

from typing import Any, Dict, List, Optional

import fitz
import pytest

from mcp_pdf_reader.pdf.engine import OPS, OperatorList, RawImage, TextContent, TextRun


def text_run(text: str, y: float, x: float = 0) -> TextRun:
    return TextRun(text=text, transform=[1, 0, 0, 1, x, y])


def rgb_image(width: int = 2, height: int = 1) -> RawImage:
    return RawImage(width=width, height=height, kind=2, data=bytes([255, 0, 0]) * (width * height))


class FakeObjs:
    """
    Object table double.

    sync: names answered by get(name)
    deferred: names delivered through get(name, callback)
    Names in neither are never delivered.
    """

    def __init__(self, sync: Dict[str, Any] = None, deferred: Dict[str, Any] = None, error: Exception = None):
        self.sync = sync or {}
        self.deferred = deferred or {}
        self.error = error
        self.calls: List[tuple] = []

    def get(self, name, callback=None):
        self.calls.append((name, callback is not None))
        if callback is None:
            if self.error is not None:
                raise self.error
            return self.sync.get(name)
        if name in self.deferred:
            callback(self.deferred[name])
        return None


class FakePage:
    def __init__(
        self,
        runs: List[TextRun] = None,
        images: List[list] = None,
        objs: FakeObjs = None,
        common_objs: FakeObjs = None,
        text_error: Exception = None,
    ):
        self.runs = runs or []
        self.images = images or []
        self.objs = objs or FakeObjs()
        self.common_objs = common_objs or FakeObjs()
        self.text_error = text_error

    async def get_text_content(self):
        if self.text_error is not None:
            raise self.text_error
        return TextContent(items=self.runs)

    async def get_operator_list(self):
        return OperatorList(
            fn_array=[int(OPS.PAINT_IMAGE_XOBJECT)] * len(self.images),
            args_array=list(self.images),
        )


class FakeDocument:
    def __init__(self, pages: Dict[int, FakePage] = None, num_pages: Optional[int] = None, metadata=None):
        self.pages = pages or {}
        self.num_pages = num_pages if num_pages is not None else len(self.pages)
        self.metadata = metadata if metadata is not None else {"info": {"PDFFormatVersion": "1.7"}, "metadata": {}}
        self.closed = False

    async def get_metadata(self):
        if isinstance(self.metadata, Exception):
            raise self.metadata
        return self.metadata

    async def get_page(self, page_number: int):
        if page_number not in self.pages:
            raise ValueError(f"Invalid page number {page_number}")
        return self.pages[page_number]

    def close(self):
        self.closed = True


@pytest.fixture
def sample_pdf(tmp_path):
    """
    Two page PDF: page 1 has text above and below an image, page 2 reuses the
    same image and has one line of text.
    """
    doc = fitz.open()

    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, 4, 2), False)
    pix.set_rect(pix.irect, (255, 0, 0))

    page1 = doc.new_page(width=595, height=842)
    page1.insert_text((72, 100), "Top text", fontsize=12)
    xref = page1.insert_image(fitz.Rect(72, 300, 172, 350), pixmap=pix)
    page1.insert_text((72, 700), "Bottom text", fontsize=12)

    page2 = doc.new_page(width=595, height=842)
    page2.insert_text((72, 100), "Second page", fontsize=12)
    page2.insert_image(fitz.Rect(72, 400, 172, 450), xref=xref)

    doc.set_metadata({"title": "Sample Document", "author": "Test Author"})

    path = tmp_path / "sample.pdf"
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def text_pdf(tmp_path):
    """Three page text-only PDF"""
    doc = fitz.open()
    for i in range(3):
        page = doc.new_page(width=595, height=842)
        page.insert_text((72, 100), f"Page {i + 1} text", fontsize=12)

    path = tmp_path / "text.pdf"
    doc.save(str(path))
    doc.close()
    return path
