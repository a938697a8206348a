"""
PyMuPDF document adapter

Presents an opened PDF as pages that hand out positioned text runs, a list of
image painting operations, and object tables through which the painted images
are resolved. Images placed on several pages live in a document level table
shared by all pages ("g_" names); the rest are resolved per page.
"""

import asyncio
import io
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Set

import fitz  # PyMuPDF

logger = logging.getLogger(__name__)

SHARED_PREFIX = "g_"
PRIVATE_PREFIX = "img_"

_INFO_KEYS = {
    "title": "Title",
    "author": "Author",
    "subject": "Subject",
    "keywords": "Keywords",
    "creator": "Creator",
    "producer": "Producer",
    "creationDate": "CreationDate",
    "modDate": "ModDate",
    "trapped": "Trapped",
}

_RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"


class OPS(IntEnum):
    """Opcodes of the image painting operations reported in operator lists"""

    PAINT_IMAGE_XOBJECT = 85
    PAINT_XOBJECT = 89


class ImageKind(IntEnum):
    GRAYSCALE = 1
    RGB = 2
    RGBA = 3


@dataclass
class RawImage:
    """Decoded image samples, interleaved and row major"""

    width: int
    height: int
    kind: int
    data: bytes


@dataclass
class TextRun:
    text: str
    # [a, b, c, d, x, y] with y measured upwards from the bottom of the page
    transform: List[float]


@dataclass
class TextContent:
    items: List[TextRun]


@dataclass
class OperatorList:
    fn_array: List[int]
    args_array: List[List[Any]]


ObjectCallback = Callable[[Optional[RawImage]], None]


class ObjectTable:
    """
    Named objects resolved on demand.

    get(name) answers synchronously with what is already resolved. A non-strict
    table returns None for unresolved names, a strict one raises LookupError.
    get(name, callback) delivers the object to the callback once it is resolved;
    pending resolutions run later on the event loop.
    """

    def __init__(self, resolver: Callable[[str], Optional[RawImage]], strict: bool = False):
        self._resolver = resolver
        self._strict = strict
        self._objects: Dict[str, Optional[RawImage]] = {}
        self._pending: Dict[str, List[ObjectCallback]] = {}

    def has(self, name: str) -> bool:
        return name in self._objects

    def resolve(self, name: str) -> Optional[RawImage]:
        """Resolve an object immediately and notify anyone waiting on it"""
        if name not in self._objects:
            self._objects[name] = self._resolver(name)
            for callback in self._pending.pop(name, []):
                callback(self._objects[name])
        return self._objects[name]

    def get(self, name: str, callback: Optional[ObjectCallback] = None) -> Optional[RawImage]:
        if callback is None:
            if name in self._objects:
                return self._objects[name]
            if self._strict:
                raise LookupError(f"Requesting object that isn't resolved yet: {name}")
            return None

        if name in self._objects:
            callback(self._objects[name])
            return None

        waiting = self._pending.setdefault(name, [])
        waiting.append(callback)
        if len(waiting) == 1:
            asyncio.get_running_loop().call_soon(self._resolve_pending, name)
        return None

    def _resolve_pending(self, name: str) -> None:
        try:
            self.resolve(name)
        except Exception as e:
            logger.warning(f"Failed to resolve image object {name}: {e}")
            self._objects[name] = None
            for callback in self._pending.pop(name, []):
                callback(None)


def _parse_xmp(xml: str) -> Dict[str, str]:
    """Flatten an XMP packet into "prefix:name" -> text"""
    if not xml or not xml.strip():
        return {}

    prefixes: Dict[str, str] = {}
    root = None
    for event, item in ET.iterparse(io.StringIO(xml), events=("start-ns", "end")):
        if event == "start-ns":
            prefix, uri = item
            prefixes.setdefault(uri, prefix)
        else:
            # The document element closes last
            root = item

    def qualify(tag: str) -> str:
        if tag.startswith("{"):
            uri, local = tag[1:].split("}", 1)
            prefix = prefixes.get(uri)
            return f"{prefix}:{local}" if prefix else local
        return tag

    parents = {child: parent for parent in root.iter() for child in parent}
    result: Dict[str, str] = {}

    for element in root.iter():
        if element.tag == f"{{{_RDF_NS}}}Description":
            for key, value in element.attrib.items():
                if not key.startswith(f"{{{_RDF_NS}}}"):
                    result[qualify(key)] = value

        text = (element.text or "").strip()
        if not text or len(element):
            continue

        # rdf:Alt / rdf:Bag / rdf:li wrappers take the name of the property holding them
        owner = element
        while owner.tag.startswith(f"{{{_RDF_NS}}}") and owner in parents:
            owner = parents[owner]

        key = qualify(owner.tag)
        result[key] = f"{result[key]}, {text}" if key in result else text

    return result


class PdfDocumentHandle:
    """An opened PDF document"""

    def __init__(self, doc: fitz.Document):
        self._doc = doc
        self.common_objs = ObjectTable(self.load_image, strict=True)
        self._shared_xrefs: Optional[Set[int]] = None

    @property
    def num_pages(self) -> int:
        return self._doc.page_count

    async def get_metadata(self) -> Dict[str, Any]:
        """Return the document info dictionary and the flattened XMP metadata"""
        raw = self._doc.metadata or {}

        info: Dict[str, Any] = {}
        version = raw.get("format") or ""
        if version.startswith("PDF "):
            info["PDFFormatVersion"] = version[4:]
        info["IsAcroFormPresent"] = bool(self._doc.is_form_pdf)
        info["IsEncrypted"] = bool(self._doc.is_encrypted)
        for key, name in _INFO_KEYS.items():
            if raw.get(key):
                info[name] = raw[key]

        try:
            metadata = _parse_xmp(self._doc.get_xml_metadata())
        except ET.ParseError as e:
            logger.debug(f"Ignoring malformed XMP metadata: {e}")
            metadata = {}

        return {"info": info, "metadata": metadata}

    async def get_page(self, page_number: int) -> "PdfPage":
        """Return the page with the given 1-based number"""
        if not 1 <= page_number <= self.num_pages:
            raise ValueError(f"Invalid page number {page_number} (document has {self.num_pages} pages)")
        return PdfPage(self, self._doc[page_number - 1], page_number)

    def shared_image_xrefs(self) -> Set[int]:
        """Image xrefs placed on more than one page"""
        if self._shared_xrefs is None:
            usage: Dict[int, int] = {}
            for pno in range(self._doc.page_count):
                for xref in {img[0] for img in self._doc.get_page_images(pno)}:
                    usage[xref] = usage.get(xref, 0) + 1
            self._shared_xrefs = {xref for xref, count in usage.items() if count > 1}
        return self._shared_xrefs

    def load_image(self, name: str) -> Optional[RawImage]:
        """Decode the image object behind a "g_<xref>" or "img_<xref>" name"""
        xref = int(name.rsplit("_", 1)[1])
        pix = fitz.Pixmap(self._doc, xref)

        # Stencil masks carry no colour
        if pix.colorspace is None:
            return None

        if pix.colorspace.n not in (1, 3):
            pix = fitz.Pixmap(fitz.csRGB, pix)
        if pix.alpha and pix.n == 2:
            pix = fitz.Pixmap(pix, 0)

        kind = {1: ImageKind.GRAYSCALE, 3: ImageKind.RGB, 4: ImageKind.RGBA}.get(pix.n)
        if kind is None:
            return None

        return RawImage(width=pix.width, height=pix.height, kind=int(kind), data=bytes(pix.samples))

    def close(self) -> None:
        self._doc.close()


class PdfPage:
    """One page of a PdfDocumentHandle"""

    def __init__(self, document: PdfDocumentHandle, page: fitz.Page, page_number: int):
        self._document = document
        self._page = page
        self.page_number = page_number
        self.objs = ObjectTable(document.load_image)
        self.common_objs = document.common_objs

    async def get_text_content(self) -> TextContent:
        """One text run per span, positioned at the span's baseline origin"""
        height = self._page.rect.height
        flags = fitz.TEXTFLAGS_DICT & ~fitz.TEXT_PRESERVE_IMAGES
        items = []

        for block in self._page.get_text("dict", flags=flags)["blocks"]:
            for line in block.get("lines", []):
                for span in line["spans"]:
                    x, y = span["origin"]
                    size = span["size"]
                    items.append(TextRun(text=span["text"], transform=[size, 0.0, 0.0, size, x, height - y]))

        return TextContent(items=items)

    async def get_operator_list(self) -> OperatorList:
        """One image painting operation per placed image, in painting order"""
        height = self._page.rect.height
        shared = self._document.shared_image_xrefs()
        fn_array: List[int] = []
        args_array: List[List[Any]] = []

        for info in self._page.get_image_info(xrefs=True):
            xref = info.get("xref", 0)
            # Inline images have no object behind them
            if not xref:
                continue

            if xref in shared:
                name = f"{SHARED_PREFIX}{xref}"
                self._resolve_shared(name)
            else:
                name = f"{PRIVATE_PREFIX}{xref}"

            x0, y0, x1, y1 = info["bbox"]
            fn_array.append(int(OPS.PAINT_IMAGE_XOBJECT))
            args_array.append([name, [x1 - x0, 0.0, 0.0, y1 - y0, x0, height - y1]])

        return OperatorList(fn_array=fn_array, args_array=args_array)

    def _resolve_shared(self, name: str) -> None:
        if self.common_objs.has(name):
            return
        try:
            self.common_objs.resolve(name)
        except Exception as e:
            logger.warning(f"Failed to decode shared image {name} on page {self.page_number}: {e}")
