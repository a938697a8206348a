"""
Result types shared by the extractor and the read_pdf tool
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class EncodedImage:
    page: int
    index: int
    width: int
    height: int
    format: str  # "grayscale", "rgb" or "rgba", as stored in the PDF
    data: str  # base64 PNG

    def info(self) -> Dict[str, Any]:
        """Image description without the payload"""
        return {
            "page": self.page,
            "index": self.index,
            "width": self.width,
            "height": self.height,
            "format": self.format,
        }


@dataclass
class TextItem:
    y_position: int
    text: str


@dataclass
class ImageItem:
    y_position: int
    image: EncodedImage


ContentItem = Union[TextItem, ImageItem]


@dataclass
class PageContent:
    page: int
    items: List[ContentItem]

    @property
    def text(self) -> str:
        return "\n".join(item.text for item in self.items if isinstance(item, TextItem))

    @property
    def images(self) -> List[EncodedImage]:
        images = [item.image for item in self.items if isinstance(item, ImageItem)]
        return sorted(images, key=lambda image: image.index)


@dataclass
class SourceResult:
    """Outcome of processing one requested source"""

    source: str
    success: bool = False
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    # Ordered page content, emitted as content parts but never in the JSON summary
    page_contents: List[PageContent] = field(default_factory=list)

    def to_summary(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {"source": self.source, "success": self.success}
        if self.data is not None:
            summary["data"] = self.data
        if self.error is not None:
            summary["error"] = self.error
        return summary
