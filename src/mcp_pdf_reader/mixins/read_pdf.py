"""
Read PDF Mixin - text, metadata, page count and image extraction for batches of PDFs
Uses official fastmcp.contrib.mcp_mixin pattern
"""

import asyncio
import json
import logging
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import Field, ValidationError

# Official FastMCP mixin
from fastmcp.contrib.mcp_mixin import MCPMixin, mcp_tool
from mcp.shared.exceptions import McpError
from mcp.types import INVALID_PARAMS, ErrorData, ImageContent, TextContent

from ..errors import PdfReaderError
from ..models import ImageItem, PageContent, SourceResult, TextItem
from ..pdf.extractor import IMAGE_RESOLVE_TIMEOUT, extract_metadata_and_page_count, extract_page_content
from ..pdf.loader import load_pdf_document
from ..pdf.pages import build_warnings, get_target_pages, select_pages_to_process
from ..schemas import PdfSource, ReadPdfArgs
from ..security import sanitize_error_message

logger = logging.getLogger(__name__)

ContentPart = Union[TextContent, ImageContent]

# Published schema for the sources argument
_SOURCES_SCHEMA = {
    "type": "array",
    "items": PdfSource.model_json_schema(),
    "minItems": 1,
    "description": ReadPdfArgs.model_fields["sources"].description,
}


def _describe_error(error: BaseException, source_description: str) -> str:
    """Turn whatever a source raised into a readable message"""
    message = f"Failed to process PDF from {source_description}."
    try:
        if isinstance(error, PdfReaderError):
            return str(error)
        return f"{message} Reason: {error}"
    except Exception:
        return f"{message} Unknown error: {error!r}"


def _format_validation_error(error: ValidationError) -> str:
    details = ", ".join(
        f"{'.'.join(str(part) for part in e['loc'])} ({e['msg']})" for e in error.errors()
    )
    return f"Invalid arguments: {details}"


class ReadPdfMixin(MCPMixin):
    """
    Reads content, metadata and images from one or more PDFs.
    Uses the official FastMCP mixin pattern.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__()
        config = config or {}
        self.max_file_size = config.get("max_pdf_size")
        self.project_root = config.get("project_root")
        self.allowed_domains = config.get("allowed_domains")
        self.image_timeout = config.get("image_timeout", IMAGE_RESOLVE_TIMEOUT)
        max_concurrent_pages = config.get("max_concurrent_pages", 0)
        self._page_limit = max_concurrent_pages if max_concurrent_pages and max_concurrent_pages > 0 else None

    @mcp_tool(
        name="read_pdf",
        description=(
            "Reads content/metadata/images from one or more PDFs (local/URL). "
            "Each source can specify pages to extract."
        ),
    )
    async def read_pdf(
        self,
        sources: Annotated[Any, Field(json_schema_extra=_SOURCES_SCHEMA)],
        include_full_text: Annotated[Any, Field(json_schema_extra={"type": "boolean"})] = False,
        include_metadata: Annotated[Any, Field(json_schema_extra={"type": "boolean"})] = True,
        include_page_count: Annotated[Any, Field(json_schema_extra={"type": "boolean"})] = True,
        include_images: Annotated[Any, Field(json_schema_extra={"type": "boolean"})] = False,
    ):
        """
        Read one or more PDF documents.

        Args:
            sources: PDF sources, each with a relative 'path' or a 'url' and optional 'pages'
            include_full_text: Include the full text of sources without a page selection
            include_metadata: Include the info dictionary and XMP metadata
            include_page_count: Include the total page count
            include_images: Extract embedded images and emit page content in reading order

        Returns:
            Content parts: a JSON summary first, then the ordered text and images
        """
        # Arguments reach this point unconverted so that ReadPdfArgs alone validates them
        return await self.handle_read_pdf({
            "sources": sources,
            "include_full_text": include_full_text,
            "include_metadata": include_metadata,
            "include_page_count": include_page_count,
            "include_images": include_images,
        })

    async def handle_read_pdf(self, arguments: Any) -> List[ContentPart]:
        """
        Validate raw tool arguments and process the request.

        Raises:
            McpError: INVALID_PARAMS when the arguments do not match the schema
        """
        try:
            args = ReadPdfArgs.model_validate(arguments)
        except ValidationError as e:
            raise McpError(ErrorData(code=INVALID_PARAMS, message=_format_validation_error(e))) from e

        return await self.process_request(args)

    async def process_request(self, args: ReadPdfArgs) -> List[ContentPart]:
        """Process every source concurrently and build the response content"""
        results = await asyncio.gather(*[
            self._process_single_source(source, args) for source in args.sources
        ])

        succeeded = sum(1 for result in results if result.success)
        logger.info(f"read_pdf processed {len(results)} source(s), {succeeded} succeeded")

        content: List[ContentPart] = [
            TextContent(
                type="text",
                text=json.dumps({"results": [r.to_summary() for r in results]}, indent=2, default=str),
            )
        ]

        if args.include_images:
            for result in results:
                if result.success:
                    content.extend(self._content_parts(result.page_contents))

        return content

    async def _process_single_source(self, source: PdfSource, args: ReadPdfArgs) -> SourceResult:
        source_description = source.description
        result = SourceResult(source=source_description)
        document = None

        try:
            target_pages = get_target_pages(source.pages, source_description)

            document = await load_pdf_document(
                path=source.path,
                url=source.url,
                source_description=source_description,
                root=self.project_root,
                max_size=self.max_file_size,
                allowed_domains=self.allowed_domains,
            )
            total_pages = document.num_pages

            output = await extract_metadata_and_page_count(
                document, args.include_metadata, args.include_page_count
            )

            selection = select_pages_to_process(target_pages, total_pages, args.include_full_text)
            warnings = build_warnings(selection.out_of_range, total_pages)
            if warnings:
                output["warnings"] = warnings

            if selection.to_process:
                page_contents = await self._extract_pages(
                    document, selection.to_process, args.include_images, source_description
                )

                if target_pages is not None:
                    output["page_texts"] = [{"page": pc.page, "text": pc.text} for pc in page_contents]
                else:
                    output["full_text"] = "\n\n".join(pc.text for pc in page_contents)

                images = [image.info() for pc in page_contents for image in pc.images]
                if images:
                    output["image_info"] = images

                result.page_contents = page_contents

            result.data = output
            result.success = True

        except Exception as e:
            result.error = sanitize_error_message(_describe_error(e, source_description))
            result.success = False
            result.data = None
            result.page_contents = []
            logger.warning(f"Failed to process {source_description}: {result.error}")

        finally:
            if document is not None:
                document.close()

        return result

    async def _extract_pages(
        self,
        document,
        pages: List[int],
        include_images: bool,
        source_description: str,
    ) -> List[PageContent]:
        """Extract every page concurrently, keeping the requested page order"""
        limiter = asyncio.Semaphore(self._page_limit) if self._page_limit else None

        async def extract(page_number: int) -> PageContent:
            if limiter is None:
                items = await extract_page_content(
                    document, page_number, include_images, source_description, self.image_timeout
                )
            else:
                async with limiter:
                    items = await extract_page_content(
                        document, page_number, include_images, source_description, self.image_timeout
                    )
            return PageContent(page=page_number, items=items)

        return list(await asyncio.gather(*[extract(page_number) for page_number in pages]))

    def _content_parts(self, page_contents: List[PageContent]) -> List[ContentPart]:
        parts: List[ContentPart] = []
        for page_content in page_contents:
            for item in page_content.items:
                if isinstance(item, TextItem):
                    parts.append(TextContent(type="text", text=item.text))
                elif isinstance(item, ImageItem):
                    parts.append(ImageContent(type="image", data=item.image.data, mimeType="image/png"))
        return parts
