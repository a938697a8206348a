"""
Error taxonomy for the PDF reader.

Every error raised while handling one source derives from PdfReaderError so the
batch handler can report its message verbatim in that source's result.
"""


class PdfReaderError(Exception):
    """Base class for errors that are scoped to a single source"""


class InvalidArgumentError(PdfReaderError, ValueError):
    """A source or page selector is malformed"""


class DocumentNotFoundError(PdfReaderError, FileNotFoundError):
    """A local PDF path does not exist"""


class DocumentLoadError(PdfReaderError):
    """The document bytes could not be fetched or were rejected by the parser"""
