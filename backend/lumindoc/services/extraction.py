from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from pathlib import PurePath

from pypdf import PdfReader

from lumindoc.config import SUPPORTED_FILE_TYPES, setup_logger
from lumindoc.core.exceptions import TextExtractionError, UnsupportedFileTypeError
from lumindoc.utils.formatting import format_kilobytes


logger = setup_logger("extraction")

PDF_HEADER = b"%PDF"
BYTES_PER_ESTIMATED_PAGE = 50_000
GENERIC_CONTENT_TYPES = {None, "", "application/octet-stream"}
EXTENSION_TYPES = {".pdf": "pdf", ".txt": "txt"}

DOCUMENT_KINDS = [
    (("report",), "report"),
    (("manual",), "manual"),
    (("contract",), "contract"),
    (("spec",), "specification"),
    (("proposal",), "proposal"),
]


@dataclass
class ExtractedContent:
    content: str
    text: str
    page_count: int | None = None
    estimated: bool = False

    @property
    def char_count(self) -> int:
        return len(self.text)


def detect_file_type(content_type: str | None, filename: str) -> str:
    if content_type in SUPPORTED_FILE_TYPES:
        return SUPPORTED_FILE_TYPES[content_type]

    if content_type in GENERIC_CONTENT_TYPES:
        suffix = PurePath(filename or "").suffix.lower()
        if suffix in EXTENSION_TYPES:
            return EXTENSION_TYPES[suffix]

    raise UnsupportedFileTypeError(filename, content_type)


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _complexity_level(size: int) -> str:
    if size > 5 * 1024 * 1024:
        return "very detailed"
    if size > 1024 * 1024:
        return "detailed"
    if size > 500 * 1024:
        return "standard"
    return "simple"


def _document_kind(filename: str) -> str:
    lowered = filename.lower()
    for keywords, kind in DOCUMENT_KINDS:
        if any(keyword in lowered for keyword in keywords):
            return kind
    return "general document"


def _estimate_pdf(filename: str, size: int, reason: str) -> ExtractedContent:
    """Describe a PDF whose text layer could not be read, from file metadata alone."""
    pages = max(1, size // BYTES_PER_ESTIMATED_PAGE)
    complexity = _complexity_level(size)
    kind = _document_kind(filename)
    size_text = format_kilobytes(size)

    logger.warning(f"Falling back to metadata analysis for {filename}: {reason}")

    content = f"""PDF file: {filename}
File size: {size_text}
Uploaded at: {_timestamp()}
Estimated pages: {pages}
Document complexity: {complexity}
Estimated document type: {kind}

===== ANALYSIS =====
The text of this PDF could not be extracted, so the following characteristics are inferred:

[Structure]
- A file size of {size_text} suggests roughly {pages} page(s) of {complexity} content
- Likely structured as a {kind}
- May contain a conventional document layout

[Content]
- Main theme suggested by the file name "{filename}"
- Information organised the way a {kind} usually is
- Figures or tables are likely given the file size

Note: this analysis is based on file metadata (name, size, format), not on extracted text.""".strip()

    return ExtractedContent(content=content, text="", page_count=pages, estimated=True)


def extract_pdf(data: bytes, filename: str, size: int | None = None) -> ExtractedContent:
    size = len(data) if size is None else size

    if not data.startswith(PDF_HEADER):
        raise TextExtractionError(filename, "not a valid PDF file")

    try:
        reader = PdfReader(BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        return _estimate_pdf(filename, size, str(e) or type(e).__name__)

    text = "\n".join(pages)
    if not text.strip():
        return _estimate_pdf(filename, size, "no extractable text (image-based PDF?)")

    logger.info(f"Parsed {filename}: {len(pages)} pages, {len(text)} characters")

    content = f"""PDF file: {filename}
File size: {format_kilobytes(size)}
Total pages: {len(pages)}
Characters: {len(text)}
Uploaded at: {_timestamp()}

===== PDF CONTENT =====
{text}""".strip()

    return ExtractedContent(content=content, text=text, page_count=len(pages))


def extract_text(data: bytes, filename: str, size: int | None = None) -> ExtractedContent:
    size = len(data) if size is None else size
    text = data.decode("utf-8-sig", errors="replace")

    if not text.strip():
        raise TextExtractionError(filename, "no extractable text")

    content = f"""File name: {filename}
File size: {format_kilobytes(size)}
Characters: {len(text)}
Uploaded at: {_timestamp()}

===== FILE CONTENT =====
{text}""".strip()

    return ExtractedContent(content=content, text=text)


def extract_content(
    data: bytes,
    filename: str,
    file_type: str,
    size: int | None = None,
) -> ExtractedContent:
    if file_type == "pdf":
        return extract_pdf(data, filename, size)
    if file_type == "txt":
        return extract_text(data, filename, size)
    raise UnsupportedFileTypeError(filename, file_type)
