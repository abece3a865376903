"""
Extraction Sources

Normalizes uploaded files into something the extraction model can read:
text documents (and Word files, flattened with python-docx) are sent as
text; images and PDFs are sent as binary media.
"""

import io
import mimetypes
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from lessonplan.errors import UnsupportedSourceError

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

TEXT_EXTENSIONS = {".txt", ".md", ".markdown", ".json", ".csv"}

BINARY_MIME_TYPES = {
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/heic",
    "image/heif",
}


@dataclass(frozen=True)
class ExtractionSource:
    """Content handed to the extraction model: either text or binary media."""

    filename: str
    text: Optional[str] = None
    data: Optional[bytes] = None
    mime_type: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.data is None):
            raise ValueError("ExtractionSource needs exactly one of text or data")
        if self.data is not None and not self.mime_type:
            raise ValueError("Binary sources need a mime_type")

    @property
    def is_binary(self) -> bool:
        return self.data is not None


def load_source(filename: str, data: bytes, content_type: Optional[str] = None) -> ExtractionSource:
    """
    Build an ExtractionSource from an uploaded file.

    Args:
        filename: Original file name, used to guess the type
        data: Raw file bytes
        content_type: MIME type reported by the client, if any

    Raises:
        UnsupportedSourceError: If the file is empty, unreadable or of an unsupported type
    """
    filename = filename or "upload"
    if not data:
        raise UnsupportedSourceError(f"{filename} is empty")

    suffix = Path(filename).suffix.lower()
    mime_type = _mime_type(filename, content_type)

    if suffix == ".docx" or mime_type == DOCX_MIME_TYPE:
        return ExtractionSource(filename=filename, text=docx_to_text(data, filename))

    if suffix in TEXT_EXTENSIONS or mime_type.startswith("text/"):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise UnsupportedSourceError(f"{filename} is not UTF-8 text") from e
        return ExtractionSource(filename=filename, text=text)

    if mime_type in BINARY_MIME_TYPES:
        return ExtractionSource(filename=filename, data=bytes(data), mime_type=mime_type)

    raise UnsupportedSourceError(f"Unsupported file type for {filename}: {mime_type or 'unknown'}")


def docx_to_text(data: bytes, filename: str = "document.docx") -> str:
    """Flatten a Word document to plain text: paragraphs first, then table rows."""
    try:
        document = Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise UnsupportedSourceError(f"{filename} is not a readable Word document") from e

    lines = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                lines.append(" | ".join(cells))
    return "\n".join(lines)


def _mime_type(filename: str, content_type: Optional[str]) -> str:
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared and declared != "application/octet-stream":
        return declared
    guessed, _ = mimetypes.guess_type(filename)
    return (guessed or "").lower()
