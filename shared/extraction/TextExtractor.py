"""Plain-text extraction from uploaded PDF, DOCX and TXT files.

The ingestion pipeline only ever sees the returned string.
"""

import io

import docx
import fitz

from shared.helper.errors import ExtractionFailedError, UnsupportedFormatError

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPE = "text/plain"


def detect_type(filename: str, content_type: str | None = None) -> str:
    """Resolve the MIME type of an upload from its declared type or its extension.

    Raises:
        UnsupportedFormatError: If the file is neither PDF, DOCX nor plain text.
    """
    lowered = (filename or "").lower()
    if content_type == PDF_TYPE or lowered.endswith(".pdf"):
        return PDF_TYPE
    if content_type == DOCX_TYPE or lowered.endswith(".docx"):
        return DOCX_TYPE
    if content_type == TEXT_TYPE or lowered.endswith(".txt"):
        return TEXT_TYPE
    raise UnsupportedFormatError(
        f"Unsupported file type: {content_type or 'unknown'}. Please upload PDF, DOCX, or TXT."
    )


def extract_pdf(data: bytes) -> str:
    """Concatenate the text of every page, pages separated by a blank line."""
    try:
        with fitz.open(stream=data, filetype="pdf") as pdf:
            full_text = "".join(page.get_text() + "\n\n" for page in pdf)
    except (RuntimeError, ValueError) as exc:
        raise ExtractionFailedError(f"Failed to parse PDF: {exc}") from exc

    if not full_text.strip():
        raise ExtractionFailedError(
            "No text could be extracted from this PDF. It might be a scanned image or empty."
        )
    return full_text


def extract_docx(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as exc:
        # python-docx surfaces zip, xml and package errors with unrelated types
        raise ExtractionFailedError(f"Failed to parse DOCX: {exc}") from exc
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_text(data: bytes, filename: str, content_type: str | None = None) -> tuple[str, str]:
    """Extract the text of an uploaded file.

    Args:
        data (bytes): Raw file content.
        filename (str): Original file name, used when the content type is missing.
        content_type (str | None): Declared MIME type.

    Returns:
        tuple[str, str]: The extracted text and the resolved MIME type.

    Raises:
        UnsupportedFormatError: If the format is not supported.
        ExtractionFailedError: If the file could not be read.
    """
    mime_type = detect_type(filename, content_type)
    if mime_type == PDF_TYPE:
        return extract_pdf(data), mime_type
    if mime_type == DOCX_TYPE:
        return extract_docx(data), mime_type
    return data.decode("utf-8", errors="replace"), mime_type
