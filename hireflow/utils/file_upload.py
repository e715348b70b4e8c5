"""
File Upload Utility - Extract text from resume files.

Supported formats:
- PDF (.pdf) using PyPDF2
- Word (.docx) using python-docx
- Plain Text (.txt)

Size band comes from settings (RESUME_MIN_BYTES / RESUME_MAX_BYTES).
Parser failures raise ExtractionDegraded; the resume extractor decides
what to do about them.
"""

import io
import logging
from typing import Optional

from docx import Document
from PyPDF2 import PdfReader

from hireflow.core.config import get_settings
from hireflow.core.errors import ExtractionDegraded, PreconditionFailed

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'.pdf', '.docx', '.txt'}

MIME_FORMATS = {
    'application/pdf': 'pdf',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': 'docx',
    'text/plain': 'txt',
}


def get_file_extension(filename: Optional[str]) -> str:
    """Get lowercase file extension."""
    if not filename or '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def detect_format(content_type: Optional[str], filename: Optional[str] = None) -> Optional[str]:
    """
    Decide which parser to use.

    The declared mime type wins; the file extension is the fallback
    (browsers often send application/octet-stream).
    """
    if content_type:
        base_type = content_type.split(';', 1)[0].strip().lower()
        if base_type in MIME_FORMATS:
            return MIME_FORMATS[base_type]
        if base_type.startswith('text/'):
            return 'txt'

    ext = get_file_extension(filename)
    if ext in ALLOWED_EXTENSIONS:
        return ext[1:]
    return None


def validate_upload(content: bytes, filename: Optional[str]) -> None:
    """
    Caller-side preconditions for a resume upload.

    Raises:
        PreconditionFailed: unsupported extension, or size outside the band
    """
    settings = get_settings()

    if not filename:
        raise PreconditionFailed("No filename provided")

    ext = get_file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise PreconditionFailed(f"Unsupported file type '{ext}'. Allowed: PDF, DOCX, TXT")

    size = len(content)
    if size < settings.resume_min_bytes:
        raise PreconditionFailed(
            f"Resume too small. Minimum {settings.resume_min_bytes // 1024}KB required."
        )
    if size > settings.resume_max_bytes:
        raise PreconditionFailed(
            f"File too large. Maximum size: {settings.resume_max_bytes // 1024}KB"
        )


def extract_text(content: bytes, content_type: Optional[str] = None, filename: Optional[str] = None) -> str:
    """
    Extract text from resume bytes.

    Raises:
        ExtractionDegraded: the parser for the detected format failed
    """
    fmt = detect_format(content_type, filename)
    if fmt == 'pdf':
        return extract_from_pdf(content)
    if fmt == 'docx':
        return extract_from_docx(content)
    return extract_from_txt(content)


def extract_from_pdf(content: bytes) -> str:
    """Extract text from PDF bytes."""
    try:
        reader = PdfReader(io.BytesIO(content))
        text_parts = []
        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
        return '\n'.join(text_parts)
    except Exception as e:
        raise ExtractionDegraded(f"Error reading PDF: {e}") from e


def extract_from_docx(content: bytes) -> str:
    """Extract text from DOCX bytes."""
    try:
        doc = Document(io.BytesIO(content))
        text_parts = []

        # Extract paragraphs
        for para in doc.paragraphs:
            if para.text.strip():
                text_parts.append(para.text)

        # Extract tables
        for table in doc.tables:
            for row in table.rows:
                row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if row_text:
                    text_parts.append(' | '.join(row_text))

        return '\n'.join(text_parts)
    except Exception as e:
        raise ExtractionDegraded(f"Error reading DOCX: {e}") from e


def extract_from_txt(content: bytes) -> str:
    """Extract text from TXT bytes."""
    for encoding in ['utf-8', 'latin-1', 'cp1252']:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ExtractionDegraded("Could not decode text file")


def get_supported_formats() -> dict:
    """Get info about supported file formats."""
    settings = get_settings()
    return {
        "supported_formats": [
            {"extension": ".pdf", "available": True, "name": "PDF"},
            {"extension": ".docx", "available": True, "name": "Word Document"},
            {"extension": ".txt", "available": True, "name": "Plain Text"}
        ],
        "min_size_kb": settings.resume_min_bytes // 1024,
        "max_size_kb": settings.resume_max_bytes // 1024,
    }
