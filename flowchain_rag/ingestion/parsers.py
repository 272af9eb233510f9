"""Document text extraction for PDF, DOCX and plain text."""

from pathlib import Path

from flowchain_rag.errors import ExtractionError
from flowchain_rag.utils.logging import get_logger

from .chunker import preprocess_text

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt", ".md")


def _check_file(path: Path) -> None:
    if not path.exists():
        raise ExtractionError(str(path), f"Document not found: {path}")
    if not path.is_file():
        raise ExtractionError(str(path), f"Path is not a file: {path}")


def parse_pdf(file_path: str) -> str:
    """Extract raw text from a PDF file using pypdf.

    Pages that fail to extract are logged and skipped.

    Raises:
        ExtractionError: If the file is missing, corrupt, or password-protected.
    """
    path = Path(file_path)
    _check_file(path)

    from pypdf import PdfReader

    try:
        reader = PdfReader(str(path))
        if reader.is_encrypted:
            raise ExtractionError(file_path, f"PDF is password-protected: {file_path}")
        page_count = len(reader.pages)
        logger.info("Parsing PDF: {} ({} pages)", path.name, page_count)

        text_parts: list[str] = []
        for i, page in enumerate(reader.pages):
            try:
                raw = page.extract_text()
            except Exception as e:
                logger.warning("Failed to extract page {} from {}: {}", i + 1, path.name, e)
                continue
            if raw:
                text_parts.append(raw)
        return "\n\n".join(text_parts)

    except ExtractionError:
        raise
    except Exception as e:
        err_msg = str(e).lower()
        if "password" in err_msg or "encrypted" in err_msg:
            raise ExtractionError(file_path, f"PDF is password-protected: {file_path}") from e
        raise ExtractionError(file_path, f"Failed to parse PDF {file_path}: {e}") from e


def parse_docx(file_path: str) -> str:
    """Extract paragraph and table text from a DOCX file using python-docx.

    Table cells are joined with `` | `` so that preprocessing strips them
    the same way it strips PDF table artifacts.

    Raises:
        ExtractionError: If the file is missing or not a valid DOCX.
    """
    path = Path(file_path)
    _check_file(path)

    from docx import Document

    try:
        doc = Document(str(path))
    except Exception as e:
        raise ExtractionError(file_path, f"Failed to parse DOCX {file_path}: {e}") from e

    text_parts = [para.text for para in doc.paragraphs if para.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            row_text = " | ".join(cell.text.strip() for cell in row.cells if cell.text.strip())
            if row_text:
                text_parts.append(row_text)
    logger.info("Parsed DOCX: {} ({} blocks)", path.name, len(text_parts))
    return "\n\n".join(text_parts)


def parse_plain_text(file_path: str) -> str:
    """Read a UTF-8 text or markdown file."""
    path = Path(file_path)
    _check_file(path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(file_path, f"Failed to read {file_path}: {e}") from e


def extract_text(file_path: str) -> str:
    """Extract and normalize text from a document, dispatching on extension.

    Args:
        file_path: Path to a .pdf, .docx, .txt or .md file.

    Returns:
        Normalized text (see preprocess_text). May be empty.

    Raises:
        ExtractionError: If the document is missing, unsupported, or unreadable.
    """
    path = Path(file_path)
    ext = path.suffix.lower()

    if ext == ".pdf":
        raw = parse_pdf(file_path)
    elif ext == ".docx":
        raw = parse_docx(file_path)
    elif ext in (".txt", ".md"):
        raw = parse_plain_text(file_path)
    else:
        raise ExtractionError(
            file_path,
            f"Unsupported document format: {ext}. Supported formats: {', '.join(SUPPORTED_EXTENSIONS)}",
        )
    return preprocess_text(raw)
