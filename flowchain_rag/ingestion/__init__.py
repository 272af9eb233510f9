"""Document ingestion: extraction, chunking, and pipeline orchestration."""

from .chunker import chunk_text, preprocess_text, split_into_sentences
from .parsers import extract_text, parse_docx, parse_pdf
from .pipeline import ingest_document, ingest_documents, ingest_text

__all__ = [
    "chunk_text",
    "extract_text",
    "ingest_document",
    "ingest_documents",
    "ingest_text",
    "parse_docx",
    "parse_pdf",
    "preprocess_text",
    "split_into_sentences",
]
