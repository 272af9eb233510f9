"""Sentence-aware text chunking with word-level overlap."""

import re

from flowchain_rag.errors import InvalidInputError
from flowchain_rag.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TARGET_SIZE = 800
DEFAULT_OVERLAP_CHARS = 150
MIN_CHUNK_CHARS = 50
# Overlap is carried as whole words; one word is taken to be ~6 chars
CHARS_PER_OVERLAP_WORD = 6

# Titles, company suffixes and Latin abbreviations whose trailing period
# does not end a sentence.
ABBREVIATIONS = (
    "Mr", "Mrs", "Ms", "Dr", "Prof", "Sr", "Jr", "Inc", "Ltd", "Corp", "Co",
    "etc", "vs", "i.e", "e.g", "et al", "ca", "cf", "viz", "ibid", "supra",
    "infra", "ad hoc", "et seq", "passim", "sic", "inter alia",
)

_ABBREV_RE = re.compile(
    r"\b(" + "|".join(re.escape(a) for a in ABBREVIATIONS) + r")\.",
    re.IGNORECASE,
)
# Terminal punctuation plus any closing quotes or brackets. It ends a sentence
# before whitespace or end of text, or directly before a capital letter when
# the punctuation follows a lowercase letter or digit ("fell.Revenue").
_SENTENCE_END_RE = re.compile(
    r"""[.!?]+["')\]]*(?=\s|$)|(?<=[a-z0-9])[.!?]+["')\]]*(?=[A-Z])"""
)
_PLACEHOLDER = "\x00"
_WORD_RE = re.compile(r"\w")

_BLANK_LINES_RE = re.compile(r"\n\s*\n")
_HSPACE_RE = re.compile(r"[ \t]+")
_PAGE_FOOTER_RE = re.compile(r"Page \d+ of \d+", re.IGNORECASE)
_COPYRIGHT_RE = re.compile(r"©\s*\d{4}.*", re.IGNORECASE)
_MULTISPACE_RE = re.compile(r"\s{2,}")


def preprocess_text(text: str) -> str:
    """Normalize extracted text before sentence splitting.

    Drops NUL characters, collapses blank-line runs and horizontal
    whitespace, removes "Page N of M" footers, copyright lines and table
    pipes, then collapses any remaining whitespace runs to a single space.
    """
    if not text:
        return ""
    text = text.replace("\x00", "")
    text = _BLANK_LINES_RE.sub("\n\n", text)
    text = _HSPACE_RE.sub(" ", text)
    text = _PAGE_FOOTER_RE.sub("", text)
    text = _COPYRIGHT_RE.sub("", text)
    text = text.replace("|", " ")
    text = _MULTISPACE_RE.sub(" ", text)
    return text.strip()


def split_into_sentences(text: str) -> list[str]:
    """Split text on ``.``, ``!`` and ``?`` boundaries.

    Terminal punctuation, and any closing quote or bracket after it, stays
    attached to its sentence. A period that closes a known abbreviation
    (``Dr.``, ``e.g.``, ``et al.``) never ends a sentence, and neither does
    a decimal point. Fragments with no word characters are dropped.
    """
    if not text:
        return []
    protected = _ABBREV_RE.sub(lambda m: m.group(1) + _PLACEHOLDER, text.replace(_PLACEHOLDER, ""))

    parts = []
    start = 0
    for match in _SENTENCE_END_RE.finditer(protected):
        parts.append(protected[start:match.end()])
        start = match.end()
    parts.append(protected[start:])

    sentences = []
    for part in parts:
        sentence = part.replace(_PLACEHOLDER, ".").strip()
        if _WORD_RE.search(sentence):
            sentences.append(sentence)
    return sentences


def chunk_text(
    text: str,
    target_size: int = DEFAULT_TARGET_SIZE,
    overlap_chars: int = DEFAULT_OVERLAP_CHARS,
    min_chunk_chars: int = MIN_CHUNK_CHARS,
) -> list[str]:
    """Split document text into overlapping, sentence-respecting chunks.

    Sentences are accumulated greedily. When the next sentence would push
    the buffer past ``target_size``, the buffer is closed and the next one
    starts with the last ``overlap_chars // 6`` words of the closed chunk.
    A single sentence longer than ``target_size`` is emitted whole.

    Args:
        text: Raw extracted document text.
        target_size: Soft upper bound on chunk length in characters.
        overlap_chars: Approximate overlap between adjacent chunks.
        min_chunk_chars: Chunks of this length or shorter are dropped.

    Returns:
        Chunks in document order.

    Raises:
        InvalidInputError: If target_size <= 0 or overlap_chars < 0.
    """
    if target_size <= 0:
        raise InvalidInputError("target_size must be positive", {"target_size": target_size})
    if overlap_chars < 0:
        raise InvalidInputError("overlap_chars must not be negative", {"overlap_chars": overlap_chars})

    sentences = split_into_sentences(preprocess_text(text))
    if not sentences:
        return []

    overlap_words = overlap_chars // CHARS_PER_OVERLAP_WORD
    chunks: list[str] = []
    current = ""

    for sentence in sentences:
        # length of the buffer if this sentence were appended
        if current and len(current) + 1 + len(sentence) > target_size:
            chunks.append(current)
            tail = current.split(" ")[-overlap_words:] if overlap_words > 0 else []
            current = " ".join(tail + [sentence])
        else:
            current = f"{current} {sentence}" if current else sentence

    if current.strip():
        chunks.append(current.strip())

    result = [c for c in chunks if len(c) > min_chunk_chars]
    if len(result) < len(chunks):
        logger.debug("Dropped {} chunks at or below {} chars", len(chunks) - len(result), min_chunk_chars)
    if result:
        logger.info(
            "Chunked text: {} sentences -> {} chunks, avg size {:.0f} chars",
            len(sentences),
            len(result),
            sum(len(c) for c in result) / len(result),
        )
    return result
