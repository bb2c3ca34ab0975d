"""Text normalization for PDF extraction output.

PyMuPDF returns page text with Windows line endings, runs of blank lines
between blocks, and tab/space padding from column layout.  These helpers
normalize that text before it enters the chunker so chunk sizes measure
content rather than layout noise.
"""

import re

# Collapse 3+ newlines to a paragraph break
_MULTI_NEWLINE = re.compile(r"\n{3,}")

# Collapse runs of spaces/tabs to a single space
_MULTI_SPACE = re.compile(r"[ \t]+")

_WORD = re.compile(r"\S+")


def clean_extracted_text(text: str) -> str:
    """Clean raw PDF text before chunking.

    Normalizes ``\\r\\n`` / ``\\r`` line endings, collapses three or more
    newlines into a single blank line, squeezes horizontal whitespace, and
    trims every line.

    Args:
        text: Raw extracted text.

    Returns:
        Cleaned text, or an empty string for empty input.
    """
    if not text:
        return ""

    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _MULTI_SPACE.sub(" ", cleaned)
    cleaned = "\n".join(line.strip() for line in cleaned.split("\n"))
    # Re-collapse after trimming: lines of pure whitespace are now empty.
    cleaned = _MULTI_NEWLINE.sub("\n\n", cleaned)

    return cleaned.strip()


def count_words(text: str) -> int:
    """Return the number of whitespace-separated words in *text*."""
    return len(_WORD.findall(text))
