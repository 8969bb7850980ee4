"""Text normalization for variant option matching."""

import re
import unicodedata

# Pre-compiled regex patterns for performance
_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\u200d\u2060\ufeff]")
_NON_ALNUM_RE = re.compile(r"[\W_]+")


def normalize_text(text: str | None) -> str:
    """Normalize text into a canonical comparison key.

    Algorithm:
    1. Remove zero-width characters
    2. Convert to lowercase
    3. Replace German ß with ss
    4. Normalize Unicode (NFKD form) and strip diacritics
    5. Collapse every run of non-alphanumeric characters to a single space;
       letters of any script count as alphanumeric
    6. Strip leading/trailing whitespace

    Args:
        text: Input text to normalize.

    Returns:
        Normalized text suitable for matching.

    Examples:
        >>> normalize_text("Obsidian Black")
        'obsidian black'
        >>> normalize_text("  Navy / Blue!! ")
        'navy blue'
        >>> normalize_text("Crème")
        'creme'
        >>> normalize_text("黒 / 白")
        '黒 白'
        >>> normalize_text("X\\u200bL")
        'xl'
    """
    if not text:
        return ""

    # Step 1: Zero-width characters would otherwise split words
    result = _ZERO_WIDTH_RE.sub("", text)

    # Step 2: Lowercase
    result = result.lower()

    # Step 3: German ß handling (must be before Unicode normalization)
    result = result.replace("ß", "ss")

    # Step 4: Unicode normalization, then drop combining characters
    result = unicodedata.normalize("NFKD", result)
    result = "".join(c for c in result if not unicodedata.combining(c))

    # Step 5: Punctuation and whitespace runs become one space
    result = _NON_ALNUM_RE.sub(" ", result)

    # Step 6: Strip leading/trailing whitespace
    return result.strip()
