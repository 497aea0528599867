"""
Utilities Module - Common helper functions.
==========================================

Provides:
- Slug generation with Cyrillic transliteration
- Word counting for reading-time estimates
- Timezone-aware timestamps
- Directory management
"""

import re
from datetime import datetime, timezone
from pathlib import Path

from golearning.shared.logging import get_logger

logger = get_logger(__name__)

FALLBACK_SLUG = "lesson"

# ─────────────────────────────────────────────────────────────────────────────
# Transliteration
# ─────────────────────────────────────────────────────────────────────────────

_CYRILLIC_TO_LATIN = {
    "а": "a", "б": "b", "в": "v", "г": "g", "д": "d", "е": "e", "ё": "yo",
    "ж": "zh", "з": "z", "и": "i", "й": "y", "к": "k", "л": "l", "м": "m",
    "н": "n", "о": "o", "п": "p", "р": "r", "с": "s", "т": "t", "у": "u",
    "ф": "f", "х": "h", "ц": "ts", "ч": "ch", "ш": "sh", "щ": "sch", "ъ": "",
    "ы": "y", "ь": "", "э": "e", "ю": "yu", "я": "ya",
}

_SEPARATORS = {" ", "-", "_"}
_HYPHEN_RUN = re.compile(r"-+")


def transliterate(text: str) -> str:
    """
    Transliterate Cyrillic characters to Latin, lower-casing the result.

    Characters outside the Cyrillic table are kept as they are.

    Example:
        >>> transliterate("Основы языка")
        'osnovy yazyka'
    """
    return "".join(_CYRILLIC_TO_LATIN.get(ch, ch) for ch in text.lower())


def slugify(text: str) -> str:
    """
    Convert a title into a URL-safe slug.

    The slug contains only lowercase ASCII letters, digits and single
    hyphens, never starting or ending with a hyphen. Input with nothing
    usable falls back to ``"lesson"``.

    Example:
        >>> slugify("Переменные и типы данных")
        'peremennye-i-tipy-dannyh'
        >>> slugify("  ???  ")
        'lesson'
    """
    parts = []
    for ch in transliterate(text or ""):
        if ("a" <= ch <= "z") or ("0" <= ch <= "9"):
            parts.append(ch)
        elif ch in _SEPARATORS:
            parts.append("-")

    slug = _HYPHEN_RUN.sub("-", "".join(parts)).strip("-")
    return slug or FALLBACK_SLUG


# ─────────────────────────────────────────────────────────────────────────────
# Text Utilities
# ─────────────────────────────────────────────────────────────────────────────


def count_words(texts: list[str]) -> int:
    """Count whitespace-separated words across a list of texts."""
    return sum(len(text.split()) for text in texts)


def clamp(value: int, low: int, high: int) -> int:
    """Clamp ``value`` into the closed range ``[low, high]``."""
    return max(low, min(high, value))


def clean_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) into one space."""
    return " ".join(text.split())


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Directory Management
# ─────────────────────────────────────────────────────────────────────────────


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Returns:
        The path (for chaining)
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_sqlite_parent(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database URL."""
    prefix = "sqlite:///"
    if not database_url.startswith(prefix):
        return

    db_path = database_url[len(prefix):]
    if not db_path or db_path == ":memory:":
        return

    ensure_directory(Path(db_path).parent)
    logger.debug(f"Ensured database directory for {db_path}")
