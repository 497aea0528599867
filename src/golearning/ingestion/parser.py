"""
Parser Module - Decompose lesson HTML into semantic blocks.
===========================================================

Turns one lesson page into ``ParsedContent``: the title, paragraphs,
code blocks (with a best-effort language tag) and list blocks, all in
document order. No interpretation happens here; deciding what a
paragraph means is the rewriter's job.

Uses BeautifulSoup with the lxml tree builder.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from golearning.shared.exceptions import ParseError
from golearning.shared.logging import get_logger
from golearning.shared.schemas import CodeBlock, ParsedContent
from golearning.shared.utils import clean_whitespace

logger = get_logger(__name__)


def make_soup(html: str) -> BeautifulSoup:
    """
    Parse markup with lxml.

    Raises:
        ParseError: If the input is not text or the parser rejects it
    """
    if not isinstance(html, str):
        raise ParseError(f"expected HTML text, got {type(html).__name__}")

    try:
        return BeautifulSoup(html, "lxml")
    except ParserRejectedMarkup as e:
        raise ParseError(f"unparseable markup: {e}") from e


# ─────────────────────────────────────────────────────────────────────────────
# Parser Configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class ParserConfig:
    """Heuristics for locating and filtering lesson content."""

    # Tags and div classes that mark the main content area
    content_tags: tuple[str, ...] = ("article", "main")
    content_class_hints: tuple[str, ...] = ("content", "article", "main", "center", "tutorial")

    # Blocks at or below these lengths are noise
    min_paragraph_chars: int = 10
    min_code_chars: int = 5

    # Paragraphs containing any of these are dropped
    ad_keywords: list[str] = field(default_factory=lambda: [
        "реклама",
        "advertisement",
        "sponsor",
        "яндекс",
        "google ads",
        "click here",
        "партнёр",
        "partner",
        "cookies",
    ])

    # Separators between a page title and the site name in <title>
    title_separators: tuple[str, ...] = (" | ", " — ", " - ")


_CLASS_LANGUAGE_PREFIXES = ("language-", "lang-", "brush:")
_INLINE_CODE_PARENTS = frozenset({"p", "li", "a", "span", "em", "strong", "b", "i"})


# ─────────────────────────────────────────────────────────────────────────────
# Parser Class
# ─────────────────────────────────────────────────────────────────────────────


class PageParser:
    """
    Parser for tutorial lesson pages.

    Example:
        >>> parser = PageParser()
        >>> parsed = parser.parse(html)
        >>> parsed.title, len(parsed.code_blocks)
        ('Переменные', 3)
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()

    def parse(self, html: str) -> ParsedContent:
        """
        Parse a lesson page.

        Raises:
            ParseError: If the markup cannot be parsed
        """
        soup = make_soup(html)
        content = ParsedContent(title=self.extract_title(soup))

        root = self.find_main_content(soup) or soup
        self._walk(root, content)

        logger.debug(
            f"Parsed '{content.title}': {len(content.paragraphs)} paragraphs, "
            f"{len(content.code_blocks)} code blocks, {len(content.lists)} lists"
        )
        return content

    def find_main_content(self, soup: BeautifulSoup) -> Optional[Tag]:
        """Find the element holding the lesson body, depth-first."""

        def is_content(tag: Tag) -> bool:
            if tag.name in self.config.content_tags:
                return True
            if tag.name != "div":
                return False
            classes = " ".join(tag.get("class") or [])
            return any(hint in classes for hint in self.config.content_class_hints)

        return soup.find(is_content)

    def extract_title(self, soup: BeautifulSoup) -> str:
        """Get the page title from the first <h1>, else from <title>."""
        h1 = soup.find("h1")
        if h1 is not None:
            title = clean_whitespace(h1.get_text())
            if title:
                return title

        title_tag = soup.find("title")
        if title_tag is None:
            return ""

        title = clean_whitespace(title_tag.get_text())
        for separator in self.config.title_separators:
            head, found, _ = title.partition(separator)
            if found and head.strip():
                title = head.strip()
        return title

    # ─────────────────────────────────────────────────────────────────────
    # Traversal
    # ─────────────────────────────────────────────────────────────────────

    def _walk(self, node: Tag, content: ParsedContent) -> None:
        for child in node.children:
            if not isinstance(child, Tag):
                continue

            name = child.name
            if name == "p":
                self._add_paragraph(child, content)
            elif name == "pre" or (name == "code" and not self._is_inline_code(child)):
                self._add_code(child, content)
            elif name in ("ul", "ol"):
                rendered = self.render_list(child)
                if rendered:
                    content.lists.append(rendered)
            elif name in ("script", "style", "noscript"):
                continue
            else:
                self._walk(child, content)

    def _add_paragraph(self, tag: Tag, content: ParsedContent) -> None:
        text = clean_whitespace(tag.get_text())
        if len(text) <= self.config.min_paragraph_chars:
            return
        if self.is_advertisement(text):
            logger.debug(f"Skipping advertisement: {text[:40]}")
            return
        content.paragraphs.append(text)

    def _add_code(self, tag: Tag, content: ParsedContent) -> None:
        code = tag.get_text().strip("\n").rstrip()
        if len(code.strip()) <= self.config.min_code_chars:
            return
        content.code_blocks.append(
            CodeBlock(language=self.detect_language(tag, code), code=code)
        )

    @staticmethod
    def _is_inline_code(tag: Tag) -> bool:
        return tag.parent is not None and tag.parent.name in _INLINE_CODE_PARENTS

    @staticmethod
    def render_list(tag: Tag) -> str:
        """Render direct <li> children as ``- item`` lines."""
        items = []
        for li in tag.find_all("li", recursive=False):
            text = clean_whitespace(li.get_text())
            if text:
                items.append(f"- {text}")
        return "\n".join(items)

    def is_advertisement(self, text: str) -> bool:
        lower = text.lower()
        return any(keyword in lower for keyword in self.config.ad_keywords)

    # ─────────────────────────────────────────────────────────────────────
    # Language Detection
    # ─────────────────────────────────────────────────────────────────────

    @staticmethod
    def detect_language(tag: Tag, code: str) -> str:
        """
        Guess the language of a code block.

        Checks ``data-lang``/``lang`` attributes and ``language-x``,
        ``lang-x`` or ``brush:x`` classes on the block and on a nested
        <code>, then sniffs Go and shell snippets. Returns ``""`` when
        nothing matches.
        """
        candidates = [tag]
        inner = tag.find("code")
        if inner is not None:
            candidates.append(inner)

        for candidate in candidates:
            for attr in ("data-lang", "data-language", "lang"):
                value = candidate.get(attr)
                if value:
                    return str(value).strip().lower()

            for cls in candidate.get("class") or []:
                lower = cls.lower()
                for prefix in _CLASS_LANGUAGE_PREFIXES:
                    if lower.startswith(prefix):
                        language = lower[len(prefix):].strip(" ;")
                        if language:
                            return "go" if language == "golang" else language

        stripped = code.strip()
        if (
            stripped.startswith("package ")
            or "func " in stripped
            or "import (" in stripped
            or "fmt." in stripped
        ):
            return "go"
        if re.match(r"^(\$ |go (run|build|test|mod|get) )", stripped):
            return "bash"
        return ""


def parse_page(html: str) -> ParsedContent:
    """Convenience function to parse one lesson page."""
    return PageParser().parse(html)
