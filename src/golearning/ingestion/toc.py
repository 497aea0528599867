"""
TOC Module - Discover lesson links on the table-of-contents page.
=================================================================

Scans the index page for lesson links in document order. Headings met
along the way (h2, h3, strong, b) become the grouping label for the
links that follow them.
"""

from typing import Optional

from bs4 import BeautifulSoup, Tag

from golearning.ingestion.parser import make_soup
from golearning.ingestion.rules import SiteRules
from golearning.shared.logging import get_logger
from golearning.shared.schemas import TOCEntry
from golearning.shared.utils import clean_whitespace, slugify

logger = get_logger(__name__)

HEADING_TAGS = frozenset({"h2", "h3", "strong", "b"})
NAV_CLASS_HINTS = ("nav", "menu", "sidebar")


def _is_nav_container(tag: Tag) -> bool:
    if tag.name == "nav":
        return True
    classes = " ".join(tag.get("class") or [])
    return any(hint in classes for hint in NAV_CLASS_HINTS)


class TOCExtractor:
    """
    Extracts ``TOCEntry`` values from the index page.

    Example:
        >>> extractor = TOCExtractor(SiteRules())
        >>> entries = extractor.extract(html)
        >>> entries[0].order_index
        1
    """

    def __init__(self, site: Optional[SiteRules] = None):
        self.site = site or SiteRules()

    def extract(self, html: str) -> list[TOCEntry]:
        """
        Extract lesson entries in discovery order.

        Returns an empty list when no lesson link is found.

        Raises:
            ParseError: If the markup cannot be parsed
        """
        soup = make_soup(html)

        nav = self.find_nav(soup)
        entries: list[TOCEntry] = []
        if nav is not None:
            entries = self._scan(nav)
            logger.debug(f"Navigation container <{nav.name}> yielded {len(entries)} entries")

        if not entries:
            entries = self._scan(soup)
            if entries:
                logger.debug(f"Whole-document scan yielded {len(entries)} entries")

        if not entries:
            logger.warning("No lesson links found in table of contents")

        return entries

    @staticmethod
    def find_nav(soup: BeautifulSoup) -> Optional[Tag]:
        """Find the first navigation-like element, depth-first."""
        return soup.find(_is_nav_container)

    def _scan(self, root: Tag) -> list[TOCEntry]:
        entries: list[TOCEntry] = []
        current_module = ""

        for node in root.descendants:
            if not isinstance(node, Tag):
                continue

            if node.name in HEADING_TAGS:
                # Bold text inside a link is part of the link, not a heading
                if node.find_parent("a") is not None:
                    continue
                text = clean_whitespace(node.get_text())
                if text and not self.site.is_branding(text):
                    current_module = text

            elif node.name == "a":
                href = node.get("href") or ""
                if not self.site.is_lesson_href(href):
                    continue

                title = clean_whitespace(node.get_text())
                if not title or self.site.is_noise(title):
                    continue

                entries.append(
                    TOCEntry(
                        title=title,
                        url=href,
                        module_slug=slugify(current_module) if current_module else "",
                        order_index=len(entries) + 1,
                    )
                )

        return entries


def extract_toc(html: str, site: Optional[SiteRules] = None) -> list[TOCEntry]:
    """Convenience function to extract TOC entries from HTML."""
    return TOCExtractor(site).extract(html)
