"""
Grouper Module - Partition TOC entries into ordered modules.
============================================================
"""

from typing import Optional

from golearning.ingestion.rules import DEFAULT_MODULE_SLUG, DEFAULT_MODULE_TITLES
from golearning.shared.schemas import ModuleGroup, ModuleInfo, TOCEntry


class ModuleGrouper:
    """
    Groups entries by ``module_slug`` in first-seen order.

    Entries keep their TOC order inside each group, and concatenating
    the groups gives back the input sequence.

    Example:
        >>> groups = ModuleGrouper().group(entries)
        >>> [g.module.slug for g in groups]
        ['osnovy', 'funktsii']
    """

    def __init__(
        self,
        titles: Optional[dict[str, str]] = None,
        default_slug: str = DEFAULT_MODULE_SLUG,
    ):
        """
        Args:
            titles: slug -> title table, merged over the built-in one
            default_slug: Slug used for entries without a module
        """
        self.titles = {**DEFAULT_MODULE_TITLES, **(titles or {})}
        self.default_slug = default_slug

    def group(self, entries: list[TOCEntry]) -> list[ModuleGroup]:
        groups: dict[str, ModuleGroup] = {}

        for entry in entries:
            slug = entry.module_slug or self.default_slug
            if slug not in groups:
                groups[slug] = ModuleGroup(
                    module=ModuleInfo(
                        slug=slug,
                        title=self.title_for(slug),
                        order_index=len(groups),
                    )
                )
            groups[slug].entries.append(entry)

        # dicts keep insertion order, which is first-seen order
        return list(groups.values())

    def title_for(self, slug: str) -> str:
        """Look up a module title, falling back to a humanized slug."""
        if slug in self.titles:
            return self.titles[slug]

        title = slug.replace("-", " ")
        return title[:1].upper() + title[1:]
