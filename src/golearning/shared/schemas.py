"""
Schemas Module - Pydantic data models for the ingestion pipeline.
=================================================================

Defines the data contracts passed between pipeline stages:
- TOC entries discovered on the index page
- Parsed page content (intermediate form, never persisted)
- Structured lessons with sections and practice tasks
- Module and lesson records handed to the content store
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class SectionKind(str, Enum):
    """Lesson section kinds, in emission order."""

    OVERVIEW = "overview"
    SYNTAX = "syntax"
    EXAMPLES = "examples"
    PITFALLS = "pitfalls"
    EXTRA = "extra"


# ─────────────────────────────────────────────────────────────────────────────
# Crawl Models
# ─────────────────────────────────────────────────────────────────────────────


class TOCEntry(BaseModel):
    """
    One lesson reference discovered in the table of contents.

    ``module_slug`` is a best-effort grouping key derived from the
    nearest heading preceding the link.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="Link text, trimmed")
    url: str = Field(..., description="Absolute or site-relative lesson URL")
    is_module: bool = Field(default=False, description="Whether the entry is a module header")
    module_slug: str = Field(default="", description="Grouping key")
    order_index: int = Field(..., ge=1, description="1-based discovery position")


class CodeBlock(BaseModel):
    """A code block lifted from a lesson page."""

    language: str = Field(default="", description="Language hint, empty if unknown")
    code: str = Field(..., description="Raw code text")

    def fenced(self) -> str:
        """Render as a fenced Markdown block."""
        return f"```{self.language}\n{self.code}\n```"


class ParsedContent(BaseModel):
    """A fetched page decomposed into blocks, in document order."""

    title: str = ""
    paragraphs: list[str] = Field(default_factory=list)
    code_blocks: list[CodeBlock] = Field(default_factory=list)
    lists: list[str] = Field(default_factory=list, description="Rendered list blocks")


# ─────────────────────────────────────────────────────────────────────────────
# Lesson Models
# ─────────────────────────────────────────────────────────────────────────────


class Section(BaseModel):
    """A titled part of a lesson."""

    model_config = ConfigDict(use_enum_values=True)

    kind: SectionKind
    title: str
    body_md: str
    order_index: int = Field(..., ge=0)


class Task(BaseModel):
    """A practice task attached to a lesson."""

    title: str
    prompt_md: str
    starter_code: str = ""
    tests_code: str = ""
    points: int = Field(default=10, ge=0)
    order_index: int = Field(..., ge=0)


class StructuredLesson(BaseModel):
    """
    Canonical lesson shape produced by the rewriter.

    Sections carry dense ``order_index`` values in emission order; tasks
    are numbered ``0..n-1``.
    """

    title: str
    body_md: str
    reading_time_min: int = Field(..., ge=3, le=30)
    sections: list[Section] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)

    def section(self, kind: SectionKind) -> Optional[Section]:
        """Get the section of the given kind, if present."""
        for section in self.sections:
            if section.kind == SectionKind(kind).value:
                return section
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Store Records
# ─────────────────────────────────────────────────────────────────────────────


class ModuleInfo(BaseModel):
    """A module as handed to the content store; ``id`` is set on save."""

    slug: str
    title: str
    order_index: int = 0
    id: Optional[int] = None


class ModuleGroup(BaseModel):
    """A module together with its lessons, in TOC order."""

    module: ModuleInfo
    entries: list[TOCEntry] = Field(default_factory=list)


class LessonRecord(BaseModel):
    """A lesson row as handed to the content store; ``id`` is set on save."""

    module_id: int
    slug: str
    title: str
    order_index: int = 0
    source_url: str = ""
    body_md: str = ""
    reading_time_min: int = 5
    id: Optional[int] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_structured(
        cls,
        structured: StructuredLesson,
        module_id: int,
        slug: str,
        entry: TOCEntry,
    ) -> "LessonRecord":
        """Build the record persisted for a rewritten lesson."""
        return cls(
            module_id=module_id,
            slug=slug,
            title=structured.title,
            order_index=entry.order_index,
            source_url=entry.url,
            body_md=structured.body_md,
            reading_time_min=structured.reading_time_min,
        )
