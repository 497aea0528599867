"""
Rewriter Module - Reorganize parsed pages into structured lessons.
==================================================================

A pure, deterministic transform from ``ParsedContent`` to
``StructuredLesson``:

    Overview  - opening paragraphs plus definitional ones
    Syntax    - syntax paragraphs, the first code block, short lists
    Examples  - up to four code blocks with an explanatory paragraph
    Pitfalls  - cautionary paragraphs, or fixed advice when none exist
    Extra     - leftover paragraphs matching no other rule

followed by two or three practice tasks. Classification is keyword
based; the keyword tables come from ``RewriteRules``.
"""

from typing import Optional, Protocol

from golearning.ingestion.rules import RewriteRules, get_rewrite_rules
from golearning.shared.logging import get_logger
from golearning.shared.schemas import (
    ParsedContent,
    Section,
    SectionKind,
    StructuredLesson,
    Task,
    TOCEntry,
)
from golearning.shared.utils import clamp, count_words

logger = get_logger(__name__)


class Rewriter(Protocol):
    """Anything that can turn a parsed page into a structured lesson."""

    def rewrite(self, parsed: ParsedContent, meta: TOCEntry) -> StructuredLesson:
        ...


class LessonRewriter:
    """
    Rule-based rewriter, no network or model calls.

    Example:
        >>> rewriter = LessonRewriter(get_rewrite_rules("en"))
        >>> lesson = rewriter.rewrite(parsed, entry)
        >>> [s.kind for s in lesson.sections]
        ['overview', 'syntax', 'examples', 'pitfalls']
    """

    def __init__(self, rules: Optional[RewriteRules] = None):
        self.rules = rules or get_rewrite_rules()

    def rewrite(self, parsed: ParsedContent, meta: TOCEntry) -> StructuredLesson:
        """Build the structured lesson for one page."""
        title = parsed.title or meta.title
        builders = (
            (SectionKind.OVERVIEW, self.extract_overview),
            (SectionKind.SYNTAX, self.extract_syntax),
            (SectionKind.EXAMPLES, self.extract_examples),
            (SectionKind.PITFALLS, self.extract_pitfalls),
            (SectionKind.EXTRA, self.extract_extra),
        )

        body_parts = [f"# {title}", ""]
        sections: list[Section] = []

        for kind, build in builders:
            body = build(parsed)
            if not body:
                continue

            body_parts.extend([f"## {self.rules.headings[kind]}", "", body, ""])
            sections.append(
                Section(
                    kind=kind,
                    title=self.rules.section_titles[kind],
                    body_md=body,
                    order_index=len(sections),
                )
            )

        lesson = StructuredLesson(
            title=title,
            body_md="\n".join(body_parts).rstrip() + "\n",
            reading_time_min=self.estimate_reading_time(parsed),
            sections=sections,
            tasks=self.generate_tasks(parsed),
        )

        logger.debug(
            f"Rewrote '{title}': sections={[s.kind for s in sections]}, tasks={len(lesson.tasks)}"
        )
        return lesson

    # ─────────────────────────────────────────────────────────────────────
    # Section Extraction
    # ─────────────────────────────────────────────────────────────────────

    def estimate_reading_time(self, parsed: ParsedContent) -> int:
        """Minutes to read the paragraphs, clamped to the configured range."""
        minutes = count_words(parsed.paragraphs) // self.rules.words_per_minute
        return clamp(minutes, self.rules.min_reading_minutes, self.rules.max_reading_minutes)

    def extract_overview(self, parsed: ParsedContent) -> str:
        overview: list[str] = []
        for paragraph in parsed.paragraphs:
            if len(overview) >= self.rules.overview_max:
                break
            if len(overview) < self.rules.overview_unconditional or self.rules.definition.matches(
                paragraph
            ):
                overview.append(paragraph)
        return "\n\n".join(overview)

    def extract_syntax(self, parsed: ParsedContent) -> str:
        parts = [p for p in parsed.paragraphs if self.rules.syntax.matches(p)]

        if parsed.code_blocks:
            first = parsed.code_blocks[0]
            parts.extend(["", f"```{first.language}", first.code, "```"])

        # The cap counts emitted parts, so a code block leaves room for one list at most
        for rendered in parsed.lists:
            if len(parts) >= self.rules.syntax_max_parts:
                break
            parts.extend(["", rendered])

        return "\n".join(parts).strip()

    def extract_examples(self, parsed: ParsedContent) -> str:
        examples: list[str] = []

        for i, block in enumerate(parsed.code_blocks[: self.rules.examples_max]):
            examples.extend([f"### {self.rules.example_label} {i + 1}", ""])

            if i < len(parsed.paragraphs):
                explanation = next(
                    (p for p in parsed.paragraphs if self.rules.example.matches(p)), None
                )
                if explanation is not None:
                    examples.extend([explanation, ""])

            examples.extend([block.fenced(), ""])

        return "\n".join(examples).strip()

    def extract_pitfalls(self, parsed: ParsedContent) -> str:
        pitfalls = [f"- {p}" for p in parsed.paragraphs if self.rules.caution.matches(p)]
        if not pitfalls:
            pitfalls = [f"- {advice}" for advice in self.rules.fallback_pitfalls]
        return "\n".join(pitfalls)

    def extract_extra(self, parsed: ParsedContent) -> str:
        extra: list[str] = []
        for paragraph in parsed.paragraphs[self.rules.extra_skip :]:
            if len(extra) >= self.rules.extra_max:
                break
            if not self.rules.used.matches(paragraph):
                extra.append(paragraph)
        return "\n\n".join(extra)

    # ─────────────────────────────────────────────────────────────────────
    # Practice Tasks
    # ─────────────────────────────────────────────────────────────────────

    def generate_tasks(self, parsed: ParsedContent) -> list[Task]:
        """Warm-up and find-the-bug always; understanding only with code."""
        templates = [self.rules.tasks.warmup]
        if parsed.code_blocks:
            templates.append(self.rules.tasks.understanding)
        templates.append(self.rules.tasks.debug)

        return [template.build(order_index=i) for i, template in enumerate(templates)]


def rewrite_lesson(
    parsed: ParsedContent,
    meta: TOCEntry,
    rules: Optional[RewriteRules] = None,
) -> StructuredLesson:
    """Convenience function to rewrite one page with the given rules."""
    return LessonRewriter(rules).rewrite(parsed, meta)
