"""
Pipeline Module - Orchestrate one ingestion run.
================================================

Sequences the ingestion stages for every lesson of the tutorial:

    TOC page → TOCExtractor → ModuleGrouper
        for each module:  store.create_module
            for each lesson:  Fetcher → PageParser → Rewriter → store

Failure policy:
- TOC fetch/parse and module creation are fatal (``IngestError``)
- A lesson that cannot be fetched, parsed, rewritten or saved is skipped
- A section or task that cannot be saved is rolled back alone; the
  lesson keeps everything else

The delay between lesson fetches is the only cancellation point.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from golearning.ingestion.fetcher import Fetcher
from golearning.ingestion.grouper import ModuleGrouper
from golearning.ingestion.parser import PageParser
from golearning.ingestion.rewriter import LessonRewriter, Rewriter
from golearning.ingestion.rules import SiteRules, get_rewrite_rules
from golearning.ingestion.toc import TOCExtractor
from golearning.shared.config import Settings, get_settings
from golearning.shared.exceptions import (
    FetchError,
    IngestCancelled,
    IngestError,
    ParseError,
    PersistenceError,
)
from golearning.shared.logging import get_logger
from golearning.shared.schemas import LessonRecord, ModuleInfo, StructuredLesson, TOCEntry
from golearning.shared.utils import slugify
from golearning.storage.repository import ContentRepository, ContentStore

logger = get_logger(__name__)


@dataclass
class IngestSummary:
    """Outcome of one ingestion run."""

    modules: int = 0
    lessons_imported: int = 0
    lessons_failed: int = 0
    sections: int = 0
    tasks: int = 0
    item_failures: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def lessons_total(self) -> int:
        return self.lessons_imported + self.lessons_failed

    def record_failure(self, url: str, reason: str) -> None:
        self.lessons_failed += 1
        self.failures.append((url, reason))


class IngestPipeline:
    """
    Runs the ingestion stages against a content store.

    All collaborators are injected, so tests can swap in fakes for the
    fetcher and the store.

    Example:
        >>> pipeline = build_pipeline()
        >>> summary = pipeline.run(limit=5)
        >>> summary.lessons_imported
        5
    """

    def __init__(
        self,
        fetcher: Fetcher,
        store: ContentStore,
        extractor: Optional[TOCExtractor] = None,
        parser: Optional[PageParser] = None,
        rewriter: Optional[Rewriter] = None,
        grouper: Optional[ModuleGrouper] = None,
        toc_url: Optional[str] = None,
        request_delay: float = 0.5,
    ):
        """
        Args:
            fetcher: Page downloader (anything with ``fetch(url) -> str``)
            store: Content store the lessons are written to
            extractor: TOC extractor
            parser: Lesson page parser
            rewriter: Parsed page to structured lesson transform
            grouper: TOC entry to module grouper
            toc_url: URL of the table-of-contents page
            request_delay: Seconds to wait between lesson fetches
        """
        self.fetcher = fetcher
        self.store = store
        self.extractor = extractor or TOCExtractor()
        self.parser = parser or PageParser()
        self.rewriter = rewriter or LessonRewriter()
        self.grouper = grouper or ModuleGrouper()
        self.toc_url = toc_url or self.extractor.site.toc_url
        self.request_delay = max(0.0, request_delay)

    def run(self, limit: int = 0, stop_event: Optional[threading.Event] = None) -> IngestSummary:
        """
        Run one ingestion pass.

        Args:
            limit: Process only the first ``limit`` TOC entries (<= 0 means all)
            stop_event: Set it to stop the run at the next delay

        Raises:
            IngestError: The TOC could not be read or a module not saved
            IngestCancelled: ``stop_event`` was set
        """
        stop_event = stop_event or threading.Event()
        summary = IngestSummary()
        started = time.monotonic()

        entries = self._load_toc()
        logger.info(f"Found {len(entries)} lessons in table of contents")
        if not entries:
            summary.elapsed = time.monotonic() - started
            return summary

        if limit > 0 and len(entries) > limit:
            entries = entries[:limit]
            logger.info(f"Limiting run to the first {limit} lessons")

        groups = self.grouper.group(entries)
        first_lesson = True

        for group in groups:
            module = self._save_module(group.module)
            summary.modules += 1
            logger.info(
                f"Module {module.order_index + 1}/{len(groups)}: {module.title} "
                f"({len(group.entries)} lessons)"
            )

            for entry in group.entries:
                if not first_lesson:
                    self._pause(stop_event)
                first_lesson = False
                self._process_lesson(entry, module, summary)

        summary.elapsed = time.monotonic() - started
        logger.info(
            f"Ingestion finished: {summary.lessons_imported} imported, "
            f"{summary.lessons_failed} skipped, {summary.elapsed:.1f}s"
        )
        return summary

    # ─────────────────────────────────────────────────────────────────────
    # Run-Level Steps
    # ─────────────────────────────────────────────────────────────────────

    def _load_toc(self) -> list[TOCEntry]:
        logger.info(f"Fetching table of contents: {self.toc_url}")
        try:
            html = self.fetcher.fetch(self.toc_url)
        except FetchError as e:
            raise IngestError(f"could not fetch table of contents {self.toc_url}: {e}") from e

        try:
            return self.extractor.extract(html)
        except ParseError as e:
            raise IngestError(f"could not parse table of contents: {e}") from e

    def _save_module(self, module: ModuleInfo) -> ModuleInfo:
        try:
            return self.store.create_module(module)
        except PersistenceError as e:
            raise IngestError(f"could not save module '{module.slug}': {e}") from e

    def _pause(self, stop_event: threading.Event) -> None:
        if stop_event.wait(self.request_delay):
            logger.warning("Ingestion cancelled")
            raise IngestCancelled("ingestion cancelled")

    # ─────────────────────────────────────────────────────────────────────
    # Lesson Processing
    # ─────────────────────────────────────────────────────────────────────

    def _process_lesson(self, entry: TOCEntry, module: ModuleInfo, summary: IngestSummary) -> None:
        logger.info(f"[{entry.order_index}] {entry.title}")

        try:
            html = self.fetcher.fetch(entry.url)
            parsed = self.parser.parse(html)
            structured = self.rewriter.rewrite(parsed, entry)
        except (FetchError, ParseError) as e:
            logger.warning(f"Skipping {entry.url}: {e}")
            summary.record_failure(entry.url, str(e))
            return

        if module.id is None:
            raise IngestError(f"module '{module.slug}' has no id after saving")

        record = LessonRecord.from_structured(
            structured,
            module_id=module.id,
            slug=slugify(structured.title),
            entry=entry,
        )

        try:
            sections, tasks, item_failures = self._save_lesson(record, structured)
        except PersistenceError as e:
            logger.error(f"Skipping {entry.url}: could not save lesson: {e}")
            summary.record_failure(entry.url, str(e))
            return

        summary.lessons_imported += 1
        summary.sections += sections
        summary.tasks += tasks
        summary.item_failures += item_failures
        logger.info(f"Saved '{record.slug}': {sections} sections, {tasks} tasks")

    def _save_lesson(self, record: LessonRecord, structured: StructuredLesson) -> tuple[int, int, int]:
        """
        Replace a lesson and its children in one transaction.

        Returns:
            Tuple of (sections saved, tasks saved, items that failed)
        """
        sections = tasks = failures = 0

        with self.store.transaction():
            lesson = self.store.create_lesson(record)
            lesson_id = lesson.id
            if lesson_id is None:
                raise PersistenceError(f"lesson '{record.slug}' has no id after saving")

            self.store.delete_sections_by_lesson_id(lesson_id)
            self.store.delete_tasks_by_lesson_id(lesson_id)

            for section in structured.sections:
                try:
                    with self.store.savepoint():
                        self.store.create_section(lesson_id, section)
                    sections += 1
                except PersistenceError as e:
                    failures += 1
                    logger.error(f"Could not save {section.kind} section of '{record.slug}': {e}")

            for task in structured.tasks:
                try:
                    with self.store.savepoint():
                        self.store.create_task(lesson_id, task)
                    tasks += 1
                except PersistenceError as e:
                    failures += 1
                    logger.error(f"Could not save task '{task.title}' of '{record.slug}': {e}")

        return sections, tasks, failures


# ─────────────────────────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────────────────────────


def build_pipeline(
    settings: Optional[Settings] = None,
    store: Optional[ContentStore] = None,
    fetcher: Optional[Fetcher] = None,
    base_url: Optional[str] = None,
    request_delay: Optional[float] = None,
) -> IngestPipeline:
    """
    Assemble a pipeline from settings.

    Args:
        settings: Settings to use (defaults to ``get_settings()``)
        store: Content store (defaults to a repository on the configured database)
        fetcher: Fetcher (defaults to one built from settings)
        base_url: Site base URL override
        request_delay: Delay override in seconds
    """
    settings = settings or get_settings()
    base_url = (base_url or settings.get_effective_base_url()).rstrip("/")

    site = SiteRules.from_config(settings.site.model_copy(update={"base_url": base_url}))
    rules = get_rewrite_rules(settings.site.locale, overrides=settings.rewriter)

    return IngestPipeline(
        fetcher=fetcher or Fetcher(base_url=base_url),
        store=store or ContentRepository.from_url(settings.get_effective_database_url()),
        extractor=TOCExtractor(site),
        parser=PageParser(),
        rewriter=LessonRewriter(rules),
        grouper=ModuleGrouper(
            titles=settings.pipeline.module_titles,
            default_slug=settings.pipeline.default_module_slug,
        ),
        toc_url=site.toc_url,
        request_delay=(
            settings.pipeline.request_delay if request_delay is None else request_delay
        ),
    )


def run_ingest(limit: int = 0, stop_event: Optional[threading.Event] = None) -> IngestSummary:
    """Convenience function to run ingestion with the configured settings."""
    return build_pipeline().run(limit=limit, stop_event=stop_event)
