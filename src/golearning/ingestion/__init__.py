"""
Ingestion Module - Fetch, parse, rewrite, and store tutorial lessons.
=====================================================================

This module handles the entire data ingestion pipeline:

- fetcher: HTTP download with timeouts, size caps, and optional retries
- toc: Lesson discovery on the table-of-contents page
- parser: HTML parsing into paragraphs, code blocks, and lists
- rewriter: Rule-based reorganization into structured lessons
- grouper: Partitioning of lessons into modules
- pipeline: Orchestration of a whole run

Pipeline flow:
    TOC page → TOCExtractor → ModuleGrouper → (Fetcher → PageParser → LessonRewriter) → ContentStore
"""

from golearning.ingestion.fetcher import Fetcher, FetcherStats
from golearning.ingestion.toc import TOCExtractor, extract_toc
from golearning.ingestion.parser import PageParser, ParserConfig, parse_page
from golearning.ingestion.rules import (
    KeywordMatcher,
    SiteRules,
    RewriteRules,
    get_rewrite_rules,
)
from golearning.ingestion.rewriter import LessonRewriter, Rewriter, rewrite_lesson
from golearning.ingestion.grouper import ModuleGrouper
from golearning.ingestion.pipeline import (
    IngestPipeline,
    IngestSummary,
    build_pipeline,
    run_ingest,
)

__all__ = [
    # Fetcher
    "Fetcher",
    "FetcherStats",
    # TOC
    "TOCExtractor",
    "extract_toc",
    # Parser
    "PageParser",
    "ParserConfig",
    "parse_page",
    # Rules
    "KeywordMatcher",
    "SiteRules",
    "RewriteRules",
    "get_rewrite_rules",
    # Rewriter
    "LessonRewriter",
    "Rewriter",
    "rewrite_lesson",
    # Grouper
    "ModuleGrouper",
    # Pipeline
    "IngestPipeline",
    "IngestSummary",
    "build_pipeline",
    "run_ingest",
]
