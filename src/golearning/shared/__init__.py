"""
Shared Module - Common utilities, configuration, schemas, and logging.
======================================================================

This module provides foundational components used across all other modules:

- config: Configuration loading and management
- logging: Logging setup
- schemas: Pydantic data models
- exceptions: Error taxonomy
- utils: Slugs, word counts, directories
"""

from golearning.shared.config import get_settings, Settings
from golearning.shared.logging import get_logger, setup_logging
from golearning.shared.exceptions import (
    GoLearningError,
    IngestError,
    IngestCancelled,
    FetchError,
    NetworkError,
    HTTPStatusError,
    ResponseTooLargeError,
    ParseError,
    PersistenceError,
)
from golearning.shared.schemas import (
    TOCEntry,
    CodeBlock,
    ParsedContent,
    SectionKind,
    Section,
    Task,
    StructuredLesson,
    ModuleInfo,
    ModuleGroup,
    LessonRecord,
)
from golearning.shared.utils import slugify, transliterate, ensure_directory

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Logging
    "get_logger",
    "setup_logging",
    # Exceptions
    "GoLearningError",
    "IngestError",
    "IngestCancelled",
    "FetchError",
    "NetworkError",
    "HTTPStatusError",
    "ResponseTooLargeError",
    "ParseError",
    "PersistenceError",
    # Schemas
    "TOCEntry",
    "CodeBlock",
    "ParsedContent",
    "SectionKind",
    "Section",
    "Task",
    "StructuredLesson",
    "ModuleInfo",
    "ModuleGroup",
    "LessonRecord",
    # Utils
    "slugify",
    "transliterate",
    "ensure_directory",
]
