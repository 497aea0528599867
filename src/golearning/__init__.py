"""
GoLearning - Ingestion pipeline for Go tutorial lessons
=======================================================

Crawls a Go tutorial site, reorganizes every page into a fixed lesson
structure, and stores the result grouped into modules:

- Overview, syntax, examples, pitfalls, and further notes
- Two or three practice tasks per lesson with Go starter code and tests
- Idempotent re-runs (lessons are replaced by slug)
"""

__version__ = "0.1.0"
__author__ = "GoLearning Team"
__license__ = "MIT"

# Public API - lazy imports to avoid circular dependencies and speed up startup
__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Main modules (imported on demand)
    "shared",
    "ingestion",
    "storage",
    "cli",
]
