"""
Tests Package - Unit and integration tests for GoLearning.
==========================================================

Test modules:
- test_shared: Slugs, configuration, exceptions
- test_ingestion: Fetcher, TOC extractor, parser, rewriter, grouper tests
- test_pipeline: End-to-end ingestion runs against an in-memory store
- test_storage: Repository upserts, replacement, transactions
- test_cli: Command-line interface

Run tests with:
    pytest tests/
    pytest tests/ -v --cov=src/golearning
"""
