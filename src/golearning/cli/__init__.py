"""
CLI Module - Command-line interface for GoLearning.
===================================================

Provides CLI commands for:
- Crawling the Go tutorial into the lesson database
- Creating the database schema
- Browsing stored modules and lessons

Usage:
    golearning --help
    golearning init-db
    golearning ingest --limit 10
    golearning modules
    golearning lesson peremennye

Components:
- main: Typer CLI application
"""

from golearning.cli.main import app, cli

__all__ = ["app", "cli"]
