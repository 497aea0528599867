"""
Tests for CLI Module.
=====================

Runs the Typer commands in-process with CliRunner.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def db_url(temp_dir: Path) -> str:
    """A file-backed SQLite URL in a temporary directory."""
    return f"sqlite:///{temp_dir / 'cli.db'}"


class TestDatabaseCommands:
    """Tests for init-db, modules and lesson."""

    def test_init_db(self, db_url: str, temp_dir: Path):
        """Test that init-db creates the database file."""
        from golearning.cli.main import app

        result = runner.invoke(app, ["init-db", "--db", db_url])

        assert result.exit_code == 0
        assert (temp_dir / "cli.db").exists()

    def test_modules_empty(self, db_url: str):
        """Test the message shown for an empty database."""
        from golearning.cli.main import app

        result = runner.invoke(app, ["modules", "--db", db_url])

        assert result.exit_code == 0
        assert "No modules stored" in result.output

    def test_modules_lists_counts(self, db_url: str):
        """Test that stored modules are listed."""
        from golearning.cli.main import app
        from golearning.shared.schemas import ModuleInfo
        from golearning.storage.repository import ContentRepository

        repository = ContentRepository.from_url(db_url)
        repository.create_module(ModuleInfo(slug="osnovy", title="Основы Go"))
        repository.close()

        result = runner.invoke(app, ["modules", "--db", db_url])

        assert result.exit_code == 0
        assert "osnovy" in result.output

    def test_unknown_lesson(self, db_url: str):
        """Test that a missing lesson exits with an error."""
        from golearning.cli.main import app

        result = runner.invoke(app, ["lesson", "missing", "--db", db_url])

        assert result.exit_code == 1
        assert "Lesson not found" in result.output

    @pytest.mark.parametrize("bad_db", ["not a database url", "blocked"])
    def test_unusable_database_exits_cleanly(self, bad_db: str, temp_dir: Path):
        """Test that a bad --db value is reported without a traceback."""
        from golearning.cli.main import app

        if bad_db == "blocked":
            blocker = temp_dir / "blocker"
            blocker.write_text("", encoding="utf-8")
            bad_db = f"sqlite:///{blocker / 'cli.db'}"

        result = runner.invoke(app, ["modules", "--db", bad_db])

        assert result.exit_code == 1
        assert "Database unavailable" in result.output


class TestIngestCommand:
    """Tests for the ingest command exit codes."""

    def _run(self, db_url: str, outcome):
        from golearning.cli.main import app

        pipeline = MagicMock()
        pipeline.run.side_effect = outcome if isinstance(outcome, Exception) else None
        if not isinstance(outcome, Exception):
            pipeline.run.return_value = outcome

        with patch("golearning.ingestion.pipeline.build_pipeline", return_value=pipeline):
            return runner.invoke(app, ["ingest", "--db", db_url, "--limit", "2", "--delay", "0"])

    def test_success(self, db_url: str):
        """Test that a completed run prints its summary and exits 0."""
        from golearning.ingestion.pipeline import IngestSummary

        summary = IngestSummary(modules=1, lessons_imported=2)
        result = self._run(db_url, summary)

        assert result.exit_code == 0
        assert "Imported 2 lessons" in result.output

    def test_fatal_error(self, db_url: str):
        """Test that a fatal ingestion error exits 1."""
        from golearning.shared.exceptions import IngestError

        result = self._run(db_url, IngestError("toc unreachable"))

        assert result.exit_code == 1

    def test_cancelled(self, db_url: str):
        """Test that a cancelled run exits 130."""
        from golearning.shared.exceptions import IngestCancelled

        result = self._run(db_url, IngestCancelled("stop"))

        assert result.exit_code == 130


class TestInfoCommand:
    """Tests for the info command."""

    def test_info(self):
        """Test that info shows the configured source."""
        from golearning.cli.main import app

        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "GoLearning" in result.output
        assert "Base URL" in result.output
