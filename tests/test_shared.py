"""
Tests for Shared Module.
========================

Tests for:
- Utils: slugs, transliteration, word counts
- Config: YAML loading and environment overrides
- Exceptions: error taxonomy
- Schemas: model constraints
"""

import re
from pathlib import Path

import pytest

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

SLUG_INPUTS = [
    "Basics",
    "Hello,   World!",
    "Переменные и типы данных",
    "  -- Циклы for --  ",
    "Go 1.22: что нового?",
    "snake_case_title",
    "",
    "  ???  ",
    "日本語",
    "Ёжик в тумане",
]


# ─────────────────────────────────────────────────────────────────────────────
# Slug Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestSlugify:
    """Tests for slugify and transliterate."""

    def test_ascii_title(self):
        """Test that ASCII titles are lowercased and hyphenated."""
        from golearning.shared.utils import slugify

        assert slugify("Basics") == "basics"
        assert slugify("Hello,   World!") == "hello-world"

    def test_cyrillic_title(self):
        """Test that Cyrillic titles are transliterated."""
        from golearning.shared.utils import slugify

        assert slugify("Переменные и типы данных") == "peremennye-i-tipy-dannyh"
        assert slugify("Функции") == "funktsii"

    def test_underscores_become_hyphens(self):
        """Test that underscores are treated as separators."""
        from golearning.shared.utils import slugify

        assert slugify("snake_case_title") == "snake-case-title"

    @pytest.mark.parametrize("text", ["", "  ???  ", "日本語", "---"])
    def test_fallback_slug(self, text: str):
        """Test that input with nothing usable falls back to 'lesson'."""
        from golearning.shared.utils import FALLBACK_SLUG, slugify

        assert slugify(text) == FALLBACK_SLUG == "lesson"

    @pytest.mark.parametrize("text", SLUG_INPUTS)
    def test_output_alphabet(self, text: str):
        """Test that slugs only contain letters, digits and single inner hyphens."""
        from golearning.shared.utils import slugify

        assert SLUG_PATTERN.match(slugify(text))

    @pytest.mark.parametrize("text", SLUG_INPUTS)
    def test_idempotent(self, text: str):
        """Test that slugifying a slug returns it unchanged."""
        from golearning.shared.utils import slugify

        slug = slugify(text)
        assert slugify(slug) == slug

    @pytest.mark.parametrize("text", SLUG_INPUTS)
    def test_stable_under_transliteration(self, text: str):
        """Test that transliterating first gives the same slug."""
        from golearning.shared.utils import slugify, transliterate

        assert slugify(transliterate(text)) == slugify(text)

    def test_transliterate_keeps_latin(self):
        """Test that transliteration lowercases and keeps non-Cyrillic text."""
        from golearning.shared.utils import transliterate

        assert transliterate("Основы языка") == "osnovy yazyka"
        assert transliterate("Go 1.22") == "go 1.22"


class TestTextUtils:
    """Tests for small text helpers."""

    def test_count_words(self):
        """Test word counting across texts."""
        from golearning.shared.utils import count_words

        assert count_words(["one two", "  three  ", ""]) == 3

    def test_clamp(self):
        """Test clamping into a closed range."""
        from golearning.shared.utils import clamp

        assert clamp(1, 3, 30) == 3
        assert clamp(12, 3, 30) == 12
        assert clamp(99, 3, 30) == 30

    def test_clean_whitespace(self):
        """Test that newlines and runs of spaces collapse."""
        from golearning.shared.utils import clean_whitespace

        assert clean_whitespace("  a\n\n b\t c ") == "a b c"

    def test_utc_now_is_aware(self):
        """Test that timestamps carry the UTC timezone."""
        from datetime import timezone

        from golearning.shared.utils import utc_now

        assert utc_now().tzinfo is timezone.utc

    def test_ensure_sqlite_parent(self, temp_dir: Path):
        """Test that the directory of a SQLite file is created."""
        from golearning.shared.utils import ensure_sqlite_parent

        db_path = temp_dir / "nested" / "dir" / "content.db"
        ensure_sqlite_parent(f"sqlite:///{db_path}")

        assert db_path.parent.is_dir()


# ─────────────────────────────────────────────────────────────────────────────
# Config Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestConfig:
    """Tests for settings loading."""

    def test_default_settings_file(self, config_path: Path):
        """Test that the shipped settings file loads."""
        from golearning.shared.config import load_settings

        settings = load_settings(config_path)

        assert settings.site.locale == "ru"
        assert settings.pipeline.request_delay == 0.5
        assert settings.fetching.max_attempts == 1
        assert settings.get_effective_base_url() == "https://metanit.com/go/tutorial"

    def test_yaml_values(self, temp_dir: Path):
        """Test that YAML values override model defaults."""
        from golearning.shared.config import load_settings

        config_file = temp_dir / "settings.yaml"
        config_file.write_text(
            "site:\n"
            "  locale: en\n"
            "pipeline:\n"
            "  request_delay: 0\n"
            "  module_titles:\n"
            "    basics: Basics\n"
            "database:\n"
            "  url: sqlite:///tmp/test.db\n",
            encoding="utf-8",
        )

        settings = load_settings(config_file)

        assert settings.site.locale == "en"
        assert settings.pipeline.request_delay == 0
        assert settings.pipeline.module_titles == {"basics": "Basics"}
        assert settings.get_effective_database_url() == "sqlite:///tmp/test.db"

    def test_missing_file_uses_defaults(self, temp_dir: Path):
        """Test that a missing YAML file falls back to model defaults."""
        from golearning.shared.config import load_settings

        settings = load_settings(temp_dir / "absent.yaml")

        assert settings.database.url == "sqlite:///data/golearning.db"
        assert settings.fetching.max_body_bytes == 5 * 1024 * 1024

    def test_env_overrides(self, temp_dir: Path, monkeypatch):
        """Test that top-level environment variables win over YAML."""
        from golearning.shared.config import load_settings

        monkeypatch.setenv("DATABASE_URL", "sqlite:///env.db")
        monkeypatch.setenv("GOLEARNING_BASE_URL", "https://mirror.example.com/go/")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = load_settings(temp_dir / "absent.yaml")

        assert settings.get_effective_database_url() == "sqlite:///env.db"
        assert settings.get_effective_base_url() == "https://mirror.example.com/go"
        assert settings.get_effective_log_level() == "DEBUG"

    def test_nested_env_overrides_yaml(self, config_path: Path, monkeypatch):
        """Test that nested environment variables win over YAML sections."""
        from golearning.shared.config import load_settings

        monkeypatch.setenv("FETCHING__TIMEOUT", "10")
        monkeypatch.setenv("PIPELINE__REQUEST_DELAY", "2")

        settings = load_settings(config_path)

        assert settings.fetching.timeout == 10
        assert settings.pipeline.request_delay == 2
        # Keys the environment leaves alone keep their YAML values
        assert settings.fetching.max_attempts == 1
        assert settings.pipeline.default_module_slug == "osnovy"
        assert settings.site.locale == "ru"

    def test_invalid_attempts_rejected(self):
        """Test that fewer than one fetch attempt is rejected."""
        from pydantic import ValidationError

        from golearning.shared.config import FetchingConfig

        with pytest.raises(ValidationError):
            FetchingConfig(max_attempts=0)

    def test_get_settings_is_cached(self):
        """Test that get_settings returns a singleton until reloaded."""
        from golearning.shared.config import get_settings, reload_settings

        first = get_settings()
        assert get_settings() is first
        assert reload_settings() is not first


# ─────────────────────────────────────────────────────────────────────────────
# Exception and Schema Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestExceptions:
    """Tests for the error taxonomy."""

    def test_fetch_errors_share_base(self):
        """Test that every fetch failure is a FetchError."""
        from golearning.shared.exceptions import (
            FetchError,
            GoLearningError,
            HTTPStatusError,
            NetworkError,
            ResponseTooLargeError,
        )

        for error in (
            NetworkError("boom", url="https://x"),
            HTTPStatusError(404, "https://x"),
            ResponseTooLargeError(10, "https://x"),
        ):
            assert isinstance(error, FetchError)
            assert isinstance(error, GoLearningError)
            assert error.url == "https://x"

    def test_http_status_error_keeps_code(self):
        """Test that the status code is available to callers."""
        from golearning.shared.exceptions import HTTPStatusError

        error = HTTPStatusError(503, "https://x/1.php")

        assert error.status_code == 503
        assert "503" in str(error)

    def test_cancellation_is_ingest_error(self):
        """Test that a cancelled run is reported as an ingestion error."""
        from golearning.shared.exceptions import IngestCancelled, IngestError

        assert issubclass(IngestCancelled, IngestError)


class TestSchemas:
    """Tests for schema constraints."""

    def test_toc_entry_is_frozen(self):
        """Test that TOC entries cannot be mutated."""
        from pydantic import ValidationError

        from golearning.shared.schemas import TOCEntry

        entry = TOCEntry(title="A", url="/go/tutorial/1.1.php", order_index=1)

        with pytest.raises(ValidationError):
            entry.title = "B"

    def test_toc_entry_order_starts_at_one(self):
        """Test that order_index is 1-based."""
        from pydantic import ValidationError

        from golearning.shared.schemas import TOCEntry

        with pytest.raises(ValidationError):
            TOCEntry(title="A", url="/go/tutorial/1.1.php", order_index=0)

    def test_reading_time_bounds(self):
        """Test that reading time outside [3, 30] is rejected."""
        from pydantic import ValidationError

        from golearning.shared.schemas import StructuredLesson

        with pytest.raises(ValidationError):
            StructuredLesson(title="T", body_md="", reading_time_min=2)
        with pytest.raises(ValidationError):
            StructuredLesson(title="T", body_md="", reading_time_min=31)

    def test_code_block_fenced(self):
        """Test Markdown fencing of code blocks."""
        from golearning.shared.schemas import CodeBlock

        assert CodeBlock(language="go", code="x := 1").fenced() == "```go\nx := 1\n```"
        assert CodeBlock(code="ls").fenced() == "```\nls\n```"
