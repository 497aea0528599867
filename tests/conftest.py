"""
Pytest Configuration and Fixtures.
===================================

Shared fixtures for all test modules:
- Sample HTML for the TOC and lesson pages
- Parsed content and rule tables
- In-memory content repository
- Fake fetcher serving canned pages
- Settings cache reset
"""

import tempfile
from pathlib import Path
from typing import Generator, Union

import pytest

BASE_URL = "https://example.com/go/tutorial"


# ─────────────────────────────────────────────────────────────────────────────
# Path Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Get the config file path."""
    return project_root / "config" / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Sample HTML Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_toc_html() -> str:
    """Table of contents with two modules, branding and navigation noise."""
    return """
    <!DOCTYPE html>
    <html>
    <head><title>Руководство по Go | METANIT.COM</title></head>
    <body>
        <div class="header"><b>METANIT.COM</b></div>
        <div class="navmenu">
            <h2>Основы языка</h2>
            <a href="/go/tutorial/1.1.php">Введение в Go</a>
            <a href="/go/tutorial/1.2.php">Переменные</a>
            <h2>Функции</h2>
            <a href="/go/tutorial/2.1.php">Определение функций</a>
            <a href="/go/tutorial/2.2.php">Следующая глава</a>
            <a href="/python/tutorial/1.1.php">Python</a>
        </div>
    </body>
    </html>
    """


@pytest.fixture
def sample_page_html() -> str:
    """A lesson page with paragraphs, a Go listing, a list and an ad."""
    return """
    <!DOCTYPE html>
    <html>
    <head><title>Переменные | METANIT.COM</title></head>
    <body>
        <div class="navmenu"><a href="/go/tutorial/1.1.php">Назад</a></div>
        <div class="item center menC">
            <h1>Переменные</h1>
            <p>Переменная представляет именованный участок памяти.</p>
            <p>short</p>
            <pre class="brush:go;">package main

import "fmt"

func main() {
    var x int = 10
    fmt.Println(x)
}</pre>
            <p>Рассмотрим следующий пример объявления переменной.</p>
            <ul>
                <li>int</li>
                <li>string</li>
            </ul>
            <p>Реклама: купите наш курс прямо сейчас</p>
            <script>var counter = 1;</script>
        </div>
    </body>
    </html>
    """


def _lesson_page(title: str, paragraphs: list[str], code: str = "") -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    if code:
        body += f'<pre class="language-go">{code}</pre>'
    return (
        f"<html><head><title>{title}</title></head>"
        f'<body><div class="content"><h1>{title}</h1>{body}</div></body></html>'
    )


@pytest.fixture
def page_builder():
    """Build a minimal lesson page from a title, paragraphs and optional code."""
    return _lesson_page


# ─────────────────────────────────────────────────────────────────────────────
# Parsed Content and Rules
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def en_rules():
    """English rewrite rules."""
    from golearning.ingestion.rules import get_rewrite_rules
    return get_rewrite_rules("en")


@pytest.fixture
def ru_rules():
    """Russian rewrite rules."""
    from golearning.ingestion.rules import get_rewrite_rules
    return get_rewrite_rules("ru")


@pytest.fixture
def site_rules():
    """Site rules pointing at the test base URL."""
    from golearning.ingestion.rules import SiteRules
    return SiteRules(base_url=BASE_URL)


@pytest.fixture
def sample_entry():
    """A TOC entry for a single lesson."""
    from golearning.shared.schemas import TOCEntry
    return TOCEntry(
        title="TOC title",
        url="/go/tutorial/1.1.php",
        module_slug="basics",
        order_index=1,
    )


@pytest.fixture
def sample_parsed():
    """Two short paragraphs and one Go block."""
    from golearning.shared.schemas import CodeBlock, ParsedContent
    return ParsedContent(
        title="X",
        paragraphs=["X is a type.", "Y"],
        code_blocks=[CodeBlock(language="go", code="package main")],
    )


# ─────────────────────────────────────────────────────────────────────────────
# Collaborator Fixtures
# ─────────────────────────────────────────────────────────────────────────────


class FakeFetcher:
    """Serves canned HTML by URL; an exception value is raised instead."""

    def __init__(self, pages: dict[str, Union[str, Exception]]):
        self.pages = pages
        self.calls: list[str] = []

    def fetch(self, url: str) -> str:
        self.calls.append(url)
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def fake_fetcher_factory():
    """Build a FakeFetcher from a url -> page mapping."""
    return FakeFetcher


@pytest.fixture
def repository():
    """Content repository on an in-memory SQLite database."""
    from golearning.storage.repository import ContentRepository

    repo = ContentRepository.from_url("sqlite://")
    yield repo
    repo.close()


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that run several stages together"
    )


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Reset the settings singleton and top-level env overrides between tests."""
    from golearning.shared.config import get_settings

    for name in ("DATABASE_URL", "GOLEARNING_BASE_URL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
