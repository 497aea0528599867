"""
Rules Module - Site contract and classification tables.
=======================================================

Everything that ties the pipeline to one site or one language lives here
as data: lesson URL pattern, noise phrases, classification keywords,
section headings, fallback advice and module titles. The rewriter, TOC
extractor and grouper receive these tables instead of reading globals,
so another locale or site only needs a different table.

Keyword matching is case-insensitive substring containment: ``ошибк``
matches "ошибками" and ``error`` matches "SyntaxError". Rules built with
``word_start_matching`` only match keywords at the start of a word.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional
from urllib.parse import urljoin

from golearning.ingestion.tasks import ENGLISH_TASKS, RUSSIAN_TASKS, TaskTemplateSet
from golearning.shared.config import RewriterConfig, SiteConfig
from golearning.shared.schemas import SectionKind


# ─────────────────────────────────────────────────────────────────────────────
# Keyword Matching
# ─────────────────────────────────────────────────────────────────────────────


class KeywordMatcher:
    """
    Ordered keyword predicate over lower-cased text.

    By default a keyword matches anywhere in the text, so ``error`` also
    hits "SyntaxError". With ``word_start=True`` a keyword only matches at
    the start of a word.

    Example:
        >>> KeywordMatcher(["error"]).matches("json.SyntaxError")
        True
        >>> KeywordMatcher(["is"], word_start=True).matches("this one")
        False
    """

    def __init__(self, keywords: Iterable[str], word_start: bool = False):
        self.keywords = tuple(kw.lower() for kw in keywords if kw and kw.strip())
        self.word_start = word_start
        self._pattern: Optional[re.Pattern[str]] = None
        if word_start and self.keywords:
            alternation = "|".join(re.escape(kw) for kw in self.keywords)
            self._pattern = re.compile(rf"(?<!\w)(?:{alternation})")

    def matches(self, text: str) -> bool:
        lower = text.lower()
        if self._pattern is not None:
            return self._pattern.search(lower) is not None
        return any(kw in lower for kw in self.keywords)

    def __or__(self, other: "KeywordMatcher") -> "KeywordMatcher":
        return KeywordMatcher(self.keywords + other.keywords, word_start=self.word_start)

    def __repr__(self) -> str:
        return f"KeywordMatcher({list(self.keywords)!r}, word_start={self.word_start})"


# ─────────────────────────────────────────────────────────────────────────────
# Site Rules
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SiteRules:
    """Fixed contract with the source site."""

    base_url: str = "https://metanit.com/go/tutorial"
    toc_path: str = ""
    lesson_path_segment: str = "/go/tutorial/"
    page_extension: str = ".php"
    brand_keyword: str = "metanit"
    noise_phrases: tuple[str, ...] = ("metanit", "предыдущ", "следующ")

    @classmethod
    def from_config(cls, config: SiteConfig) -> "SiteRules":
        return cls(
            base_url=config.base_url.rstrip("/"),
            toc_path=config.toc_path,
            lesson_path_segment=config.lesson_path_segment,
            page_extension=config.page_extension,
            brand_keyword=config.brand_keyword.lower(),
            noise_phrases=tuple(p.lower() for p in config.noise_phrases),
        )

    @property
    def toc_url(self) -> str:
        """URL of the table-of-contents page."""
        return urljoin(self.base_url + "/", self.toc_path.lstrip("/"))

    def is_lesson_href(self, href: str) -> bool:
        """Check whether a link points at a lesson page."""
        return self.lesson_path_segment in href and href.endswith(self.page_extension)

    def is_noise(self, text: str) -> bool:
        """Check whether link text is navigation or branding noise."""
        lower = text.lower()
        return any(phrase in lower for phrase in self.noise_phrases)

    def is_branding(self, text: str) -> bool:
        return bool(self.brand_keyword) and self.brand_keyword in text.lower()


# ─────────────────────────────────────────────────────────────────────────────
# Rewrite Rules
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class RewriteRules:
    """Keyword tables and fixed texts used to build a structured lesson."""

    definition_keywords: tuple[str, ...]
    syntax_keywords: tuple[str, ...]
    example_keywords: tuple[str, ...]
    caution_keywords: tuple[str, ...]
    fallback_pitfalls: tuple[str, ...]
    headings: dict[SectionKind, str]
    section_titles: dict[SectionKind, str]
    example_label: str
    tasks: TaskTemplateSet

    # Limits
    words_per_minute: int = 200
    min_reading_minutes: int = 3
    max_reading_minutes: int = 30
    overview_unconditional: int = 2
    overview_max: int = 3
    syntax_max_parts: int = 5
    examples_max: int = 4
    extra_skip: int = 3
    extra_max: int = 5

    word_start_matching: bool = False

    _matchers: dict[str, KeywordMatcher] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._matchers = {
            "definition": KeywordMatcher(self.definition_keywords, self.word_start_matching),
            "syntax": KeywordMatcher(self.syntax_keywords, self.word_start_matching),
            "example": KeywordMatcher(self.example_keywords, self.word_start_matching),
            "caution": KeywordMatcher(self.caution_keywords, self.word_start_matching),
        }
        self._matchers["used"] = (
            self._matchers["definition"] | self._matchers["syntax"] | self._matchers["caution"]
        )

    @property
    def definition(self) -> KeywordMatcher:
        return self._matchers["definition"]

    @property
    def syntax(self) -> KeywordMatcher:
        return self._matchers["syntax"]

    @property
    def example(self) -> KeywordMatcher:
        return self._matchers["example"]

    @property
    def caution(self) -> KeywordMatcher:
        return self._matchers["caution"]

    @property
    def used(self) -> KeywordMatcher:
        """Union of keywords already consumed by overview, syntax and pitfalls."""
        return self._matchers["used"]

    def with_overrides(self, config: RewriterConfig) -> "RewriteRules":
        """Return a copy with keyword lists and the matching mode taken from the config."""
        changes = {}
        for name in (
            "definition_keywords",
            "syntax_keywords",
            "example_keywords",
            "caution_keywords",
            "fallback_pitfalls",
        ):
            value = getattr(config, name)
            if value:
                changes[name] = tuple(value)
        if config.word_start_matching != self.word_start_matching:
            changes["word_start_matching"] = config.word_start_matching
        if not changes:
            return self
        return replace(self, **changes)


def russian_rules() -> RewriteRules:
    """Rules for Russian-language tutorial sites (the default source)."""
    return RewriteRules(
        definition_keywords=(
            "представляет", "является", "позволяет", "используется",
            "это", "служит", "предназначен", "определяет",
        ),
        syntax_keywords=(
            "синтаксис", "имеет вид", "записывается", "объявляется",
            "определяется", "формат", "структур", "шаблон",
        ),
        example_keywords=("пример", "рассмотрим", "следующ"),
        caution_keywords=(
            "ошибк", "нельзя", "важно", "следует помнить", "внимание",
            "осторожно", "не рекомендуется", "избегайте", "проблем",
            "неправильно", "ограничени", "исключени",
        ),
        fallback_pitfalls=(
            "Внимательно следите за типами данных",
            "Не забывайте про обработку ошибок",
            "Используйте понятные имена переменных",
        ),
        headings={
            SectionKind.OVERVIEW: "Обзор",
            SectionKind.SYNTAX: "Синтаксис",
            SectionKind.EXAMPLES: "Примеры",
            SectionKind.PITFALLS: "Частые ошибки",
            SectionKind.EXTRA: "Дополнительно",
        },
        section_titles={
            SectionKind.OVERVIEW: "Ключевые идеи",
            SectionKind.SYNTAX: "Синтаксис",
            SectionKind.EXAMPLES: "Примеры кода",
            SectionKind.PITFALLS: "Частые ошибки",
            SectionKind.EXTRA: "Дополнительно",
        },
        example_label="Пример",
        tasks=RUSSIAN_TASKS,
    )


def english_rules() -> RewriteRules:
    """Rules for English-language tutorial sites."""
    return RewriteRules(
        definition_keywords=(
            "represents", "is", "allows", "used for", "defines",
            "refers to", "means",
        ),
        syntax_keywords=(
            "syntax", "has the form", "is written as", "is declared",
            "format", "structure", "template",
        ),
        example_keywords=("example", "consider", "the following"),
        caution_keywords=(
            "mistake", "error", "must not", "important", "be careful",
            "not recommended", "avoid", "problem", "incorrectly",
            "limitation", "exception",
        ),
        fallback_pitfalls=(
            "Keep a close eye on data types",
            "Do not forget to handle errors",
            "Use clear, descriptive variable names",
        ),
        headings={
            SectionKind.OVERVIEW: "Overview",
            SectionKind.SYNTAX: "Syntax",
            SectionKind.EXAMPLES: "Examples",
            SectionKind.PITFALLS: "Common mistakes",
            SectionKind.EXTRA: "Further notes",
        },
        section_titles={
            SectionKind.OVERVIEW: "Key ideas",
            SectionKind.SYNTAX: "Syntax",
            SectionKind.EXAMPLES: "Code examples",
            SectionKind.PITFALLS: "Common mistakes",
            SectionKind.EXTRA: "Further notes",
        },
        example_label="Example",
        tasks=ENGLISH_TASKS,
    )


_LOCALES = {
    "ru": russian_rules,
    "en": english_rules,
}


def get_rewrite_rules(locale: str = "ru", overrides: Optional[RewriterConfig] = None) -> RewriteRules:
    """
    Get the rewrite rules for a locale, with optional keyword overrides.

    Raises:
        ValueError: If the locale has no preset
    """
    factory = _LOCALES.get(locale.lower())
    if factory is None:
        raise ValueError(f"Unknown locale '{locale}'. Available: {', '.join(sorted(_LOCALES))}")

    rules = factory()
    if overrides is not None:
        rules = rules.with_overrides(overrides)
    return rules


# ─────────────────────────────────────────────────────────────────────────────
# Module Titles
# ─────────────────────────────────────────────────────────────────────────────

DEFAULT_MODULE_SLUG = "osnovy"

DEFAULT_MODULE_TITLES: dict[str, str] = {
    "osnovy": "Основы Go",
    "osnovy-yazyka": "Основы языка",
    "peremennye": "Переменные и типы данных",
    "operatory": "Операторы",
    "uslovnye": "Условные конструкции",
    "tsikly": "Циклы",
    "funktsii": "Функции",
    "massivy": "Массивы и срезы",
    "map": "Отображения (map)",
    "struktury": "Структуры",
    "interfeysy": "Интерфейсы",
    "obrabotka-oshibok": "Обработка ошибок",
    "goroutiny": "Горутины и каналы",
    "pakety": "Пакеты и модули",
    "rabota-s-faylami": "Работа с файлами",
}
