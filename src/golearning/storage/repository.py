"""
Repository Module - Content store used by the ingestion pipeline.
=================================================================

The pipeline depends only on the ``ContentStore`` protocol:

- create_module / create_lesson   upsert by slug, fill in ``id``
- delete_*_by_lesson_id           clear a lesson's children
- create_section / create_task    one call per item
- transaction()                   scoped unit of work
- savepoint()                     nested unit inside a transaction

``ContentRepository`` implements it on SQLAlchemy. Every store failure
surfaces as ``PersistenceError`` chained to the driver error.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import ContextManager, Iterator, Optional, Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from golearning.shared.exceptions import PersistenceError
from golearning.shared.logging import get_logger
from golearning.shared.schemas import LessonRecord, ModuleInfo, Section, Task
from golearning.shared.utils import utc_now
from golearning.storage.database import create_db_engine, init_db
from golearning.storage.models import LessonRow, ModuleRow, SectionRow, TaskRow

logger = get_logger(__name__)


class ContentStore(Protocol):
    """Operations the pipeline needs from a relational store."""

    def create_module(self, module: ModuleInfo) -> ModuleInfo:
        ...

    def create_lesson(self, lesson: LessonRecord) -> LessonRecord:
        ...

    def delete_sections_by_lesson_id(self, lesson_id: int) -> int:
        ...

    def delete_tasks_by_lesson_id(self, lesson_id: int) -> int:
        ...

    def create_section(self, lesson_id: int, section: Section) -> int:
        ...

    def create_task(self, lesson_id: int, task: Task) -> int:
        ...

    def transaction(self) -> ContextManager[object]:
        ...

    def savepoint(self) -> ContextManager[object]:
        ...


@dataclass
class StoredLesson:
    """A lesson read back with its sections and tasks."""

    record: LessonRecord
    module_slug: str
    sections: list[Section] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)


@dataclass
class ModuleSummary:
    """A module with its lesson count."""

    module: ModuleInfo
    lesson_count: int


class ContentRepository:
    """
    SQLAlchemy-backed content store.

    Calls made inside ``transaction()`` share its session and commit
    together; calls made outside run in their own short transaction.

    Example:
        >>> repo = ContentRepository.from_url("sqlite://")
        >>> with repo.transaction():
        ...     lesson = repo.create_lesson(record)
        ...     repo.create_section(lesson.id, section)
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        self._active: Optional[Session] = None

    @classmethod
    def from_url(cls, url: Optional[str] = None, create_schema: bool = True) -> "ContentRepository":
        """Create a repository on a new engine, creating tables if asked."""
        engine = create_db_engine(url)
        if create_schema:
            init_db(engine)
        return cls(engine)

    # ─────────────────────────────────────────────────────────────────────
    # Units of Work
    # ─────────────────────────────────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Open a unit of work that commits on success and rolls back on error.

        Nested calls become savepoints of the outer transaction.
        """
        if self._active is not None:
            with self.savepoint() as session:
                yield session
            return

        session = self._session_factory()
        self._active = session
        try:
            with session.begin():
                yield session
        except SQLAlchemyError as e:
            raise PersistenceError(f"transaction failed: {e}") from e
        finally:
            self._active = None
            session.close()

    @contextmanager
    def savepoint(self) -> Iterator[Session]:
        """
        Open a savepoint inside the current transaction.

        A failure rolls back only the work done since the savepoint.
        """
        if self._active is None:
            raise PersistenceError("savepoint() requires an open transaction")

        session = self._active
        try:
            with session.begin_nested():
                yield session
        except SQLAlchemyError as e:
            raise PersistenceError(f"savepoint failed: {e}") from e

    @contextmanager
    def _session_scope(self, operation: str) -> Iterator[Session]:
        try:
            if self._active is not None:
                yield self._active
            else:
                with self.transaction() as session:
                    yield session
        except SQLAlchemyError as e:
            raise PersistenceError(f"{operation} failed: {e}") from e

    # ─────────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────────

    def create_module(self, module: ModuleInfo) -> ModuleInfo:
        """Insert or update a module by slug and set ``module.id``."""
        with self._session_scope(f"create module {module.slug}") as session:
            row = session.scalar(select(ModuleRow).where(ModuleRow.slug == module.slug))
            if row is None:
                row = ModuleRow(slug=module.slug)
                session.add(row)
            row.title = module.title
            row.order_index = module.order_index
            session.flush()
            module.id = row.id

        return module

    def create_lesson(self, lesson: LessonRecord) -> LessonRecord:
        """Insert or update a lesson by slug and set ``lesson.id``."""
        with self._session_scope(f"create lesson {lesson.slug}") as session:
            row = session.scalar(select(LessonRow).where(LessonRow.slug == lesson.slug))
            if row is None:
                row = LessonRow(slug=lesson.slug)
                session.add(row)
            row.module_id = lesson.module_id
            row.title = lesson.title
            row.order_index = lesson.order_index
            row.source_url = lesson.source_url
            row.body_md = lesson.body_md
            row.reading_time_min = lesson.reading_time_min
            row.updated_at = utc_now()
            session.flush()
            lesson.id = row.id
            lesson.updated_at = row.updated_at

        return lesson

    def delete_sections_by_lesson_id(self, lesson_id: int) -> int:
        with self._session_scope(f"delete sections of lesson {lesson_id}") as session:
            result = session.execute(delete(SectionRow).where(SectionRow.lesson_id == lesson_id))
            return result.rowcount or 0

    def delete_tasks_by_lesson_id(self, lesson_id: int) -> int:
        with self._session_scope(f"delete tasks of lesson {lesson_id}") as session:
            result = session.execute(delete(TaskRow).where(TaskRow.lesson_id == lesson_id))
            return result.rowcount or 0

    def create_section(self, lesson_id: int, section: Section) -> int:
        with self._session_scope(f"create {section.kind} section") as session:
            row = SectionRow(
                lesson_id=lesson_id,
                kind=str(section.kind),
                title=section.title,
                body_md=section.body_md,
                order_index=section.order_index,
            )
            session.add(row)
            session.flush()
            return row.id

    def create_task(self, lesson_id: int, task: Task) -> int:
        with self._session_scope(f"create task '{task.title}'") as session:
            row = TaskRow(
                lesson_id=lesson_id,
                title=task.title,
                prompt_md=task.prompt_md,
                starter_code=task.starter_code,
                tests_code=task.tests_code,
                points=task.points,
                order_index=task.order_index,
            )
            session.add(row)
            session.flush()
            return row.id

    # ─────────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────────

    def list_modules(self) -> list[ModuleSummary]:
        """All modules in order, with their lesson counts."""
        with self._session_scope("list modules") as session:
            stmt = (
                select(ModuleRow, func.count(LessonRow.id))
                .outerjoin(LessonRow, LessonRow.module_id == ModuleRow.id)
                .group_by(ModuleRow.id)
                .order_by(ModuleRow.order_index, ModuleRow.id)
            )
            return [
                ModuleSummary(
                    module=ModuleInfo(
                        id=row.id, slug=row.slug, title=row.title, order_index=row.order_index
                    ),
                    lesson_count=count,
                )
                for row, count in session.execute(stmt).all()
            ]

    def count_lessons(self) -> int:
        with self._session_scope("count lessons") as session:
            return session.scalar(select(func.count(LessonRow.id))) or 0

    def get_lesson_by_slug(self, slug: str) -> Optional[StoredLesson]:
        """Read one lesson with its sections and tasks, or None."""
        with self._session_scope(f"get lesson {slug}") as session:
            row = session.scalar(select(LessonRow).where(LessonRow.slug == slug))
            if row is None:
                return None

            return StoredLesson(
                record=LessonRecord(
                    id=row.id,
                    module_id=row.module_id,
                    slug=row.slug,
                    title=row.title,
                    order_index=row.order_index,
                    source_url=row.source_url or "",
                    body_md=row.body_md,
                    reading_time_min=row.reading_time_min,
                    updated_at=row.updated_at,
                ),
                module_slug=row.module.slug,
                sections=[
                    Section(kind=s.kind, title=s.title, body_md=s.body_md, order_index=s.order_index)
                    for s in row.sections
                ],
                tasks=[
                    Task(
                        title=t.title,
                        prompt_md=t.prompt_md,
                        starter_code=t.starter_code,
                        tests_code=t.tests_code,
                        points=t.points,
                        order_index=t.order_index,
                    )
                    for t in row.tasks
                ],
            )

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self.engine.dispose()
