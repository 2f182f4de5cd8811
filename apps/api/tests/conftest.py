"""
Shared pytest fixtures.

The database is replaced by an in-memory FakeSession through a dependency
override, and the corpus fetch is mocked, so tests run without Postgres.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, List, Tuple
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.dialects import postgresql

from app.core.db import get_db
from app.main import app
from app.models.comment import Comment
from app.models.research import Research
from app.services.similarity import CorpusRecord


# ---------------------------------------------------------------------------
# Corpus snapshot used across the suite
# ---------------------------------------------------------------------------

CORPUS = (
    CorpusRecord(
        title="Impact of AI on Education",
        abstract=(
            "This study examines how artificial intelligence tools change classroom "
            "teaching and student assessment practices in secondary schools."
        ),
        researcher="Jane Mwangi",
    ),
    CorpusRecord(
        title="Soil Fertility Management for Maize Production",
        abstract=(
            "We evaluate organic and inorganic fertiliser regimes on smallholder maize "
            "yields across three growing seasons."
        ),
        researcher="John Okello",
    ),
    CorpusRecord(
        title="Irrigation Scheduling in Semi-Arid Agriculture",
        abstract=(
            "Deficit irrigation schedules were compared for water productivity of "
            "sorghum under semi-arid conditions."
        ),
        researcher="Amina Yusuf",
    ),
    CorpusRecord(
        title="Climate Change Impact on Urban Farming",
        abstract=(
            "Rooftop and allotment growers were surveyed about heat stress, rainfall "
            "variability and adaptation measures."
        ),
        researcher="Peter Achieng",
    ),
)

AGRICULTURE_CORPUS = CORPUS[1:3]


# ---------------------------------------------------------------------------
# In-memory stand-in for AsyncSession
# ---------------------------------------------------------------------------

class FakeResult:
    def __init__(self, objs: List[Any]) -> None:
        self._objs = objs

    def scalars(self) -> "FakeResult":
        return self

    def all(self) -> List[Any]:
        return list(self._objs)


class FakeSession:
    """
    Supports the subset of AsyncSession the routers use.

    Rows live in one dict keyed by primary key. ``execute`` returns every row
    of the selected model without applying WHERE, ORDER BY or LIMIT, and
    ``scalar`` answers a COUNT over the selected table. Every statement is
    kept in ``statements`` so tests can assert on the SQL that was built.
    """

    def __init__(self) -> None:
        self.rows: Dict[uuid.UUID, Any] = {}
        self.statements: List[Any] = []
        self._new: List[Any] = []

    def add(self, obj: Any) -> None:
        self._new.append(obj)

    async def flush(self) -> None:
        now = datetime.now(timezone.utc)
        for obj in self._new:
            if obj.id is None:
                obj.id = uuid.uuid4()
            # Apply scalar column defaults the way an INSERT would
            for column in obj.__table__.columns:
                default = column.default
                if default is not None and default.is_scalar and getattr(obj, column.key) is None:
                    setattr(obj, column.key, default.arg)
            obj.created_at = obj.created_at or now
            self.rows[obj.id] = obj
        for obj in self.rows.values():
            obj.updated_at = now
        self._new.clear()

    async def refresh(self, obj: Any) -> None:
        return None

    async def get(self, model, ident):
        obj = self.rows.get(ident)
        return obj if isinstance(obj, model) else None

    async def execute(self, stmt) -> FakeResult:
        self.statements.append(stmt)
        model = stmt.column_descriptions[0]["entity"]
        return FakeResult([o for o in self.rows.values() if isinstance(o, model)])

    async def scalar(self, stmt) -> int:
        self.statements.append(stmt)
        tables = set(stmt.get_final_froms())
        return sum(1 for o in self.rows.values() if o.__table__ in tables)

    async def delete(self, obj: Any) -> None:
        self.rows.pop(obj.id, None)

    async def commit(self) -> None:
        await self.flush()

    async def rollback(self) -> None:
        self._new.clear()


def compile_sql(stmt) -> Tuple[str, List[Any]]:
    """Render a statement for Postgres; returns (SQL text, bound values)."""
    compiled = stmt.compile(dialect=postgresql.dialect())
    return str(compiled), list(compiled.params.values())


def make_research(**overrides) -> Research:
    now = datetime.now(timezone.utc)
    fields = dict(
        id=uuid.uuid4(),
        title="Impact of AI on Education",
        abstract=CORPUS[0].abstract,
        researcher="Jane Mwangi",
        category="Education",
        year="2024",
        institution="Makerere University",
        school="School of Education",
        status="Draft",
        progress_status="Ongoing",
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Research(**fields)


def make_comment(research: Research, **overrides) -> Comment:
    now = datetime.now(timezone.utc)
    fields = dict(
        id=uuid.uuid4(),
        research_id=research.id,
        parent_id=None,
        author_id=uuid.uuid4(),
        identifier="Dr. Achieng",
        content="Please expand the sampling section.",
        is_edited=False,
        is_deleted=False,
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Comment(**fields)


# ---------------------------------------------------------------------------
# App client
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_db() -> FakeSession:
    return FakeSession()


@pytest_asyncio.fixture
async def client(fake_db: FakeSession) -> AsyncGenerator[AsyncClient, None]:
    async def _override_get_db():
        yield fake_db

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Corpus mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_corpus():
    with patch(
        "app.services.corpus.fetch_corpus",
        new_callable=AsyncMock,
        return_value=CORPUS,
    ) as m:
        yield m


@pytest.fixture
def mock_empty_corpus():
    with patch(
        "app.services.corpus.fetch_corpus",
        new_callable=AsyncMock,
        return_value=(),
    ) as m:
        yield m
