"""Pytest fixtures for service, task and API tests."""

import os
from collections.abc import Callable, Generator, Sequence

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LEGACY_MIGRATION_BATCH_DELAY_SECONDS", "0")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from vocab_stats.api.deps import get_db
from vocab_stats.db import models  # noqa: F401  # Imported for side effects
from vocab_stats.db.base import Base
from vocab_stats.db.models import Analysis, AnalysisWord, User, WordRecord
from vocab_stats.main import create_app


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
        db.close()


@pytest.fixture()
def task_session_factory(db_session):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=db_session.bind)
    sessions: list = []

    def create_session():
        session = factory()
        sessions.append(session)
        return session

    try:
        yield create_session
    finally:
        for session in sessions:
            session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session) -> Callable[..., User]:
    counter = {"n": 0}

    def factory(email: str | None = None) -> User:
        counter["n"] += 1
        user = User(email=email or f"learner{counter['n']}@example.com", is_active=True)
        db_session.add(user)
        db_session.commit()
        return user

    return factory


@pytest.fixture()
def add_words(db_session) -> Callable[..., list[WordRecord]]:
    """Create one word per status (numeric or legacy tag) for ``owner``."""

    def factory(owner: User, statuses: Sequence[int | str]) -> list[WordRecord]:
        words = [
            WordRecord(owner_id=owner.id, word=f"word-{index}", status=status)
            for index, status in enumerate(statuses)
        ]
        db_session.add_all(words)
        db_session.commit()
        return words

    return factory


@pytest.fixture()
def make_analysis(db_session) -> Callable[..., Analysis]:
    def factory(
        owner: User,
        words: Sequence[WordRecord],
        word_stats: dict[str, int] | None = None,
    ) -> Analysis:
        analysis = Analysis(owner_id=owner.id, title="Chapter one", word_stats=word_stats)
        db_session.add(analysis)
        db_session.flush()
        db_session.add_all(
            AnalysisWord(analysis_id=analysis.id, word_id=word.id) for word in words
        )
        db_session.commit()
        return analysis

    return factory


@pytest.fixture()
def learner(make_user) -> User:
    return make_user("learner@example.com")
