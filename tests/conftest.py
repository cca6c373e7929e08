import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ["CACHE_ENABLED"] = "false"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


@pytest.fixture
def session_factory(tmp_path):
    from app.database import Base
    import app.models  # noqa: F401

    # File-backed so several sessions can see each other's commits
    engine = create_engine(
        f"sqlite:///{tmp_path / 'quiz.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def test_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def user(test_db):
    from app.models import User
    user = User(id=1, username="default_user")
    test_db.add(user)
    test_db.commit()
    test_db.refresh(user)
    return user


@pytest.fixture
def topic(test_db):
    from app.models import Topic
    topic = Topic(name="Databases")
    test_db.add(topic)
    test_db.commit()
    test_db.refresh(topic)
    return topic


@pytest.fixture
def make_question(test_db):
    from app.models import Question, QuestionStatus, QuestionType

    def _make(topic, status=QuestionStatus.APPROVED, question_type=QuestionType.MULTIPLE_CHOICE,
              answer_key="A", text=None):
        options = {"A": "Option A", "B": "Option B", "C": "Option C", "D": "Option D"}
        question = Question(
            topic_id=topic.id,
            question_text=text or "Which option is correct?",
            question_type=question_type,
            answer_key=answer_key,
            options=options if question_type == QuestionType.MULTIPLE_CHOICE else None,
            difficulty="Medium",
            status=status,
        )
        test_db.add(question)
        test_db.commit()
        test_db.refresh(question)
        return question

    return _make


@pytest.fixture
async def async_client(test_db):
    from httpx import AsyncClient, ASGITransport
    from app.main import app
    from app.database import get_db

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
