import os
from pathlib import Path

# Settings are read at import time, so the environment is prepared first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RAZORPAY_KEY_SECRET"] = "test-razorpay-secret"
os.environ["AUTH_BRIDGE_SECRET"] = "test-bridge-secret"
os.environ["TEXT_GENERATION_API_KEY"] = ""
os.environ["POLICIES_PATH"] = str(Path(__file__).resolve().parent.parent / "policies.yaml")

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from src.codeprep.db.session import engine_options, get_db
from src.codeprep.main import app
from src.codeprep.models import Base, Problem, User
from src.codeprep.services.auth_service import auth_service
from src.codeprep.services.conversation_store import ConversationStore, get_conversation_store
from src.codeprep.services.evaluator import EvaluationResult, get_evaluator
from src.codeprep.services.text_generation import TextGenerationClient, get_text_generation_client

PASSWORD = "password123"
PASSWORD_HASH = auth_service.hash_password(PASSWORD)

TWO_SUM = {
    "title": "Two Sum",
    "difficulty": "easy",
    "description": [{"type": "p", "children": [{"text": "Return indices of the two numbers adding up to target."}]}],
    "tags": ["Array", "Hash Table"],
    "companies": ["Amazon"],
    "testCases": [{"input": "[2,7,11,15], 9", "output": "[0,1]"}],
}


class StubEvaluator:
    """Evaluator returning a preset result and recording what it was asked."""

    def __init__(self):
        self.result = EvaluationResult(
            status="accepted",
            runtime="0.012",
            memory="3400",
            test_cases_passed=1,
            total_test_cases=1,
        )
        self.error = None
        self.requests = []

    async def evaluate(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
async def engine(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, **engine_options(url))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def evaluator():
    return StubEvaluator()


@pytest.fixture
def redis():
    return fakeredis.FakeAsyncRedis(decode_responses=True)


@pytest.fixture
def conversation_store(redis):
    return ConversationStore(redis, ttl_seconds=60, max_turns=20)


@pytest.fixture
def text_generation():
    # No key: every completion fails and callers use their fallbacks
    return TextGenerationClient("https://llm.test/v1/chat/completions", api_key=None, model="test-model")


@pytest.fixture
async def client(session_factory, evaluator, text_generation, conversation_store):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_evaluator] = lambda: evaluator
    app.dependency_overrides[get_text_generation_client] = lambda: text_generation
    app.dependency_overrides[get_conversation_store] = lambda: conversation_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    async def _make_user(username: str, *, role: str = "user", **fields) -> User:
        data = {
            "email": f"{username}@example.com",
            "username": username,
            "password": PASSWORD_HASH,
            "first_name": username.capitalize(),
            "last_name": "Tester",
            "role": role,
        }
        data.update(fields)
        async with session_factory() as session:
            user = User(**data)
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make_user


@pytest.fixture
def make_problem(session_factory):
    async def _make_problem(**fields) -> Problem:
        data = {
            "title": "Two Sum",
            "difficulty": "easy",
            "description": TWO_SUM["description"],
            "test_cases": TWO_SUM["testCases"],
        }
        data.update(fields)
        async with session_factory() as session:
            problem = Problem(**data)
            session.add(problem)
            await session.commit()
            await session.refresh(problem)
            return problem

    return _make_problem


@pytest.fixture
async def user_a(make_user):
    return await make_user("alice")


@pytest.fixture
async def user_b(make_user):
    return await make_user("bob")


@pytest.fixture
async def admin(make_user):
    return await make_user("admin", role="admin")


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {auth_service.create_access_token(user)}"}
