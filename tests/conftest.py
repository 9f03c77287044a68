"""Shared fixtures: in-memory model doubles and a fully wired app."""

from datetime import UTC, datetime, timedelta

import pytest

from snippetbox.app import App
from snippetbox.config import AppConfig
from snippetbox.middleware.session_stores import MemoryStore
from snippetbox.models.errors import DuplicateEmailError, InvalidCredentialsError, NoRecordError
from snippetbox.models.snippets import Snippet
from snippetbox.models.users import User
from snippetbox.web.application import build_app

CREATED = datetime(2024, 3, 17, 10, 15, tzinfo=UTC)

SNIPPET = Snippet(
    id=1,
    title="An old silent pond",
    content="An old silent pond...",
    created=CREATED,
    expires=CREATED + timedelta(days=365),
)

ALICE = User(
    id=1,
    name="Alice",
    email="alice@example.com",
    hashed_password="not-a-real-hash",
    created=CREATED,
)

ALICE_PASSWORD = "pa$$word"


class MockSnippets:
    def __init__(self) -> None:
        self.inserted: list[tuple[str, str, int]] = []

    async def insert(self, title: str, content: str, expires_days: int) -> int:
        self.inserted.append((title, content, expires_days))
        return 2

    async def get(self, snippet_id: int) -> Snippet:
        if snippet_id == 1:
            return SNIPPET
        raise NoRecordError(f"snippet {snippet_id}")

    async def latest(self) -> list[Snippet]:
        return [SNIPPET]


class MockUsers:
    def __init__(self) -> None:
        self.inserted: list[tuple[str, str, str]] = []
        self.password_updates: list[tuple[int, str]] = []
        self.deleted: set[int] = set()

    async def insert(self, name: str, email: str, password: str) -> None:
        if email == "dupe@example.com":
            raise DuplicateEmailError(email)
        self.inserted.append((name, email, password))

    async def authenticate(self, email: str, password: str) -> int:
        if email == ALICE.email and password == ALICE_PASSWORD:
            return ALICE.id
        raise InvalidCredentialsError(email)

    async def exists(self, user_id: int) -> bool:
        return user_id == ALICE.id and user_id not in self.deleted

    async def get(self, user_id: int) -> User:
        if user_id == ALICE.id:
            return ALICE
        raise NoRecordError(f"user {user_id}")

    async def password_update(self, user_id: int, current: str, new: str) -> None:
        if current != ALICE_PASSWORD:
            raise InvalidCredentialsError(f"user {user_id}")
        self.password_updates.append((user_id, new))


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(secret_key="test-secret-key")


@pytest.fixture
def snippets() -> MockSnippets:
    return MockSnippets()


@pytest.fixture
def users() -> MockUsers:
    return MockUsers()


@pytest.fixture
def session_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def app(config: AppConfig, snippets: MockSnippets, users: MockUsers, session_store: MemoryStore) -> App:
    return build_app(config, snippets=snippets, users=users, session_store=session_store)
