from functools import lru_cache

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from learnhub.db import Base, generate_id, get_db
from learnhub.insights import FallbackInsightGenerator, get_insight_generator
from learnhub.main import app
from learnhub.models import DifficultyLevel, LearningTask, Role, TaskStatus, User
from learnhub.routers.auth import generate_token, hash_password

PASSWORD = "password123"


@lru_cache(maxsize=1)
def _password_hash() -> str:
	# bcrypt at 12 rounds is slow; hash the shared test password once
	return hash_password(PASSWORD)


@pytest.fixture
def engine():
	engine = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
		future=True,
	)
	Base.metadata.create_all(bind=engine)
	yield engine
	engine.dispose()


@pytest.fixture
def session_factory(engine):
	return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db_session(session_factory):
	session = session_factory()
	yield session
	session.close()


@pytest.fixture
def client(session_factory):
	def override_get_db():
		db = session_factory()
		try:
			yield db
		finally:
			db.close()

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_insight_generator] = FallbackInsightGenerator
	test_client = TestClient(app, raise_server_exceptions=False)
	yield test_client
	app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
	counter = {"n": 0}

	def _make(role: Role = Role.STUDENT, *, email: str | None = None, name: str | None = None) -> User:
		counter["n"] += 1
		user = User(
			id=generate_id("user"),
			name=name or f"{role.value.title()} {counter['n']}",
			email=email or f"{role.value.lower()}{counter['n']}@example.com",
			password=_password_hash(),
			role=role.value,
		)
		db_session.add(user)
		db_session.commit()
		return user

	return _make


@pytest.fixture
def make_task(db_session):
	def _make(
		creator: User,
		*,
		assignee: User | None = None,
		title: str = "Learn SQL joins",
		status: TaskStatus = TaskStatus.TODO,
		estimated_time: int | None = None,
		difficulty: DifficultyLevel = DifficultyLevel.INTERMEDIATE,
		tags: list[str] | None = None,
	) -> LearningTask:
		task = LearningTask(
			id=generate_id("task"),
			title=title,
			status=status.value,
			estimated_time=estimated_time,
			difficulty_level=difficulty.value,
			creator_id=creator.id,
			assignee_id=assignee.id if assignee else None,
		)
		task.tags = tags or []
		db_session.add(task)
		db_session.commit()
		return task

	return _make


def auth_headers(user: User) -> dict:
	return {"Authorization": f"Bearer {generate_token(user.id)}"}
