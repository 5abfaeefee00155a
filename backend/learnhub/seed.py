from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Dict

from sqlalchemy.orm import Session

from .db import generate_id
from .models import DifficultyLevel, LearningTask, Priority, ProgressLog, Role, TaskStatus, User
from .routers.auth import hash_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

DEMO_USERS = [
	("educator@example.com", "Dr. Sarah Johnson", Role.EDUCATOR),
	("student1@example.com", "Alex Chen", Role.STUDENT),
	("student2@example.com", "Maria Rodriguez", Role.STUDENT),
]


def _upsert_user(db: Session, email: str, name: str, role: Role) -> User:
	user = db.query(User).filter(User.email == email).first()
	if user is None:
		user = User(id=generate_id("user"), name=name, email=email, password=hash_password(DEMO_PASSWORD), role=role.value)
		db.add(user)
	return user


def seed_demo_data(db: Session) -> Dict[str, int]:
	"""Create demo users and tasks. Running it twice changes nothing."""
	users = {email: _upsert_user(db, email, name, role) for email, name, role in DEMO_USERS}
	db.flush()
	educator = users["educator@example.com"]
	student1 = users["student1@example.com"]
	student2 = users["student2@example.com"]
	now = datetime.utcnow()

	demo_tasks = [
		dict(
			title="Learn React Fundamentals",
			description="Master the basics of React including components, props, state, and hooks",
			priority=Priority.HIGH, status=TaskStatus.TODO, due_date=now + timedelta(days=7),
			estimated_time=480, tags=["react", "javascript", "frontend"],
			difficulty_level=DifficultyLevel.BEGINNER, assignee_id=student1.id,
		),
		dict(
			title="Database Design Principles",
			description="Learn about normalization, relationships, and best practices in database design",
			priority=Priority.MEDIUM, status=TaskStatus.IN_PROGRESS, due_date=now + timedelta(days=14),
			estimated_time=360, tags=["database", "sql", "design"],
			difficulty_level=DifficultyLevel.INTERMEDIATE, assignee_id=student2.id,
		),
		dict(
			title="Effective Study Habits",
			description="Set up a weekly study routine and reflect on what works",
			priority=Priority.LOW, status=TaskStatus.TODO, due_date=None,
			estimated_time=60, tags=["habits"],
			difficulty_level=DifficultyLevel.BEGINNER, assignee_id=None,
		),
		dict(
			title="Distributed Systems Reading Group",
			description="Read and summarise the consensus chapter",
			priority=Priority.HIGH, status=TaskStatus.TODO, due_date=now + timedelta(days=10),
			estimated_time=600, tags=["distributed-systems", "consensus"],
			difficulty_level=DifficultyLevel.ADVANCED, assignee_id=None,
		),
	]

	created_tasks = 0
	for fields in demo_tasks:
		existing = db.query(LearningTask).filter(LearningTask.title == fields["title"], LearningTask.creator_id == educator.id).first()
		if existing is not None:
			continue
		tags = fields.pop("tags")
		task = LearningTask(
			id=generate_id("task"),
			creator_id=educator.id,
			title=fields["title"],
			description=fields["description"],
			priority=fields["priority"].value,
			status=fields["status"].value,
			due_date=fields["due_date"],
			estimated_time=fields["estimated_time"],
			difficulty_level=fields["difficulty_level"].value,
			assignee_id=fields["assignee_id"],
		)
		task.tags = tags
		db.add(task)
		created_tasks += 1
		if task.assignee_id == student2.id:
			db.add(ProgressLog(
				id=generate_id("progress"), task_id=task.id, user_id=student2.id, progress=40,
				notes="Started with basic database concepts. Need to review ER diagrams.",
				time_spent=120, created_at=now - timedelta(days=2),
			))
			db.add(ProgressLog(
				id=generate_id("progress"), task_id=task.id, user_id=student2.id, progress=60,
				notes="Completed the normalization section. Working on relationships now.",
				time_spent=180, created_at=now,
			))

	db.commit()
	logger.info("demo seed complete: %d users, %d new tasks", len(users), created_tasks)
	return {"users": len(users), "tasks": created_tasks}
