"""Request and response bodies.

Everything on the wire is camelCase; Python code uses snake_case field names
and the alias generator maps between the two.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import AIInsight, DifficultyLevel, LearningTask, Priority, ProgressLog, Role, TaskStatus, User


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	def dump(self) -> Dict[str, Any]:
		return self.model_dump(by_alias=True, mode="json")


def ok(data: Any = None, *, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
	body: Dict[str, Any] = {"success": True}
	if data is not None:
		body["data"] = data
	if message:
		body["message"] = message
	body.update(extra)
	return body


# ---- auth ----

class LoginRequest(CamelModel):
	email: str = Field(pattern=EMAIL_PATTERN)
	password: str = Field(min_length=1)


class RegisterRequest(CamelModel):
	name: str = Field(min_length=1, max_length=255)
	email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
	password: str = Field(min_length=8)
	role: Role = Role.STUDENT


class AuthUser(CamelModel):
	id: str
	name: Optional[str] = None
	email: str
	role: Role
	email_verified: bool = False

	@classmethod
	def from_row(cls, row: User) -> "AuthUser":
		return cls(id=row.id, name=row.name, email=row.email, role=Role(row.role), email_verified=bool(row.email_verified))


# ---- tasks ----

class TaskCreate(CamelModel):
	title: str = Field(min_length=1, max_length=500)
	description: Optional[str] = None
	priority: Priority = Priority.MEDIUM
	due_date: Optional[datetime] = None
	estimated_time: Optional[int] = Field(default=None, ge=1, le=10080)  # at most one week, in minutes
	tags: List[str] = Field(default_factory=list)
	difficulty_level: DifficultyLevel = DifficultyLevel.INTERMEDIATE
	assignee_id: Optional[str] = None
	parent_task_id: Optional[str] = None


class TaskUpdate(CamelModel):
	title: Optional[str] = Field(default=None, min_length=1, max_length=500)
	description: Optional[str] = None
	priority: Optional[Priority] = None
	status: Optional[TaskStatus] = None
	due_date: Optional[datetime] = None
	assignee_id: Optional[str] = None
	estimated_time: Optional[int] = Field(default=None, ge=1, le=10080)
	actual_time: Optional[int] = Field(default=None, ge=0)
	tags: Optional[List[str]] = None
	difficulty_level: Optional[DifficultyLevel] = None


class TaskOut(CamelModel):
	id: str
	title: str
	description: Optional[str] = None
	priority: Priority
	status: TaskStatus
	due_date: Optional[datetime] = None
	estimated_time: Optional[int] = None
	actual_time: Optional[int] = None
	tags: List[str]
	difficulty_level: DifficultyLevel
	creator_id: str
	assignee_id: Optional[str] = None
	parent_task_id: Optional[str] = None
	created_at: datetime
	updated_at: datetime
	archived_at: Optional[datetime] = None

	@classmethod
	def from_row(cls, row: LearningTask) -> "TaskOut":
		return cls(
			id=row.id,
			title=row.title,
			description=row.description,
			priority=Priority(row.priority),
			status=TaskStatus(row.status),
			due_date=row.due_date,
			estimated_time=row.estimated_time,
			actual_time=row.actual_time,
			tags=row.tags,
			difficulty_level=DifficultyLevel(row.difficulty_level),
			creator_id=row.creator_id,
			assignee_id=row.assignee_id,
			parent_task_id=row.parent_task_id,
			created_at=row.created_at,
			updated_at=row.updated_at,
			archived_at=row.archived_at,
		)


# ---- progress ----

class ProgressCreate(CamelModel):
	progress_percentage: int = Field(ge=0, le=100)
	notes: Optional[str] = None
	time_spent: Optional[int] = Field(default=None, ge=0)


class ProgressOut(CamelModel):
	id: str
	task_id: str
	user_id: str
	progress_percentage: int
	notes: Optional[str] = None
	time_spent: Optional[int] = None
	created_at: datetime
	updated_at: datetime
	archived_at: Optional[datetime] = None

	@classmethod
	def from_row(cls, row: ProgressLog) -> "ProgressOut":
		# progress logs are never updated, so updatedAt mirrors createdAt
		return cls(
			id=row.id,
			task_id=row.task_id,
			user_id=row.user_id,
			progress_percentage=row.progress,
			notes=row.notes,
			time_spent=row.time_spent,
			created_at=row.created_at,
			updated_at=row.created_at,
			archived_at=row.archived_at,
		)


# ---- insights ----

class TaskBreakdownRequest(CamelModel):
	task_id: str = Field(min_length=1)


class InsightOut(CamelModel):
	id: str
	user_id: str
	task_id: Optional[str] = None
	insight_type: str
	title: str
	content: Dict[str, Any]
	metadata: Optional[Dict[str, Any]] = None
	confidence_score: Optional[float] = None
	created_at: datetime
	updated_at: datetime
	archived_at: Optional[datetime] = None

	@classmethod
	def from_row(cls, row: AIInsight) -> "InsightOut":
		return cls(
			id=row.id,
			user_id=row.user_id,
			task_id=row.task_id,
			insight_type=row.insight_type,
			title=row.title,
			content=row.content,
			metadata=row.insight_metadata,
			confidence_score=row.confidence_score,
			created_at=row.created_at,
			updated_at=row.updated_at,
			archived_at=row.archived_at,
		)
