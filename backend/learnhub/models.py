from __future__ import annotations
import enum
import json
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, Column, String, DateTime, Integer, Float, Text, ForeignKey, Index
from .db import Base


class Role(str, enum.Enum):
	STUDENT = "STUDENT"
	EDUCATOR = "EDUCATOR"
	ADMIN = "ADMIN"


class Priority(str, enum.Enum):
	LOW = "LOW"
	MEDIUM = "MEDIUM"
	HIGH = "HIGH"
	URGENT = "URGENT"


class TaskStatus(str, enum.Enum):
	TODO = "TODO"
	IN_PROGRESS = "IN_PROGRESS"
	DONE = "DONE"
	CANCELLED = "CANCELLED"


class DifficultyLevel(str, enum.Enum):
	BEGINNER = "BEGINNER"
	INTERMEDIATE = "INTERMEDIATE"
	ADVANCED = "ADVANCED"


class InsightType(str, enum.Enum):
	TASK_BREAKDOWN = "TASK_BREAKDOWN"
	PROGRESS_SUMMARY = "PROGRESS_SUMMARY"
	STUDY_SUGGESTION = "STUDY_SUGGESTION"
	PERFORMANCE_ANALYSIS = "PERFORMANCE_ANALYSIS"


class RowDecodeError(Exception):
	"""A JSON text column did not hold the value shape its model expects."""

	def __init__(self, table: str, column: str, row_id: str | None, reason: str) -> None:
		super().__init__(f"{table}.{column} for row {row_id!r} could not be decoded: {reason}")
		self.table = table
		self.column = column
		self.row_id = row_id


def decode_json_column(raw: str | None, *, expect: type, table: str, column: str, row_id: str | None) -> Any:
	if raw is None:
		return None
	try:
		value = json.loads(raw)
	except ValueError as exc:
		raise RowDecodeError(table, column, row_id, str(exc)) from exc
	if not isinstance(value, expect):
		raise RowDecodeError(table, column, row_id, f"expected {expect.__name__}, got {type(value).__name__}")
	return value


class User(Base):
	__tablename__ = "users"
	id = Column(String(64), primary_key=True)
	name = Column(String(255), nullable=True)
	email = Column(String(255), nullable=False, unique=True, index=True)
	password = Column(String(255), nullable=True)
	email_verified = Column(Boolean, default=False, nullable=False)
	role = Column(String(16), default=Role.STUDENT.value, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
	archived_at = Column(DateTime, nullable=True)


class LearningTask(Base):
	__tablename__ = "learning_tasks"
	id = Column(String(64), primary_key=True)
	title = Column(String(500), nullable=False)
	description = Column(Text, nullable=True)
	priority = Column(String(16), default=Priority.MEDIUM.value, nullable=False)
	status = Column(String(16), default=TaskStatus.TODO.value, nullable=False, index=True)
	due_date = Column(DateTime, nullable=True)
	estimated_time = Column(Integer, nullable=True)  # minutes
	actual_time = Column(Integer, nullable=True)  # minutes
	tags_json = Column("tags", Text, default="[]", nullable=False)
	difficulty_level = Column(String(16), default=DifficultyLevel.INTERMEDIATE.value, nullable=False)
	creator_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
	assignee_id = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
	parent_task_id = Column(String(64), ForeignKey("learning_tasks.id"), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
	archived_at = Column(DateTime, nullable=True)

	@property
	def tags(self) -> list[str]:
		value = decode_json_column(self.tags_json, expect=list, table=self.__tablename__, column="tags", row_id=self.id)
		return value if value is not None else []

	@tags.setter
	def tags(self, value: list[str] | None) -> None:
		self.tags_json = json.dumps(list(value or []))


class ProgressLog(Base):
	__tablename__ = "progress_logs"
	id = Column(String(64), primary_key=True)
	task_id = Column(String(64), ForeignKey("learning_tasks.id"), nullable=False, index=True)
	user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
	progress = Column(Integer, nullable=False)
	notes = Column(Text, nullable=True)
	time_spent = Column(Integer, nullable=True)  # minutes
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	archived_at = Column(DateTime, nullable=True)


class AIInsight(Base):
	__tablename__ = "ai_insights"
	id = Column(String(64), primary_key=True)
	user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
	task_id = Column(String(64), ForeignKey("learning_tasks.id"), nullable=True)
	insight_type = Column(String(32), nullable=False)
	title = Column(String(500), nullable=False)
	content_json = Column("content", Text, nullable=False)
	metadata_json = Column("metadata", Text, nullable=True)
	confidence_score = Column(Float, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	archived_at = Column(DateTime, nullable=True)

	@property
	def content(self) -> dict:
		return decode_json_column(self.content_json, expect=dict, table=self.__tablename__, column="content", row_id=self.id)

	@content.setter
	def content(self, value: dict) -> None:
		self.content_json = json.dumps(value)

	@property
	def insight_metadata(self) -> dict | None:
		return decode_json_column(self.metadata_json, expect=dict, table=self.__tablename__, column="metadata", row_id=self.id)

	@insight_metadata.setter
	def insight_metadata(self, value: dict | None) -> None:
		self.metadata_json = json.dumps(value or {})


class AIRateLimit(Base):
	__tablename__ = "ai_rate_limits"
	id = Column(String(64), primary_key=True)
	user_id = Column(String(64), ForeignKey("users.id"), nullable=False)
	endpoint = Column(String(64), nullable=False)
	request_count = Column(Integer, default=1, nullable=False)
	window_start = Column(DateTime, default=datetime.utcnow, nullable=False)
	__table_args__ = (Index("ix_ai_rate_limits_user_endpoint", "user_id", "endpoint", "window_start"),)
