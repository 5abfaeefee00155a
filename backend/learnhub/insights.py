from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import fallback
from .db import generate_id
from .gemini_client import GeminiClient, GeminiError, extract_json_object
from .models import AIInsight, DifficultyLevel, InsightType, LearningTask, ProgressLog, TaskStatus
from .settings import settings

logger = logging.getLogger(__name__)

PROMPT_VERSION = "1.0"
FALLBACK_MODEL = "fallback"

BREAKDOWN_CONFIDENCE = 0.85
SUMMARY_CONFIDENCE = 0.90
SUGGESTION_CONFIDENCE = 0.80


class GeneratedInsight(BaseModel):
	content: Dict[str, Any]
	model: str


class ProgressStats(BaseModel):
	total_tasks: int = 0
	completed_tasks: int = 0
	in_progress_tasks: int = 0
	average_progress: float = 0.0
	total_time_spent: int = 0

	@classmethod
	def from_rows(cls, tasks: Sequence[LearningTask], logs: Sequence[ProgressLog]) -> "ProgressStats":
		average = sum(log.progress for log in logs) / len(logs) if logs else 0.0
		return cls(
			total_tasks=len(tasks),
			completed_tasks=sum(1 for t in tasks if t.status == TaskStatus.DONE.value),
			in_progress_tasks=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS.value),
			average_progress=average,
			total_time_spent=sum(log.time_spent or 0 for log in logs),
		)


class FallbackInsightGenerator:
	"""Offline generator: the deterministic formulas from :mod:`fallback`."""

	model_name = FALLBACK_MODEL

	async def task_breakdown(self, task: LearningTask) -> GeneratedInsight:
		return GeneratedInsight(content=fallback.task_breakdown(task.title, task.estimated_time), model=FALLBACK_MODEL)

	async def progress_summary(self, stats: ProgressStats) -> GeneratedInsight:
		content = fallback.progress_summary(
			stats.total_tasks,
			stats.completed_tasks,
			stats.average_progress,
			stats.total_time_spent,
		)
		return GeneratedInsight(content=content, model=FALLBACK_MODEL)

	async def study_suggestions(self, role: str, tasks: Sequence[LearningTask]) -> GeneratedInsight:
		active = sum(1 for t in tasks if t.status != TaskStatus.DONE.value)
		has_advanced = any(t.difficulty_level == DifficultyLevel.ADVANCED.value for t in tasks)
		return GeneratedInsight(content=fallback.study_suggestions(role, active, has_advanced), model=FALLBACK_MODEL)


class GeminiInsightGenerator(FallbackInsightGenerator):
	"""Asks Gemini for each insight and drops back to the formulas on any failure."""

	def __init__(self, client_factory: Optional[Callable[[], GeminiClient]] = None) -> None:
		self._client_factory = client_factory or GeminiClient
		self.model_name = settings.gemini_model

	async def _ask(self, prompt: str, required_key: str) -> Optional[Dict[str, Any]]:
		try:
			client = self._client_factory()
		except ValueError as err:
			logger.warning("Gemini unavailable, using fallback insight: %s", err)
			return None
		try:
			data = extract_json_object(await client.generate(prompt))
		except GeminiError as err:
			logger.warning("Gemini insight failed, using fallback insight: %s", err)
			return None
		finally:
			await client.aclose()
		if required_key not in data:
			logger.warning("Gemini insight missing %r, using fallback insight", required_key)
			return None
		return data

	async def task_breakdown(self, task: LearningTask) -> GeneratedInsight:
		prompt = (
			"Break down this learning task into 3-7 smaller, sequenced subtasks.\n"
			f"Title: {task.title}\n"
			f"Description: {task.description or 'No description provided'}\n"
			f"Estimated time (minutes): {task.estimated_time or fallback.DEFAULT_TASK_MINUTES}\n"
			"Return ONLY a JSON object with keys: subtasks (array of {title, description, estimatedTime, "
			"learningObjectives, resources, successCriteria}), totalEstimatedTime, studyTips, prerequisites."
		)
		data = await self._ask(prompt, "subtasks")
		if data is None:
			return await super().task_breakdown(task)
		return GeneratedInsight(content=data, model=self.model_name)

	async def progress_summary(self, stats: ProgressStats) -> GeneratedInsight:
		prompt = (
			"Analyze this learner's progress and give constructive, encouraging feedback.\n"
			f"Statistics: {stats.model_dump_json()}\n"
			"Return ONLY a JSON object with keys: overallScore (0-100), progressTrend, strengths, "
			"areasForImprovement, recommendations (array of {category, suggestion, priority}), "
			"motivationalMessage, nextSteps."
		)
		data = await self._ask(prompt, "overallScore")
		if data is None:
			return await super().progress_summary(stats)
		return GeneratedInsight(content=data, model=self.model_name)

	async def study_suggestions(self, role: str, tasks: Sequence[LearningTask]) -> GeneratedInsight:
		summary = [
			{"title": t.title, "status": t.status, "difficulty": t.difficulty_level, "priority": t.priority}
			for t in tasks
		]
		prompt = (
			f"Suggest a personalised study plan for a {role.lower()} working on these tasks: {summary}\n"
			"Return ONLY a JSON object with keys: studySchedule ({recommendedDailyHours, bestStudyTimes, "
			"breakIntervals}), techniques (array of {name, description, bestFor}), resources, timeManagementTips."
		)
		data = await self._ask(prompt, "studySchedule")
		if data is None:
			return await super().study_suggestions(role, tasks)
		return GeneratedInsight(content=data, model=self.model_name)


def get_insight_generator() -> FallbackInsightGenerator:
	if settings.ai_provider.lower() == "gemini" and settings.gemini_api_key:
		return GeminiInsightGenerator()
	return FallbackInsightGenerator()


def store_insight(
	db: Session,
	*,
	user_id: str,
	insight_type: InsightType,
	title: str,
	generated: GeneratedInsight,
	confidence: float,
	task_id: Optional[str] = None,
	extra_metadata: Optional[Dict[str, Any]] = None,
) -> Optional[AIInsight]:
	"""Persist a generated insight; a storage failure is logged and swallowed."""
	metadata: Dict[str, Any] = {
		"model": generated.model,
		"promptVersion": PROMPT_VERSION,
		"generatedAt": datetime.now(timezone.utc).isoformat(),
	}
	metadata.update(extra_metadata or {})
	row = AIInsight(
		id=generate_id("insight"),
		user_id=user_id,
		task_id=task_id,
		insight_type=InsightType(insight_type).value,
		title=title,
		confidence_score=confidence,
	)
	row.content = generated.content
	row.insight_metadata = metadata
	try:
		db.add(row)
		db.commit()
	except SQLAlchemyError as err:
		db.rollback()
		logger.warning("Failed to save AI insight for user %s: %s", user_id, err)
		return None
	return row


def list_insights(db: Session, user_id: str, insight_type: Optional[InsightType] = None, limit: int = 20) -> List[AIInsight]:
	q = db.query(AIInsight).filter(AIInsight.user_id == user_id, AIInsight.archived_at.is_(None))
	if insight_type is not None:
		q = q.filter(AIInsight.insight_type == InsightType(insight_type).value)
	return q.order_by(AIInsight.created_at.desc(), AIInsight.id.desc()).limit(limit).all()
