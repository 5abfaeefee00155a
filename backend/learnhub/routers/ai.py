from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .auth import AuthUser, require_user
from ..db import get_db
from ..insights import (
	BREAKDOWN_CONFIDENCE,
	SUGGESTION_CONFIDENCE,
	SUMMARY_CONFIDENCE,
	FallbackInsightGenerator,
	ProgressStats,
	get_insight_generator,
	list_insights,
	store_insight,
)
from ..models import InsightType, ProgressLog
from ..rate_limit import enforce_rate_limit
from ..schemas import InsightOut, TaskBreakdownRequest, ok
from ..visibility import find_tasks_for, get_visible_task


router = APIRouter(prefix="/api/ai", tags=["ai"])
logger = logging.getLogger(__name__)

SUMMARY_PERIOD_DAYS = 30
SUMMARY_TASK_LIMIT = 50
SUMMARY_LOG_LIMIT = 50
SUGGESTION_TASK_LIMIT = 20


@router.post("/task-breakdown")
async def task_breakdown(
	req: TaskBreakdownRequest,
	user: AuthUser = Depends(require_user),
	db: Session = Depends(get_db),
	generator: FallbackInsightGenerator = Depends(get_insight_generator),
):
	task = get_visible_task(db, user, req.task_id)
	if task is None:
		raise HTTPException(status_code=404, detail="Task not found or access denied")
	enforce_rate_limit(db, user.id, "task-breakdown")
	generated = await generator.task_breakdown(task)
	store_insight(
		db,
		user_id=user.id,
		task_id=task.id,
		insight_type=InsightType.TASK_BREAKDOWN,
		title=f"Task Breakdown: {task.title}",
		generated=generated,
		confidence=BREAKDOWN_CONFIDENCE,
	)
	return ok(generated.content, message="Task breakdown generated successfully")


@router.post("/progress-summary")
async def progress_summary(
	user: AuthUser = Depends(require_user),
	db: Session = Depends(get_db),
	generator: FallbackInsightGenerator = Depends(get_insight_generator),
):
	enforce_rate_limit(db, user.id, "progress-summary")
	since = datetime.utcnow() - timedelta(days=SUMMARY_PERIOD_DAYS)
	tasks = find_tasks_for(db, user, limit=SUMMARY_TASK_LIMIT)
	logs = (
		db.query(ProgressLog)
		.filter(ProgressLog.user_id == user.id, ProgressLog.created_at >= since, ProgressLog.archived_at.is_(None))
		.order_by(ProgressLog.created_at.desc())
		.limit(SUMMARY_LOG_LIMIT)
		.all()
	)
	generated = await generator.progress_summary(ProgressStats.from_rows(tasks, logs))
	store_insight(
		db,
		user_id=user.id,
		insight_type=InsightType.PROGRESS_SUMMARY,
		title="Weekly Progress Summary",
		generated=generated,
		confidence=SUMMARY_CONFIDENCE,
		extra_metadata={"dataPoints": len(logs)},
	)
	return ok(
		generated.content,
		message="Progress summary generated successfully",
		metadata={
			"tasksAnalyzed": len(tasks),
			"progressLogsAnalyzed": len(logs),
			"periodDays": SUMMARY_PERIOD_DAYS,
		},
	)


@router.post("/study-suggestions")
async def study_suggestions(
	user: AuthUser = Depends(require_user),
	db: Session = Depends(get_db),
	generator: FallbackInsightGenerator = Depends(get_insight_generator),
):
	enforce_rate_limit(db, user.id, "study-suggestions")
	tasks = find_tasks_for(db, user, limit=SUGGESTION_TASK_LIMIT)
	generated = await generator.study_suggestions(user.role.value, tasks)
	store_insight(
		db,
		user_id=user.id,
		insight_type=InsightType.STUDY_SUGGESTION,
		title="Personalized Study Suggestions",
		generated=generated,
		confidence=SUGGESTION_CONFIDENCE,
	)
	return ok(
		generated.content,
		message="Study suggestions generated successfully",
		metadata={"tasksAnalyzed": len(tasks), "userRole": user.role.value},
	)


@router.get("/insights")
async def insights(
	insight_type: Optional[InsightType] = Query(default=None, alias="type"),
	user: AuthUser = Depends(require_user),
	db: Session = Depends(get_db),
):
	rows = list_insights(db, user.id, insight_type)
	return ok([InsightOut.from_row(r).dump() for r in rows])
