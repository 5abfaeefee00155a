from __future__ import annotations
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import AuthUser, require_user
from ..db import get_db, generate_id
from ..models import ProgressLog
from ..schemas import ProgressCreate, ProgressOut, ok
from ..settings import settings
from ..visibility import can_update, get_visible_task, progress_status_transition


router = APIRouter(prefix="/api/tasks", tags=["progress"])
logger = logging.getLogger(__name__)


@router.post("/{task_id}/progress")
async def log_progress(task_id: str, req: ProgressCreate, user: AuthUser = Depends(require_user), db: Session = Depends(get_db)):
	task = get_visible_task(db, user, task_id)
	if task is None:
		raise HTTPException(status_code=404, detail="Task not found")
	log = ProgressLog(
		id=generate_id("progress"),
		task_id=task.id,
		user_id=user.id,
		progress=req.progress_percentage,
		notes=req.notes,
		time_spent=req.time_spent,
	)
	# Log insert and status change commit together or not at all
	try:
		db.add(log)
		if can_update(user, task):
			target = progress_status_transition(
				task.status,
				req.progress_percentage,
				reopen_closed=settings.progress_reopens_closed_tasks,
			)
			if target is not None and target.value != task.status:
				logger.info("task %s moved from %s to %s by progress log", task.id, task.status, target.value)
				task.status = target.value
				task.updated_at = datetime.utcnow()
		db.commit()
	except SQLAlchemyError:
		db.rollback()
		raise
	db.refresh(log)
	return ok(ProgressOut.from_row(log).dump(), message="Progress updated successfully")


@router.get("/{task_id}/progress")
async def list_progress(task_id: str, user: AuthUser = Depends(require_user), db: Session = Depends(get_db)):
	task = get_visible_task(db, user, task_id)
	if task is None:
		raise HTTPException(status_code=404, detail="Task not found")
	logs = (
		db.query(ProgressLog)
		.filter(ProgressLog.task_id == task.id, ProgressLog.archived_at.is_(None))
		.order_by(ProgressLog.created_at.desc(), ProgressLog.id.desc())
		.all()
	)
	return ok([ProgressOut.from_row(log).dump() for log in logs])
