from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .auth import AuthUser, require_user
from ..db import get_db, generate_id
from ..models import LearningTask, TaskStatus, User
from ..schemas import TaskCreate, TaskOut, TaskUpdate, ok
from ..visibility import (
	can_create_task,
	can_delete,
	can_reassign,
	can_update,
	count_tasks_for,
	find_tasks_for,
	get_active_task,
	get_visible_task,
)


router = APIRouter(prefix="/api/tasks", tags=["tasks"])
logger = logging.getLogger(__name__)

# Fields an update may explicitly clear by sending null
_NULLABLE_FIELDS = {"description", "due_date", "assignee_id", "estimated_time", "actual_time"}


def _ensure_assignee_exists(db: Session, assignee_id: Optional[str]) -> None:
	if assignee_id is None:
		return
	user = db.get(User, assignee_id)
	if user is None or user.archived_at is not None:
		raise HTTPException(status_code=400, detail="Assignee not found")


@router.get("")
async def list_tasks(
	status: Optional[TaskStatus] = Query(default=None),
	limit: int = Query(default=20, ge=1, le=100),
	offset: int = Query(default=0, ge=0),
	include_archived: bool = Query(default=False, alias="includeArchived"),
	user: AuthUser = Depends(require_user),
	db: Session = Depends(get_db),
):
	tasks = find_tasks_for(db, user, status=status, limit=limit, offset=offset, include_archived=include_archived)
	total = count_tasks_for(db, user, status=status, include_archived=include_archived)
	return ok(
		[TaskOut.from_row(t).dump() for t in tasks],
		pagination={"limit": limit, "offset": offset, "total": total},
	)


@router.post("", status_code=201)
async def create_task(req: TaskCreate, user: AuthUser = Depends(require_user), db: Session = Depends(get_db)):
	if not can_create_task(user):
		raise HTTPException(status_code=403, detail="Only educators can create tasks")
	_ensure_assignee_exists(db, req.assignee_id)
	if req.parent_task_id is not None and get_visible_task(db, user, req.parent_task_id) is None:
		raise HTTPException(status_code=400, detail="Parent task not found")
	row = LearningTask(
		id=generate_id("task"),
		title=req.title,
		description=req.description,
		priority=req.priority.value,
		status=TaskStatus.TODO.value,
		due_date=req.due_date,
		estimated_time=req.estimated_time,
		difficulty_level=req.difficulty_level.value,
		creator_id=user.id,
		assignee_id=req.assignee_id,
		parent_task_id=req.parent_task_id,
	)
	row.tags = req.tags
	db.add(row)
	db.commit()
	db.refresh(row)
	logger.info("task %s created by %s", row.id, user.id)
	return ok(TaskOut.from_row(row).dump(), message="Task created successfully")


@router.get("/{task_id}")
async def get_task(task_id: str, user: AuthUser = Depends(require_user), db: Session = Depends(get_db)):
	task = get_visible_task(db, user, task_id)
	if task is None:
		raise HTTPException(status_code=404, detail="Task not found")
	return ok(TaskOut.from_row(task).dump())


@router.put("/{task_id}")
async def update_task(task_id: str, req: TaskUpdate, user: AuthUser = Depends(require_user), db: Session = Depends(get_db)):
	task = get_active_task(db, task_id)
	if task is None:
		raise HTTPException(status_code=404, detail="Task not found")
	if not can_update(user, task):
		raise HTTPException(status_code=403, detail="Forbidden")
	changes = req.model_dump(exclude_unset=True)
	if not changes:
		raise HTTPException(status_code=400, detail="No fields to update")
	for field, value in changes.items():
		if value is None and field not in _NULLABLE_FIELDS:
			raise HTTPException(status_code=400, detail=f"{field} cannot be null")
	if "assignee_id" in changes:
		if not can_reassign(user, task):
			raise HTTPException(status_code=403, detail="Only the task creator can change the assignee")
		_ensure_assignee_exists(db, changes["assignee_id"])
	for field, value in changes.items():
		if field == "tags":
			task.tags = value
		elif field in ("priority", "status", "difficulty_level"):
			setattr(task, field, value.value)
		else:
			setattr(task, field, value)
	task.updated_at = datetime.utcnow()
	db.commit()
	db.refresh(task)
	return ok(TaskOut.from_row(task).dump())


@router.delete("/{task_id}")
async def delete_task(task_id: str, user: AuthUser = Depends(require_user), db: Session = Depends(get_db)):
	task = get_active_task(db, task_id)
	if task is None:
		raise HTTPException(status_code=404, detail="Task not found")
	if not can_delete(user, task):
		raise HTTPException(status_code=403, detail="Forbidden")
	# Soft delete
	task.archived_at = datetime.utcnow()
	db.commit()
	logger.info("task %s archived by %s", task.id, user.id)
	return ok(message="Task deleted successfully")
