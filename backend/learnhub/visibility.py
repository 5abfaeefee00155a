"""Which tasks a principal may read and change.

Every endpoint that reads a task goes through :func:`visible_to`, so the list
view, the detail view, progress logging and AI breakdowns can never disagree
about what a user is allowed to see.
"""
from __future__ import annotations
from typing import List, Optional

from sqlalchemy import and_, or_, select, true, func
from sqlalchemy.orm import Session

from .models import LearningTask, Role, TaskStatus, User
from .schemas import AuthUser


def visible_to(principal: AuthUser):
	"""SQL predicate over ``learning_tasks`` rows the principal may read."""
	if principal.role == Role.ADMIN:
		return true()
	if principal.role == Role.EDUCATOR:
		return LearningTask.creator_id == principal.id
	# Students: their own and assigned tasks, plus general tasks published by any educator
	educator_ids = select(User.id).where(User.role == Role.EDUCATOR.value)
	return or_(
		LearningTask.assignee_id == principal.id,
		LearningTask.creator_id == principal.id,
		and_(LearningTask.assignee_id.is_(None), LearningTask.creator_id.in_(educator_ids)),
	)


def _scoped(db: Session, principal: AuthUser, status: Optional[TaskStatus], include_archived: bool):
	q = db.query(LearningTask).filter(visible_to(principal))
	if status is not None:
		q = q.filter(LearningTask.status == TaskStatus(status).value)
	if not include_archived:
		q = q.filter(LearningTask.archived_at.is_(None))
	return q


def find_tasks_for(
	db: Session,
	principal: AuthUser,
	*,
	status: Optional[TaskStatus] = None,
	limit: int = 50,
	offset: int = 0,
	include_archived: bool = False,
) -> List[LearningTask]:
	q = _scoped(db, principal, status, include_archived).order_by(LearningTask.created_at.desc(), LearningTask.id.desc())
	if limit > 0:
		q = q.limit(int(limit))
	if offset > 0:
		q = q.offset(int(offset))
	return q.all()


def count_tasks_for(db: Session, principal: AuthUser, *, status: Optional[TaskStatus] = None, include_archived: bool = False) -> int:
	return _scoped(db, principal, status, include_archived).with_entities(func.count(LearningTask.id)).scalar() or 0


def get_visible_task(db: Session, principal: AuthUser, task_id: str) -> Optional[LearningTask]:
	"""Fetch one non-archived task if the principal may read it.

	A task that does not exist and one the principal cannot see both come back
	as None, so callers answer 404 either way.
	"""
	return (
		db.query(LearningTask)
		.filter(LearningTask.id == task_id, LearningTask.archived_at.is_(None), visible_to(principal))
		.first()
	)


def get_active_task(db: Session, task_id: str) -> Optional[LearningTask]:
	return db.query(LearningTask).filter(LearningTask.id == task_id, LearningTask.archived_at.is_(None)).first()


def can_create_task(principal: AuthUser) -> bool:
	return principal.role == Role.EDUCATOR


def can_update(principal: AuthUser, task: LearningTask) -> bool:
	return principal.role == Role.ADMIN or task.creator_id == principal.id or task.assignee_id == principal.id


def can_reassign(principal: AuthUser, task: LearningTask) -> bool:
	# moving a task between assignees changes who can see it
	return principal.role == Role.ADMIN or task.creator_id == principal.id


def can_delete(principal: AuthUser, task: LearningTask) -> bool:
	# assignees may edit a task but never remove it
	return principal.role == Role.ADMIN or task.creator_id == principal.id


CLOSED_STATUSES = (TaskStatus.DONE, TaskStatus.CANCELLED)


def progress_status_transition(current: TaskStatus | str, percentage: int, *, reopen_closed: bool = True) -> Optional[TaskStatus]:
	"""Status a task moves to after a progress log, or None to leave it alone.

	100 completes the task, anything between 0 and 100 marks it in progress and
	0 never changes it. With ``reopen_closed`` the rule ignores the current
	status, so a log against a CANCELLED or DONE task reopens it; without it
	closed tasks keep their status.
	"""
	current = TaskStatus(current)
	if percentage >= 100:
		target = TaskStatus.DONE
	elif percentage > 0:
		target = TaskStatus.IN_PROGRESS
	else:
		return None
	if not reopen_closed and current in CLOSED_STATUSES:
		return None
	return target
