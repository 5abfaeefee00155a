from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from .db import generate_id
from .models import AIRateLimit
from .settings import settings

logger = logging.getLogger(__name__)


def check_rate_limit(
	db: Session,
	user_id: str,
	endpoint: str,
	max_requests: Optional[int] = None,
	window_minutes: Optional[int] = None,
) -> bool:
	"""Record one call for ``endpoint`` unless the user already used up the window.

	Returns False, without recording anything, once ``max_requests`` calls fall
	inside the last ``window_minutes``.
	"""
	max_requests = settings.ai_rate_limit_max_requests if max_requests is None else max_requests
	window_minutes = settings.ai_rate_limit_window_minutes if window_minutes is None else window_minutes
	window_start = datetime.utcnow() - timedelta(minutes=window_minutes)
	current = (
		db.query(func.count(AIRateLimit.id))
		.filter(
			AIRateLimit.user_id == user_id,
			AIRateLimit.endpoint == endpoint,
			AIRateLimit.window_start > window_start,
		)
		.scalar()
		or 0
	)
	if current >= max_requests:
		return False
	db.add(AIRateLimit(id=generate_id("rate"), user_id=user_id, endpoint=endpoint, request_count=1, window_start=datetime.utcnow()))
	db.commit()
	return True


def enforce_rate_limit(db: Session, user_id: str, endpoint: str) -> None:
	if not check_rate_limit(db, user_id, endpoint):
		logger.info("rate limit reached for user %s on %s", user_id, endpoint)
		raise HTTPException(status_code=429, detail="Rate limit exceeded. Please try again later.")
