from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import AIRateLimit
from .settings import settings


def purge_expired_rate_limits(db: Session, window_minutes: Optional[int] = None) -> int:
	# Rows older than the window can no longer count against any user
	minutes = settings.ai_rate_limit_window_minutes if window_minutes is None else window_minutes
	threshold = datetime.utcnow() - timedelta(minutes=minutes)
	res = db.execute(delete(AIRateLimit).where(AIRateLimit.window_start < threshold))
	db.commit()
	return res.rowcount or 0
