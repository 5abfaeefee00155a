import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import Base, engine, SessionLocal
from .cleanup import purge_expired_rate_limits
from .seed import seed_demo_data
from .settings import settings
from .routers import auth
from .routers import tasks
from .routers import progress
from .routers import ai

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("learnhub")

SECURITY_HEADERS = {
	"X-Content-Type-Options": "nosniff",
	"X-Frame-Options": "DENY",
	"X-XSS-Protection": "1; mode=block",
	"Referrer-Policy": "strict-origin-when-cross-origin",
}

app = FastAPI(title="LearnHub API")
app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(progress.router)
app.include_router(ai.router)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
	response = await call_next(request)
	for name, value in SECURITY_HEADERS.items():
		response.headers.setdefault(name, value)
	return response


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
	return JSONResponse(
		status_code=exc.status_code,
		content={"success": False, "error": str(exc.detail)},
		headers=getattr(exc, "headers", None),
	)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
	details = [
		{"path": [str(p) for p in err.get("loc", ())], "message": err.get("msg", ""), "type": err.get("type", "")}
		for err in exc.errors()
	]
	return JSONResponse(
		status_code=400,
		content=jsonable_encoder({"success": False, "error": "Validation error", "details": details}),
	)


@app.exception_handler(Exception)
async def internal_error(request: Request, exc: Exception):
	# Stack goes to the log only, never to the client
	logger.exception("unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


@app.get("/info")
def root():
	return {
		"status": "ok",
		"ai_provider": settings.ai_provider,
		"gemini_configured": bool(settings.gemini_api_key),
	}


def _run_maintenance() -> None:
	db = SessionLocal()
	try:
		removed = purge_expired_rate_limits(db)
		if removed:
			logger.info("purged %d expired rate-limit rows", removed)
	finally:
		db.close()


_cleanup_task: Optional[asyncio.Task] = None


async def _cleanup_watcher():
	while True:
		await asyncio.sleep(24 * 60 * 60)
		try:
			_run_maintenance()
		except Exception:
			logger.exception("rate-limit cleanup failed")


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	if settings.seed_demo_data:
		db = SessionLocal()
		try:
			seed_demo_data(db)
		finally:
			db.close()
	try:
		_run_maintenance()
	except Exception:
		logger.exception("rate-limit cleanup failed")
	# Start periodic cleanup loop
	global _cleanup_task
	_cleanup_task = asyncio.create_task(_cleanup_watcher())


@app.on_event("shutdown")
async def shutdown_event():
	if _cleanup_task is not None:
		_cleanup_task.cancel()
