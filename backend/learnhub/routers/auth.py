from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
import logging

from ..settings import settings
from sqlalchemy.orm import Session
from ..db import get_db, generate_id
from ..models import Role, User
from ..schemas import AuthUser, LoginRequest, RegisterRequest, ok

router = APIRouter(prefix="/api/auth", tags=["auth"])

logger = logging.getLogger(__name__)
logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)
# API clients may send the token as a bearer header instead of the cookie
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

COOKIE_NAME = "auth-token"
INVALID_CREDENTIALS = "Invalid email or password"
EMAIL_TAKEN = "User with this email already exists"


class TokenPayload(BaseModel):
	user_id: str


class AuthResult(BaseModel):
	success: bool
	user: Optional[AuthUser] = None
	token: Optional[str] = None
	error: Optional[str] = None


def _bcrypt_safe(password: str) -> str:
	# Truncate password to 72 bytes for bcrypt compatibility
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_safe(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	try:
		return pwd_context.verify(_bcrypt_safe(plain_password), hashed_password)
	except (ValueError, TypeError):
		# not a hash passlib recognises
		return False


def _session_lifetime() -> timedelta:
	return timedelta(days=settings.session_ttl_days)


def generate_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
	expire = datetime.now(timezone.utc) + (expires_delta if expires_delta is not None else _session_lifetime())
	return jwt.encode({"sub": user_id, "exp": expire}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: Optional[str]) -> Optional[TokenPayload]:
	"""Return the token's subject, or None when the token is unusable for any reason."""
	if not token:
		return None
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	except JWTError:
		return None
	user_id = payload.get("sub")
	if not isinstance(user_id, str) or not user_id:
		return None
	return TokenPayload(user_id=user_id)


def set_session_cookie(response: Response, token: str) -> None:
	response.set_cookie(
		COOKIE_NAME,
		token,
		max_age=int(_session_lifetime().total_seconds()),
		httponly=True,
		secure=settings.is_production,
		samesite="lax",
	)


def sign_out_user(response: Response) -> None:
	response.delete_cookie(COOKIE_NAME, httponly=True, secure=settings.is_production, samesite="lax")


def find_user_by_email(db: Session, email: str) -> Optional[User]:
	return db.query(User).filter(User.email == email).first()


def sign_in_user(db: Session, email: str, password: str) -> AuthResult:
	user = find_user_by_email(db, email.strip().lower())
	# Same message for unknown email and wrong password
	if user is None or user.archived_at is not None or not user.password:
		return AuthResult(success=False, error=INVALID_CREDENTIALS)
	if not verify_password(password, user.password):
		return AuthResult(success=False, error=INVALID_CREDENTIALS)
	return AuthResult(success=True, user=AuthUser.from_row(user), token=generate_token(user.id))


def register_user(db: Session, name: str, email: str, password: str, role: Role = Role.STUDENT) -> AuthResult:
	email = email.strip().lower()
	if find_user_by_email(db, email) is not None:
		return AuthResult(success=False, error=EMAIL_TAKEN)
	row = User(
		id=generate_id("user"),
		name=name,
		email=email,
		password=hash_password(password),
		email_verified=False,
		role=Role(role).value,
	)
	db.add(row)
	try:
		db.commit()
	except IntegrityError:
		# lost a race against a concurrent registration for the same email
		db.rollback()
		return AuthResult(success=False, error=EMAIL_TAKEN)
	db.refresh(row)
	return AuthResult(success=True, user=AuthUser.from_row(row), token=generate_token(row.id))


def get_current_user(
	request: Request,
	bearer: Optional[str] = Depends(oauth2_scheme),
	db: Session = Depends(get_db),
) -> Optional[AuthUser]:
	"""Resolve the request's principal, or None when any step fails."""
	token = request.cookies.get(COOKIE_NAME) or bearer
	payload = verify_token(token)
	if payload is None:
		return None
	user = db.get(User, payload.user_id)
	if user is None or user.archived_at is not None:
		return None
	return AuthUser.from_row(user)


def require_user(user: Optional[AuthUser] = Depends(get_current_user)) -> AuthUser:
	if user is None:
		raise HTTPException(status_code=401, detail="Unauthorized")
	return user


@router.post("/login")
async def login(req: LoginRequest, response: Response, db: Session = Depends(get_db)):
	result = sign_in_user(db, req.email, req.password)
	if not result.success:
		logger.info("failed sign-in attempt")
		raise HTTPException(status_code=401, detail=result.error)
	set_session_cookie(response, result.token)
	return ok(user=result.user.dump(), message="Login successful")


@router.post("/register", status_code=201)
async def register(req: RegisterRequest, response: Response, db: Session = Depends(get_db)):
	if req.role == Role.ADMIN and not settings.allow_admin_signup:
		raise HTTPException(status_code=403, detail="Admin accounts cannot be self-registered")
	result = register_user(db, req.name.strip(), req.email, req.password, req.role)
	if not result.success:
		raise HTTPException(status_code=409, detail=result.error)
	set_session_cookie(response, result.token)
	logger.info("registered user %s with role %s", result.user.id, result.user.role.value)
	return ok(user=result.user.dump(), message="Registration successful")


@router.post("/signout")
async def signout(response: Response):
	sign_out_user(response)
	return ok()


@router.get("/me")
async def me(user: AuthUser = Depends(require_user)):
	return ok(user.dump())
