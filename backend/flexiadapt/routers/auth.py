from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
import logging

from ..settings import settings
from sqlalchemy.orm import Session
from ..db import get_db
from ..models import Teacher
from ..schemas import LoginRequest, LoginResponse, TeacherCreate, TeacherOut

router = APIRouter(prefix="/api/auth", tags=["auth"])

logger = logging.getLogger(__name__)
logging.getLogger('passlib').setLevel(logging.ERROR)
# pbkdf2 for new hashes; bcrypt hashes from older rows still verify
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def hash_password(password: str) -> str:
	return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
	try:
		return pwd_context.verify(plain_password, hashed_password)
	except ValueError:
		# Unrecognized hash format
		return False


def authenticate_teacher(db: Session, email: str, password: str) -> Optional[Teacher]:
	teacher = db.query(Teacher).filter(Teacher.email == email.lower()).first()
	if teacher is None or not verify_password(password, teacher.password_hash):
		return None
	return teacher


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta
	if delta is None:
		minutes = settings.access_token_expire_minutes
		delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=30)
	now = datetime.now(timezone.utc)
	try:
		return now + delta
	except OverflowError:
		# Cap at far future but within datetime bounds
		return datetime.max.replace(tzinfo=timezone.utc)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	to_encode.update({"exp": _resolve_expiry(expires_delta)})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@router.post("/register", status_code=201, response_model=TeacherOut)
async def register(req: TeacherCreate, db: Session = Depends(get_db)):
	email = req.email.lower()
	existing = db.query(Teacher).filter(Teacher.email == email).first()
	if existing:
		raise HTTPException(status_code=400, detail="email already registered")
	teacher = Teacher(
		email=email,
		password_hash=hash_password(req.password),
		name=req.name.strip(),
		last_name=req.last_name.strip(),
		school=req.school,
		grade=req.grade,
		subject=req.subject,
		phone_number=req.phone_number,
	)
	db.add(teacher)
	db.commit()
	db.refresh(teacher)
	logger.info("Registered teacher %s", teacher.id)
	return teacher


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest, db: Session = Depends(get_db)):
	teacher = authenticate_teacher(db, req.email, req.password)
	if not teacher:
		raise HTTPException(status_code=401, detail="Incorrect email or password")
	if not teacher.is_active:
		raise HTTPException(status_code=401, detail="account disabled")
	teacher.last_login = datetime.utcnow()
	db.add(teacher)
	db.commit()
	db.refresh(teacher)
	access_token = create_access_token({"sub": teacher.id})
	return LoginResponse(teacher=TeacherOut.model_validate(teacher), access_token=access_token)


def get_current_teacher(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Teacher:
	credentials_exception = HTTPException(
		status_code=401,
		detail="Could not validate credentials",
		headers={"WWW-Authenticate": "Bearer"},
	)
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
		teacher_id: str | None = payload.get("sub")
		if teacher_id is None:
			raise credentials_exception
	except JWTError:
		raise credentials_exception
	teacher = db.get(Teacher, teacher_id)
	if teacher is None or not teacher.is_active:
		raise credentials_exception
	return teacher


@router.get("/me", response_model=TeacherOut)
async def me(teacher: Teacher = Depends(get_current_teacher)):
	return teacher
