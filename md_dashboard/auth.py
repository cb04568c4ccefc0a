import logging
import re
import time
from typing import Dict, Optional

from fastapi import Depends, Header, HTTPException
from jose import jwt, JWTError
from pydantic import ValidationError

from md_dashboard.config import Settings, get_settings
from md_dashboard.models import User, ROLE_ADMIN, ROLE_MD
from md_dashboard.store.client import StoreError, formula_eq

logger = logging.getLogger(__name__)

MD_TABLE = "MD 마스터 DB"

DEMO_EMAIL = "demo@test.com"
DEMO_PASSWORD = "demo1234"
DEMO_USER = User(id="demo-user", email=DEMO_EMAIL, name="데모 MD", role=ROLE_MD)
ADMIN_USER_ID = "admin-user"

MSG_MISSING_CREDENTIALS = "이메일과 비밀번호를 입력해주세요."
MSG_UNKNOWN_EMAIL = "등록되지 않은 이메일입니다."
MSG_BAD_PASSWORD = "비밀번호가 일치하지 않습니다. (연락처 뒷자리 4자리)"
MSG_LOGIN_FAILED = "로그인 처리 중 오류가 발생했습니다."
MSG_AUTH_REQUIRED = "인증이 필요합니다."
MSG_INVALID_TOKEN = "유효하지 않은 토큰입니다."

_NON_DIGIT = re.compile(r"\D")


def expected_password(phone: Optional[str]) -> str:
    """Password for a stored MD: the last 4 digits of their contact number."""
    if not phone:
        return ""
    digits = _NON_DIGIT.sub("", str(phone))
    return digits[-4:]


def is_synthetic(user: User) -> bool:
    """Demo and admin accounts exist only in code, not in the MD table."""
    return user.id in {DEMO_USER.id, ADMIN_USER_ID}


def _admin_user(settings: Settings) -> Optional[User]:
    if not settings.admin_email or not settings.admin_password:
        return None
    return User(id=ADMIN_USER_ID, email=settings.admin_email, name="관리자", role=ROLE_ADMIN)


def _user_from_record(record: Dict, email: str) -> User:
    fields = record.get("fields", {})
    return User(
        id=record["id"],
        email=fields.get("이메일") or email,
        name=fields.get("담당MD") or fields.get("이름") or "담당자",
        role=fields.get("역할") or fields.get("role") or ROLE_MD,
    )


def authenticate_user(email: Optional[str], password: Optional[str], store, settings: Settings) -> User:
    if not email or not password:
        raise HTTPException(status_code=400, detail=MSG_MISSING_CREDENTIALS)

    if email == DEMO_EMAIL and password == DEMO_PASSWORD:
        logger.info("Demo login")
        return DEMO_USER

    admin = _admin_user(settings)
    if admin and email == settings.admin_email and password == settings.admin_password:
        logger.info("Admin login: %s", email)
        return admin

    try:
        records = store.list_records(MD_TABLE, filter_by_formula=formula_eq("이메일", email), max_records=1)
    except StoreError:
        logger.exception("MD lookup failed for %s", email)
        raise HTTPException(status_code=500, detail=MSG_LOGIN_FAILED)

    if not records:
        logger.info("Login rejected, unknown email: %s", email)
        raise HTTPException(status_code=401, detail=MSG_UNKNOWN_EMAIL)

    record = records[0]
    expected = expected_password(record.get("fields", {}).get("연락처"))
    if not expected or password != expected:
        logger.info("Login rejected, password mismatch: %s", email)
        raise HTTPException(status_code=401, detail=MSG_BAD_PASSWORD)

    user = _user_from_record(record, email)
    logger.info("Login ok: %s (%s)", user.email, user.role)
    return user


def create_access_token(user: User, settings: Settings) -> str:
    now = int(time.time())
    payload = {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "exp": now + settings.access_token_expire_days * 24 * 60 * 60,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_alg)


def decode_token(token: str, settings: Settings) -> Optional[Dict]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
    except JWTError:
        return None


def extract_bearer(header: Optional[str]) -> Optional[str]:
    if not header or not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def verify(token: str, settings: Settings) -> Optional[User]:
    payload = decode_token(token, settings)
    if not payload:
        return None
    try:
        return User(id=payload["id"], email=payload["email"], name=payload["name"], role=payload["role"])
    except (KeyError, ValidationError):
        return None


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> User:
    token = extract_bearer(authorization)
    if not token:
        raise HTTPException(status_code=401, detail=MSG_AUTH_REQUIRED)
    user = verify(token, settings)
    if not user:
        raise HTTPException(status_code=401, detail=MSG_INVALID_TOKEN)
    return user
