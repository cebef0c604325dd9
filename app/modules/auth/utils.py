from passlib.context import CryptContext
from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4
import hashlib
import secrets
import jwt
from app.core.config import settings
from app.modules.auth.models import User
from app.dependencies.dbDependecies import db_dependency

oauth2_scheme = HTTPBearer(auto_error=False)

SECRET_KEY = settings.APP_SECRET_STRING
REFRESH_SECRET_KEY = settings.REFRESH_SECRET_STRING
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str) -> bool:
    """Verify a hashed password against a plain password."""
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token with an expiration time.
    If expires_delta is not provided, it defaults to ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def create_refresh_token(user_id: str) -> str:
    """
    Create a JWT refresh token for long-term authentication.
    Signed with its own secret so it cannot be replayed as an access token.
    """
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": user_id,
        "type": "refresh",
        "iat": now,
        # jti keeps two tokens issued in the same second distinct
        "jti": uuid4().hex,
        "exp": now + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    }
    return jwt.encode(to_encode, REFRESH_SECRET_KEY, algorithm=ALGORITHM)


def decode_refresh_token(token: str) -> Optional[dict]:
    """Return the refresh token payload, or None when invalid or expired."""
    try:
        payload = jwt.decode(token, REFRESH_SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None
    if payload.get("type") != "refresh":
        return None
    return payload


def hash_reset_token(token: str) -> str:
    """Digest stored for a password reset token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> tuple:
    """
    Create a password reset token.
    Returns (raw token for the email link, digest to persist).
    """
    token = secrets.token_hex(20)
    return token, hash_reset_token(token)


def get_current_user(
    db: db_dependency,
    token: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme)
) -> User:
    """ Retrieve the current user based on the provided JWT token. """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authorized, token failed",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(token.credentials, SECRET_KEY, algorithms=[ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None or payload.get("type") != "access":
            raise credentials_exception
        user_uuid = UUID(user_id)
    except (jwt.PyJWTError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_uuid).first()
    if user is None or user.is_active is not True:
        raise credentials_exception

    return user
