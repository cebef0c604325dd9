from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
import logging

from app.core.config import settings
from app.common.exceptions import (
    AuthenticationError, NotFound, NotificationFailure, TransientStoreError, ValidationError
)
from app.modules.auth.models import User
from app.modules.auth.schemas import UserCreate, UserOut, TokenResponse
from app.modules.auth.utils import (
    hash_password, verify_password, create_access_token,
    create_refresh_token, decode_refresh_token,
    generate_reset_token, hash_reset_token
)
from app.modules.email.service import EmailService, email_service

logger = logging.getLogger(__name__)

RESET_TEMPLATE = "password_reset.html"


class AuthService:
    def __init__(self, db: Session, mailer: Optional[EmailService] = None):
        self.db = db
        self.mailer = mailer or email_service

    def _issue_tokens(self, user: User) -> TokenResponse:
        """Crear par de tokens y persistir el refresh token vigente."""
        access_token = create_access_token({
            "sub": str(user.id),
            "email": user.email,
            "role": user.role
        })
        refresh_token = create_refresh_token(str(user.id))

        user.refresh_token = refresh_token
        self.db.commit()
        self.db.refresh(user)

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserOut.model_validate(user)
        )

    def register(self, user_data: UserCreate) -> TokenResponse:
        """
        Registrar nuevo usuario y devolver sus tokens.
        """
        existing = self.db.query(User).filter(User.email == user_data.email).first()
        if existing:
            raise ValidationError.single("email", "User already exists")

        user = User(
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            email=user_data.email,
            password=hash_password(user_data.password),
        )

        try:
            self.db.add(user)
            self.db.flush()
            tokens = self._issue_tokens(user)
        except IntegrityError:
            self.db.rollback()
            raise ValidationError.single("email", "User already exists")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Register Error: {e}")
            raise TransientStoreError(str(e))

        logger.info(f"User registered: {user.id}")
        return tokens

    def login(self, email: str, password: str) -> TokenResponse:
        """
        Login de usuario.
        """
        user = self.db.query(User).filter(User.email == email.lower()).first()

        if not user or not verify_password(password, user.password):
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            raise AuthenticationError("Account is inactive")

        user.last_login = datetime.now(timezone.utc)
        return self._issue_tokens(user)

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Rotar tokens a partir de un refresh token válido y vigente."""
        payload = decode_refresh_token(refresh_token)
        if payload is None:
            raise AuthenticationError("Invalid or expired refresh token")

        try:
            user_id = UUID(payload.get("sub", ""))
        except ValueError:
            raise AuthenticationError("Invalid refresh token")

        user = self.db.query(User).filter(
            User.id == user_id,
            User.refresh_token == refresh_token
        ).first()

        if not user or not user.is_active:
            raise AuthenticationError("Invalid refresh token")

        return self._issue_tokens(user)

    def logout(self, user: User) -> None:
        """Invalidar el refresh token del usuario."""
        user.refresh_token = None
        self.db.commit()
        logger.info(f"User logged out: {user.id}")

    def _save_reset_token(self, user: User, digest: Optional[str], expire: Optional[datetime]) -> None:
        user.reset_password_token = digest
        user.reset_password_expire = expire
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Reset Token Error: {e}")
            raise TransientStoreError(str(e))

    def forgot_password(self, email: str, base_url: str) -> None:
        """
        Generar un token de restablecimiento y enviarlo por correo.

        El enlace apunta a PUT /api/auth/resetpassword/{token} y vence a los
        RESET_PASSWORD_EXPIRE_MINUTES. Si el correo no sale, el token se descarta.
        """
        user = self.db.query(User).filter(User.email == email.lower()).first()
        if not user:
            raise NotFound("User")

        token, digest = generate_reset_token()
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_PASSWORD_EXPIRE_MINUTES)
        self._save_reset_token(user, digest, expire)

        reset_url = f"{base_url.rstrip('/')}/api/auth/resetpassword/{token}"
        sent = self.mailer.send_template_email(
            to_emails=[user.email],
            subject="Password reset token",
            template_name=RESET_TEMPLATE,
            context={
                "first_name": user.first_name,
                "reset_url": reset_url,
                "expire_minutes": settings.RESET_PASSWORD_EXPIRE_MINUTES,
            },
            text_content=(
                "You are receiving this email because you (or someone else) has requested "
                f"the reset of a password. Please make a PUT request to:\n\n{reset_url}"
            ),
        )

        if not sent:
            self._save_reset_token(user, None, None)
            raise NotificationFailure(user.email, "password reset email not sent")

        logger.info(f"Password reset requested: {user.id}")

    def reset_password(self, token: str, new_password: str) -> TokenResponse:
        """
        Cambiar la contraseña con un token vigente.

        El token es de un solo uso; se emite un par de tokens nuevo y el
        refresh token anterior deja de ser válido.
        """
        user = self.db.query(User).filter(
            User.reset_password_token == hash_reset_token(token),
            User.reset_password_expire > datetime.now(timezone.utc)
        ).first()

        if not user:
            raise ValidationError.single("token", "Invalid token")

        user.password = hash_password(new_password)
        user.reset_password_token = None
        user.reset_password_expire = None

        try:
            tokens = self._issue_tokens(user)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Reset Password Error: {e}")
            raise TransientStoreError(str(e))

        logger.info(f"Password reset: {user.id}")
        return tokens
