from fastapi import APIRouter, Request, status

from app.dependencies.dbDependecies import db_dependency
from app.dependencies.userDependencies import user_dependency
from app.modules.auth.service import AuthService
from app.modules.auth.schemas import (
    UserCreate, UserLogin, UserOut, RefreshTokenRequest,
    ForgotPasswordRequest, ResetPasswordRequest
)

auth_router = APIRouter()
users_router = APIRouter()


@auth_router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: db_dependency):
    """
    Registrar nuevo usuario. Devuelve tokens de acceso y refresh.
    """
    tokens = AuthService(db).register(user_data)
    return {"status": "success", "data": tokens.model_dump(mode="json")}


@auth_router.post("/login")
def login(credentials: UserLogin, db: db_dependency):
    """
    Login de usuario con email y contraseña.
    """
    tokens = AuthService(db).login(credentials.email, credentials.password)
    return {"status": "success", "data": tokens.model_dump(mode="json")}


@auth_router.post("/refresh")
def refresh(request_data: RefreshTokenRequest, db: db_dependency):
    """
    Rotar el refresh token y emitir un nuevo access token.
    """
    tokens = AuthService(db).refresh_access_token(request_data.refresh_token)
    return {"status": "success", "data": tokens.model_dump(mode="json")}


@auth_router.post("/logout")
def logout(current_user: user_dependency, db: db_dependency):
    AuthService(db).logout(current_user)
    return {"status": "success", "message": "Logged out successfully"}


@auth_router.post("/forgotpassword")
def forgot_password(request_data: ForgotPasswordRequest, request: Request, db: db_dependency):
    """
    Enviar por correo un enlace para restablecer la contraseña.
    """
    AuthService(db).forgot_password(request_data.email, str(request.base_url))
    return {"status": "success", "data": "Email sent"}


@auth_router.put("/resetpassword/{token}")
def reset_password(token: str, reset_data: ResetPasswordRequest, db: db_dependency):
    """
    Restablecer la contraseña con el token recibido por correo.
    """
    tokens = AuthService(db).reset_password(token, reset_data.password)
    return {"status": "success", "data": tokens.model_dump(mode="json")}


@users_router.get("/profile")
def get_profile(current_user: user_dependency):
    """
    Obtener información del usuario actual.
    """
    return {"status": "success", "data": UserOut.model_validate(current_user).model_dump(mode="json")}
