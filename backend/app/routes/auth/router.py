import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import create_tokens_for_user
from app.core.middleware import get_db, get_current_user
from app.config.settings import env, settings
from app.db.crud.auth import register_patient, authenticate_user, refresh_user_token, change_password
from app.db.models.user import UserModel
from app.schemas.register_request import RegisterRequest, ChangePasswordRequest
from app.schemas.login_request import LoginRequest
from app.schemas.auth_response import AuthResponse, RegisterResponse
from app.schemas.shared import UserOut as User, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)

# determine secure flag
secure_cookie = env == "production"


def _set_auth_cookies(response: Response, tokens: AuthResponse) -> None:
    """Store both tokens in HttpOnly cookies."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=tokens.access_token,
        httponly=True,
        secure=secure_cookie,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60
    )
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=tokens.refresh_token,
        httponly=True,
        secure=secure_cookie,
        samesite="lax",
        max_age=settings.refresh_token_expire_days * 86400
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    new_user = await register_patient(db, user_data)
    return RegisterResponse(user=User.model_validate(new_user), message="Registration successful")


@router.post("/login", response_model=AuthResponse)
async def login(
    login_data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    user = await authenticate_user(db, login_data)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    tokens = create_tokens_for_user(user)
    _set_auth_cookies(response, tokens)
    logger.info(f"User id={user.id} logged in")
    return tokens


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    tokens = await refresh_user_token(db, request.cookies.get(settings.refresh_cookie_name))
    _set_auth_cookies(response, tokens)
    return tokens


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout():
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(key=settings.session_cookie_name)
    response.delete_cookie(key=settings.refresh_cookie_name)
    return response


@router.get("/me", response_model=User)
async def me(current_user: UserModel = Depends(get_current_user)):
    return current_user


@router.put("/change-password", response_model=MessageResponse)
async def update_password(
    data: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    await change_password(db, current_user, data)
    return MessageResponse(message="Password changed successfully")
