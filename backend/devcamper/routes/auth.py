"""
DevCamper Backend: Auth Routes
================================

Routes:
    POST /auth/register        public   → token
    POST /auth/login           public   → token
    GET  /auth/logout          public   clears the token cookie
    GET  /auth/me              any logged-in user
    PUT  /auth/updatedetails   any logged-in user (name, email)
    PUT  /auth/updatepassword  any logged-in user → fresh token

Tokens are returned in the body and also set as an HttpOnly `token` cookie.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.config import settings
from devcamper.database import get_db_session
from devcamper.models import User
from devcamper.resources import USERS
from devcamper.routes.deps import TOKEN_COOKIE, get_current_user
from devcamper.schemas.common import DataResponse, ErrorResponse, TokenResponse
from devcamper.schemas.user import (
    LoginRequest,
    RegisterRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from devcamper.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_response(response: Response, token: str) -> TokenResponse:
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.jwt_expire_minutes * 60,
        httponly=True,
        samesite="lax",
    )
    return TokenResponse(token=token)


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
    summary="Register a user",
)
async def register(
    body: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    return _token_response(response, await auth_service.register(db, body))


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Log in",
)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    return _token_response(response, await auth_service.login(db, body))


@router.get("/logout", response_model=DataResponse, summary="Log out (clear the cookie)")
async def logout(response: Response) -> DataResponse:
    response.delete_cookie(TOKEN_COOKIE)
    return DataResponse(data={})


@router.get("/me", response_model=DataResponse, summary="Current user")
async def me(user: User = Depends(get_current_user)) -> DataResponse:
    return DataResponse(data=USERS.to_record(user))


@router.put("/updatedetails", response_model=DataResponse, summary="Update name and email")
async def update_details(
    body: UpdateDetailsRequest,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> DataResponse:
    user = await auth_service.update_details(db, user, body)
    return DataResponse(data=USERS.to_record(user))


@router.put(
    "/updatepassword",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Change password",
)
async def update_password(
    body: UpdatePasswordRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> TokenResponse:
    return _token_response(response, await auth_service.update_password(db, user, body))
