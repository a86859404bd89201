"""
Account endpoints.

Sign-in and password recovery live directly under ``/api`` (``/login``,
``/confirmEmail``, ``/forgotPassword``, ``/resetPassword``); account
management lives under ``/api/account``.  Access tokens are stateless
bearer tokens, so logging out only tells the client to drop its token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from reactivities_api.app.core.security import get_current_user, get_optional_user
from reactivities_api.app.schemas.account import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserInfo,
)
from reactivities_api.app.services.account_service import AccountService
from reactivities_api.app.services.email_service import EmailSender, get_email_sender


router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    return await AccountService.login(credentials)


@router.get("/confirmEmail")
async def confirm_email(
    user_id: str = Query(..., alias="userId"),
    code: str = Query(...),
) -> Response:
    await AccountService.confirm_email(user_id, code)
    return Response(status_code=status.HTTP_200_OK)


@router.post("/forgotPassword")
async def forgot_password(
    payload: ForgotPasswordRequest,
    email_sender: EmailSender = Depends(get_email_sender),
) -> Response:
    """Request a password reset link.  Always answers 200."""
    await AccountService.forgot_password(payload.email, email_sender)
    return Response(status_code=status.HTTP_200_OK)


@router.post("/resetPassword")
async def reset_password(payload: ResetPasswordRequest) -> Response:
    await AccountService.reset_password(payload)
    return Response(status_code=status.HTTP_200_OK)


@router.post("/account/register")
async def register(
    payload: RegisterRequest,
    email_sender: EmailSender = Depends(get_email_sender),
) -> Response:
    """Register a new account and send the email confirmation link."""
    await AccountService.register(payload, email_sender)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/account/resendConfirmEmail")
async def resend_confirm_email(
    email: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    email_sender: EmailSender = Depends(get_email_sender),
) -> Response:
    await AccountService.resend_confirmation(email_sender, email=email, user_id=user_id)
    return Response(status_code=status.HTTP_200_OK)


@router.get("/account/user-info", response_model=UserInfo)
async def user_info(current_user: Optional[dict] = Depends(get_optional_user)):
    """Return the signed-in user, or 204 for anonymous callers."""
    if current_user is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    info = await AccountService.user_info(current_user["user_id"])
    if info is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return info


@router.post("/account/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(current_user: dict = Depends(get_current_user)) -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/account/change-password")
async def change_password(payload: ChangePasswordRequest, current_user: dict = Depends(get_current_user)) -> Response:
    await AccountService.change_password(current_user["user_id"], payload)
    return Response(status_code=status.HTTP_200_OK)
