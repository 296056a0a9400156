from typing import Literal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.services.auth import AuthContext, SessionTokenIssuer, get_auth_context, get_token_issuer
from app.services.credentials import UserDetailsUpdate, create_user, find_by_email, find_by_id, update_details
from app.services.password_reset import ResetTokenManager, get_reset_manager
from app.utils.errors import NotAuthenticated, NotFound, ValidationError
from app.utils.security import verify_password


router = APIRouter()


class RegisterBody(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    # Admins are only ever created through the users API
    role: Literal["user", "publisher"] = "user"

@router.post("/register")
def register(body: RegisterBody, issuer: SessionTokenIssuer = Depends(get_token_issuer)) -> JSONResponse:
    """PUBLIC: Create an account and log it in."""
    user = create_user(name=body.name, email=body.email, password=body.password, role=body.role)
    return issuer.token_response(user)


class LoginBody(BaseModel):
    email: str | None = None
    password: str | None = None

@router.post("/login")
def login(body: LoginBody, issuer: SessionTokenIssuer = Depends(get_token_issuer)) -> JSONResponse:
    """PUBLIC: Exchange email and password for a session token."""
    if not body.email or not body.password:
        raise ValidationError("Please provide an email and password")
    # Same message for unknown email and wrong password
    try:
        user = find_by_email(body.email, include_password=True)
    except NotFound:
        raise NotAuthenticated("Invalid credentials")
    if not verify_password(body.password, user.password):
        raise NotAuthenticated("Invalid credentials")
    return issuer.token_response(user)


@router.get("/me")
def get_me(ctx: AuthContext = Depends(get_auth_context)) -> dict:
    """PROTECTED: Current user's profile."""
    return {"success": True, "user": ctx.user.to_output()}


@router.get("/logout")
def logout(issuer: SessionTokenIssuer = Depends(get_token_issuer)) -> JSONResponse:
    """PUBLIC: Drop the session cookie. Tokens already handed out stay valid until they expire."""
    response = JSONResponse(content={"success": True, "data": {}})
    return issuer.clear_cookie(response)


@router.put("/updatedetails")
def update_my_details(body: UserDetailsUpdate, ctx: AuthContext = Depends(get_auth_context)) -> dict:
    """PROTECTED: Change the current user's name or email."""
    user = update_details(ctx.user, body)
    return {"success": True, "user": user.to_output()}


class UpdatePasswordBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword")
    new_password: str = Field(alias="newPassword", min_length=6)

@router.put("/updatepassword")
def update_password(
    body: UpdatePasswordBody,
    ctx: AuthContext = Depends(get_auth_context),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
) -> JSONResponse:
    """PROTECTED: Change password after re-checking the current one, then reissue the session."""
    user = find_by_id(ctx.user_id, include_password=True)
    if not verify_password(body.current_password, user.password):
        raise NotAuthenticated("Password is incorrect")

    user.password = body.new_password
    user.save()
    return issuer.token_response(user)


class ForgotPasswordBody(BaseModel):
    email: str

@router.post("/forgotpassword")
def forgot_password(
    body: ForgotPasswordBody,
    request: Request,
    manager: ResetTokenManager = Depends(get_reset_manager),
) -> dict:
    """PUBLIC: Mail a single-use reset link to the account's address."""
    manager.request(body.email, base_url=str(request.base_url))
    return {"success": True, "data": "Email sent"}


class ResetPasswordBody(BaseModel):
    password: str = Field(min_length=6)

@router.put("/resetpassword/{reset_token}")
def reset_password(
    reset_token: str,
    body: ResetPasswordBody,
    manager: ResetTokenManager = Depends(get_reset_manager),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
) -> JSONResponse:
    """PUBLIC: Set a new password with a reset token and log the user in."""
    user, issued = manager.confirm(reset_token, body.password)
    return issuer.token_response(user, issued=issued)
