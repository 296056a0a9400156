from typing import Literal

from fastapi import APIRouter, Depends, Request
from mongoengine.errors import NotUniqueError
from pydantic import BaseModel, EmailStr, Field

from app.models.user import User
from app.services.access import require_roles
from app.services.credentials import create_user, find_by_id
from app.services.query import advanced_results
from app.utils.base import Role
from app.utils.errors import ValidationError


# Every route here is admin only
router = APIRouter(dependencies=[Depends(require_roles(Role.ADMIN.value))])

RoleName = Literal["user", "publisher", "admin"]


class UserBody(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: RoleName = "user"


class UserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None
    role: RoleName | None = None


@router.get("")
def list_users(request: Request) -> dict:
    return advanced_results(User, request)


@router.get("/{user_id}")
def get_user(user_id: str) -> dict:
    return {"success": True, "data": find_by_id(user_id).to_output()}


@router.post("", status_code=201)
def create(body: UserBody) -> dict:
    user = create_user(name=body.name, email=body.email, password=body.password, role=body.role)
    return {"success": True, "data": user.to_output()}


@router.put("/{user_id}")
def update(user_id: str, body: UserUpdate) -> dict:
    user = find_by_id(user_id)
    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value.lower() if field == "email" else value)
    try:
        # Password is not loaded, so skip full-document validation; the DTO covered the rest
        user.save(validate=False)
    except NotUniqueError:
        raise ValidationError("Duplicate field value entered")
    return {"success": True, "data": user.to_output()}


@router.delete("/{user_id}")
def delete(user_id: str) -> dict:
    find_by_id(user_id).delete()
    return {"success": True, "data": {}}
