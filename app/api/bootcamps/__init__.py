from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, EmailStr, Field

from app.models.bootcamp import Bootcamp
from app.services.access import load_owned, require_roles
from app.services.auth import AuthContext
from app.services.query import advanced_results
from app.utils.base import Career, Role
from app.utils.errors import NotFound, ValidationError


router = APIRouter()

publishers = require_roles(Role.PUBLISHER.value, Role.ADMIN.value)


class BootcampBody(BaseModel):
    name: str = Field(max_length=50)
    description: str = Field(max_length=500)
    website: str | None = None
    phone: str | None = Field(default=None, max_length=20)
    email: EmailStr | None = None
    address: str
    careers: list[Career]
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False


class BootcampUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=50)
    description: str | None = Field(default=None, max_length=500)
    website: str | None = None
    phone: str | None = Field(default=None, max_length=20)
    email: EmailStr | None = None
    address: str | None = None
    careers: list[Career] | None = None
    housing: bool | None = None
    job_assistance: bool | None = None
    job_guarantee: bool | None = None
    accept_gi: bool | None = None


@router.get("")
def list_bootcamps(request: Request) -> dict:
    """PUBLIC: List bootcamps with filtering, selection, sorting and pagination."""
    return advanced_results(Bootcamp, request)


@router.get("/{bootcamp_id}")
def get_bootcamp(bootcamp_id: str) -> dict:
    """PUBLIC: Single bootcamp."""
    bootcamp: Bootcamp | None = Bootcamp.get_by_id(bootcamp_id)
    if not bootcamp:
        raise NotFound(f"Bootcamp not found with id of {bootcamp_id}")
    return {"success": True, "data": bootcamp.to_output()}


@router.post("", status_code=201)
def create_bootcamp(body: BootcampBody, ctx: AuthContext = Depends(publishers)) -> dict:
    """PROTECTED | PUBLISHER: Publish a bootcamp owned by the caller."""
    # Publishers get a single bootcamp; admins are unrestricted
    if ctx.role != Role.ADMIN.value and Bootcamp.objects(user=ctx.user).first():
        raise ValidationError(f"The user with id {ctx.user_id} has already published a bootcamp")

    data = body.model_dump(mode="json")
    bootcamp = Bootcamp(user=ctx.user, **data)
    bootcamp.save()
    return {"success": True, "data": bootcamp.to_output()}


@router.put("/{bootcamp_id}")
def update_bootcamp(bootcamp_id: str, body: BootcampUpdate, ctx: AuthContext = Depends(publishers)) -> dict:
    """PROTECTED | OWNER: Update bootcamp fields present in the body."""
    bootcamp: Bootcamp = load_owned(Bootcamp, bootcamp_id, ctx, action="update")
    for field, value in body.model_dump(mode="json", exclude_unset=True).items():
        setattr(bootcamp, field, value)
    bootcamp.save()
    return {"success": True, "data": bootcamp.to_output()}


@router.delete("/{bootcamp_id}")
def delete_bootcamp(bootcamp_id: str, ctx: AuthContext = Depends(publishers)) -> dict:
    """PROTECTED | OWNER: Delete a bootcamp together with its courses."""
    bootcamp: Bootcamp = load_owned(Bootcamp, bootcamp_id, ctx, action="delete")
    bootcamp.delete()
    return {"success": True, "data": {}}
