from datetime import datetime, timezone

from mongoengine.errors import NotUniqueError
from pydantic import BaseModel, EmailStr, Field

from app.models.user import User
from app.utils.base import Role
from app.utils.errors import NotFound, ValidationError


class UserDetailsUpdate(BaseModel):
    """Fields a user may change on their own record."""
    name: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None


def create_user(name: str, email: str, password: str, role: str = Role.USER.value) -> User:
    """Persist a new user; the password is hashed by the document's save hook."""
    user = User(name=name, email=email.lower(), password=password, role=role)
    try:
        user.save()
    except NotUniqueError:
        raise ValidationError("Duplicate field value entered")
    return user


def find_by_email(email: str, include_password: bool = False) -> User:
    include = ("password",) if include_password else ()
    user: User | None = User.query(include=include, email=email.lower()).first()
    if not user:
        raise NotFound(f"No user with email {email}")
    return user


def find_by_id(user_id: str, include_password: bool = False) -> User:
    include = ("password",) if include_password else ()
    user: User | None = User.get_by_id(user_id, include=include)
    if not user:
        raise NotFound(f"User not found with id of {user_id}")
    return user


def update_details(user: User, fields: UserDetailsUpdate) -> User:
    """Apply a validated partial update and return the fresh record."""
    changes = {f"set__{key}": value for key, value in fields.model_dump(exclude_none=True).items()}
    if "set__email" in changes:
        changes["set__email"] = changes["set__email"].lower()
    if changes:
        changes["set__updated_at"] = datetime.now(timezone.utc)
        try:
            User.objects(id=user.id).update_one(**changes)
        except NotUniqueError:
            raise ValidationError("Duplicate field value entered")
    return find_by_id(str(user.id))
