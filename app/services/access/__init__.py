from typing import Type

from fastapi import Depends

from app.models.base import BaseDocument
from app.services.auth import AuthContext, get_auth_context
from app.utils.base import Role
from app.utils.errors import Forbidden, NotFound


def require_roles(*roles: str):
    """Return a FastAPI dependency admitting only callers whose role is in ``roles``."""

    def _dependency(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if ctx.role not in roles:
            raise Forbidden(f"User role {ctx.role} is not authorized to access this route")
        return ctx

    return _dependency


def is_owner_or_admin(resource: BaseDocument, ctx: AuthContext) -> bool:
    # Read the raw reference so the owner document is not dereferenced
    owner_id = resource.to_mongo().get("user")
    return (owner_id is not None and str(owner_id) == ctx.user_id) or ctx.role == Role.ADMIN.value


def ensure_owner(resource: BaseDocument, ctx: AuthContext, action: str) -> None:
    """Reject callers that neither own the resource nor are admins."""
    if not is_owner_or_admin(resource, ctx):
        kind = type(resource).__name__.lower()
        raise Forbidden(f"User {ctx.user_id} is not authorized to {action} this {kind}")


def load_owned(model: Type[BaseDocument], resource_id: str, ctx: AuthContext, action: str):
    """Load a resource for mutation: 404 when absent, 403 when not the caller's."""
    resource = model.get_by_id(resource_id)
    if not resource:
        raise NotFound(f"{model.__name__} not found with id of {resource_id}")
    ensure_owner(resource, ctx, action)
    return resource
