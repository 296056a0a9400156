import re
from typing import Any, Type

from fastapi import Request
from mongoengine import BooleanField, FloatField, IntField, QuerySet

from app.models.base import BaseDocument
from app.utils.config import settings
from app.utils.errors import ValidationError


RESERVED_PARAMS = {"select", "sort", "page", "limit"}
OPERATORS = {"gt", "gte", "lt", "lte", "in"}
_FILTER_KEY = re.compile(r"^(?P<field>\w+)(\[(?P<op>\w+)\])?$")


def _to_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _coerce(model: Type[BaseDocument], name: str, value: str) -> Any:
    field = model._fields[name]
    try:
        if isinstance(field, BooleanField):
            return value.lower() in ("true", "1", "yes")
        if isinstance(field, IntField):
            return int(value)
        if isinstance(field, FloatField):
            return float(value)
    except ValueError:
        raise ValidationError(f"Invalid value for {name}: {value}")
    return value


def build_filters(model: Type[BaseDocument], params: dict[str, str]) -> dict[str, Any]:
    """Translate ``field=value`` and ``field[op]=value`` params into mongoengine lookups.

    Only real, visible fields of the model are honoured so callers cannot
    filter on hidden fields or inject raw query operators.
    """
    filters: dict[str, Any] = {}
    hidden = set(getattr(model, "hidden_fields", ()))
    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue
        match = _FILTER_KEY.match(key)
        if not match:
            continue
        field, op = match.group("field"), match.group("op")
        if field not in model._fields or field in hidden:
            continue
        if op is None:
            filters[field] = _coerce(model, field, value)
        elif op == "in":
            filters[f"{field}__in"] = [_coerce(model, field, v) for v in value.split(",")]
        elif op in OPERATORS:
            filters[f"{field}__{op}"] = _coerce(model, field, value)
    return filters


def advanced_results(
    model: Type[BaseDocument],
    request: Request,
    queryset: QuerySet | None = None,
) -> dict[str, Any]:
    """Filter, select, sort and paginate a collection from the request's query string."""
    params = dict(request.query_params)
    queryset = queryset if queryset is not None else model.query()
    queryset = queryset.filter(**build_filters(model, params))

    fields = None
    if params.get("select"):
        fields = [f for f in params["select"].split(",") if f in model._fields]
        if fields:
            queryset = queryset.only(*fields)

    sort_keys = [
        key for key in (params.get("sort") or "-created_at").split(",")
        if key.lstrip("-+") in model._fields
    ]
    if sort_keys:
        queryset = queryset.order_by(*sort_keys)

    page = max(_to_int(params.get("page"), 1), 1)
    limit = min(max(_to_int(params.get("limit"), settings.default_page_limit), 1), settings.max_page_limit)
    start = (page - 1) * limit
    total = queryset.count()
    documents = list(queryset.skip(start).limit(limit))

    pagination: dict[str, Any] = {}
    if start + limit < total:
        pagination["next"] = {"page": page + 1, "limit": limit}
    if start > 0:
        pagination["prev"] = {"page": page - 1, "limit": limit}

    return {
        "success": True,
        "count": len(documents),
        "pagination": pagination,
        "data": [doc.to_output(fields=fields) for doc in documents],
    }
