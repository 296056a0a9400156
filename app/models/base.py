from datetime import datetime, timezone
from typing import Any
from bson.objectid import ObjectId
from mongoengine import Document, DateTimeField, EmbeddedDocument
from mongoengine.errors import ValidationError


class BaseDocumentMixin:
    # Fields never rendered by to_output
    hidden_fields: tuple[str, ...] = ()

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, Document):
            return value.to_output() if hasattr(value, "to_output") else str(value.id)
        elif isinstance(value, EmbeddedDocument):
            value = {k: self._sanitize_value(getattr(value, k)) for k in value._fields}
        if isinstance(value, list):
            return [self._sanitize_value(v) for v in value]
        if isinstance(value, dict):
            return {k: self._sanitize_value(v) for k, v in value.items()}
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, ObjectId):
            return str(value)
        return value

    def to_output(self, fields=None, exclude=None):
        data: dict[str, Any] = {}
        exclude = list(exclude or []) + list(self.hidden_fields) + ["id"]
        fields = fields or self._fields.keys()

        for field in fields:
            if field in exclude:
                continue
            value = getattr(self, field)
            data[field] = self._sanitize_value(value)

        data["id"] = str(self.id)
        return data

    def to_dict(self, fields=None, exclude=None):
        return self.to_output(fields=fields, exclude=exclude)


class BaseDocument(Document, BaseDocumentMixin):
    created_at = DateTimeField(default=lambda: datetime.now(timezone.utc), null=False)
    updated_at = DateTimeField(default=lambda: datetime.now(timezone.utc), null=False)

    # Fields left out of reads unless a caller asks for them
    deferred_fields: tuple[str, ...] = ()

    meta = {
        "abstract": True,
    }

    @classmethod
    def query(cls, include: tuple[str, ...] = (), **filters):
        queryset = cls.objects(**filters)
        deferred = [field for field in cls.deferred_fields if field not in include]
        return queryset.exclude(*deferred) if deferred else queryset

    @classmethod
    def get_by_id(cls, document_id: Any, include: tuple[str, ...] = ()):
        """Return the document with this id, or None when absent or malformed."""
        try:
            return cls.query(include=include, id=document_id).first()
        except ValidationError:
            return None

    def save(self, *args, **kwargs):
        self.updated_at = datetime.now(timezone.utc)
        return super().save(*args, **kwargs)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the store."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
