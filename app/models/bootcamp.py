from mongoengine import BooleanField, EmailField, FloatField, IntField, ListField, ReferenceField, StringField

from app.models.base import BaseDocument
from app.models.user import User
from app.utils.base import Career


class Bootcamp(BaseDocument):
    """Bootcamp document, owned by the publisher who created it.

    Fields:
    - name (str, unique): Display name, max 50 chars
    - description (str): Max 500 chars
    - website/phone/email/address (str): Contact details
    - careers (list[str]): Career tracks offered
    - average_rating (float|None), average_cost (int|None): derived aggregates
    - photo (str): File name of the cover photo
    - housing/job_assistance/job_guarantee/accept_gi (bool)
    - user (Ref[User]): Owner
    """
    name = StringField(required=True, null=False, unique=True, max_length=50)
    description = StringField(required=True, null=False, max_length=500)
    website = StringField(null=True, regex=r"^https?://\S+$")
    phone = StringField(null=True, max_length=20)
    email = EmailField(null=True)
    address = StringField(required=True, null=False)
    careers = ListField(StringField(choices=Career.choices()), required=True)
    average_rating = FloatField(null=True, min_value=1, max_value=10)
    average_cost = IntField(null=True)
    photo = StringField(default="no-photo.jpg")
    housing = BooleanField(default=False)
    job_assistance = BooleanField(default=False)
    job_guarantee = BooleanField(default=False)
    accept_gi = BooleanField(default=False)
    user = ReferenceField(document_type=User, required=True, null=False)

    meta = {
        "collection": "bootcamps",
        "indexes": [
            {"fields": ["name"], "unique": True},
            "user",
        ],
    }

    def to_output(self, fields=None, exclude=None):
        data = super().to_output(fields=fields, exclude=list(exclude or []) + ["user"])
        if fields is None or "user" in fields:
            # Raw reference: the owner may have been deleted
            owner_id = self.to_mongo().get("user")
            data["user"] = str(owner_id) if owner_id else None
        return data
