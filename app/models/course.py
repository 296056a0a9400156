import math

from mongoengine import CASCADE, BooleanField, IntField, ReferenceField, StringField

from app.models.base import BaseDocument
from app.models.bootcamp import Bootcamp
from app.models.user import User
from app.utils.base import SkillLevel


class Course(BaseDocument):
    """Course document, offered by a bootcamp and owned by its creator.

    Fields:
    - title/description (str)
    - weeks (str): Duration as entered by the publisher
    - tuition (int): Cost in whole currency units
    - minimum_skill (str): beginner/intermediate/advanced
    - scholarship_available (bool)
    - bootcamp (Ref[Bootcamp]): Deleted along with its bootcamp
    - user (Ref[User]): Owner
    """
    title = StringField(required=True, null=False)
    description = StringField(required=True, null=False)
    weeks = StringField(required=True, null=False)
    tuition = IntField(required=True, null=False, min_value=0)
    minimum_skill = StringField(required=True, null=False, choices=SkillLevel.choices())
    scholarship_available = BooleanField(default=False)
    bootcamp = ReferenceField(document_type=Bootcamp, required=True, null=False, reverse_delete_rule=CASCADE)
    user = ReferenceField(document_type=User, required=True, null=False)

    meta = {
        "collection": "courses",
        "indexes": ["bootcamp", "user"],
    }

    def to_output(self, fields=None, exclude=None):
        data = super().to_output(fields=fields, exclude=list(exclude or []) + ["bootcamp", "user"])
        if fields is None or "bootcamp" in fields:
            # Populate only the bootcamp summary, not the full document
            data["bootcamp"] = (
                {"id": str(self.bootcamp.id), "name": self.bootcamp.name, "description": self.bootcamp.description}
                if self.bootcamp else None
            )
        if fields is None or "user" in fields:
            # Raw reference: the owner may have been deleted
            owner_id = self.to_mongo().get("user")
            data["user"] = str(owner_id) if owner_id else None
        return data


def update_average_cost(bootcamp: Bootcamp) -> None:
    """Recompute a bootcamp's average tuition, rounded up to the next ten."""
    tuitions = [course.tuition for course in Course.objects(bootcamp=bootcamp).only("tuition")]
    if not tuitions:
        Bootcamp.objects(id=bootcamp.id).update_one(unset__average_cost=True)
        return
    average_cost = math.ceil(sum(tuitions) / len(tuitions) / 10) * 10
    Bootcamp.objects(id=bootcamp.id).update_one(set__average_cost=average_cost)
