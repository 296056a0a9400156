from mongoengine import DateTimeField, EmailField, StringField

from app.models.base import BaseDocument
from app.utils.base import Role
from app.utils.security import hash_password


class User(BaseDocument):
    """User document.

    Fields:
    - name (str): Full name
    - email (EmailStr, unique): Login identifier
    - password (str, hashed): Bcrypt-hashed password, hashed on save
    - role (str): user/publisher/admin
    - reset_password_token (str|None): SHA-256 of the outstanding reset token
    - reset_password_expire (datetime|None): when that reset token stops working
    """
    name = StringField(required=True, null=False)
    email = EmailField(required=True, null=False, unique=True)
    password = StringField(required=True, null=False)
    role = StringField(required=True, null=False, default=Role.USER.value, choices=Role.choices())
    reset_password_token = StringField(null=True)
    reset_password_expire = DateTimeField(null=True)

    hidden_fields = ("password", "reset_password_token", "reset_password_expire")
    deferred_fields = ("password",)

    meta = {
        "collection": "users",
        "indexes": [
            {"fields": ["email"], "unique": True},
            "reset_password_token",
        ],
    }

    def save(self, *args, **kwargs):
        # Only hash a freshly set plaintext, never an already stored hash
        if self.password and (self._created or "password" in self._get_changed_fields()):
            self.password = hash_password(self.password)
        return super().save(*args, **kwargs)

    def clear_reset_token(self) -> None:
        self.reset_password_token = None
        self.reset_password_expire = None
