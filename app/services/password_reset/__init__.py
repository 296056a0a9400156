import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends

from app.models.base import as_utc
from app.models.user import User
from app.services.auth import IssuedToken, SessionTokenIssuer, get_token_issuer
from app.services.credentials import find_by_email
from app.services.mail import MailSender, get_mail_sender
from app.utils.config import Settings, get_settings
from app.utils.errors import EmailDeliveryError, InvalidOrExpiredToken, NotFound
from app.utils.security import generate_reset_token, hash_reset_token


logger = logging.getLogger(__name__)

RESET_SUBJECT = "Password reset token"
RESET_MESSAGE = (
    "You are receiving this email because you (or someone else) has requested the reset of a password. "
    "Please make a PUT request to: \n\n {reset_url}"
)


class ResetTokenManager:
    """Single-use password reset tokens.

    Only the SHA-256 of a token is stored on the user, together with its
    expiry. The plaintext leaves the process once, inside the reset mail.
    Concurrent requests for one user overwrite each other; the latest wins.
    """

    def __init__(
        self,
        mailer: MailSender,
        issuer: SessionTokenIssuer,
        expires_delta: timedelta,
        token_bytes: int = 20,
        public_base_url: str | None = None,
    ) -> None:
        self.mailer = mailer
        self.issuer = issuer
        self.expires_delta = expires_delta
        self.token_bytes = token_bytes
        self.public_base_url = public_base_url

    def request(self, email: str, base_url: str) -> str:
        """Store a fresh reset token for the user and mail its URL; return the URL."""
        try:
            user = find_by_email(email)
        except NotFound:
            raise NotFound("There is no user with that email")

        token = generate_reset_token(self.token_bytes)
        user.reset_password_token = hash_reset_token(token)
        user.reset_password_expire = datetime.now(timezone.utc) + self.expires_delta
        # Skip validation: the password is not loaded here and must stay untouched
        user.save(validate=False)

        base_url = self.public_base_url or base_url
        reset_url = f"{base_url.rstrip('/')}/api/v1/auth/resetpassword/{token}"
        try:
            self.mailer.send(user.email, RESET_SUBJECT, RESET_MESSAGE.format(reset_url=reset_url))
        except EmailDeliveryError:
            logger.exception("Reset mail to %s failed, discarding token", user.email)
            user.clear_reset_token()
            user.save(validate=False)
            raise EmailDeliveryError("Email could not be sent")
        return reset_url

    def confirm(self, token: str, new_password: str) -> tuple[User, IssuedToken]:
        """Consume a reset token: set the new password and start a fresh session."""
        user: User | None = User.query(reset_password_token=hash_reset_token(token)).first()
        expire = as_utc(user.reset_password_expire) if user else None
        if not user or expire is None or expire <= datetime.now(timezone.utc):
            raise InvalidOrExpiredToken("Invalid token")

        user.password = new_password
        user.clear_reset_token()
        user.save()
        return user, self.issuer.issue(str(user.id))


def get_reset_manager(
    settings: Settings = Depends(get_settings),
    mailer: MailSender = Depends(get_mail_sender),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
) -> ResetTokenManager:
    return ResetTokenManager(
        mailer=mailer,
        issuer=issuer,
        expires_delta=timedelta(minutes=settings.reset_token_expire_minutes),
        token_bytes=settings.reset_token_bytes,
        public_base_url=settings.public_base_url,
    )
