import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt

from app.models.user import User
from app.utils.config import Settings, get_settings
from app.utils.errors import InvalidToken, NotAuthenticated, TokenExpired


logger = logging.getLogger(__name__)

COOKIE_NAME = "token"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class AuthContext:
    """Authenticated caller, passed explicitly to every protected handler."""
    user_id: str
    role: str
    user: User


class SessionTokenIssuer:
    """Creates and verifies stateless signed session tokens.

    Tokens are never stored server side: a token stays valid until it expires,
    logout only removes the client's cookie.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str,
        expires_delta: timedelta,
        cookie_expires_delta: timedelta,
        secure_cookie: bool = False,
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = expires_delta
        self.cookie_expires_delta = cookie_expires_delta
        self.secure_cookie = secure_cookie

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionTokenIssuer":
        return cls(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expires_delta=timedelta(days=settings.jwt_expire_days),
            cookie_expires_delta=timedelta(days=settings.jwt_cookie_expire_days),
            secure_cookie=settings.is_production,
        )

    def issue(self, user_id: str, now: datetime | None = None) -> IssuedToken:
        """Create a signed JWT for the user expiring after the configured lifetime."""
        now = now or datetime.now(timezone.utc)
        # Whole seconds, matching the precision of the "exp" claim
        expires_at = datetime.fromtimestamp(int((now + self.expires_delta).timestamp()), timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(token=token, expires_at=expires_at)

    def verify(self, token: str) -> str:
        """Return the user id carried by a token, rejecting bad signatures and expired tokens."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError:
            raise InvalidToken()

        user_id = payload.get("sub")
        if not user_id:
            raise InvalidToken()
        return user_id

    def token_response(self, user: User, status_code: int = 200, issued: IssuedToken | None = None) -> JSONResponse:
        """Return a session token for the user in the body and an http-only cookie."""
        issued = issued or self.issue(str(user.id))
        response = JSONResponse(status_code=status_code, content={"success": True, "token": issued.token})
        response.set_cookie(
            key=COOKIE_NAME,
            value=issued.token,
            expires=datetime.now(timezone.utc) + self.cookie_expires_delta,
            httponly=True,
            secure=self.secure_cookie,
        )
        return response

    def clear_cookie(self, response: JSONResponse) -> JSONResponse:
        # Expiry in the past makes clients drop the cookie immediately
        response.set_cookie(
            key=COOKIE_NAME,
            value="",
            expires=datetime(1970, 1, 1, tzinfo=timezone.utc),
            max_age=0,
            httponly=True,
            secure=self.secure_cookie,
        )
        return response


def get_token_issuer(settings: Settings = Depends(get_settings)) -> SessionTokenIssuer:
    return SessionTokenIssuer.from_settings(settings)


def get_auth_context(
    request: Request,
    bearer_token: str | None = Depends(oauth2_scheme),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
) -> AuthContext:
    """Auth dependency that resolves the caller from a bearer header or the session cookie.

    Rejects missing or invalid tokens and tokens whose user no longer exists.
    """
    token = bearer_token or request.cookies.get(COOKIE_NAME)
    if not token:
        raise NotAuthenticated()

    user_id = issuer.verify(token)
    user: User | None = User.get_by_id(user_id)
    if not user:
        logger.info("Token presented for unknown user %s", user_id)
        raise NotAuthenticated()
    return AuthContext(user_id=str(user.id), role=user.role, user=user)
