import hashlib
import secrets

from passlib.context import CryptContext


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain: str, hashed: str | None) -> bool:
    """Verify plaintext password against a bcrypt hash."""
    if not plain or not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def hash_password(plain: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return pwd_context.hash(plain)


def generate_reset_token(nbytes: int = 20) -> str:
    """Random hex token; only ever sent to the user, never stored."""
    return secrets.token_hex(nbytes)


def hash_reset_token(token: str) -> str:
    """One-way SHA-256 digest stored in place of the plaintext reset token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
