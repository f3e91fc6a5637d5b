"""
Cryptographic primitives: password hashing and JWT bearer tokens.

Everything security-sensitive is delegated to vetted libraries so this
module stays small and easy to audit:

1. PASSWORD HASHING (Argon2 via passlib)
   - Passwords are salted and hashed one-way before they reach the database
   - Verification is constant-time
   - CryptContext(deprecated="auto") rehashes transparently if the scheme
     is ever changed

2. JWT TOKENS (python-jose, HS256)
   - Claims: "sub" (user id), "role" and "exp"
   - Signature checks use a constant-time HMAC comparison inside jose
   - The server is stateless: no token storage
"""

from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from colis.config import settings


# ---------------------------------------------------------------------------
# 1. Password Hashing (Argon2)
# ---------------------------------------------------------------------------

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """
    Hash a plaintext password using Argon2id.

    Returns:
        An Argon2 hash string (e.g., "$argon2id$v=19$m=65536,t=3,p=4$...").
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a stored Argon2 hash."""
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """
    Spend the time of one hash verification without a stored hash.

    Called when a login email is unknown, so response timing does not
    reveal which addresses are registered.
    """
    pwd_context.dummy_verify()


# ---------------------------------------------------------------------------
# 2. JWT Tokens
# ---------------------------------------------------------------------------


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (must include "sub" and "role").
        expires_delta: Optional custom lifetime. Defaults to
                       ACCESS_TOKEN_EXPIRE_MINUTES from settings.

    Returns:
        An encoded JWT string.
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.

    Raises:
        jose.ExpiredSignatureError: If the token is past its "exp".
        jose.JWTError: If the token is malformed or its signature is wrong.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
