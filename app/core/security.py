"""Identity-provider token helpers.

Credentials are verified by the external identity provider; this service only
decodes the signed token it issues and trusts the claims inside.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from app.core.config import get_settings

settings = get_settings()


@dataclass(frozen=True, slots=True)
class VerifiedIdentity:
    """Claims of an already-verified principal."""

    external_id: str
    email: str
    display_name: str = ""


def decode_identity_token(token: str) -> VerifiedIdentity:
    """Decode an identity token. Raises jose.JWTError on failure."""
    payload = jwt.decode(
        token,
        settings.identity_token_secret,
        algorithms=[settings.identity_token_algorithm],
    )
    try:
        return VerifiedIdentity(
            external_id=str(payload["sub"]),
            email=str(payload["email"]),
            display_name=str(payload.get("name") or ""),
        )
    except KeyError as exc:
        raise JWTError(f"Missing claim: {exc.args[0]}") from exc


def create_identity_token(
    external_id: str,
    email: str,
    display_name: str = "",
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a token the way the identity provider does (dev tooling and tests)."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=60))
    payload = {
        "sub": external_id,
        "email": email,
        "name": display_name,
        "exp": expire,
    }
    return jwt.encode(
        payload,
        settings.identity_token_secret,
        algorithm=settings.identity_token_algorithm,
    )


def is_developer_email(email: str | None) -> bool:
    """True for configured platform-operator addresses."""
    if not email:
        return False
    return email.strip().lower() in settings.developer_email_set
