"""
Bearer-token identity verification.

Clients send ``Authorization: Bearer <token>`` where the token is an HS256 JWT
whose ``sub`` claim is the user id. Tokens are verified on every request.
"""
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from errors import AuthError

ALGORITHM = "HS256"


def bearer_token(header: str | None) -> str:
    """Extract the token from an Authorization header value."""
    if not header or not header.startswith("Bearer "):
        raise AuthError("Missing authentication token")
    token = header[len("Bearer "):].strip()
    if not token:
        raise AuthError("Missing authentication token")
    return token


def create_id_token(user_id: str, secret: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    now = datetime.now(timezone.utc)
    claims = {"sub": user_id, "iat": now, "exp": now + expires_in}
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


class IdentityVerifier:
    def __init__(self, secret: str):
        if not secret:
            raise ValueError("IdentityVerifier needs a signing secret")
        self.secret = secret

    def verify(self, token: str) -> str:
        """Return the verified user id for ``token`` or raise AuthError."""
        try:
            claims = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError as e:
            raise AuthError("Authentication token has expired") from e
        except JWTError as e:
            raise AuthError("Invalid authentication token") from e
        user_id = claims.get("sub")
        if not user_id:
            raise AuthError("Invalid authentication token")
        return str(user_id)
