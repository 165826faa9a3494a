"""
Authentication gate: credential issuing, parsing and enforcement.

Two FastAPI dependencies make up the gate and compose independently:

- ``parse_jwt`` runs on every endpoint.  It reads an optional
  ``Authorization: Bearer <jwt>`` header and, when the token verifies and
  names a user that still exists, attaches that user's id to
  ``request.state.user_id`` and returns it.  Anything else (no header,
  ``Bearer null`` from a logged-out browser, expired or forged tokens)
  leaves the request anonymous.
- ``enforce_jwt`` runs only on endpoints configured with ``auth=True``
  and answers 401 when the parse stage resolved nobody.

Both depend on the same cached ``parse_jwt`` call, so a token is verified
at most once per request.
"""
import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.config import settings
from app.datastore import Datastore, get_datastore
from app.errors import ERRORS

logger = logging.getLogger(__name__)

# Bearer extractor that yields None instead of raising when the header is absent.
security_optional = HTTPBearer(auto_error=False)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def sign_jwt(user_id: str) -> str:
    """Issue a token for *user_id* valid for ``JWT_EXPIRES_DAYS`` days."""
    expires = datetime.now(timezone.utc) + timedelta(days=settings.JWT_EXPIRES_DAYS)
    return jwt.encode(
        {"userId": user_id, "exp": expires},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_jwt(token: str) -> str:
    """
    Return the user id carried by *token*.

    Raises ``JWTError`` (or its subclass ``ExpiredSignatureError``) when
    the token is malformed, expired, signed with another key, or lacks
    the ``userId`` claim.
    """
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    user_id = payload.get("userId")
    if not user_id:
        raise JWTError("token has no userId claim")
    return user_id


# ---------------------------------------------------------------------------
# Gate dependencies
# ---------------------------------------------------------------------------

async def parse_jwt(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_optional),
    db: Datastore = Depends(get_datastore),
) -> str | None:
    request.state.user_id = None
    if credentials is None:
        return None

    try:
        user_id = verify_jwt(credentials.credentials)
    except ExpiredSignatureError:
        logger.debug("Ignoring expired token")
        return None
    except JWTError as exc:
        logger.debug("Ignoring bad token: %s", exc)
        return None

    user = await db.get_user(user_id)
    if user is None:
        logger.warning("Token names unknown user %s", user_id)
        return None

    request.state.user_id = user.id
    return user.id


async def enforce_jwt(user_id: str | None = Depends(parse_jwt)) -> str:
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ERRORS.BAD_TOKEN,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
