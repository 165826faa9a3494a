"""
User handler: sign-up, sign-in and user lookups.

Sign-up and sign-in hand back a JWT (see ``app.auth``); everything else in
the service only ever sees the ``userId`` that the token resolves to.
Password hashes never leave this module.
"""
import logging
import uuid

from fastapi import Depends
from fastapi.responses import Response

from app.auth import enforce_jwt, hash_password, sign_jwt, verify_password
from app.datastore import Datastore, UserRecord, get_datastore
from app.errors import ERRORS, DuplicateUserError, error_response
from app.schemas import SignInRequest, SignUpRequest

logger = logging.getLogger(__name__)


def _public(user: UserRecord) -> dict:
    """Wire shape of *user*, without the password hash."""
    return user.model_dump(by_alias=True, exclude={"password"})


class UserHandler:
    def __init__(self, db: Datastore = Depends(get_datastore)) -> None:
        self.db = db

    async def sign_up(self, req: SignUpRequest) -> Response | dict:
        if not all([req.first_name, req.last_name, req.email, req.username, req.password]):
            return error_response(400, ERRORS.USER_REQUIRED_FIELDS)

        if await self.db.get_user_by_email(req.email) or await self.db.get_user_by_username(
            req.username
        ):
            return error_response(403, ERRORS.DUPLICATE_USER)

        user = UserRecord(
            id=str(uuid.uuid4()),
            first_name=req.first_name,
            last_name=req.last_name,
            email=req.email,
            username=req.username,
            password=hash_password(req.password),
        )
        try:
            await self.db.create_user(user)
        except DuplicateUserError:
            logger.info("Concurrent duplicate sign-up rejected by storage: %s", user.username)
            return error_response(403, ERRORS.DUPLICATE_USER)
        logger.info("User %s signed up as %s", user.id, user.username)
        return {"jwt": sign_jwt(user.id)}

    async def sign_in(self, req: SignInRequest) -> Response | dict:
        """*login* may be either the email address or the username."""
        if not req.login or not req.password:
            return error_response(400, ERRORS.USER_REQUIRED_FIELDS)

        user = await self.db.get_user_by_email(req.login) or await self.db.get_user_by_username(
            req.login
        )
        if user is None or not verify_password(req.password, user.password):
            return error_response(403, ERRORS.INVALID_LOGIN)

        return {"user": _public(user), "jwt": sign_jwt(user.id)}

    async def get(self, user_id: str | None) -> Response | dict:
        if not user_id:
            return error_response(400, ERRORS.USER_ID_MISSING)
        user = await self.db.get_user(user_id)
        if user is None:
            return error_response(404, ERRORS.USER_NOT_FOUND)
        return {"user": _public(user)}

    async def get_current(self, user_id: str) -> Response | dict:
        user = await self.db.get_user(user_id)
        if user is None:
            return error_response(404, ERRORS.USER_NOT_FOUND)
        return {"user": _public(user)}


# ---------------------------------------------------------------------------
# Route functions
# ---------------------------------------------------------------------------

async def sign_up(body: SignUpRequest | None = None, users: UserHandler = Depends()):
    return await users.sign_up(body or SignUpRequest())


async def sign_in(body: SignInRequest | None = None, users: UserHandler = Depends()):
    return await users.sign_in(body or SignInRequest())


async def get_user(user_id: str, users: UserHandler = Depends()):
    return await users.get(user_id)


async def get_current_user(
    user_id: str = Depends(enforce_jwt),
    users: UserHandler = Depends(),
):
    return await users.get_current(user_id)
