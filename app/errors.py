"""
Error vocabulary shared by the handlers, the auth gate and the app factory.

Handlers report expected failures (bad input, missing resources, duplicate
likes) themselves as direct status responses.  Anything else propagates to
``unhandled_error_handler``, the application's top-level boundary.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ERRORS:
    BAD_TOKEN = "Bad token"
    USER_REQUIRED_FIELDS = "All fields are required"
    USER_NOT_FOUND = "User not found"
    USER_ID_MISSING = "User ID missing"
    DUPLICATE_USER = "User already exists"
    INVALID_LOGIN = "Invalid login or password"
    POST_ID_MISSING = "Post ID missing"
    POST_NOT_FOUND = "No post found with this ID"
    DUPLICATE_LIKE = "No more likes for same post, same userid"
    COMMENT_MISSING = "Comment text missing"
    COMMENT_ID_MISSING = "Comment ID missing"
    COMMENT_NOT_FOUND = "No comment found with this ID"
    UNEXPECTED = "Oops, an unexpected error occurred, please try again"


class EndpointConfigError(RuntimeError):
    """The endpoint table and the handler table disagree.  Raised at startup."""


class DuplicateLikeError(Exception):
    """The storage layer rejected a second like for the same (post, user)."""

    def __init__(self, post_id: str, user_id: str) -> None:
        super().__init__(f"duplicate like post_id={post_id} user_id={user_id}")
        self.post_id = post_id
        self.user_id = user_id


class DuplicateUserError(Exception):
    """The storage layer rejected a user whose email or username is taken."""

    def __init__(self, email: str, username: str) -> None:
        super().__init__(f"duplicate user email={email} username={username}")
        self.email = email
        self.username = username


def error_response(status_code: int, message: str) -> JSONResponse:
    """Return a ``{"error": message}`` response with *status_code*."""
    return JSONResponse({"error": message}, status_code=status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return error_response(500, ERRORS.UNEXPECTED)
