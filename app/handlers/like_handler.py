"""
Like handler.

A (post, user) pair is either liked or not.  ``create`` only moves a pair
from absent to present and rejects a second like; ``delete`` always
succeeds for an existing post whether or not the pair was liked.
"""
import logging

from fastapi import Depends
from fastapi.responses import JSONResponse, Response

from app.auth import parse_jwt
from app.datastore import Datastore, get_datastore
from app.errors import ERRORS, DuplicateLikeError, error_response
from app.schemas import Like

logger = logging.getLogger(__name__)


class LikeHandler:
    def __init__(self, db: Datastore = Depends(get_datastore)) -> None:
        self.db = db

    async def _check_post(self, post_id: str | None) -> JSONResponse | None:
        if not post_id:
            return error_response(400, ERRORS.POST_ID_MISSING)
        if not await self.db.get_post(post_id):
            return error_response(404, ERRORS.POST_NOT_FOUND)
        return None

    async def create(self, post_id: str | None, user_id: str) -> Response:
        failure = await self._check_post(post_id)
        if failure is not None:
            return failure

        like = Like(post_id=post_id, user_id=user_id)
        if await self.db.exists(like):
            return error_response(400, ERRORS.DUPLICATE_LIKE)
        try:
            await self.db.create_like(like)
        except DuplicateLikeError:
            if not await self.db.get_post(post_id):
                return error_response(404, ERRORS.POST_NOT_FOUND)
            logger.info("Concurrent duplicate like rejected by storage: %s/%s", post_id, user_id)
            return error_response(400, ERRORS.DUPLICATE_LIKE)
        return Response(status_code=200)

    async def delete(self, post_id: str | None, user_id: str) -> Response:
        failure = await self._check_post(post_id)
        if failure is not None:
            return failure

        await self.db.delete_like(Like(post_id=post_id, user_id=user_id))
        return Response(status_code=200)

    async def list(self, post_id: str | None) -> Response | dict:
        if not post_id:
            return error_response(400, ERRORS.POST_ID_MISSING)
        return {"likes": await self.db.get_likes(post_id)}


# ---------------------------------------------------------------------------
# Route functions
# ---------------------------------------------------------------------------

async def list_likes(post_id: str, likes: LikeHandler = Depends()):
    return await likes.list(post_id)


async def create_like(
    post_id: str,
    user_id: str | None = Depends(parse_jwt),
    likes: LikeHandler = Depends(),
):
    return await likes.create(post_id, user_id)


async def delete_like(
    post_id: str,
    user_id: str | None = Depends(parse_jwt),
    likes: LikeHandler = Depends(),
):
    return await likes.delete(post_id, user_id)
