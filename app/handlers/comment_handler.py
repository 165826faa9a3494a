import logging
import time
import uuid

from fastapi import Depends
from fastapi.responses import Response

from app.auth import parse_jwt
from app.datastore import Datastore, get_datastore
from app.errors import ERRORS, error_response
from app.schemas import Comment, CreateCommentRequest

logger = logging.getLogger(__name__)


class CommentHandler:
    def __init__(self, db: Datastore = Depends(get_datastore)) -> None:
        self.db = db

    async def count(self, post_id: str | None) -> Response | dict:
        if not post_id:
            return error_response(400, ERRORS.POST_ID_MISSING)
        return {"count": await self.db.count_comments(post_id)}

    async def list(self, post_id: str | None) -> Response | dict:
        if not post_id:
            return error_response(400, ERRORS.POST_ID_MISSING)
        comments = await self.db.list_comments(post_id)
        return {"comments": [c.dump() for c in comments]}

    async def create(self, post_id: str | None, text: str | None, user_id: str) -> Response:
        if not post_id:
            return error_response(400, ERRORS.POST_ID_MISSING)
        if not text:
            return error_response(400, ERRORS.COMMENT_MISSING)
        if not await self.db.get_post(post_id):
            return error_response(404, ERRORS.POST_NOT_FOUND)

        comment = Comment(
            id=str(uuid.uuid4()),
            post_id=post_id,
            user_id=user_id,
            comment=text,
            posted_at=int(time.time() * 1000),
        )
        await self.db.create_comment(comment)
        logger.info("Comment %s added to post %s", comment.id, post_id)
        return Response(status_code=200)

    async def delete(self, comment_id: str | None) -> Response:
        if not comment_id:
            return error_response(400, ERRORS.COMMENT_ID_MISSING)
        if not await self.db.get_comment(comment_id):
            return error_response(404, ERRORS.COMMENT_NOT_FOUND)
        # Like post deletion, not restricted to the comment's author.
        await self.db.delete_comment(comment_id)
        return Response(status_code=200)


# ---------------------------------------------------------------------------
# Route functions
# ---------------------------------------------------------------------------

async def count_comments(post_id: str, comments: CommentHandler = Depends()):
    return await comments.count(post_id)


async def list_comments(post_id: str, comments: CommentHandler = Depends()):
    return await comments.list(post_id)


async def create_comment(
    post_id: str,
    body: CreateCommentRequest | None = None,
    user_id: str | None = Depends(parse_jwt),
    comments: CommentHandler = Depends(),
):
    body = body or CreateCommentRequest()
    return await comments.create(post_id, body.comment, user_id)


async def delete_comment(comment_id: str, comments: CommentHandler = Depends()):
    return await comments.delete(comment_id)
