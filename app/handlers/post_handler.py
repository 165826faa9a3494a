"""
Post handler: list, get, create and delete links.

Failures are answered with bare status codes (no body), unlike the other
handlers which send ``{"error": ...}``.  Existing clients only look at the
status here, so the two formats are kept apart.
"""
import logging
import time
import uuid

from fastapi import Depends
from fastapi.responses import Response

from app.auth import parse_jwt
from app.datastore import Datastore, get_datastore
from app.schemas import CreatePostRequest, DeletePostRequest, Post

logger = logging.getLogger(__name__)


class PostHandler:
    def __init__(self, db: Datastore = Depends(get_datastore)) -> None:
        self.db = db

    async def list(self, user_id: str | None) -> dict:
        posts = await self.db.list_posts(user_id)
        return {"posts": [p.dump() for p in posts]}

    async def create(self, title: str | None, url: str | None, user_id: str) -> Response:
        if not title or not url:
            return Response(status_code=400)

        # A URL that was posted before still gets a new post.
        post = Post(
            id=str(uuid.uuid4()),
            posted_at=int(time.time() * 1000),
            title=title,
            url=url,
            user_id=user_id,
        )
        await self.db.create_post(post)
        logger.info("Post %s created by %s", post.id, user_id)
        return Response(status_code=200)

    async def delete(self, post_id: str | None) -> Response:
        if not post_id:
            return Response(status_code=400)
        # No ownership check: any signed-in user may delete any post.
        await self.db.delete_post(post_id)
        logger.info("Post %s deleted", post_id)
        return Response(status_code=200)

    async def get(self, post_id: str | None, user_id: str | None) -> Response | dict:
        if not post_id:
            return Response(status_code=400)
        post = await self.db.get_post(post_id, user_id)
        if post is None:
            return Response(status_code=404)
        return {"post": post.dump()}


# ---------------------------------------------------------------------------
# Route functions
# ---------------------------------------------------------------------------

async def list_posts(
    user_id: str | None = Depends(parse_jwt),
    posts: PostHandler = Depends(),
):
    return await posts.list(user_id)


async def get_post(
    post_id: str,
    user_id: str | None = Depends(parse_jwt),
    posts: PostHandler = Depends(),
):
    return await posts.get(post_id, user_id)


async def create_post(
    body: CreatePostRequest | None = None,
    user_id: str | None = Depends(parse_jwt),
    posts: PostHandler = Depends(),
):
    body = body or CreatePostRequest()
    return await posts.create(body.title, body.url, user_id)


async def delete_post(
    body: DeletePostRequest | None = None,
    posts: PostHandler = Depends(),
):
    body = body or DeletePostRequest()
    return await posts.delete(body.post_id)
