"""
Direct handler tests: exercise the handler contracts without HTTP or SQL.

Handlers take their datastore through the constructor, so these tests hand
them an in-memory ``Datastore`` and inspect the returned responses.  This
also covers inputs the router can never produce, such as an empty path
parameter.
"""
import json

import pytest

from app.datastore import Datastore, UserRecord
from app.errors import ERRORS, DuplicateLikeError, DuplicateUserError
from app.handlers.comment_handler import CommentHandler
from app.handlers.like_handler import LikeHandler
from app.handlers.post_handler import PostHandler
from app.handlers.user_handler import UserHandler
from app.schemas import Comment, Like, Post, SignInRequest, SignUpRequest


class MemoryDatastore(Datastore):
    def __init__(self) -> None:
        self.users: dict[str, UserRecord] = {}
        self.posts: dict[str, Post] = {}
        self.likes: set[tuple[str, str]] = set()
        self.comments: dict[str, Comment] = {}

    async def create_user(self, user):
        for other in self.users.values():
            if other.email == user.email or other.username == user.username:
                raise DuplicateUserError(user.email, user.username)
        self.users[user.id] = user

    async def get_user(self, user_id):
        return self.users.get(user_id)

    async def get_user_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email), None)

    async def get_user_by_username(self, username):
        return next((u for u in self.users.values() if u.username == username), None)

    async def create_post(self, post):
        self.posts[post.id] = post

    async def list_posts(self, user_id=None):
        return [await self.get_post(p, user_id) for p in self.posts]

    async def get_post(self, post_id, user_id=None):
        post = self.posts.get(post_id)
        if post is None:
            return None
        return post.model_copy(update={"liked": (post_id, user_id) in self.likes})

    async def delete_post(self, post_id):
        self.posts.pop(post_id, None)

    async def create_like(self, like):
        key = (like.post_id, like.user_id)
        if key in self.likes:
            raise DuplicateLikeError(*key)
        self.likes.add(key)

    async def delete_like(self, like):
        self.likes.discard((like.post_id, like.user_id))

    async def get_likes(self, post_id):
        return sum(1 for p, _ in self.likes if p == post_id)

    async def exists(self, like):
        return (like.post_id, like.user_id) in self.likes

    async def create_comment(self, comment):
        self.comments[comment.id] = comment

    async def list_comments(self, post_id):
        return [c for c in self.comments.values() if c.post_id == post_id]

    async def count_comments(self, post_id):
        return len(await self.list_comments(post_id))

    async def get_comment(self, comment_id):
        return self.comments.get(comment_id)

    async def delete_comment(self, comment_id):
        self.comments.pop(comment_id, None)


class RacingDatastore(MemoryDatastore):
    """Another writer always wins between ``exists`` and ``create_like``."""

    async def exists(self, like):
        return False

    async def create_like(self, like):
        raise DuplicateLikeError(like.post_id, like.user_id)


class VanishingPostDatastore(MemoryDatastore):
    """The post is deleted between the handler's checks and the like insert."""

    async def create_like(self, like):
        self.posts.pop(like.post_id, None)
        raise DuplicateLikeError(like.post_id, like.user_id)


class BlindUserLookupDatastore(MemoryDatastore):
    """A concurrent sign-up lands after the email and username lookups."""

    async def get_user_by_email(self, email):
        return None

    async def get_user_by_username(self, username):
        return None


def _error(resp) -> dict:
    return json.loads(resp.body)


@pytest.fixture
def db() -> MemoryDatastore:
    store = MemoryDatastore()
    store.posts["p1"] = Post(id="p1", title="Hi", url="http://x", user_id="u1", posted_at=1)
    return store


# ---------------------------------------------------------------------------
# PostHandler
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_post_create_stores_new_post(db):
    resp = await PostHandler(db).create("Title", "http://t", "u2")
    assert resp.status_code == 200
    assert resp.body == b""

    created = [p for p in db.posts.values() if p.title == "Title"]
    assert len(created) == 1
    assert created[0].user_id == "u2"
    assert created[0].url == "http://t"
    assert created[0].id != "p1"
    assert created[0].posted_at > 0


@pytest.mark.asyncio
@pytest.mark.parametrize("title,url", [(None, "http://t"), ("T", None), ("", "http://t"), ("T", "")])
async def test_post_create_requires_title_and_url(db, title, url):
    resp = await PostHandler(db).create(title, url, "u2")
    assert resp.status_code == 400
    assert resp.body == b""
    assert list(db.posts) == ["p1"]


@pytest.mark.asyncio
async def test_post_get(db):
    handler = PostHandler(db)
    assert (await handler.get(None, None)).status_code == 400
    assert (await handler.get("missing", None)).status_code == 404
    assert (await handler.get("p1", None))["post"]["id"] == "p1"


@pytest.mark.asyncio
async def test_post_delete(db):
    handler = PostHandler(db)
    assert (await handler.delete("")).status_code == 400
    assert (await handler.delete("p1")).status_code == 200
    assert db.posts == {}


@pytest.mark.asyncio
async def test_post_list_uses_camel_case(db):
    body = await PostHandler(db).list("u1")
    assert body["posts"][0]["userId"] == "u1"
    assert body["posts"][0]["postedAt"] == 1


# ---------------------------------------------------------------------------
# LikeHandler
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_like_state_machine(db):
    handler = LikeHandler(db)

    assert (await handler.create("p1", "u2")).status_code == 200
    second = await handler.create("p1", "u2")
    assert second.status_code == 400
    assert _error(second) == {"error": ERRORS.DUPLICATE_LIKE}
    assert await handler.list("p1") == {"likes": 1}

    assert (await handler.delete("p1", "u2")).status_code == 200
    assert (await handler.delete("p1", "u2")).status_code == 200
    assert await handler.list("p1") == {"likes": 0}


@pytest.mark.asyncio
async def test_like_missing_post_id(db):
    handler = LikeHandler(db)
    for resp in (
        await handler.create("", "u2"),
        await handler.delete(None, "u2"),
        await handler.list(""),
    ):
        assert resp.status_code == 400
        assert _error(resp) == {"error": ERRORS.POST_ID_MISSING}


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", ["u1", "u2", "someone-else"])
async def test_like_unknown_post_is_not_found(db, user_id):
    handler = LikeHandler(db)
    for resp in (await handler.create("nope", user_id), await handler.delete("nope", user_id)):
        assert resp.status_code == 404
        assert _error(resp) == {"error": ERRORS.POST_NOT_FOUND}
    assert db.likes == set()


@pytest.mark.asyncio
async def test_like_storage_backstop_reports_duplicate():
    db = RacingDatastore()
    db.posts["p1"] = Post(id="p1", title="Hi", url="http://x", user_id="u1", posted_at=1)

    resp = await LikeHandler(db).create("p1", "u2")
    assert resp.status_code == 400
    assert _error(resp) == {"error": ERRORS.DUPLICATE_LIKE}


# ---------------------------------------------------------------------------
# CommentHandler
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_comment_create_and_count(db):
    handler = CommentHandler(db)
    assert (await handler.create("p1", "hello", "u2")).status_code == 200
    assert await handler.count("p1") == {"count": 1}

    listed = await handler.list("p1")
    assert listed["comments"][0]["comment"] == "hello"
    assert listed["comments"][0]["userId"] == "u2"


@pytest.mark.asyncio
async def test_comment_validation_order(db):
    handler = CommentHandler(db)
    assert _error(await handler.create("", "hello", "u2")) == {"error": ERRORS.POST_ID_MISSING}
    assert _error(await handler.create("p1", "", "u2")) == {"error": ERRORS.COMMENT_MISSING}
    missing = await handler.create("nope", "hello", "u2")
    assert missing.status_code == 404
    assert db.comments == {}


@pytest.mark.asyncio
async def test_comment_delete(db):
    handler = CommentHandler(db)
    await handler.create("p1", "hello", "u2")
    comment_id = next(iter(db.comments))

    assert (await handler.delete("")).status_code == 400
    assert (await handler.delete("nope")).status_code == 404
    assert (await handler.delete(comment_id)).status_code == 200
    assert db.comments == {}


@pytest.mark.asyncio
async def test_comment_missing_post_id_on_reads(db):
    handler = CommentHandler(db)
    assert (await handler.count("")).status_code == 400
    assert (await handler.list(None)).status_code == 400


# ---------------------------------------------------------------------------
# UserHandler
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_user_sign_up_hashes_password(db):
    req = SignUpRequest(
        first_name="Ada", last_name="L", email="ada@x.io", username="ada", password="pw"
    )
    body = await UserHandler(db).sign_up(req)
    assert "jwt" in body

    stored = next(iter(db.users.values()))
    assert stored.password != "pw"


@pytest.mark.asyncio
async def test_user_sign_in_and_lookup(db):
    handler = UserHandler(db)
    await handler.sign_up(SignUpRequest(
        first_name="Ada", last_name="L", email="ada@x.io", username="ada", password="pw"
    ))

    body = await handler.sign_in(SignInRequest(login="ada@x.io", password="pw"))
    user_id = body["user"]["id"]
    assert "password" not in body["user"]

    assert (await handler.get(user_id))["user"]["username"] == "ada"
    assert (await handler.get_current(user_id))["user"]["email"] == "ada@x.io"
    assert (await handler.get("")).status_code == 400
    assert (await handler.get("nobody")).status_code == 404
    assert (await handler.get_current("nobody")).status_code == 404


def test_like_key_is_the_pair():
    assert Like(post_id="p", user_id="u").dump() == {"postId": "p", "userId": "u"}


@pytest.mark.asyncio
async def test_like_on_post_deleted_mid_request_is_not_found():
    db = VanishingPostDatastore()
    db.posts["p1"] = Post(id="p1", title="Hi", url="http://x", user_id="u1", posted_at=1)

    resp = await LikeHandler(db).create("p1", "u2")
    assert resp.status_code == 404
    assert _error(resp) == {"error": ERRORS.POST_NOT_FOUND}


@pytest.mark.asyncio
async def test_user_sign_up_storage_backstop_reports_duplicate():
    db = BlindUserLookupDatastore()
    handler = UserHandler(db)
    req = SignUpRequest(
        first_name="Ada", last_name="L", email="ada@x.io", username="ada", password="pw"
    )
    assert "jwt" in await handler.sign_up(req)

    resp = await handler.sign_up(req)
    assert resp.status_code == 403
    assert _error(resp) == {"error": ERRORS.DUPLICATE_USER}
    assert len(db.users) == 1
