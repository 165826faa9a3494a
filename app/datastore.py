"""
Datastore contract and its SQLAlchemy implementation.

Handlers receive a ``Datastore`` through their constructor and never touch
the ORM themselves; the route layer builds one ``SqlDatastore`` per request
around the request-scoped session (``get_datastore``), and tests swap in
in-memory implementations.

Design notes
------------
- Methods flush but do not commit; the transaction boundary is owned by
  the ``get_db`` dependency.
- Records cross the contract as pydantic schemas, not ORM instances.
- ``listPosts``/``getPost`` scope their results to the caller through the
  ``liked`` flag; anonymous callers see ``liked=False`` everywhere.
- Like counts go through the cache-aside pattern (Redis, fallback to DB);
  every like write and post delete invalidates the post's entry.
"""
import abc

from fastapi import Depends
from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app import models
from app.cache import CacheManager, cache
from app.config import settings
from app.database import get_db
from app.errors import DuplicateLikeError, DuplicateUserError
from app.schemas import Comment, Like, Post, User


class UserRecord(User):
    """A stored user, password hash included.  Never sent over the wire."""

    password: str


class Datastore(abc.ABC):
    # --- users ---

    @abc.abstractmethod
    async def create_user(self, user: UserRecord) -> None:
        """Persist *user*; raise ``DuplicateUserError`` if email or username is taken."""

    @abc.abstractmethod
    async def get_user(self, user_id: str) -> UserRecord | None: ...

    @abc.abstractmethod
    async def get_user_by_email(self, email: str) -> UserRecord | None: ...

    @abc.abstractmethod
    async def get_user_by_username(self, username: str) -> UserRecord | None: ...

    # --- posts ---

    @abc.abstractmethod
    async def create_post(self, post: Post) -> None: ...

    @abc.abstractmethod
    async def list_posts(self, user_id: str | None = None) -> list[Post]: ...

    @abc.abstractmethod
    async def get_post(self, post_id: str, user_id: str | None = None) -> Post | None: ...

    @abc.abstractmethod
    async def delete_post(self, post_id: str) -> None: ...

    # --- likes ---

    @abc.abstractmethod
    async def create_like(self, like: Like) -> None:
        """Persist *like*; raise ``DuplicateLikeError`` if the pair exists."""

    @abc.abstractmethod
    async def delete_like(self, like: Like) -> None: ...

    @abc.abstractmethod
    async def get_likes(self, post_id: str) -> int: ...

    @abc.abstractmethod
    async def exists(self, like: Like) -> bool: ...

    # --- comments ---

    @abc.abstractmethod
    async def create_comment(self, comment: Comment) -> None: ...

    @abc.abstractmethod
    async def list_comments(self, post_id: str) -> list[Comment]: ...

    @abc.abstractmethod
    async def count_comments(self, post_id: str) -> int: ...

    @abc.abstractmethod
    async def get_comment(self, comment_id: str) -> Comment | None: ...

    @abc.abstractmethod
    async def delete_comment(self, comment_id: str) -> None: ...


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------

class SqlDatastore(Datastore):
    def __init__(self, session: AsyncSession, cache: CacheManager | None = None) -> None:
        self.session = session
        self.cache = cache

    # --- users ---

    async def create_user(self, user: UserRecord) -> None:
        self.session.add(models.User(**user.model_dump()))
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateUserError(user.email, user.username) from exc

    async def _find_user(self, *criteria) -> UserRecord | None:
        result = await self.session.execute(select(models.User).where(*criteria))
        row = result.scalar_one_or_none()
        return UserRecord.model_validate(row) if row else None

    async def get_user(self, user_id: str) -> UserRecord | None:
        return await self._find_user(models.User.id == user_id)

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        return await self._find_user(models.User.email == email)

    async def get_user_by_username(self, username: str) -> UserRecord | None:
        return await self._find_user(models.User.username == username)

    # --- posts ---

    @staticmethod
    def _liked_by(user_id: str | None):
        return (
            exists()
            .where(models.Like.post_id == models.Post.id, models.Like.user_id == user_id)
            .label("liked")
        )

    @staticmethod
    def _post_to_schema(row: models.Post, liked: bool) -> Post:
        return Post(
            id=row.id,
            title=row.title,
            url=row.url,
            user_id=row.user_id,
            posted_at=row.posted_at,
            liked=bool(liked),
        )

    async def create_post(self, post: Post) -> None:
        self.session.add(models.Post(**post.model_dump(exclude={"liked"})))
        await self.session.flush()

    async def list_posts(self, user_id: str | None = None) -> list[Post]:
        q = select(models.Post, self._liked_by(user_id)).order_by(models.Post.posted_at.desc())
        result = await self.session.execute(q)
        return [self._post_to_schema(row, liked) for row, liked in result.all()]

    async def get_post(self, post_id: str, user_id: str | None = None) -> Post | None:
        q = select(models.Post, self._liked_by(user_id)).where(models.Post.id == post_id)
        result = await self.session.execute(q)
        found = result.first()
        if found is None:
            return None
        row, liked = found
        return self._post_to_schema(row, liked)

    async def delete_post(self, post_id: str) -> None:
        # Children first; SQLite does not enforce ON DELETE CASCADE by default.
        await self.session.execute(delete(models.Like).where(models.Like.post_id == post_id))
        await self.session.execute(
            delete(models.Comment).where(models.Comment.post_id == post_id)
        )
        await self.session.execute(delete(models.Post).where(models.Post.id == post_id))
        await self._invalidate_likes(post_id)

    # --- likes ---

    async def create_like(self, like: Like) -> None:
        self.session.add(models.Like(post_id=like.post_id, user_id=like.user_id))
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # Pair inserted concurrently, or the post deleted under us.
            await self.session.rollback()
            raise DuplicateLikeError(like.post_id, like.user_id) from exc
        await self._invalidate_likes(like.post_id)

    async def delete_like(self, like: Like) -> None:
        await self.session.execute(
            delete(models.Like).where(
                models.Like.post_id == like.post_id,
                models.Like.user_id == like.user_id,
            )
        )
        await self._invalidate_likes(like.post_id)

    async def get_likes(self, post_id: str) -> int:
        key = CacheManager.likes_key(post_id)
        if self.cache is not None:
            cached = await self.cache.get_int(key)
            if cached is not None:
                return cached

        q = select(func.count()).select_from(models.Like).where(models.Like.post_id == post_id)
        count: int = (await self.session.execute(q)).scalar_one()

        if self.cache is not None:
            await self.cache.set_int(key, count, ttl=settings.CACHE_TTL_LIKES)
        return count

    async def exists(self, like: Like) -> bool:
        q = select(
            exists().where(
                models.Like.post_id == like.post_id,
                models.Like.user_id == like.user_id,
            )
        )
        return bool((await self.session.execute(q)).scalar())

    async def _invalidate_likes(self, post_id: str) -> None:
        if self.cache is not None:
            await self.cache.invalidate_likes(post_id)

    # --- comments ---

    async def create_comment(self, comment: Comment) -> None:
        self.session.add(models.Comment(**comment.model_dump()))
        await self.session.flush()

    async def list_comments(self, post_id: str) -> list[Comment]:
        q = (
            select(models.Comment)
            .where(models.Comment.post_id == post_id)
            .order_by(models.Comment.posted_at.asc())
        )
        result = await self.session.execute(q)
        return [Comment.model_validate(c) for c in result.scalars().all()]

    async def count_comments(self, post_id: str) -> int:
        q = (
            select(func.count())
            .select_from(models.Comment)
            .where(models.Comment.post_id == post_id)
        )
        return (await self.session.execute(q)).scalar_one()

    async def get_comment(self, comment_id: str) -> Comment | None:
        result = await self.session.execute(
            select(models.Comment).where(models.Comment.id == comment_id)
        )
        row = result.scalar_one_or_none()
        return Comment.model_validate(row) if row else None

    async def delete_comment(self, comment_id: str) -> None:
        await self.session.execute(
            delete(models.Comment).where(models.Comment.id == comment_id)
        )


async def get_datastore(session: AsyncSession = Depends(get_db)) -> Datastore:
    """FastAPI dependency: a datastore bound to the request's session."""
    return SqlDatastore(session, cache)
