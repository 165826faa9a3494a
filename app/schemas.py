from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every wire model: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def dump(self) -> dict:
        return self.model_dump(by_alias=True)


# --- User ---

class User(CamelModel):
    id: str
    first_name: str
    last_name: str
    username: str
    email: str


# Request fields are optional so that missing values reach the handler's
# presence checks (400) instead of FastAPI's validation (422).

class SignUpRequest(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    username: str | None = None
    password: str | None = None


class SignInRequest(CamelModel):
    login: str | None = None
    password: str | None = None


# --- Post ---

class Post(CamelModel):
    id: str
    title: str
    url: str
    user_id: str
    posted_at: int
    liked: bool = False


class CreatePostRequest(CamelModel):
    title: str | None = None
    url: str | None = None


class DeletePostRequest(CamelModel):
    post_id: str | None = None


# --- Like ---

class Like(CamelModel):
    post_id: str
    user_id: str


# --- Comment ---

class Comment(CamelModel):
    id: str
    post_id: str
    user_id: str
    comment: str
    posted_at: int


class CreateCommentRequest(CamelModel):
    comment: str | None = None
