"""
Static endpoint table: every logical endpoint, its HTTP method, its URL
template and whether it requires a signed-in user.

The table is built once at import and is read-only afterwards.
"""
from enum import Enum
from types import MappingProxyType
from typing import Mapping, NamedTuple


class Endpoint(str, Enum):
    healthz = "healthz"

    signin = "signin"
    signup = "signup"
    get_user = "getUser"
    get_current_user = "getCurrentUser"

    list_posts = "listPosts"
    get_post = "getPost"
    create_post = "createPost"
    delete_post = "deletePost"

    list_likes = "listLikes"
    create_like = "createLike"
    delete_like = "deleteLike"

    count_comments = "countComments"
    list_comments = "listComments"
    create_comment = "createComment"
    delete_comment = "deleteComment"


class EndpointConfig(NamedTuple):
    method: str
    url: str
    auth: bool = False


ENDPOINT_CONFIGS: Mapping[Endpoint, EndpointConfig] = MappingProxyType({
    Endpoint.healthz: EndpointConfig("GET", "/api/v1/healthz"),

    Endpoint.signin: EndpointConfig("POST", "/api/v1/signin"),
    Endpoint.signup: EndpointConfig("POST", "/api/v1/signup"),
    Endpoint.get_user: EndpointConfig("GET", "/api/v1/users/{user_id}"),
    Endpoint.get_current_user: EndpointConfig("GET", "/api/v1/users", auth=True),

    Endpoint.list_posts: EndpointConfig("GET", "/api/v1/posts", auth=True),
    Endpoint.get_post: EndpointConfig("GET", "/api/v1/posts/{post_id}"),
    Endpoint.create_post: EndpointConfig("POST", "/api/v1/posts", auth=True),
    Endpoint.delete_post: EndpointConfig("DELETE", "/api/v1/posts", auth=True),

    Endpoint.list_likes: EndpointConfig("GET", "/api/v1/likes/{post_id}"),
    Endpoint.create_like: EndpointConfig("POST", "/api/v1/likes/{post_id}", auth=True),
    Endpoint.delete_like: EndpointConfig("DELETE", "/api/v1/likes/{post_id}", auth=True),

    Endpoint.count_comments: EndpointConfig("GET", "/api/v1/comments/{post_id}/count"),
    Endpoint.list_comments: EndpointConfig("GET", "/api/v1/comments/{post_id}"),
    Endpoint.create_comment: EndpointConfig("POST", "/api/v1/comments/{post_id}", auth=True),
    Endpoint.delete_comment: EndpointConfig(
        "DELETE", "/api/v1/comments/{comment_id}", auth=True
    ),
})
