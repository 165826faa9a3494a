"""
Endpoint registry: binds every entry of ``ENDPOINT_CONFIGS`` to its route
function behind the authentication gate.

Each route gets the chain ``parse_jwt -> [enforce_jwt] -> handler``, the
enforce stage only where the endpoint config says ``auth=True``.  The
handler table and the endpoint table must cover exactly the same
endpoints; any mismatch is a startup error, never a runtime 404.
"""
import logging
from typing import Callable, Mapping

from fastapi import APIRouter, Depends

from app.auth import enforce_jwt, parse_jwt
from app.endpoints import ENDPOINT_CONFIGS, Endpoint, EndpointConfig
from app.errors import EndpointConfigError
from app.handlers import comment_handler, like_handler, post_handler, user_handler

logger = logging.getLogger(__name__)


async def healthz():
    return {"status": "ok!"}


HANDLERS: Mapping[Endpoint, Callable] = {
    Endpoint.healthz: healthz,

    Endpoint.signin: user_handler.sign_in,
    Endpoint.signup: user_handler.sign_up,
    Endpoint.get_user: user_handler.get_user,
    Endpoint.get_current_user: user_handler.get_current_user,

    Endpoint.list_posts: post_handler.list_posts,
    Endpoint.get_post: post_handler.get_post,
    Endpoint.create_post: post_handler.create_post,
    Endpoint.delete_post: post_handler.delete_post,

    Endpoint.list_likes: like_handler.list_likes,
    Endpoint.create_like: like_handler.create_like,
    Endpoint.delete_like: like_handler.delete_like,

    Endpoint.count_comments: comment_handler.count_comments,
    Endpoint.list_comments: comment_handler.list_comments,
    Endpoint.create_comment: comment_handler.create_comment,
    Endpoint.delete_comment: comment_handler.delete_comment,
}


def build_router(
    configs: Mapping[Endpoint, EndpointConfig] = ENDPOINT_CONFIGS,
    handlers: Mapping[Endpoint, Callable] = HANDLERS,
) -> APIRouter:
    """
    Return an ``APIRouter`` with one route per ``Endpoint``.

    Raises ``EndpointConfigError`` if an endpoint lacks a config or a
    handler.
    """
    missing_config = [e.value for e in Endpoint if e not in configs]
    missing_handler = [e.value for e in Endpoint if e not in handlers]
    if missing_config or missing_handler:
        raise EndpointConfigError(
            f"endpoints without config: {missing_config}; "
            f"endpoints without handler: {missing_handler}"
        )

    router = APIRouter()
    for endpoint in Endpoint:
        config = configs[endpoint]
        dependencies = [Depends(parse_jwt)]
        if config.auth:
            dependencies.append(Depends(enforce_jwt))

        router.add_api_route(
            config.url,
            handlers[endpoint],
            methods=[config.method],
            dependencies=dependencies,
            name=endpoint.value,
            response_model=None,
        )
        logger.debug("Registered %s %s -> %s", config.method, config.url, endpoint.value)
    return router
