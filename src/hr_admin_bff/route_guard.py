# src/hr_admin_bff/route_guard.py

import enum
import logging
import re
from typing import Sequence
from urllib.parse import urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from .auth_utils import AUTH_TOKEN_COOKIE
from .config import settings

logger = logging.getLogger(__name__)

SIGN_IN_PATH = "/sign-in"
HOME_PATH = "/"

# API routes, static assets, image assets and the favicon never reach the guard.
GUARDED_PATH_PATTERN = re.compile(r"^/(?!api|_next/static|_next/image|favicon\.ico)")


class GuardAction(str, enum.Enum):
    ALLOW = "allow"
    REDIRECT_TO_SIGN_IN = "redirect_to_sign_in"
    REDIRECT_HOME = "redirect_home"


def is_guarded_path(path: str) -> bool:
    return GUARDED_PATH_PATTERN.match(path) is not None


def evaluate_route(
        path: str,
        has_token: bool,
        protected_prefixes: Sequence[str],
        auth_prefixes: Sequence[str],
) -> GuardAction:
    """
    Decides what to do with a page request from its path and whether an
    `auth_token` cookie is present. Presence only: the token itself is not
    validated here, the upstream service does that on every API call.
    """
    is_protected_route = any(path.startswith(prefix) for prefix in protected_prefixes)
    is_auth_route = any(path.startswith(prefix) for prefix in auth_prefixes)

    if is_protected_route and not has_token:
        return GuardAction.REDIRECT_TO_SIGN_IN
    if is_auth_route and has_token:
        return GuardAction.REDIRECT_HOME
    return GuardAction.ALLOW


class RouteGuardMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, protected_prefixes: Sequence[str] = None, auth_prefixes: Sequence[str] = None):
        super().__init__(app)
        self.protected_prefixes = protected_prefixes
        self.auth_prefixes = auth_prefixes

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not is_guarded_path(path):
            return await call_next(request)

        has_token = bool(request.cookies.get(AUTH_TOKEN_COOKIE))
        action = evaluate_route(
            path,
            has_token,
            self.protected_prefixes if self.protected_prefixes is not None else settings.PROTECTED_ROUTE_PREFIXES,
            self.auth_prefixes if self.auth_prefixes is not None else settings.AUTH_ROUTE_PREFIXES,
        )

        if action is GuardAction.REDIRECT_TO_SIGN_IN:
            sign_in_url = request.url.replace(path=SIGN_IN_PATH, query=urlencode({"redirect": path}))
            logger.debug("ROUTE_GUARD: %s requires a session, redirecting to sign-in", path)
            return RedirectResponse(url=str(sign_in_url))
        if action is GuardAction.REDIRECT_HOME:
            logger.debug("ROUTE_GUARD: %s is an auth page and a session exists, redirecting home", path)
            return RedirectResponse(url=str(request.url.replace(path=HOME_PATH, query="")))
        return await call_next(request)
